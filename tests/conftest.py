import base64
import datetime
import json

import pytest
import requests

from client import API_BASE_URL, Client
from system import Files, Log, ShellOutput

NOW = datetime.datetime(2026, 1, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)

CSR_PEM = "-----BEGIN CERTIFICATE REQUEST-----\nMIIBfake\n-----END CERTIFICATE REQUEST-----\n"


def api(path: str) -> str:
    return f"{API_BASE_URL}/{path}"


def public_key_pem(name: str) -> str:
    body = base64.b64encode(name.encode()).decode()
    return f"-----BEGIN PUBLIC KEY-----\n{body}\n-----END PUBLIC KEY-----\n"


def make_response(status: int = 200, body=None, text: str | None = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    if text is None:
        text = "" if body is None else json.dumps(body)
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    return response


def page(resources: list[dict], next_url: str | None = None, self_url: str = "https://example.invalid") -> dict:
    links: dict = {"self": self_url}
    if next_url:
        links["next"] = next_url
    return {"data": resources, "links": links}


def certificate_json(
    id: str,
    content: bytes,
    certificate_type: str = "DISTRIBUTION",
    expiration: str = "2027-01-01T00:00:00.000+00:00",
) -> dict:
    return {
        "id": id,
        "type": "certificates",
        "attributes": {
            "name": f"Cert {id}",
            "displayName": f"Display {id}",
            "certificateType": certificate_type,
            "certificateContent": base64.b64encode(content).decode(),
            "expirationDate": expiration,
        },
    }


def profile_json(
    id: str,
    profile_type: str = "IOS_APP_STORE",
    uuid: str | None = None,
    content: bytes = b"profile-bytes",
) -> dict:
    return {
        "id": id,
        "type": "profiles",
        "attributes": {
            "name": f"Profile {id}",
            "platform": "IOS",
            "profileContent": base64.b64encode(content).decode(),
            "uuid": uuid or f"UUID-{id}",
            "createdDate": "2026-01-01T00:00:00.000+00:00",
            "profileState": "ACTIVE",
            "profileType": profile_type,
            "expirationDate": "2027-01-01T00:00:00.000+00:00",
        },
    }


def bundle_id_json(id: str, identifier: str = "com.example.app", name: str = "Example") -> dict:
    return {"id": id, "type": "bundleIds", "attributes": {"identifier": identifier, "name": name}}


class FakeSession:
    """
    Stands in for BearerSession. Responses are queued per (method, url) and
    every call is recorded.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], list[requests.Response]] = {}
        self.calls: list[dict] = []

    def add(self, method: str, url: str, response: requests.Response):
        self.routes.setdefault((method, url), []).append(response)

    def add_json(self, method: str, url: str, body, status: int = 200):
        self.add(method, url, make_response(status, body))

    def request(self, method, url, token=None, params=None, json=None, **kwargs):
        self.calls.append({"method": method, "url": url, "token": token, "params": params, "json": json})
        queue = self.routes.get((method, url))
        if not queue:
            raise AssertionError(f"unexpected request {method} {url}")
        # The last response for a route keeps being served
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def calls_to(self, method: str, url: str | None = None) -> list[dict]:
        return [c for c in self.calls if c["method"] == method and (url is None or c["url"] == url)]

    def close(self):
        pass


class FakeShell:
    """
    Pretends to be openssl. Public keys are looked up by private key path
    (pkey) or by certificate bytes (x509 -pubkey).
    """

    def __init__(self, public_keys: dict | None = None, failing: tuple[str, ...] = ()):
        self.public_keys = public_keys or {}
        self.failing = set(failing)
        self.commands: list[list[str]] = []

    def execute(self, command: list[str]) -> ShellOutput:
        self.commands.append(command)
        subcommand = command[1]
        args = command[2:]

        def arg(flag: str) -> str:
            return args[args.index(flag) + 1]

        if subcommand in self.failing:
            return ShellOutput(command, 1, "", f"{subcommand}: unable to load key")

        if subcommand == "req":
            with open(arg("-out"), "w") as f:
                f.write(CSR_PEM)
        elif subcommand == "pkey":
            return ShellOutput(command, 0, self.public_keys.get(arg("-in"), public_key_pem("unknown")), "")
        elif subcommand == "x509" and "-pubkey" in args:
            with open(arg("-in"), "rb") as f:
                content = f.read()
            return ShellOutput(command, 0, self.public_keys.get(content, public_key_pem("other")), "")
        elif subcommand in ("x509", "pkcs12"):
            with open(arg("-out"), "wb") as f:
                f.write(f"{subcommand} output".encode())
        return ShellOutput(command, 0, "", "")

    def subcommands(self) -> list[str]:
        return [c[1] for c in self.commands]


class FixedClock:
    def __init__(self, now: datetime.datetime = NOW):
        self.value = now

    def now(self) -> datetime.datetime:
        return self.value


class SequentialUUID:
    def __init__(self):
        self.count = 0

    def make(self) -> str:
        self.count += 1
        return f"UUID-{self.count}"


class RecordingFiles(Files):
    def __init__(self):
        self.written: list[str] = []

    def write(self, data: bytes, path: str):
        self.written.append(path)
        super().write(data, path)


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(session: FakeSession) -> Client:
    return Client(log=Log("debug"), session=session)  # type: ignore


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def files() -> RecordingFiles:
    return RecordingFiles()
