#! /usr/bin/env python3

import inspect
import requests

from errors import DecodeError, TransportError
from models import BundleId, Certificate, Profile
from requests.models import PreparedRequest, Response
from system import Log
from typing import Any, Callable, Generic, Iterator, TypeVar

API_BASE_URL = "https://api.appstoreconnect.apple.com/v1"

# Largest page size the API accepts on collection endpoints
PAGE_LIMIT = 200

RAW_LOG_FILE = "raw_requests.log"

T = TypeVar("T")


class BearerSession(requests.Session):
    """
    A session that signs every request with the App Store Connect token and
    can log all requests and responses to a file for debugging.
    """

    def __init__(self, rawLogging: bool = False, rawLogPath: str = RAW_LOG_FILE):
        super().__init__()
        self.rawLogging = rawLogging
        self.rawLogPath = rawLogPath
        self.logfile = None
        self.headers.update({"Accept": "application/json"})

    def request(self, method: str | bytes, url: str | bytes, *args: Any, token: str | None = None, **kwargs: Any):
        if token:
            headers = kwargs.setdefault("headers", {})
            headers["Authorization"] = f"Bearer {token}"
        return super().request(method, url, *args, **kwargs)

    def send(self, request: PreparedRequest, **kwargs: Any) -> Response:
        if self.rawLogging:
            if not self.logfile:
                self.logfile = open(self.rawLogPath, "a")

            print("=== REQUEST ===", file=self.logfile)
            print(f"{request.method} {request.url}", file=self.logfile)
            for k, v in request.headers.items():
                if k.lower() == "authorization":
                    v = "Bearer <redacted>"
                print(f"{k}: {v}", file=self.logfile)
            if request.body:
                print("\nBody:", file=self.logfile)
                print(request.body, file=self.logfile)

        response = super().send(request, **kwargs)

        if self.rawLogging:
            print("\n=== RESPONSE ===", file=self.logfile)
            print(f"Status: {response.status_code}", file=self.logfile)
            for k, v in response.headers.items():
                print(f"{k}: {v}", file=self.logfile)
            print("\nBody:", file=self.logfile)
            # limit to first 1000 chars
            print(response.text[:1000], file=self.logfile)
            print("=" * 40, file=self.logfile)
            self.logfile.flush()

        return response

    def close(self):
        if self.logfile:
            self.logfile.close()
            self.logfile = None
        super().close()


class PagedCollection(Generic[T]):
    """
    Every resource of a collection endpoint, across all pages.

    Iteration is lazy and can be restarted: each new iteration issues the
    initial request again and then follows `links.next` verbatim until the
    server stops returning one. Resources are yielded once per id.
    """

    def __init__(
        self,
        client: "Client",
        jsonWebToken: str,
        url: str,
        params: dict[str, Any] | None = None,
        decode: Callable[[dict[str, Any]], T] | None = None,
    ):
        self.client = client
        self.jsonWebToken = jsonWebToken
        self.url = url
        self.params = params
        self.decode = decode

    def pages(self) -> Iterator[dict[str, Any]]:
        defName = inspect.stack()[0][3]

        url: str | None = self.url
        params = self.params
        fetched: set[str] = set()
        while url:
            if url in fetched:
                raise DecodeError(url, "links.next points at a page that was already fetched", "")
            fetched.add(url)

            page = self.client.request("GET", url, self.jsonWebToken, params=params)
            data, nextUrl = self.unwrap(url, page)
            self.client.log.debug(f"def={defName}: url={url}, count={len(data)}, next={nextUrl}")
            yield page

            # The next link already carries the query
            url = nextUrl
            params = None

    @staticmethod
    def unwrap(url: str, page: Any) -> tuple[list[dict[str, Any]], str | None]:
        if not isinstance(page, dict) or not isinstance(page.get("data"), list):
            raise DecodeError(url, "expected an object with a `data` array", str(page))
        links = page.get("links") or {}
        if not isinstance(links, dict):
            raise DecodeError(url, "expected `links` to be an object", str(page))
        nextUrl = links.get("next")
        if nextUrl is not None and not isinstance(nextUrl, str):
            raise DecodeError(url, "expected `links.next` to be a string", str(page))
        return page["data"], nextUrl

    def __iter__(self) -> Iterator[T]:
        seen: set[str] = set()
        for page in self.pages():
            for resource in page["data"]:
                if not isinstance(resource, dict) or "id" not in resource:
                    raise DecodeError(self.url, "expected resources with an `id`", str(resource))
                if resource["id"] in seen:
                    continue
                seen.add(resource["id"])
                if self.decode is None:
                    yield resource  # type: ignore
                    continue
                try:
                    entity = self.decode(resource)
                except (KeyError, TypeError, ValueError) as e:
                    raise DecodeError(self.url, f"malformed resource: {e!r}", str(resource)) from e
                yield entity

    def all(self) -> list[T]:
        return list(self)


class Client:
    """
    Client for the App Store Connect API
    https://developer.apple.com/documentation/appstoreconnectapi

    usage:
    ```
    client = Client(log=Log("debug"))
    for certificate in client.getCertificates(jsonWebToken, "IOS_DISTRIBUTION"):
        print(certificate.id)
    ```
    """

    def __init__(
        self,
        log: Log | None = None,
        session: BearerSession | None = None,
        baseUrl: str = API_BASE_URL,
        rawLogging: bool = False,
    ):
        self.log = log or Log()
        self.session = session if session is not None else BearerSession(rawLogging=rawLogging)
        self.baseUrl = baseUrl.rstrip("/")

    def url(self, path: str) -> str:
        return f"{self.baseUrl}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        url: str,
        jsonWebToken: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        defName = inspect.stack()[0][3]

        response = self.session.request(method, url, token=jsonWebToken, params=params, json=json)
        self.log.debug(f"def={defName}: {method} {url}, response.status_code={response.status_code}")

        if not 200 <= response.status_code < 300:
            self.log.error(
                f"def={defName}: url='{url}', response.status_code='{response.status_code}', response.text='{response.text}'"
            )
            raise TransportError(method, url, response.status_code, response.text)

        if not response.content:
            # 204 No Content from deletions
            return None
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(url, f"failed get response.json(), error={str(e)}", response.text) from e

    def fetchAll(
        self,
        jsonWebToken: str,
        path: str,
        params: dict[str, Any] | None = None,
        decode: Callable[[dict[str, Any]], T] | None = None,
    ) -> PagedCollection[T]:
        return PagedCollection(self, jsonWebToken, self.url(path), params=params, decode=decode)

    def fetchOne(self, url: str, body: Any, decode: Callable[[dict[str, Any]], T]) -> T:
        if not isinstance(body, dict) or not isinstance(body.get("data"), dict):
            raise DecodeError(url, "expected an object with a `data` object", str(body))
        try:
            return decode(body["data"])
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(url, f"malformed resource: {e!r}", str(body)) from e

    def getBundleIds(self, jsonWebToken: str, identifier: str) -> PagedCollection[BundleId]:
        params = {"filter[identifier]": identifier, "limit": PAGE_LIMIT}
        return self.fetchAll(jsonWebToken, "bundleIds", params=params, decode=BundleId.fromJson)

    def getCertificates(self, jsonWebToken: str, certificateType: str) -> PagedCollection[Certificate]:
        params = {"filter[certificateType]": certificateType, "limit": PAGE_LIMIT}
        return self.fetchAll(jsonWebToken, "certificates", params=params, decode=Certificate.fromJson)

    def getDevices(self, jsonWebToken: str) -> PagedCollection[dict[str, Any]]:
        return self.fetchAll(jsonWebToken, "devices", params={"limit": PAGE_LIMIT})

    def getBundleIdProfiles(self, jsonWebToken: str, bundleIdId: str) -> PagedCollection[Profile]:
        return self.fetchAll(
            jsonWebToken, f"bundleIds/{bundleIdId}/profiles", params={"limit": PAGE_LIMIT}, decode=Profile.fromJson
        )

    def createCertificate(self, jsonWebToken: str, csrContent: str, certificateType: str) -> Certificate:
        body: dict[str, Any] = {
            "data": {
                "type": "certificates",
                "attributes": {
                    "csrContent": csrContent,
                    "certificateType": certificateType,
                },
            }
        }
        url = self.url("certificates")
        return self.fetchOne(url, self.request("POST", url, jsonWebToken, json=body), Certificate.fromJson)

    def createProfile(
        self,
        jsonWebToken: str,
        name: str,
        profileType: str,
        bundleIdId: str,
        certificateId: str,
        deviceIds: list[str],
    ) -> Profile:
        devices = [{"type": "devices", "id": deviceId} for deviceId in deviceIds]
        body: dict[str, Any] = {
            "data": {
                "type": "profiles",
                "attributes": {
                    "name": name,
                    "profileType": profileType,
                },
                "relationships": {
                    "bundleId": {"data": {"type": "bundleIds", "id": bundleIdId}},
                    "certificates": {"data": [{"type": "certificates", "id": certificateId}]},
                    "devices": {"data": devices},
                },
            }
        }
        url = self.url("profiles")
        return self.fetchOne(url, self.request("POST", url, jsonWebToken, json=body), Profile.fromJson)

    def deleteProfile(self, jsonWebToken: str, profileId: str):
        self.request("DELETE", self.url(f"profiles/{profileId}"), jsonWebToken)
        # This doesn't return any data
        return True
