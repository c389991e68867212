import pytest

from bundle_ids import BundleIdResolver
from certificates import CertificateResolver, Outcome
from classes import Config_Credentials, Config_Job
from commands import CreateProvisioningProfileCommand, DeleteProvisioningProfileCommand, validate_job
from conftest import (
    FakeShell,
    SequentialUUID,
    api,
    bundle_id_json,
    certificate_json,
    make_response,
    page,
    profile_json,
    public_key_pem,
)
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from errors import UnableToCreateCSR
from openssl import OpenSSL
from profiles import ProfileManager
from system import Log
from token_service import TokenService

KEY = "/keys/signing.key"


@pytest.fixture
def credentials(tmp_path):
    key = ec.generate_private_key(ec.SECP256R1())
    p8 = tmp_path / "AuthKey.p8"
    p8.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return Config_Credentials(keyIdentifier="KEY123", issuerID="issuer-1", itunesConnectKeyPath=str(p8))


def create_job(**overrides) -> Config_Job:
    values = dict(
        action="create",
        bundleIdentifier="com.example.app",
        profileType="IOS_APP_STORE",
        certificateType="DISTRIBUTION",
        privateKeyPath=KEY,
        certificateSigningRequestSubject="/CN=Example/C=US",
    )
    values.update(overrides)
    return Config_Job(**values)


def make_create(client, files, clock, shell):
    log = Log()
    openssl = OpenSSL("/usr/bin/openssl", shell, files, log)
    profileManager = ProfileManager(client, files, clock, SequentialUUID(), log)
    return CreateProvisioningProfileCommand(
        TokenService(clock, log),
        BundleIdResolver(client, log),
        CertificateResolver(client, openssl, files, clock, log),
        profileManager,
        openssl,
        files,
        log,
    )


def make_delete(client, files, clock):
    log = Log()
    return DeleteProvisioningProfileCommand(
        TokenService(clock, log),
        BundleIdResolver(client, log),
        ProfileManager(client, files, clock, SequentialUUID(), log),
        files,
        log,
    )


def test_create_mints_certificate_and_saves_one_profile(client, session, files, clock, credentials, tmp_path):
    output = tmp_path / "output"
    shell = FakeShell({KEY: public_key_pem("mine"), b"someone-else": public_key_pem("theirs")})
    session.add_json("GET", api("certificates"), page([certificate_json("C0", b"someone-else")]))
    session.add_json("POST", api("certificates"), {"data": certificate_json("C1", b"der")}, status=201)
    session.add_json("GET", api("devices"), page([{"id": "D1", "type": "devices"}, {"id": "D2", "type": "devices"}]))
    session.add_json("GET", api("bundleIds"), page([bundle_id_json("B1")]))
    session.add_json(
        "POST", api("profiles"), {"data": profile_json("P1", uuid="ABC-123", content=b"profile")}, status=201
    )

    result = make_create(client, files, clock, shell).run(credentials, create_job(), str(output))

    assert len(session.calls_to("POST", api("certificates"))) == 1
    assert len(session.calls_to("GET", api("devices"))) == 1
    profile_posts = session.calls_to("POST", api("profiles"))
    assert len(profile_posts) == 1
    relationships = profile_posts[0]["json"]["data"]["relationships"]
    assert relationships["bundleId"]["data"]["id"] == "B1"
    assert relationships["certificates"]["data"] == [{"type": "certificates", "id": "C1"}]
    assert [d["id"] for d in relationships["devices"]["data"]] == ["D1", "D2"]

    assert sorted(p.name for p in output.iterdir()) == ["ABC-123.mobileprovision", "C1.cer"]
    assert (output / "ABC-123.mobileprovision").read_bytes() == b"profile"
    assert result.certificateOutcome is Outcome.CREATED
    assert result.profileId == "P1"
    assert result.uuid == "ABC-123"

    # Every request carries the same token
    tokens = {c["token"] for c in session.calls}
    assert len(tokens) == 1 and None not in tokens


def test_create_reuses_matching_certificate(client, session, files, clock, credentials, tmp_path):
    shell = FakeShell({KEY: public_key_pem("mine"), b"der": public_key_pem("mine")})
    session.add_json("GET", api("certificates"), page([certificate_json("C1", b"der")]))
    session.add_json("GET", api("devices"), page([]))
    session.add_json("GET", api("bundleIds"), page([bundle_id_json("B1")]))
    session.add_json("POST", api("profiles"), {"data": profile_json("P1")}, status=201)

    result = make_create(client, files, clock, shell).run(credentials, create_job(), str(tmp_path))

    assert result.certificateOutcome is Outcome.REUSED
    assert session.calls_to("POST", api("certificates")) == []


def test_create_exports_identity_when_password_is_set(client, session, files, clock, credentials, tmp_path):
    shell = FakeShell()
    session.add_json("GET", api("certificates"), page([]))
    session.add_json("POST", api("certificates"), {"data": certificate_json("C1", b"der")}, status=201)
    session.add_json("GET", api("devices"), page([]))
    session.add_json("GET", api("bundleIds"), page([bundle_id_json("B1")]))
    session.add_json("POST", api("profiles"), {"data": profile_json("P1")}, status=201)

    result = make_create(client, files, clock, shell).run(
        credentials, create_job(identityPassword="secret"), str(tmp_path)
    )

    assert [p.rsplit("/", 1)[-1] for p in result.identityPaths] == ["C1.pem", "C1.p12"]
    assert (tmp_path / "C1.p12").read_bytes() == b"pkcs12 output"
    assert shell.subcommands() == ["req", "x509", "pkcs12"]


def test_create_fails_before_any_request_when_csr_fails(client, session, files, clock, credentials, tmp_path):
    shell = FakeShell(failing=("req",))

    with pytest.raises(UnableToCreateCSR):
        make_create(client, files, clock, shell).run(credentials, create_job(), str(tmp_path))

    assert session.calls == []


def test_delete_issues_one_delete_per_matching_profile(client, session, files, clock, credentials):
    session.add_json("GET", api("bundleIds"), page([bundle_id_json("X")]))
    session.add_json(
        "GET",
        api("bundleIds/X/profiles"),
        page([profile_json("P1", "IOS_APP_ADHOC"), profile_json("P2", "IOS_APP_ADHOC")]),
    )
    session.add("DELETE", api("profiles/P1"), make_response(204))
    session.add("DELETE", api("profiles/P2"), make_response(204))

    job = Config_Job(action="delete", bundleIdentifier="com.example.app", profileType="IOS_APP_ADHOC")
    result = make_delete(client, files, clock).run(credentials, job)

    assert result.deletedIds == ["P1", "P2"]
    assert len(session.calls_to("DELETE")) == 2
    assert session.calls_to("POST") == []


def test_validate_job():
    validate_job(create_job())
    validate_job(Config_Job(action="delete", bundleIdentifier="com.example.app", profileType="IOS_APP_STORE"))

    with pytest.raises(ValueError):
        validate_job(create_job(action="rename"))
    with pytest.raises(ValueError):
        validate_job(create_job(profileType="IOS_APP_NOPE"))
    with pytest.raises(ValueError):
        validate_job(create_job(privateKeyPath=None))
    with pytest.raises(ValueError):
        validate_job(create_job(certificateSigningRequestSubject=None))
