#! /usr/bin/env python3

import os

from bundle_ids import BundleIdResolver
from certificates import CertificateResolver, Outcome
from classes import Config_Credentials, Config_Job
from dataclasses import dataclass, field
from models import ProfileType
from openssl import OpenSSL
from profiles import ProfileManager
from system import Files, Log
from token_service import TokenService

ACTIONS = ["create", "delete"]


def validate_job(job: Config_Job):
    if job.action not in ACTIONS:
        raise ValueError(f"Unknown action {job.action!r}, expected one of {ACTIONS}")
    if not job.bundleIdentifier:
        raise ValueError("bundleIdentifier must not be empty")
    if job.profileType not in [x.value for x in ProfileType]:
        raise ValueError(f"Unknown profile type: {job.profileType}")
    if job.action == "create":
        if not job.certificateType:
            raise ValueError(f"certificateType must not be None for bundle {job.bundleIdentifier}")
        if not job.privateKeyPath:
            raise ValueError(f"privateKeyPath must not be None for bundle {job.bundleIdentifier}")
        if not job.certificateSigningRequestSubject:
            raise ValueError(
                f"certificateSigningRequestSubject must not be None for bundle {job.bundleIdentifier}"
            )


@dataclass
class CreateResult:
    bundleIdentifier: str
    profileType: str
    certificateId: str
    certificateOutcome: Outcome
    profileId: str
    uuid: str
    path: str
    identityPaths: list[str] = field(default_factory=list)


@dataclass
class DeleteResult:
    bundleIdentifier: str
    profileType: str
    deletedIds: list[str]


class CreateProvisioningProfileCommand:
    """
    Creates and saves a ready to use provisioning profile: finds or mints
    the signing certificate, then creates a profile for the bundle id with
    every registered device.

    Writes <outputPath>/<certificateId>.cer and <outputPath>/<uuid>.mobileprovision.
    The profile id in the result can be used to delete the profile later.
    """

    def __init__(
        self,
        tokenService: TokenService,
        bundleIdResolver: BundleIdResolver,
        certificateResolver: CertificateResolver,
        profileManager: ProfileManager,
        openssl: OpenSSL,
        files: Files,
        log: Log,
    ):
        self.tokenService = tokenService
        self.bundleIdResolver = bundleIdResolver
        self.certificateResolver = certificateResolver
        self.profileManager = profileManager
        self.openssl = openssl
        self.files = files
        self.log = log

    def run(self, credentials: Config_Credentials, job: Config_Job, outputPath: str) -> CreateResult:
        validate_job(job)

        # Fails on a bad private key before anything is sent to Apple
        csr = self.openssl.createCSR(job.privateKeyPath, job.certificateSigningRequestSubject)
        jsonWebToken = self.tokenService.createToken(
            credentials.keyIdentifier,
            credentials.issuerID,
            self.files.read(credentials.itunesConnectKeyPath),
        )
        self.files.makedirs(outputPath)

        certificate = self.certificateResolver.resolveOrCreate(
            jsonWebToken, job.certificateType, csr, job.privateKeyPath, outputPath
        )
        deviceIds = self.profileManager.fetchDeviceIds(jsonWebToken)
        bundleIdId = self.bundleIdResolver.resolve(jsonWebToken, job.bundleIdentifier, job.bundleIdentifierName)
        created = self.profileManager.create(
            jsonWebToken,
            bundleIdId=bundleIdId,
            certificateId=certificate.certificateId,
            deviceIds=deviceIds,
            profileType=job.profileType,
            name=self.profileManager.profileName(job.profileType, job.profileName),
        )
        path = self.profileManager.save(created, outputPath)

        identityPaths: list[str] = []
        if job.identityPassword:
            identityPaths = self.exportIdentity(certificate.path, job.privateKeyPath, job.identityPassword, outputPath)

        self.log.append("cer: " + certificate.certificateId)
        self.log.append("uuid: " + created.profile.uuid)
        return CreateResult(
            bundleIdentifier=job.bundleIdentifier,
            profileType=job.profileType,
            certificateId=certificate.certificateId,
            certificateOutcome=certificate.outcome,
            profileId=created.profile.id,
            uuid=created.profile.uuid,
            path=path,
            identityPaths=identityPaths,
        )

    def exportIdentity(self, cer: str, privateKeyPath: str, identityPassword: str, outputPath: str) -> list[str]:
        base = os.path.splitext(os.path.basename(cer))[0]
        pem = self.openssl.createPEM(cer)
        p12 = self.openssl.createP12Identity(pem, privateKeyPath, identityPassword)

        paths = []
        for source, extension in [(pem, ".pem"), (p12, ".p12")]:
            destination = os.path.join(outputPath, base + extension)
            self.files.write(self.files.read(source), destination)
            paths.append(destination)
        return paths


class DeleteProvisioningProfileCommand:
    """
    Deletes every provisioning profile of one type that belongs to a bundle id.
    """

    def __init__(
        self,
        tokenService: TokenService,
        bundleIdResolver: BundleIdResolver,
        profileManager: ProfileManager,
        files: Files,
        log: Log,
    ):
        self.tokenService = tokenService
        self.bundleIdResolver = bundleIdResolver
        self.profileManager = profileManager
        self.files = files
        self.log = log

    def run(self, credentials: Config_Credentials, job: Config_Job) -> DeleteResult:
        validate_job(job)

        jsonWebToken = self.tokenService.createToken(
            credentials.keyIdentifier,
            credentials.issuerID,
            self.files.read(credentials.itunesConnectKeyPath),
        )
        bundleIdId = self.bundleIdResolver.resolve(jsonWebToken, job.bundleIdentifier, job.bundleIdentifierName)
        deletedIds = self.profileManager.deleteAllMatching(jsonWebToken, bundleIdId, job.profileType)
        for profileId in deletedIds:
            self.log.append("deleted: " + profileId)
        return DeleteResult(bundleIdentifier=job.bundleIdentifier, profileType=job.profileType, deletedIds=deletedIds)
