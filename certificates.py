#! /usr/bin/env python3

import inspect
import os

from client import Client
from dataclasses import dataclass
from enum import Enum
from models import Certificate
from openssl import OpenSSL
from system import Clock, Files, Log


class Outcome(Enum):
    REUSED = "Reused"
    CREATED = "Created"


@dataclass
class CertificateResolution:
    outcome: Outcome
    certificate: Certificate
    content: bytes
    # <outputPath>/<certificateId>.cer
    path: str

    @property
    def certificateId(self) -> str:
        return self.certificate.id


class CertificateResolver:
    """
    Finds the active certificate of a type that was issued for our private
    key, or mints a new one from a certificate signing request.

    Apple caps the number of valid certificates per type, so reusing one
    matters. At most one certificate is expected per private key; if there
    are several, the first one the API returns is used.
    """

    def __init__(self, client: Client, openssl: OpenSSL, files: Files, clock: Clock, log: Log | None = None):
        self.client = client
        self.openssl = openssl
        self.files = files
        self.clock = clock
        self.log = log or client.log

    def fetchActiveCertificates(self, jsonWebToken: str, certificateType: str) -> list[Certificate]:
        now = self.clock.now()
        return [
            certificate
            for certificate in self.client.getCertificates(jsonWebToken, certificateType)
            if certificate.certificateType == certificateType and certificate.isActive(now)
        ]

    def findMatching(self, candidates: list[Certificate], privateKeyPath: str) -> tuple[Certificate, bytes] | None:
        defName = inspect.stack()[0][3]

        if not candidates:
            return None
        keyFingerprint = self.openssl.privateKeyFingerprint(privateKeyPath)
        for certificate in candidates:
            content = certificate.decodedContent()
            cer = os.path.join(self.files.uniqueTemporaryPath(), f"{certificate.id}.cer")
            self.files.write(content, cer)
            matches = self.openssl.certificateFingerprint(cer) == keyFingerprint
            self.log.debug(f"def={defName}: certificate={certificate.id}, matches={matches}")
            if matches:
                return certificate, content
        return None

    def resolveOrCreate(
        self,
        jsonWebToken: str,
        certificateType: str,
        csr: str,
        privateKeyPath: str,
        outputPath: str,
    ) -> CertificateResolution:
        defName = inspect.stack()[0][3]

        candidates = self.fetchActiveCertificates(jsonWebToken, certificateType)
        match = self.findMatching(candidates, privateKeyPath)
        if match is not None:
            certificate, content = match
            outcome = Outcome.REUSED
        else:
            csrContent = self.files.read(csr).decode("utf-8")
            certificate = self.client.createCertificate(jsonWebToken, csrContent, certificateType)
            content = certificate.decodedContent()
            outcome = Outcome.CREATED
        self.log.debug(f"def={defName}: certificate={certificate.id}, outcome={outcome.value}")

        path = os.path.join(outputPath, f"{certificate.id}.cer")
        self.files.write(content, path)
        return CertificateResolution(outcome=outcome, certificate=certificate, content=content, path=path)
