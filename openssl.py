#! /usr/bin/env python3

import hashlib
import inspect
import os

from errors import UnableToCreateCSR, UnableToCreateP12Identity, UnableToCreatePEM, UnableToReadPublicKey
from system import Files, Log, Shell


def fingerprint(publicKeyPem: str) -> str:
    """
    SHA-256 over the base64 body of a PEM public key. Both `openssl pkey -pubout`
    and `openssl x509 -pubkey` print SubjectPublicKeyInfo, so the same key
    gives the same fingerprint whichever side it came from.
    """
    body = "".join(
        line.strip() for line in publicKeyPem.splitlines() if line.strip() and not line.startswith("-----")
    )
    return hashlib.sha256(body.encode("ascii")).hexdigest()


class OpenSSL:
    """
    The openssl invocations needed to mint and package signing identities.
    Every artifact lands in its own temporary directory.
    """

    def __init__(self, opensslPath: str, shell: Shell, files: Files, log: Log | None = None):
        self.opensslPath = opensslPath
        self.shell = shell
        self.files = files
        self.log = log or Log()

    def createCSR(self, privateKeyPath: str, subject: str) -> str:
        defName = inspect.stack()[0][3]

        csr = os.path.join(self.files.uniqueTemporaryPath(), "certificate_request.csr")
        output = self.shell.execute(
            [self.opensslPath, "req", "-new", "-key", privateKeyPath, "-out", csr, "-subj", subject]
        )
        if not output.isSuccessful:
            raise UnableToCreateCSR(output)
        self.log.debug(f"def={defName}: csr={csr}")
        return csr

    def createPEM(self, cer: str) -> str:
        pem = os.path.join(self.files.uniqueTemporaryPath(), "certificate.pem")
        output = self.shell.execute(
            [self.opensslPath, "x509", "-inform", "DER", "-outform", "PEM", "-in", cer, "-out", pem]
        )
        if not output.isSuccessful:
            raise UnableToCreatePEM(output)
        return pem

    def createP12Identity(self, pem: str, privateKeyPath: str, identityPassword: str) -> str:
        p12 = os.path.join(self.files.uniqueTemporaryPath(), "identity.p12")
        output = self.shell.execute(
            [
                self.opensslPath,
                "pkcs12",
                "-export",
                "-inkey",
                privateKeyPath,
                "-in",
                pem,
                "-passout",
                f"pass:{identityPassword}",
                "-out",
                p12,
            ]
        )
        if not output.isSuccessful:
            raise UnableToCreateP12Identity(output)
        return p12

    def privateKeyFingerprint(self, privateKeyPath: str) -> str:
        output = self.shell.execute([self.opensslPath, "pkey", "-in", privateKeyPath, "-pubout"])
        if not output.isSuccessful:
            raise UnableToReadPublicKey(output)
        return fingerprint(output.outputString)

    def certificateFingerprint(self, cer: str) -> str:
        output = self.shell.execute([self.opensslPath, "x509", "-inform", "DER", "-in", cer, "-noout", "-pubkey"])
        if not output.isSuccessful:
            raise UnableToReadPublicKey(output)
        return fingerprint(output.outputString)
