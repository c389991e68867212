#! /usr/bin/env python3

from system import ShellOutput


class SignHereError(Exception):
    """
    Base class for every failure raised while talking to App Store Connect
    or the openssl toolchain. Subclasses keep enough context to diagnose the
    failure without re-running.
    """

    title = "Unknown error"

    def details(self) -> list[str]:
        return []

    def __str__(self) -> str:
        lines = [f"[{self.__class__.__name__}] {self.title}"]
        lines += [f"- {line}" for line in self.details()]
        return "\n".join(lines)


class InvalidKeyMaterial(SignHereError):
    title = "Unable to load the private key used to sign API tokens"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def details(self) -> list[str]:
        return [f"Reason: {self.reason}"]


class TransportError(SignHereError):
    title = "API request was not successful"

    def __init__(self, method: str, url: str, statusCode: int, body: str):
        super().__init__(method, url, statusCode, body)
        self.method = method
        self.url = url
        self.statusCode = statusCode
        self.body = body

    def details(self) -> list[str]:
        return [
            f"Request: {self.method} {self.url}",
            f"Status code: {self.statusCode}",
            f"Body: {self.body}",
        ]


class DecodeError(SignHereError):
    title = "Unable to decode API response"

    def __init__(self, url: str, reason: str, body: str):
        super().__init__(url, reason, body)
        self.url = url
        self.reason = reason
        self.body = body

    def details(self) -> list[str]:
        return [f"URL: {self.url}", f"Reason: {self.reason}", f"Body: {self.body}"]


class UnableToBase64DecodeCertificate(SignHereError):
    title = "Unable to base 64 decode certificate"

    def __init__(self, displayName: str):
        super().__init__(displayName)
        self.displayName = displayName

    def details(self) -> list[str]:
        return [f"Certificate display name: {self.displayName}"]


class UnableToBase64DecodeProfile(SignHereError):
    title = "Unable to base 64 decode profile"

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def details(self) -> list[str]:
        return [f"Profile name: {self.name}"]


class ShellError(SignHereError):
    def __init__(self, output: ShellOutput):
        super().__init__(output)
        self.output = output

    def details(self) -> list[str]:
        command = ["pass:<redacted>" if arg.startswith("pass:") else arg for arg in self.output.command]
        return [
            f"Command: {' '.join(command)}",
            f"Exit status: {self.output.status}",
            f"Output: {self.output.outputString}",
            f"Error: {self.output.errorString}",
        ]


class UnableToCreateCSR(ShellError):
    title = "Unable to create certificate signing request"


class UnableToCreatePEM(ShellError):
    title = "Unable to create PEM"


class UnableToCreateP12Identity(ShellError):
    title = "Unable to create P12 identity"


class UnableToReadPublicKey(ShellError):
    title = "Unable to read public key"


class AmbiguousOrMissingBundleId(SignHereError):
    title = "Unable to determine the bundle id resource"

    def __init__(self, bundleIdentifier: str):
        super().__init__(bundleIdentifier)
        self.bundleIdentifier = bundleIdentifier

    def details(self) -> list[str]:
        return [f"Bundle identifier: {self.bundleIdentifier}"]


class NoMatchingBundleId(AmbiguousOrMissingBundleId):
    title = "No bundle id matches the requested name"

    def __init__(self, bundleIdentifier: str, bundleIdentifierName: str, candidates: list[str]):
        super().__init__(bundleIdentifier)
        self.bundleIdentifierName = bundleIdentifierName
        self.candidates = candidates

    def details(self) -> list[str]:
        return super().details() + [
            f"Bundle identifier name: {self.bundleIdentifierName}",
            f"Names returned: {', '.join(self.candidates) or '(none)'}",
        ]
