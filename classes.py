#! /usr/bin/env python3

from dataclasses import dataclass, field


@dataclass
class Config_Credentials:
    # App Store Connect API key, see
    # https://developer.apple.com/documentation/appstoreconnectapi/generating_tokens_for_api_requests
    keyIdentifier: str
    issuerID: str
    # Path to the .p8 file downloaded from App Store Connect
    itunesConnectKeyPath: str


@dataclass
class Config_Options:
    # Where created profiles, certificates and identities are saved
    outputPath: str = "./output"

    opensslPath: str = "/usr/bin/openssl"

    # Set to "debug" for verbose output
    logLevel: str | None = None

    # Set this to true to log all requests and responses to raw_requests.log
    # Useful for debugging
    rawLogging: bool = False


@dataclass
class Config_Job:
    # "create" or "delete"
    action: str

    bundleIdentifier: str

    # The type of profile. Possible values:
    # IOS_APP_DEVELOPMENT, IOS_APP_STORE, IOS_APP_ADHOC, IOS_APP_INHOUSE, ...
    profileType: str

    # Optional. Without it the first bundle id matching bundleIdentifier is used.
    bundleIdentifierName: str | None = None

    # The remaining fields are only used by "create".

    # e.g. IOS_DISTRIBUTION, DISTRIBUTION, DEVELOPMENT
    certificateType: str | None = None

    # The private key the certificate is issued for
    privateKeyPath: str | None = None

    # openssl -subj format, e.g. /CN=Example/O=Example Inc/C=US
    certificateSigningRequestSubject: str | None = None

    # The name for the profile. Use tokens to make it unique each time.
    # Tokens:
    # %DATE% - Current date in YYYY-MM-DD format
    # %UUID% - A fresh UUID
    # %TYPE% - The profile type
    profileName: str | None = None

    # When set, a PEM certificate and a P12 identity protected by this
    # password are saved next to the certificate.
    identityPassword: str | None = None


@dataclass
class Config:
    credentials: Config_Credentials
    options: Config_Options = field(default_factory=Config_Options)
    jobs: list[Config_Job] = field(default_factory=list)
