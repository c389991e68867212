#! /usr/bin/env python3

# Copy this file to config.py and fill in your own values.

from classes import Config, Config_Credentials, Config_Job, Config_Options

config = [
    Config(
        credentials=Config_Credentials(
            keyIdentifier="ABC123DEFG",
            issuerID="00000000-0000-0000-0000-000000000000",
            itunesConnectKeyPath="./AuthKey_ABC123DEFG.p8",
        ),
        options=Config_Options(
            outputPath="./output",
            opensslPath="/usr/bin/openssl",
            logLevel=None,
        ),
        jobs=[
            Config_Job(
                action="create",
                bundleIdentifier="com.example.app",
                profileType="IOS_APP_STORE",
                certificateType="DISTRIBUTION",
                privateKeyPath="./signing.key",
                certificateSigningRequestSubject="/CN=Example/O=Example Inc/C=US",
                profileName="AppStore %DATE% %UUID%",
            ),
            Config_Job(
                action="delete",
                bundleIdentifier="com.example.app",
                profileType="IOS_APP_DEVELOPMENT",
            ),
        ],
    ),
]
