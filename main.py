#! /usr/bin/env python3

import sys
import traceback

from bundle_ids import BundleIdResolver
from certificates import CertificateResolver
from classes import Config
from client import Client
from commands import CreateProvisioningProfileCommand, CreateResult, DeleteProvisioningProfileCommand, DeleteResult
from models import pretty_type
from openssl import OpenSSL
from profiles import ProfileManager
from system import Clock, Files, Log, Shell, UUIDFactory
from tabulate import tabulate
from token_service import TokenService


def make_commands(cfg: Config) -> tuple[CreateProvisioningProfileCommand, DeleteProvisioningProfileCommand, Client]:
    log = Log(cfg.options.logLevel)
    files = Files()
    clock = Clock()
    shell = Shell()

    client = Client(log=log, rawLogging=cfg.options.rawLogging)
    tokenService = TokenService(clock, log)
    openssl = OpenSSL(cfg.options.opensslPath, shell, files, log)
    bundleIdResolver = BundleIdResolver(client, log)
    profileManager = ProfileManager(client, files, clock, UUIDFactory(), log)
    certificateResolver = CertificateResolver(client, openssl, files, clock, log)

    create = CreateProvisioningProfileCommand(
        tokenService, bundleIdResolver, certificateResolver, profileManager, openssl, files, log
    )
    delete = DeleteProvisioningProfileCommand(tokenService, bundleIdResolver, profileManager, files, log)
    return create, delete, client


def summary(results: list[CreateResult | DeleteResult]) -> str:
    headers = ["Action", "Bundle ID", "Type", "Certificate", "Profiles"]
    data: list[list[str]] = []
    for result in results:
        if isinstance(result, CreateResult):
            data.append(
                [
                    "create",
                    result.bundleIdentifier,
                    pretty_type(result.profileType),
                    f"{result.certificateId} ({result.certificateOutcome.value})",
                    f"{result.profileId} ({result.uuid})",
                ]
            )
        else:
            data.append(
                [
                    "delete",
                    result.bundleIdentifier,
                    pretty_type(result.profileType),
                    "",
                    ", ".join(result.deletedIds) or "(none)",
                ]
            )
    return tabulate(data, headers=headers, tablefmt="grid")


def main(configs: list[Config]) -> int:
    overall_success = True
    results: list[CreateResult | DeleteResult] = []

    for cfg in configs:
        if not cfg.jobs:
            print(f"No jobs configured for key {cfg.credentials.keyIdentifier}, skipping...")
            continue

        create, delete, client = make_commands(cfg)
        try:
            for job in cfg.jobs:
                print(f"Running {job.action} for {job.bundleIdentifier} ({job.profileType})...")
                try:
                    if job.action == "create":
                        results.append(create.run(cfg.credentials, job, cfg.options.outputPath))
                    else:
                        results.append(delete.run(cfg.credentials, job))
                except Exception:
                    traceback.print_exc()
                    overall_success = False
        finally:
            client.session.close()

    if results:
        print(summary(results))

    return 0 if overall_success else 1


if __name__ == "__main__":
    try:
        from config import config
    except ImportError:
        print("Config file not found. Please create a config.py file with your settings.")
        sys.exit(1)

    sys.exit(main(config))
