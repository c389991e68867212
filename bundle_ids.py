#! /usr/bin/env python3

import inspect

from client import Client
from errors import AmbiguousOrMissingBundleId, NoMatchingBundleId
from system import Log


class BundleIdResolver:
    """
    Maps a bundle identifier such as "com.example.app" to the id App Store
    Connect uses for the bundle id resource.

    Without a bundle identifier name the first entry the API returns wins.
    The API does not promise a stable order, so callers with more than one
    bundle id per identifier should pass the name.
    """

    def __init__(self, client: Client, log: Log | None = None):
        self.client = client
        self.log = log or client.log

    def resolve(self, jsonWebToken: str, bundleIdentifier: str, bundleIdentifierName: str | None = None) -> str:
        defName = inspect.stack()[0][3]

        bundleIds = self.client.getBundleIds(jsonWebToken, bundleIdentifier).all()
        self.log.debug(f"def={defName}: identifier={bundleIdentifier}, candidates={[b.id for b in bundleIds]}")
        if not bundleIds:
            raise AmbiguousOrMissingBundleId(bundleIdentifier)

        if bundleIdentifierName is None:
            return bundleIds[0].id

        for bundleId in bundleIds:
            if bundleId.name == bundleIdentifierName:
                return bundleId.id
        raise NoMatchingBundleId(bundleIdentifier, bundleIdentifierName, [b.name for b in bundleIds])
