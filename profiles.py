#! /usr/bin/env python3

import inspect
import os

from client import Client
from dataclasses import dataclass
from models import Profile
from system import Clock, Files, Log, UUIDFactory

DEFAULT_PROFILE_NAME = "%TYPE%_%UUID%"
PROFILE_EXTENSION = ".mobileprovision"


@dataclass
class CreatedProfile:
    profile: Profile
    content: bytes


class ProfileManager:
    def __init__(
        self,
        client: Client,
        files: Files,
        clock: Clock,
        uuidFactory: UUIDFactory,
        log: Log | None = None,
    ):
        self.client = client
        self.files = files
        self.clock = clock
        self.uuidFactory = uuidFactory
        self.log = log or client.log

    def profileName(self, profileType: str, template: str | None = None) -> str:
        # Tokens:
        # %DATE% - Current date in YYYY-MM-DD format
        # %UUID% - A fresh UUID, keeps names unique between runs
        # %TYPE% - The profile type
        name = template or DEFAULT_PROFILE_NAME
        name = name.replace("%DATE%", self.clock.now().strftime("%Y-%m-%d"))
        name = name.replace("%TYPE%", profileType)
        if "%UUID%" in name:
            name = name.replace("%UUID%", self.uuidFactory.make())
        return name

    def fetchDeviceIds(self, jsonWebToken: str) -> list[str]:
        return [device["id"] for device in self.client.getDevices(jsonWebToken)]

    def create(
        self,
        jsonWebToken: str,
        bundleIdId: str,
        certificateId: str,
        deviceIds: list[str],
        profileType: str,
        name: str | None = None,
    ) -> CreatedProfile:
        defName = inspect.stack()[0][3]

        name = name or self.profileName(profileType)
        print(f"Creating profile: {name}")
        profile = self.client.createProfile(
            jsonWebToken,
            name=name,
            profileType=profileType,
            bundleIdId=bundleIdId,
            certificateId=certificateId,
            deviceIds=deviceIds,
        )
        content = profile.decodedContent()
        self.log.debug(f"def={defName}: profile={profile.id}, uuid={profile.uuid}, devices={len(deviceIds)}")
        return CreatedProfile(profile=profile, content=content)

    def save(self, created: CreatedProfile, outputPath: str) -> str:
        path = os.path.join(outputPath, f"{created.profile.uuid}{PROFILE_EXTENSION}")
        print(f"Saving profile: {path}")
        self.files.write(created.content, path)
        return path

    def fetchProfileIds(self, jsonWebToken: str, bundleIdId: str, profileType: str) -> list[str]:
        return [
            profile.id
            for profile in self.client.getBundleIdProfiles(jsonWebToken, bundleIdId)
            if profile.profileType == profileType
        ]

    def deleteAllMatching(self, jsonWebToken: str, bundleIdId: str, profileType: str) -> list[str]:
        """
        Deletes every profile of `profileType` attached to the bundle id, one
        request at a time. Stops at the first failed deletion; profiles
        deleted before it stay deleted.
        """
        defName = inspect.stack()[0][3]

        profileIds = self.fetchProfileIds(jsonWebToken, bundleIdId, profileType)
        self.log.debug(f"def={defName}: bundleId={bundleIdId}, profileType={profileType}, ids={profileIds}")
        deleted: list[str] = []
        for profileId in profileIds:
            print(f"Deleting profile: {profileId}")
            self.client.deleteProfile(jsonWebToken, profileId)
            deleted.append(profileId)
        return deleted
