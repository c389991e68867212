#! /usr/bin/env python3

import base64
import binascii
import datetime

from dataclasses import dataclass
from enum import Enum
from errors import UnableToBase64DecodeCertificate, UnableToBase64DecodeProfile
from typing import Any


class ProfileType(Enum):
    IOS_APP_DEVELOPMENT = "IOS_APP_DEVELOPMENT"
    IOS_APP_STORE = "IOS_APP_STORE"
    IOS_APP_ADHOC = "IOS_APP_ADHOC"
    IOS_APP_INHOUSE = "IOS_APP_INHOUSE"
    MAC_APP_DEVELOPMENT = "MAC_APP_DEVELOPMENT"
    MAC_APP_STORE = "MAC_APP_STORE"
    MAC_APP_DIRECT = "MAC_APP_DIRECT"
    TVOS_APP_DEVELOPMENT = "TVOS_APP_DEVELOPMENT"
    TVOS_APP_STORE = "TVOS_APP_STORE"
    TVOS_APP_ADHOC = "TVOS_APP_ADHOC"
    TVOS_APP_INHOUSE = "TVOS_APP_INHOUSE"
    MAC_CATALYST_APP_DEVELOPMENT = "MAC_CATALYST_APP_DEVELOPMENT"
    MAC_CATALYST_APP_STORE = "MAC_CATALYST_APP_STORE"
    MAC_CATALYST_APP_DIRECT = "MAC_CATALYST_APP_DIRECT"


def pretty_type(profile_type: str) -> str:
    if profile_type in [
        ProfileType.IOS_APP_DEVELOPMENT.value,
        ProfileType.MAC_APP_DEVELOPMENT.value,
        ProfileType.TVOS_APP_DEVELOPMENT.value,
        ProfileType.MAC_CATALYST_APP_DEVELOPMENT.value,
    ]:
        return "Development"
    if profile_type in [
        ProfileType.IOS_APP_STORE.value,
        ProfileType.MAC_APP_STORE.value,
        ProfileType.TVOS_APP_STORE.value,
        ProfileType.MAC_CATALYST_APP_STORE.value,
    ]:
        return "AppStore"
    if profile_type in [ProfileType.IOS_APP_ADHOC.value, ProfileType.TVOS_APP_ADHOC.value]:
        return "AdHoc"
    if profile_type in [ProfileType.IOS_APP_INHOUSE.value, ProfileType.TVOS_APP_INHOUSE.value]:
        return "InHouse"
    if profile_type in [ProfileType.MAC_APP_DIRECT.value, ProfileType.MAC_CATALYST_APP_DIRECT.value]:
        return "Direct"

    raise ValueError(f"Unknown profile type: {profile_type}")


def parse_date(value: str | None) -> datetime.datetime | None:
    if not value:
        return None
    parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        # The API dates are UTC even when the offset is left out
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def decode_base64(content: str) -> bytes:
    # validate=True so stray characters fail instead of being dropped
    return base64.b64decode(content, validate=True)


@dataclass
class BundleId:
    id: str
    identifier: str
    name: str

    @classmethod
    def fromJson(cls, data: dict[str, Any]) -> "BundleId":
        attributes = data.get("attributes", {})
        return cls(id=data["id"], identifier=attributes.get("identifier", ""), name=attributes.get("name", ""))


@dataclass
class Certificate:
    id: str
    name: str
    displayName: str
    certificateType: str
    certificateContent: str
    expirationDate: datetime.datetime | None

    @classmethod
    def fromJson(cls, data: dict[str, Any]) -> "Certificate":
        attributes = data["attributes"]
        return cls(
            id=data["id"],
            name=attributes.get("name", ""),
            displayName=attributes.get("displayName", ""),
            certificateType=attributes.get("certificateType", ""),
            certificateContent=attributes.get("certificateContent", ""),
            expirationDate=parse_date(attributes.get("expirationDate")),
        )

    def isActive(self, now: datetime.datetime) -> bool:
        return self.expirationDate is None or self.expirationDate > now

    def decodedContent(self) -> bytes:
        try:
            return decode_base64(self.certificateContent)
        except (binascii.Error, ValueError):
            raise UnableToBase64DecodeCertificate(self.displayName) from None


@dataclass
class Profile:
    id: str
    name: str
    platform: str
    profileContent: str
    uuid: str
    profileState: str
    profileType: str
    createdDate: datetime.datetime | None
    expirationDate: datetime.datetime | None

    @classmethod
    def fromJson(cls, data: dict[str, Any]) -> "Profile":
        attributes = data["attributes"]
        return cls(
            id=data["id"],
            name=attributes.get("name", ""),
            platform=attributes.get("platform", ""),
            profileContent=attributes.get("profileContent", ""),
            uuid=attributes.get("uuid", ""),
            profileState=attributes.get("profileState", ""),
            profileType=attributes.get("profileType", ""),
            createdDate=parse_date(attributes.get("createdDate")),
            expirationDate=parse_date(attributes.get("expirationDate")),
        )

    def decodedContent(self) -> bytes:
        try:
            return decode_base64(self.profileContent)
        except (binascii.Error, ValueError):
            raise UnableToBase64DecodeProfile(self.name) from None
