#! /usr/bin/env python3

import datetime
import inspect
import jwt

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from errors import InvalidKeyMaterial
from system import Clock, Log

# App Store Connect rejects tokens that live longer than 20 minutes
TOKEN_LIFETIME = datetime.timedelta(minutes=20)
TOKEN_AUDIENCE = "appstoreconnect-v1"
TOKEN_ALGORITHM = "ES256"


class TokenService:
    """
    Issues the short lived JSON web tokens App Store Connect expects in the
    Authorization header.
    https://developer.apple.com/documentation/appstoreconnectapi/generating_tokens_for_api_requests
    """

    def __init__(self, clock: Clock, log: Log | None = None, lifetime: datetime.timedelta = TOKEN_LIFETIME):
        self.clock = clock
        self.log = log or Log()
        self.lifetime = lifetime

    def loadKey(self, secretKey: bytes | str) -> ec.EllipticCurvePrivateKey:
        if isinstance(secretKey, str):
            secretKey = secretKey.encode("utf-8")
        try:
            key = serialization.load_pem_private_key(secretKey, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise InvalidKeyMaterial(str(e)) from e
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise InvalidKeyMaterial(f"expected an elliptic curve key, got {type(key).__name__}")
        if not isinstance(key.curve, ec.SECP256R1):
            raise InvalidKeyMaterial(f"expected a P-256 key, got {key.curve.name}")
        return key

    def createToken(self, keyIdentifier: str, issuerID: str, secretKey: bytes | str) -> str:
        defName = inspect.stack()[0][3]

        key = self.loadKey(secretKey)
        issuedAt = self.clock.now()
        payload = {
            "iss": issuerID,
            "iat": int(issuedAt.timestamp()),
            "exp": int((issuedAt + self.lifetime).timestamp()),
            "aud": TOKEN_AUDIENCE,
        }
        token = jwt.encode(payload, key, algorithm=TOKEN_ALGORITHM, headers={"kid": keyIdentifier})
        self.log.debug(f"def={defName}: kid={keyIdentifier}, iss={issuerID}, exp={payload['exp']}")
        return token
