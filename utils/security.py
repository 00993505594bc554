"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access token issuing/verification via PyJWT
- Random refresh token generation
"""
from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, VerificationError, InvalidHashError

from models.base_model import utc_now
from services.exceptions import AccessTokenExpired, InvalidSignature
from services.settings import AuthSettings

ph = PasswordHasher()

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_BYTES = 48


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def generate_refresh_token() -> str:
    """Opaque, URL-safe refresh token from the OS CSPRNG."""
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


@dataclass(frozen=True)
class AccessClaims:
    subject: str
    scopes: tuple[str, ...]
    issued_at: datetime
    expires_at: datetime


def _from_epoch(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


class AccessTokenIssuer:
    """
    Mints and checks short-lived signed access tokens.

    Nothing is stored: a token is valid while its signature checks out and
    its exp claim has not passed.
    """

    def __init__(self, settings: AuthSettings, clock: Callable[[], datetime] = utc_now):
        self._settings = settings
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return int(self._settings.access_ttl.total_seconds())

    def issue(self, subject: str, scopes: Iterable[str] = ()) -> str:
        if not subject:
            raise ValueError("subject is required")
        now = self._clock()
        # naive datetimes are encoded as UTC by PyJWT
        payload = {
            "iss": self._settings.jwt_issuer,
            "sub": str(subject),
            "iat": now,
            "exp": now + self._settings.access_ttl,
            "type": ACCESS_TOKEN_TYPE,
            "jti": generate_jti(),
            "scopes": list(scopes),
        }
        return jwt.encode(payload, self._settings.jwt_secret, algorithm=self._settings.jwt_algorithm)

    def verify(self, token: str) -> AccessClaims:
        """
        Decode and validate an access token.
        Raises AccessTokenExpired past exp, InvalidSignature for anything else wrong.
        """
        try:
            decoded = jwt.decode(
                token,
                self._settings.jwt_secret,
                algorithms=[self._settings.jwt_algorithm],
                issuer=self._settings.jwt_issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AccessTokenExpired() from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidSignature(f"Invalid token: {exc}") from exc

        if decoded.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidSignature("Wrong token type")
        return AccessClaims(
            subject=decoded["sub"],
            scopes=tuple(decoded.get("scopes") or ()),
            issued_at=_from_epoch(decoded["iat"]),
            expires_at=_from_epoch(decoded["exp"]),
        )
