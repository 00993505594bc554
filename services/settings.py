from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Mapping


@dataclass(frozen=True)
class AuthSettings:
    """Signing key and lifetimes handed to the issuer and the session engine."""

    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "credential-service"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    reuse_revokes_chain: bool = False

    def __post_init__(self):
        if not self.jwt_secret:
            raise ValueError("jwt_secret must not be empty")
        if self.access_ttl < timedelta(0) or self.refresh_ttl < timedelta(0):
            raise ValueError("token lifetimes must not be negative")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "AuthSettings":
        """Build settings from a Flask-style config mapping."""
        return cls(
            jwt_secret=config["JWT_SECRET"],
            jwt_algorithm=config.get("JWT_ALGORITHM", "HS256"),
            jwt_issuer=config.get("JWT_ISSUER", "credential-service"),
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            reuse_revokes_chain=bool(config.get("REFRESH_REUSE_REVOKES_CHAIN", False)),
        )
