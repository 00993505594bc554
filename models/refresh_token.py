"""
RefreshToken model: one row per issued refresh credential.
Fields:
- token (unique, the lookup key handed to clients)
- subject (identity string the chain belongs to)
- revoked (bool, terminal once true)
- expires_at (set once at creation)

A record is Active while revoked is false and expires_at is in the future.
Expiry is never stored; state_of() infers it and the session engine
promotes it to revoked.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime, Index

from models.base_model import BaseModel, Base


class TokenState(str, enum.Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


@dataclass(frozen=True)
class RefreshCredential:
    """Detached, immutable view of a refresh token row."""

    id: str
    token: str
    subject: str
    expires_at: datetime
    revoked: bool


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(128), nullable=False)
    subject = Column(String(255), nullable=False, index=True)
    revoked = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    __table_args__ = (Index("ix_refresh_tokens_token", "token", unique=True),)

    def to_credential(self) -> RefreshCredential:
        return RefreshCredential(
            id=self.id,
            token=self.token,
            subject=self.subject,
            expires_at=self.expires_at,
            revoked=bool(self.revoked),
        )

    def __repr__(self):
        return f"<RefreshToken id={self.id} subject={self.subject} revoked={self.revoked}>"


def state_of(record, now: datetime) -> TokenState:
    """Lifecycle state of a record (model or RefreshCredential) at ``now``.

    Revoked wins over expired, so a consumed token that has also aged out
    still reads as revoked.
    """
    if record.revoked:
        return TokenState.REVOKED
    if record.expires_at <= now:
        return TokenState.EXPIRED
    return TokenState.ACTIVE
