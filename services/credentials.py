"""
Identity + secret matching backed by the users table.
"""
from __future__ import annotations

import logging
from typing import Protocol, Sequence

from sqlalchemy import select

from models.db_storage import DBStorage
from models.user import User
from utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)


class CredentialMatcher(Protocol):
    def match(self, identity: str, secret: str) -> bool: ...

    def scopes_for(self, identity: str) -> Sequence[str]: ...


class UserCredentialMatcher:
    """Checks passwords against argon2 hashes stored on User rows."""

    def __init__(self, storage: DBStorage):
        self._storage = storage
        # verified against when the user is unknown, so both paths cost one argon2 check
        self._dummy_hash = hash_password("dummy-password-for-timing")

    def _find(self, username: str) -> User | None:
        session = self._storage.get_session()
        return session.execute(select(User).where(User.username == username)).scalar_one_or_none()

    def match(self, identity: str, secret: str) -> bool:
        user = self._find(identity)
        if user is None:
            verify_password(secret, self._dummy_hash)
            return False
        return verify_password(secret, user.password_hash)

    def scopes_for(self, identity: str) -> Sequence[str]:
        user = self._find(identity)
        if user is None:
            return []
        return list(user.roles or [])

    def register(self, username: str, password: str, roles: Sequence[str]) -> User:
        """Create a user; the caller has checked the username is free."""
        user = User(username=username, password_hash=hash_password(password), roles=list(roles))
        self._storage.new(user)
        self._storage.save()
        logger.info("registered user %s with roles %s", username, ",".join(roles))
        return user

    def exists(self, username: str) -> bool:
        return self._find(username) is not None
