"""
Credential store: durable storage of refresh tokens.

Every method runs on the calling thread's scoped session and leaves
commit/rollback to the caller, which wraps related calls in
``transaction()`` so they succeed or fail together.
"""
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from services.exceptions import DuplicateToken

logger = logging.getLogger(__name__)


class CredentialStore:
    def __init__(self, storage: DBStorage):
        self._storage = storage

    def transaction(self):
        return self._storage.transaction()

    @property
    def _session(self):
        return self._storage.get_session()

    def insert(self, record: RefreshToken) -> RefreshToken:
        """Insert a new record; a token collision raises DuplicateToken."""
        session = self._session
        session.add(record)
        try:
            session.flush()
        except IntegrityError as exc:
            logger.critical("refresh token collision for subject %s", record.subject)
            raise DuplicateToken() from exc
        return record

    def find_by_token(self, token: str) -> RefreshToken | None:
        # populate_existing: always take the row as stored, not a stale identity-map copy
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(populate_existing=True)
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def find_by_subject(self, subject: str) -> list[RefreshToken]:
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.subject == subject)
            .order_by(RefreshToken.created_at)
            .execution_options(populate_existing=True)
        )
        return list(self._session.execute(stmt).scalars())

    def revoke_all_active(self, subject: str) -> int:
        """Revoke every unrevoked record of ``subject``; returns rows affected."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.subject == subject, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount

    def mark_revoked(self, record) -> bool:
        """Compare-and-set revoked false -> true.

        Returns False when another caller revoked the record first.
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == record.id, RefreshToken.revoked.is_(False))
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount == 1

    def purge_expired(self, now: datetime) -> int:
        """Delete records past expiry, revoked or not."""
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at < now)
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount
