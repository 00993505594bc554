"""
Refresh session engine.

Owns the refresh token lifecycle:

    create  -> revoke the subject's chain and insert a fresh Active token
    verify  -> consume an Active token exactly once (rotation)
    revoke  -> revoke every Active token of a subject (logout)

verify never issues the replacement; callers follow a successful verify
with create. Between the two calls the subject holds no valid refresh
token, so a crash there means logging in again.
"""
from __future__ import annotations

import logging
import threading
import zlib
from contextlib import contextmanager
from datetime import datetime
from typing import Callable

from models.base_model import utc_now
from models.credential_store import CredentialStore
from models.refresh_token import RefreshCredential, RefreshToken, TokenState, state_of
from services.exceptions import TokenExpired, TokenNotFound, TokenRevoked
from services.settings import AuthSettings
from utils.security import generate_refresh_token

logger = logging.getLogger(__name__)


class SubjectLocks:
    """Fixed set of locks striped by subject hash."""

    def __init__(self, stripes: int = 64):
        self._locks = [threading.Lock() for _ in range(stripes)]

    @contextmanager
    def hold(self, subject: str):
        lock = self._locks[zlib.crc32(subject.encode("utf-8")) % len(self._locks)]
        with lock:
            yield


class RefreshSessionEngine:
    def __init__(
        self,
        store: CredentialStore,
        settings: AuthSettings,
        clock: Callable[[], datetime] = utc_now,
        token_factory: Callable[[], str] = generate_refresh_token,
    ):
        self._store = store
        self._settings = settings
        self._clock = clock
        self._token_factory = token_factory
        self._locks = SubjectLocks()

    def create(self, subject: str) -> RefreshCredential:
        """Start a new chain for ``subject``; any other live token of it is revoked."""
        if not subject:
            raise ValueError("subject is required")
        with self._locks.hold(subject):
            with self._store.transaction():
                revoked = self._store.revoke_all_active(subject)
                record = RefreshToken(
                    token=self._token_factory(),
                    subject=subject,
                    revoked=False,
                    expires_at=self._clock() + self._settings.refresh_ttl,
                )
                self._store.insert(record)
                credential = record.to_credential()
        logger.info("refresh token %s issued for %s (%d revoked)", credential.id, subject, revoked)
        return credential

    def verify(self, token: str) -> RefreshCredential:
        """
        Consume ``token`` and return its record as it was before consumption.

        Raises TokenNotFound, TokenRevoked or TokenExpired, checked in that order.
        """
        with self._store.transaction():
            record = self._store.find_by_token(token)
            if record is None:
                raise TokenNotFound()
            snapshot = record.to_credential()
            state = state_of(snapshot, self._clock())
            if state is TokenState.REVOKED:
                consumed = False
            else:
                # expired or active, both end up revoked
                consumed = self._store.mark_revoked(record)

        if state is TokenState.EXPIRED:
            # expired whether this call, a concurrent verify or the purge got to the row first
            logger.info("refresh token %s of %s expired", snapshot.id, snapshot.subject)
            raise TokenExpired()
        if state is TokenState.REVOKED or not consumed:
            self._on_reuse(snapshot)
            raise TokenRevoked()

        logger.debug("refresh token %s of %s consumed", snapshot.id, snapshot.subject)
        return snapshot

    def revoke_for_subject(self, subject: str) -> int:
        with self._locks.hold(subject):
            with self._store.transaction():
                count = self._store.revoke_all_active(subject)
        logger.info("revoked %d refresh token(s) for %s", count, subject)
        return count

    def purge_expired(self) -> int:
        with self._store.transaction():
            count = self._store.purge_expired(self._clock())
        if count:
            logger.info("purged %d expired refresh token(s)", count)
        return count

    def _on_reuse(self, snapshot: RefreshCredential):
        logger.warning("revoked refresh token %s of %s presented again", snapshot.id, snapshot.subject)
        if self._settings.reuse_revokes_chain:
            self.revoke_for_subject(snapshot.subject)
