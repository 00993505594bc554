"""
Authentication gateway: the login / refresh / logout entry points.

login and refresh are not atomic across the two credential types. The
access token is minted first; if creating the refresh token then fails,
that access token stays valid until it expires on its own.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from models.refresh_token import RefreshCredential
from services.credentials import CredentialMatcher
from services.exceptions import InvalidCredentials
from services.refresh_sessions import RefreshSessionEngine
from utils.security import AccessTokenIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh: RefreshCredential
    expires_in: int

    @property
    def refresh_token(self) -> str:
        return self.refresh.token

    @property
    def subject(self) -> str:
        return self.refresh.subject


class AuthGateway:
    def __init__(self, matcher: CredentialMatcher, issuer: AccessTokenIssuer, engine: RefreshSessionEngine):
        self._matcher = matcher
        self._issuer = issuer
        self._engine = engine

    def login(self, identity: str, secret: str) -> TokenPair:
        if not identity or not secret or not self._matcher.match(identity, secret):
            logger.info("failed login attempt")
            raise InvalidCredentials()
        pair = self._issue_pair(identity)
        logger.info("login succeeded for %s", identity)
        return pair

    def refresh(self, token: str) -> TokenPair:
        record = self._engine.verify(token)
        return self._issue_pair(record.subject)

    def logout(self, token: str) -> int:
        """Revoke the whole chain the presented token belongs to."""
        record = self._engine.verify(token)
        return self._engine.revoke_for_subject(record.subject)

    def _issue_pair(self, subject: str) -> TokenPair:
        access_token = self._issuer.issue(subject, self._matcher.scopes_for(subject))
        refresh = self._engine.create(subject)
        return TokenPair(access_token=access_token, refresh=refresh, expires_in=self._issuer.ttl_seconds)
