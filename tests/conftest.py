"""
Shared fixtures: an in-memory database, a controllable clock and the
credential services wired on top of them.
"""
from datetime import timedelta

import pytest

from api import create_app
from models.base_model import utc_now
from models.credential_store import CredentialStore
from models.db_storage import DBStorage
from services.credentials import UserCredentialMatcher
from services.gateway import AuthGateway
from services.refresh_sessions import RefreshSessionEngine
from services.settings import AuthSettings
from utils.security import AccessTokenIssuer

JWT_SECRET = "unit-test-secret-key-with-at-least-32-bytes"
ADMIN_PASSWORD = "admin123"


class FakeClock:
    def __init__(self, now=None):
        self.now = now or utc_now()

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return AuthSettings(
        jwt_secret=JWT_SECRET,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(hours=1),
    )


@pytest.fixture
def storage():
    storage = DBStorage("sqlite://")
    storage.reload()
    yield storage
    storage.dispose()


@pytest.fixture
def store(storage):
    return CredentialStore(storage)


@pytest.fixture
def engine(store, settings, clock):
    return RefreshSessionEngine(store, settings, clock=clock)


@pytest.fixture
def issuer(settings):
    return AccessTokenIssuer(settings)


@pytest.fixture
def matcher(storage):
    matcher = UserCredentialMatcher(storage)
    matcher.register("admin", ADMIN_PASSWORD, ["admin", "user"])
    return matcher


@pytest.fixture
def gateway(matcher, issuer, engine):
    return AuthGateway(matcher, issuer, engine)


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    app.extensions["storage"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seeded_client(app, client):
    result = app.test_cli_runner().invoke(args=["seed-users"])
    assert result.exit_code == 0
    return client
