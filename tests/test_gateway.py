import pytest

from services.exceptions import InvalidCredentials, TokenNotFound, TokenRevoked
from services.gateway import AuthGateway
from tests.conftest import ADMIN_PASSWORD


def test_login_round_trip(gateway, issuer, engine):
    pair = gateway.login("admin", ADMIN_PASSWORD)

    claims = issuer.verify(pair.access_token)
    assert claims.subject == "admin"
    assert set(claims.scopes) == {"admin", "user"}
    assert pair.expires_in == 900

    assert engine.verify(pair.refresh_token).subject == "admin"
    with pytest.raises(TokenRevoked):
        engine.verify(pair.refresh_token)


@pytest.mark.parametrize(
    "identity,secret",
    [("admin", "wrong-password"), ("ghost", ADMIN_PASSWORD), ("", ADMIN_PASSWORD), ("admin", "")],
)
def test_login_failures_look_the_same(gateway, identity, secret):
    with pytest.raises(InvalidCredentials) as exc_info:
        gateway.login(identity, secret)
    assert exc_info.value.message == "Invalid username or password"


def test_login_revokes_previous_session(gateway):
    first = gateway.login("admin", ADMIN_PASSWORD)
    gateway.login("admin", ADMIN_PASSWORD)

    with pytest.raises(TokenRevoked):
        gateway.refresh(first.refresh_token)


def test_refresh_rotates(gateway, issuer, store):
    pair = gateway.login("admin", ADMIN_PASSWORD)

    rotated = gateway.refresh(pair.refresh_token)

    assert rotated.refresh_token != pair.refresh_token
    assert issuer.verify(rotated.access_token).subject == "admin"
    assert store.find_by_token(pair.refresh_token).revoked is True
    assert store.find_by_token(rotated.refresh_token).revoked is False
    with pytest.raises(TokenRevoked):
        gateway.refresh(pair.refresh_token)


def test_refresh_unknown_token(gateway):
    with pytest.raises(TokenNotFound):
        gateway.refresh("nope")


def test_logout_revokes_whole_chain(gateway, store):
    first = gateway.login("admin", ADMIN_PASSWORD)
    current = gateway.refresh(first.refresh_token)

    gateway.logout(current.refresh_token)

    assert all(r.revoked for r in store.find_by_subject("admin"))
    with pytest.raises(TokenRevoked):
        gateway.refresh(current.refresh_token)


def test_logout_with_consumed_token_fails(gateway):
    pair = gateway.login("admin", ADMIN_PASSWORD)
    gateway.refresh(pair.refresh_token)

    with pytest.raises(TokenRevoked):
        gateway.logout(pair.refresh_token)


def test_login_is_not_atomic_across_credentials(matcher, issuer):
    class FailingEngine:
        def create(self, subject):
            raise RuntimeError("store down")

    gateway = AuthGateway(matcher, issuer, FailingEngine())
    issued = []
    real_issue = issuer.issue

    def recording_issue(subject, scopes=()):
        token = real_issue(subject, scopes)
        issued.append(token)
        return token

    issuer.issue = recording_issue

    with pytest.raises(RuntimeError):
        gateway.login("admin", ADMIN_PASSWORD)

    # the access token minted before the failure still verifies
    assert len(issued) == 1
    assert issuer.verify(issued[0]).subject == "admin"
