from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from canteen.errors import Unauthenticated
from canteen.identity import Caller, Role, get_resolver, set_resolver
from canteen.identity.jwt_resolver import JwtIdentityResolver

SECRET = "test-secret"


@pytest.fixture()
def resolver():
    return JwtIdentityResolver(secret=SECRET, algorithm="HS256", expires_minutes=5)


def test_issued_token_resolves_to_the_same_caller(resolver):
    caller = Caller(actor_id="m-1", role=Role.MERCHANT)
    assert resolver.resolve(resolver.issue(caller)) == caller


def test_missing_token(resolver):
    with pytest.raises(Unauthenticated):
        resolver.resolve(None)


def test_token_signed_with_another_secret(resolver):
    token = JwtIdentityResolver(secret="other").issue(Caller(actor_id="c-1", role=Role.CUSTOMER))
    with pytest.raises(Unauthenticated):
        resolver.resolve(token)


def test_expired_token(resolver):
    past = datetime.now(UTC) - timedelta(hours=2)
    token = jwt.encode(
        {"sub": "c-1", "role": "customer", "iat": past, "exp": past + timedelta(minutes=5)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(Unauthenticated):
        resolver.resolve(token)


@pytest.mark.parametrize(
    "claims",
    [{"sub": "c-1", "role": "admin"}, {"role": "customer"}],
)
def test_incomplete_claims(resolver, claims):
    token = jwt.encode(claims, SECRET, algorithm="HS256")
    with pytest.raises(Unauthenticated):
        resolver.resolve(token)


def test_resolver_can_be_swapped():
    custom = JwtIdentityResolver(secret=SECRET)
    set_resolver(custom)
    assert get_resolver() is custom


def test_secret_comes_from_the_environment(monkeypatch):
    from canteen.config import reset_settings

    monkeypatch.setenv("JWT_SECRET", "from-env")
    reset_settings()
    assert get_resolver().secret == "from-env"
