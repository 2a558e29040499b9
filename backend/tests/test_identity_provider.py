from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import Request

from secure_admin.auth.identity import (
    ExpiredTokenError,
    InvalidTokenError,
    JWTIdentityProvider,
)

KEY = "identity-provider-test-key-0123456789abcdef"


def make_request(authorization: str | None = None) -> Request:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return Request({"type": "http", "method": "GET", "path": "/api/users/me", "headers": headers})


def make_token(key: str = KEY, expires_in: timedelta = timedelta(minutes=5), **claims) -> str:
    payload = {
        "sub": "user_2abc",
        "email": "ada@example.com",
        "exp": datetime.now(timezone.utc) + expires_in,
        **claims,
    }
    return jwt.encode(payload, key, algorithm="HS256")


@pytest.fixture
def provider() -> JWTIdentityProvider:
    return JWTIdentityProvider(KEY, "HS256")


@pytest.mark.anyio
async def test_resolve_valid_bearer_token(provider: JWTIdentityProvider) -> None:
    token = make_token(given_name="Ada", family_name="Lovelace", picture="https://img/a.png")
    identity = await provider.resolve(make_request(f"Bearer {token}"))

    assert identity is not None
    assert identity.external_id == "user_2abc"
    assert identity.email == "ada@example.com"
    assert identity.first_name == "Ada"
    assert identity.last_name == "Lovelace"
    assert identity.avatar_url == "https://img/a.png"


@pytest.mark.anyio
async def test_resolve_without_header_is_absent(provider: JWTIdentityProvider) -> None:
    assert await provider.resolve(make_request()) is None


@pytest.mark.anyio
async def test_resolve_non_bearer_scheme_is_absent(provider: JWTIdentityProvider) -> None:
    assert await provider.resolve(make_request(f"Basic {make_token()}")) is None


@pytest.mark.anyio
async def test_resolve_expired_token_is_absent(provider: JWTIdentityProvider) -> None:
    token = make_token(expires_in=timedelta(minutes=-5))
    assert await provider.resolve(make_request(f"Bearer {token}")) is None


@pytest.mark.anyio
async def test_resolve_wrong_signature_is_absent(
    provider: JWTIdentityProvider, caplog: pytest.LogCaptureFixture
) -> None:
    token = make_token(key="some-other-key-0123456789abcdef0123")
    with caplog.at_level("WARNING"):
        assert await provider.resolve(make_request(f"Bearer {token}")) is None
    assert any("Rejected invalid session token" in r.getMessage() for r in caplog.records)


def test_decode_raises_expired(provider: JWTIdentityProvider) -> None:
    with pytest.raises(ExpiredTokenError):
        provider.decode(make_token(expires_in=timedelta(seconds=-30)))


def test_decode_requires_exp(provider: JWTIdentityProvider) -> None:
    token = jwt.encode({"sub": "user_1", "email": "a@example.com"}, KEY, algorithm="HS256")
    with pytest.raises(InvalidTokenError):
        provider.decode(token)


def test_issuer_is_verified_when_configured() -> None:
    provider = JWTIdentityProvider(KEY, "HS256", issuer="https://issuer.example.com")
    with pytest.raises(InvalidTokenError):
        provider.decode(make_token(iss="https://evil.example.com"))
    assert provider.decode(make_token(iss="https://issuer.example.com"))["sub"] == "user_2abc"


def test_identity_requires_email(provider: JWTIdentityProvider) -> None:
    with pytest.raises(InvalidTokenError, match="missing email"):
        provider.identity_from_claims({"sub": "user_1"})


def test_identity_falls_back_to_alternate_email_claim(provider: JWTIdentityProvider) -> None:
    identity = provider.identity_from_claims({"sub": "user_1", "primary_email": "b@example.com"})
    assert identity.email == "b@example.com"
    assert identity.first_name is None
