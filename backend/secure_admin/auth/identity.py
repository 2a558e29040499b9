"""Identity provider port and the JWT session-token adapter."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import jwt
from fastapi import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    external_id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    avatar_url: str | None = None


class IdentityProvider(Protocol):
    async def resolve(self, request: Request) -> Identity | None:
        ...


class InvalidTokenError(Exception):
    """Raised when a session token cannot be verified or is malformed."""


class ExpiredTokenError(InvalidTokenError):
    """Raised when a session token has expired."""


def _first_claim(payload: dict[str, Any], *names: str) -> str | None:
    for name in names:
        value = payload.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class JWTIdentityProvider:
    """Resolve the caller from the identity provider's signed session token.

    The token is taken from ``Authorization: Bearer <token>``. Signature,
    expiry and (when configured) issuer/audience are verified by PyJWT with
    key material supplied by the provider.
    """

    def __init__(
        self,
        key: str,
        algorithm: str,
        *,
        issuer: str | None = None,
        audience: str | None = None,
    ):
        self.key = key
        self.algorithm = algorithm
        self.issuer = issuer
        self.audience = audience

    def decode(self, token: str) -> dict[str, Any]:
        options = {"require": ["sub", "exp"]}
        if self.audience is None:
            options["verify_aud"] = False  # type: ignore[assignment]
        try:
            return jwt.decode(
                token,
                self.key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options=options,
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredTokenError from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError from exc

    def identity_from_claims(self, payload: dict[str, Any]) -> Identity:
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("missing subject")

        email = _first_claim(payload, "email", "primary_email", "email_address")
        if email is None:
            raise InvalidTokenError("missing email claim")

        return Identity(
            external_id=subject,
            email=email,
            first_name=_first_claim(payload, "first_name", "given_name"),
            last_name=_first_claim(payload, "last_name", "family_name"),
            avatar_url=_first_claim(payload, "image_url", "picture"),
        )

    async def resolve(self, request: Request) -> Identity | None:
        header = request.headers.get("authorization")
        if not header:
            return None
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None

        try:
            payload = self.decode(token.strip())
            return self.identity_from_claims(payload)
        except ExpiredTokenError:
            logger.info("Rejected expired session token path=%s", request.url.path)
            return None
        except InvalidTokenError as exc:
            logger.warning(
                "Rejected invalid session token path=%s reason=%s",
                request.url.path,
                exc.__cause__ or exc,
            )
            return None
