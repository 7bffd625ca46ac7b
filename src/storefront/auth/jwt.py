"""
storefront.auth.jwt

Access-token helpers for backend-issued session JWTs.

Responsibilities:
- Decode and validate access tokens (signature, `aud`, `exp`, `sub`).
- Issue tokens in the same shape for dev sessions and tests.

Note:
- The hosted backend signs access tokens with HS256 and a per-project secret;
  `aud` is `authenticated` for signed-in users.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from storefront.settings import Settings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    audience: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            audience=settings.jwt_audience,
            secret=settings.backend_jwt_secret,
        )


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    email: str | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "aud": cfg.audience,
        "sub": subject,
        "email": email,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    if not cfg.secret:
        raise JwtValidationError("JWT secret is not configured")
    try:
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            audience=cfg.audience,
            options={"require": ["exp", "sub", "aud"]},
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


def unverified_expiry(token: str) -> int | None:
    """
    Read `exp` without checking the signature.
    Used only to decide whether a refresh is due, never to authenticate.
    """

    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except InvalidTokenError:
        return None
    exp = claims.get("exp")
    return int(exp) if isinstance(exp, int | float) else None


# --- Module Notes -----------------------------------------------------------
# Token verification is used by `auth.deps` (principal resolution); issuing is
# used by the dev session router and by tests.
