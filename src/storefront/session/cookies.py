"""
storefront.session.cookies

Session cookie codec for the hosted backend's SSR cookie convention.

Responsibilities:
- Name auth cookies per backend project (`sb-<project-ref>-auth-token`).
- Read a session from a (possibly chunked, possibly base64-prefixed) cookie set.
- Produce the cookie writes/deletes that store or clear a session.
- Find auth cookies that belong to a different backend project.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from starlette.responses import Response

AUTH_COOKIE_PREFIX = "sb-"
BASE64_PREFIX = "base64-"
# Browsers cap a cookie at ~4096 bytes; leave room for name and attributes.
MAX_CHUNK_SIZE = 3180
# 400 days, the browser-enforced ceiling for cookie lifetime.
SESSION_COOKIE_MAX_AGE = 400 * 24 * 60 * 60

_PROJECT_COOKIE_RE = re.compile(r"^sb-([^-]+)-")


def auth_cookie_name(project_ref: str) -> str:
    return f"{AUTH_COOKIE_PREFIX}{project_ref}-auth-token"


@dataclass(frozen=True, slots=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    expires_at: int | None = None
    expires_in: int | None = None
    token_type: str = "bearer"
    user: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], *, now: float | None = None
    ) -> SessionTokens:
        expires_in = payload.get("expires_in")
        expires_at = payload.get("expires_at")
        if expires_at is None and expires_in is not None and now is not None:
            expires_at = int(now) + int(expires_in)
        user = payload.get("user")
        return cls(
            access_token=str(payload["access_token"]),
            refresh_token=str(payload.get("refresh_token") or ""),
            expires_at=int(expires_at) if expires_at is not None else None,
            expires_in=int(expires_in) if expires_in is not None else None,
            token_type=str(payload.get("token_type") or "bearer"),
            user=dict(user) if isinstance(user, Mapping) else {},
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "expires_in": self.expires_in,
            "token_type": self.token_type,
            "user": self.user,
        }

    @property
    def user_id(self) -> str | None:
        uid = self.user.get("id")
        return str(uid) if uid else None


@dataclass(frozen=True, slots=True)
class CookieSpec:
    """A single Set-Cookie instruction; `max_age=0` means delete."""

    name: str
    value: str
    max_age: int = SESSION_COOKIE_MAX_AGE

    @classmethod
    def expired(cls, name: str) -> CookieSpec:
        return cls(name=name, value="", max_age=0)

    @property
    def is_deletion(self) -> bool:
        return self.max_age == 0


def session_cookie_names(cookie_name: str, names: Iterable[str]) -> list[str]:
    """The whole cookie and any `<name>.<n>` chunks present in `names`."""
    chunk_re = re.compile(rf"^{re.escape(cookie_name)}\.\d+$")
    return sorted(n for n in names if n == cookie_name or chunk_re.match(n))


def _combine(cookie_name: str, cookies: Mapping[str, str]) -> str | None:
    if cookie_name in cookies:
        return cookies[cookie_name]
    parts: list[str] = []
    i = 0
    while f"{cookie_name}.{i}" in cookies:
        parts.append(cookies[f"{cookie_name}.{i}"])
        i += 1
    return "".join(parts) if parts else None


def _b64decode(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")


def decode_session(raw: str) -> SessionTokens | None:
    try:
        text = _b64decode(raw[len(BASE64_PREFIX):]) if raw.startswith(BASE64_PREFIX) else raw
        payload = json.loads(text)
    except (ValueError, binascii.Error, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict) or not payload.get("access_token"):
        return None
    try:
        return SessionTokens.from_payload(payload)
    except (KeyError, TypeError, ValueError, OverflowError):
        return None


def encode_session(tokens: SessionTokens) -> str:
    data = json.dumps(tokens.to_payload(), separators=(",", ":")).encode("utf-8")
    return BASE64_PREFIX + base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def read_session(cookies: Mapping[str, str], cookie_name: str) -> SessionTokens | None:
    raw = _combine(cookie_name, cookies)
    if not raw:
        return None
    return decode_session(raw)


def _chunk(cookie_name: str, value: str) -> dict[str, str]:
    if len(value) <= MAX_CHUNK_SIZE:
        return {cookie_name: value}
    return {
        f"{cookie_name}.{i}": value[start : start + MAX_CHUNK_SIZE]
        for i, start in enumerate(range(0, len(value), MAX_CHUNK_SIZE))
    }


def store_session_specs(
    cookie_name: str, tokens: SessionTokens, existing: Iterable[str]
) -> list[CookieSpec]:
    """Writes for the new session plus deletes for chunks it no longer occupies."""
    chunks = _chunk(cookie_name, encode_session(tokens))
    specs = [CookieSpec(name=n, value=v) for n, v in chunks.items()]
    specs.extend(
        CookieSpec.expired(n)
        for n in session_cookie_names(cookie_name, existing)
        if n not in chunks
    )
    return specs


def clear_session_specs(cookie_name: str, existing: Iterable[str]) -> list[CookieSpec]:
    return [CookieSpec.expired(n) for n in session_cookie_names(cookie_name, existing)]


def stale_project_cookie_names(names: Iterable[str], project_ref: str | None) -> list[str]:
    """Auth cookies whose embedded project ref differs from the configured one."""
    if not project_ref:
        return []
    stale = []
    for name in names:
        m = _PROJECT_COOKIE_RE.match(name)
        if m and m.group(1) != project_ref:
            stale.append(name)
    return sorted(stale)


def write_response_cookies(
    response: Response, specs: Iterable[CookieSpec], *, secure: bool = False
) -> None:
    for spec in specs:
        if spec.is_deletion:
            response.delete_cookie(spec.name, path="/")
        else:
            response.set_cookie(
                spec.name,
                spec.value,
                max_age=spec.max_age,
                path="/",
                samesite="lax",
                secure=secure,
            )


def apply_specs(cookies: Mapping[str, str], specs: Iterable[CookieSpec]) -> dict[str, str]:
    """Cookie jar as the next hop should see it after `specs` are applied."""
    jar = dict(cookies)
    for spec in specs:
        if spec.is_deletion:
            jar.pop(spec.name, None)
        else:
            jar[spec.name] = spec.value
    return jar


# --- Module Notes -----------------------------------------------------------
# The cookie value is JSON (optionally `base64-` + base64url JSON) holding
# access_token, refresh_token, expires_at, expires_in, token_type and user.
