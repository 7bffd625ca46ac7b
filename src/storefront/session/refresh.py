"""
storefront.session.refresh

HTTP client boundary for renewing sessions against the hosted backend.

Responsibilities:
- Decide whether a session read from cookies is due for refresh.
- Exchange the refresh token for a new session (`grant_type=refresh_token`).
- Classify the result: unchanged, refreshed, or cleared (token revoked).
- Raise `SessionRefreshError` for transient failures so callers can degrade.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Literal, Protocol

import httpx

from storefront.auth.jwt import unverified_expiry
from storefront.session.cookies import SessionTokens, auth_cookie_name, read_session
from storefront.settings import Settings

TOKEN_PATH = "/auth/v1/token"

RefreshStatus = Literal["unchanged", "refreshed", "cleared"]


class SessionRefreshError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class RefreshOutcome:
    status: RefreshStatus
    session: SessionTokens | None = None


class Refresher(Protocol):
    cookie_name: str

    async def refresh(self, cookies: Mapping[str, str]) -> RefreshOutcome: ...


class SessionRefresher:
    def __init__(
        self,
        *,
        settings: Settings,
        http: httpx.AsyncClient,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if settings.project_ref is None:
            raise ValueError("backend_url is required to refresh sessions")
        self._settings = settings
        self._http = http
        self._clock = clock
        self.cookie_name = auth_cookie_name(settings.project_ref)

    def _headers(self) -> dict[str, str]:
        key = self._settings.backend_anon_key
        return {"apikey": key, "Authorization": f"Bearer {key}"}

    def refresh_due(self, session: SessionTokens) -> bool:
        expires_at = session.expires_at or unverified_expiry(session.access_token)
        if expires_at is None:
            return True
        return expires_at - self._clock() <= self._settings.session_refresh_margin_seconds

    async def refresh(self, cookies: Mapping[str, str]) -> RefreshOutcome:
        session = read_session(cookies, self.cookie_name)
        if session is None:
            return RefreshOutcome("unchanged")
        if not self.refresh_due(session):
            return RefreshOutcome("unchanged", session)
        if not session.refresh_token:
            return RefreshOutcome("cleared")

        try:
            r = await self._http.post(
                TOKEN_PATH,
                params={"grant_type": "refresh_token"},
                headers=self._headers(),
                json={"refresh_token": session.refresh_token},
            )
        except httpx.HTTPError as e:
            raise SessionRefreshError(f"refresh request failed: {e!r}") from e

        # 400/401/403: refresh token revoked, reused or expired; the session is gone.
        if r.status_code in (400, 401, 403):
            return RefreshOutcome("cleared")
        if r.status_code >= 300:
            raise SessionRefreshError(f"refresh returned HTTP {r.status_code}")

        try:
            payload = r.json()
            fresh = SessionTokens.from_payload(payload, now=self._clock())
        except (ValueError, KeyError, TypeError, OverflowError) as e:
            raise SessionRefreshError(f"malformed refresh response: {e!r}") from e
        if not fresh.user and session.user:
            fresh = SessionTokens(**{**fresh.to_payload(), "user": session.user})
        return RefreshOutcome("refreshed", fresh)


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.backend_url.strip().rstrip("/"),
        timeout=httpx.Timeout(settings.backend_timeout_seconds),
    )


# --- Module Notes -----------------------------------------------------------
# No retries: one round trip per request. A timeout surfaces as SessionRefreshError
# (httpx.TimeoutException is an httpx.HTTPError).
