from __future__ import annotations

import json

import httpx
import pytest

from conftest import cookie_name
from storefront.session.cookies import SessionTokens, encode_session
from storefront.session.refresh import TOKEN_PATH, SessionRefresher, SessionRefreshError

NOW = 1_700_000_000.0


class Backend:
    """Records requests and answers with a canned response."""

    def __init__(self, response: httpx.Response | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response


def _refresher(settings, backend: Backend) -> SessionRefresher:
    http = httpx.AsyncClient(
        transport=httpx.MockTransport(backend), base_url=settings.backend_url
    )
    return SessionRefresher(settings=settings, http=http, clock=lambda: NOW)


def _cookies(*, expires_at: int | None, refresh_token: str = "r1", access_token: str = "a1"):
    tokens = SessionTokens(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_at=expires_at,
        user={"id": "u1", "email": "u1@example.com"},
    )
    return {cookie_name(): encode_session(tokens)}


@pytest.mark.asyncio
async def test_no_cookie_is_unchanged(settings) -> None:
    backend = Backend()
    outcome = await _refresher(settings, backend).refresh({})
    assert outcome.status == "unchanged"
    assert outcome.session is None
    assert backend.requests == []


@pytest.mark.asyncio
async def test_fresh_session_makes_no_backend_call(settings) -> None:
    backend = Backend()
    outcome = await _refresher(settings, backend).refresh(
        _cookies(expires_at=int(NOW) + 3600)
    )
    assert outcome.status == "unchanged"
    assert outcome.session is not None
    assert outcome.session.access_token == "a1"
    assert backend.requests == []


@pytest.mark.asyncio
async def test_due_session_is_refreshed(settings) -> None:
    backend = Backend(
        httpx.Response(
            200,
            json={
                "access_token": "a2",
                "refresh_token": "r2",
                "expires_in": 3600,
                "token_type": "bearer",
            },
        )
    )
    outcome = await _refresher(settings, backend).refresh(_cookies(expires_at=int(NOW) + 30))

    assert outcome.status == "refreshed"
    assert outcome.session.access_token == "a2"
    assert outcome.session.refresh_token == "r2"
    assert outcome.session.expires_at == int(NOW) + 3600
    # Response without a user keeps the one from the cookie.
    assert outcome.session.user_id == "u1"

    (request,) = backend.requests
    assert request.method == "POST"
    assert request.url.path == TOKEN_PATH
    assert request.url.params["grant_type"] == "refresh_token"
    assert request.headers["apikey"] == "anon-test-key"
    assert request.headers["authorization"] == "Bearer anon-test-key"
    assert json.loads(request.content) == {"refresh_token": "r1"}


@pytest.mark.asyncio
async def test_unknown_expiry_counts_as_due(settings) -> None:
    backend = Backend(httpx.Response(200, json={"access_token": "a2", "refresh_token": "r2"}))
    outcome = await _refresher(settings, backend).refresh(
        _cookies(expires_at=None, access_token="opaque")
    )
    assert outcome.status == "refreshed"
    assert len(backend.requests) == 1


@pytest.mark.asyncio
async def test_due_session_without_refresh_token_is_cleared(settings) -> None:
    backend = Backend()
    outcome = await _refresher(settings, backend).refresh(
        _cookies(expires_at=int(NOW) - 10, refresh_token="")
    )
    assert outcome.status == "cleared"
    assert backend.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 403])
async def test_rejected_refresh_token_clears_session(settings, status: int) -> None:
    backend = Backend(httpx.Response(status, json={"error": "invalid_grant"}))
    outcome = await _refresher(settings, backend).refresh(_cookies(expires_at=int(NOW) - 10))
    assert outcome.status == "cleared"
    assert outcome.session is None


@pytest.mark.asyncio
async def test_server_error_raises(settings) -> None:
    backend = Backend(httpx.Response(503))
    with pytest.raises(SessionRefreshError):
        await _refresher(settings, backend).refresh(_cookies(expires_at=int(NOW) - 10))


@pytest.mark.asyncio
async def test_transport_error_raises(settings) -> None:
    backend = Backend(error=httpx.ConnectError("connection refused"))
    with pytest.raises(SessionRefreshError):
        await _refresher(settings, backend).refresh(_cookies(expires_at=int(NOW) - 10))


@pytest.mark.asyncio
async def test_malformed_response_raises(settings) -> None:
    backend = Backend(httpx.Response(200, json={"unexpected": True}))
    with pytest.raises(SessionRefreshError):
        await _refresher(settings, backend).refresh(_cookies(expires_at=int(NOW) - 10))


def test_requires_backend_url(settings) -> None:
    unconfigured = settings.model_copy(update={"backend_url": ""})
    with pytest.raises(ValueError):
        SessionRefresher(settings=unconfigured, http=httpx.AsyncClient())


@pytest.mark.asyncio
async def test_out_of_range_expiry_in_response_raises(settings) -> None:
    backend = Backend(
        httpx.Response(
            200,
            content=b'{"access_token":"a2","refresh_token":"r2","expires_in":1e400}',
            headers={"content-type": "application/json"},
        )
    )
    with pytest.raises(SessionRefreshError):
        await _refresher(settings, backend).refresh(_cookies(expires_at=int(NOW) - 10))
