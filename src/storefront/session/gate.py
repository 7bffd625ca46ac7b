"""
storefront.session.gate

Session Continuity Gate: request-boundary middleware that keeps auth cookies fresh.

Responsibilities:
- Skip static assets and unconfigured backends entirely (no backend calls).
- Refresh the session cookie set when due and hand the refreshed cookies to
  both the downstream handler and the browser.
- Expire auth cookies left over from other backend projects.
- Never reject a request: refresh failures degrade to pass-through.
"""

from __future__ import annotations

import re

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from storefront.observability.logging import get_logger
from storefront.session.cookies import (
    CookieSpec,
    apply_specs,
    clear_session_specs,
    read_session,
    stale_project_cookie_names,
    store_session_specs,
    write_response_cookies,
)
from storefront.session.refresh import Refresher, SessionRefreshError
from storefront.settings import Settings

log = get_logger(__name__)

# Framework bundles, the favicon, and image files.
STATIC_ASSET_PATTERN = re.compile(
    r"^/(?:_next/static|_next/image|favicon\.ico|.*\.(?:svg|png|jpg|jpeg|gif|webp)$)"
)


def is_static_asset(path: str) -> bool:
    return STATIC_ASSET_PATTERN.match(path) is not None


def _rewrite_request_cookies(request: Request, jar: dict[str, str]) -> None:
    # Mutate the shared scope in place: call_next runs the app against the same dict.
    headers = [(k, v) for k, v in request.scope["headers"] if k != b"cookie"]
    if jar:
        cookie_header = "; ".join(f"{k}={v}" for k, v in jar.items())
        headers.append((b"cookie", cookie_header.encode("latin-1")))
    request.scope["headers"] = headers


class SessionContinuityMiddleware(BaseHTTPMiddleware):
    """
    The refresher is read from `app.state.session_refresher` (created on startup),
    so the middleware stack can be built before the HTTP client exists.
    """

    def __init__(self, app: ASGIApp, *, settings: Settings) -> None:
        super().__init__(app)
        self._settings = settings

    async def dispatch(self, request: Request, call_next) -> Response:
        if is_static_asset(request.url.path) or not self._settings.backend_configured:
            return await call_next(request)

        refresher: Refresher | None = getattr(request.app.state, "session_refresher", None)
        if refresher is None:
            return await call_next(request)

        cookies = request.cookies
        specs = [
            CookieSpec.expired(name)
            for name in stale_project_cookie_names(cookies, self._settings.project_ref)
        ]
        if specs:
            log.info("stale_auth_cookies_cleared", names=[s.name for s in specs])

        try:
            outcome = await refresher.refresh(cookies)
        except SessionRefreshError as e:
            log.warning("session_refresh_failed", error=str(e))
            request.state.session = read_session(cookies, refresher.cookie_name)
        except Exception as e:
            # Unexpected refresher fault: same pass-through, but keep the traceback.
            log.warning("session_refresh_error", error=str(e), exc_info=True)
            request.state.session = read_session(cookies, refresher.cookie_name)
        else:
            request.state.session = outcome.session
            if outcome.status == "refreshed" and outcome.session is not None:
                specs.extend(store_session_specs(refresher.cookie_name, outcome.session, cookies))
                log.info("session_refreshed", user_id=outcome.session.user_id)
            elif outcome.status == "cleared":
                specs.extend(clear_session_specs(refresher.cookie_name, cookies))
                log.info("session_cleared")

        if specs:
            _rewrite_request_cookies(request, apply_specs(cookies, specs))

        response: Response = await call_next(request)
        write_response_cookies(response, specs, secure=self._settings.env == "prod")
        return response


# --- Module Notes -----------------------------------------------------------
# Authentication decisions are left to route dependencies (`auth.deps`); the gate
# only keeps the credential cookies current.
