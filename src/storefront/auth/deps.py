"""
storefront.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Turn the session cookie (or a bearer token) into a typed `Principal`.
- Resolve the principal's role through the Role Authority.
- Enforce role requirements via reusable dependency factories.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from storefront.api.deps import settings_dep
from storefront.auth.authority import RoleAuthority
from storefront.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from storefront.auth.models import Principal
from storefront.auth.roles import DashboardSection, Role, can_access_section, has_role
from storefront.session.cookies import auth_cookie_name, read_session
from storefront.settings import Settings

_bearer = HTTPBearer(auto_error=False)


def _access_token(
    request: Request,
    creds: HTTPAuthorizationCredentials | None,
    settings: Settings,
) -> str | None:
    # The gate may already have parsed (and refreshed) the cookie session.
    session = getattr(request.state, "session", None)
    if session is None and settings.project_ref:
        session = read_session(request.cookies, auth_cookie_name(settings.project_ref))
    if session is not None:
        return session.access_token
    if creds is not None and creds.credentials:
        return creds.credentials
    return None


def get_optional_principal(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal | None:
    if not settings.backend_configured:
        return None
    token = _access_token(request, creds, settings)
    if not token:
        return None
    try:
        payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=token)
    except JwtValidationError:
        return None
    subject = str(payload.get("sub", ""))
    if not subject:
        return None
    email = payload.get("email")
    return Principal(subject=subject, email=str(email) if email else None)


def get_principal(principal: Principal | None = Depends(get_optional_principal)) -> Principal:
    if principal is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return principal


def get_role_authority(request: Request) -> RoleAuthority:
    # Built on app startup in `storefront.api.app.create_app`.
    return request.app.state.role_authority  # type: ignore[attr-defined]


async def get_role(
    principal: Principal = Depends(get_principal),
    authority: RoleAuthority = Depends(get_role_authority),
) -> Role | None:
    return await authority.resolve_role(principal.subject)


def require_capability(check: Callable[[Role | None], bool]):
    """Authz gate over any pure capability predicate from `auth.roles`."""

    def _dep(role: Role | None = Depends(get_role)) -> Role:
        if role is None or not check(role):
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient role")
        return role

    return _dep


def require_role(required: Role):
    return require_capability(lambda assigned: has_role(assigned, required))


def require_section(section: DashboardSection):
    return require_capability(lambda assigned: can_access_section(assigned, section))


# --- Module Notes -----------------------------------------------------------
# 401 means "no valid session"; 403 means "signed in, but no (sufficient) role",
# which includes the fail-closed case where the role lookup itself failed.
