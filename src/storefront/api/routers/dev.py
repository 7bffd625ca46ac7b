"""
storefront.api.routers.dev

Dev-only session minting (mounted only when `env != prod`).

Responsibilities:
- Issue a backend-shaped access token for an arbitrary subject.
- Write it as the real session cookie so the gate and auth dependencies see it.
"""

from __future__ import annotations

import secrets
import time
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field
from starlette.status import HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from storefront.api.deps import settings_dep
from storefront.auth.jwt import JwtConfig, issue_token
from storefront.session.cookies import (
    SessionTokens,
    auth_cookie_name,
    store_session_specs,
    write_response_cookies,
)
from storefront.settings import Settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevSessionRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=64)
    email: str | None = Field(default=None, max_length=320)
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevSessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: int


@router.post("/session", response_model=DevSessionResponse)
async def mint_dev_session(
    body: DevSessionRequest,
    request: Request,
    response: Response,
    settings: Settings = Depends(settings_dep),
) -> DevSessionResponse:
    """Sign in as any subject without the backend; sets the session cookie."""
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")
    if settings.project_ref is None or not settings.backend_jwt_secret:
        raise HTTPException(status_code=HTTP_409_CONFLICT, detail="Backend is not configured")

    ttl = timedelta(minutes=body.ttl_minutes)
    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=body.subject,
        email=body.email,
        ttl=ttl,
    )
    expires_in = int(ttl.total_seconds())
    tokens = SessionTokens(
        access_token=token,
        refresh_token=secrets.token_urlsafe(24),
        expires_at=int(time.time()) + expires_in,
        expires_in=expires_in,
        user={"id": body.subject, "email": body.email},
    )
    cookie_name = auth_cookie_name(settings.project_ref)
    write_response_cookies(
        response,
        store_session_specs(cookie_name, tokens, request.cookies),
        secure=settings.env == "prod",
    )
    return DevSessionResponse(access_token=token, expires_at=tokens.expires_at or 0)
