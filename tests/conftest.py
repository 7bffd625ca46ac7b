"""
tests.conftest

Shared fixtures and helpers.

Responsibilities:
- Test settings pointing at a throwaway SQLite file and a fake backend project.
- Helpers to mint session cookies and run the app (with lifespan) over ASGITransport.
- Fake refreshers/role stores standing in for the hosted backend.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager

import httpx
import pytest
from fastapi import FastAPI

from storefront.auth.jwt import JwtConfig, issue_token
from storefront.auth.roles import Role
from storefront.db.models import Employee, User
from storefront.db.repositories.employees import new_employee_code
from storefront.session.cookies import (
    SessionTokens,
    auth_cookie_name,
    encode_session,
    read_session,
)
from storefront.session.refresh import RefreshOutcome
from storefront.settings import Settings

PROJECT_REF = "abcd1234"
JWT_SECRET = "test-jwt-secret-with-at-least-32-bytes!"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        log_level="WARNING",
        backend_url=f"https://{PROJECT_REF}.supabase.co",
        backend_anon_key="anon-test-key",
        backend_jwt_secret=JWT_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        admin_emails=["owner@example.com"],
    )


def cookie_name() -> str:
    return auth_cookie_name(PROJECT_REF)


def make_session(
    settings: Settings,
    *,
    subject: str,
    email: str | None = None,
    expires_in: int = 3600,
) -> SessionTokens:
    token = issue_token(cfg=JwtConfig.from_settings(settings), subject=subject, email=email)
    return SessionTokens(
        access_token=token,
        refresh_token=f"refresh-{subject}",
        expires_at=int(time.time()) + expires_in,
        expires_in=expires_in,
        user={"id": subject, "email": email},
    )


def cookie_header(cookies: Mapping[str, str]) -> dict[str, str]:
    return {"cookie": "; ".join(f"{k}={v}" for k, v in cookies.items())}


def session_headers(
    settings: Settings, *, subject: str, email: str | None = None
) -> dict[str, str]:
    tokens = make_session(settings, subject=subject, email=email)
    return cookie_header({cookie_name(): encode_session(tokens)})


@asynccontextmanager
async def serve(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    # httpx ASGITransport does not run lifespan; drive it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


async def seed_user(app: FastAPI, *, user_id: str, email: str, role: Role | None = None) -> None:
    async with app.state.sessionmaker() as session:
        session.add(User(id=user_id, email=email))
        if role is not None:
            session.add(Employee(user_id=user_id, role=role, employee_code=new_employee_code()))
        await session.commit()


class PassThroughRefresher:
    """Reads the cookie session but never talks to a backend."""

    def __init__(self) -> None:
        self.cookie_name = cookie_name()
        self.calls = 0

    async def refresh(self, cookies: Mapping[str, str]) -> RefreshOutcome:
        self.calls += 1
        return RefreshOutcome("unchanged", read_session(cookies, self.cookie_name))


class ScriptedRefresher:
    def __init__(
        self, outcome: RefreshOutcome | None = None, error: Exception | None = None
    ) -> None:
        self.cookie_name = cookie_name()
        self.outcome = outcome or RefreshOutcome("unchanged")
        self.error = error
        self.calls = 0

    async def refresh(self, cookies: Mapping[str, str]) -> RefreshOutcome:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.outcome


class DictRoleStore:
    def __init__(self, roles: Mapping[str, Role] | None = None) -> None:
        self.roles = dict(roles or {})
        self.calls = 0

    async def role_for(self, principal_id: str) -> Role | None:
        self.calls += 1
        return self.roles.get(principal_id)

    async def employee_for(self, principal_id: str) -> Employee | None:
        role = self.roles.get(principal_id)
        if role is None:
            return None
        return Employee(user_id=principal_id, role=role, employee_code="EMP-000001")


class FailingRoleStore:
    async def role_for(self, principal_id: str) -> Role | None:
        raise ConnectionError("role store unreachable")

    async def employee_for(self, principal_id: str) -> Employee | None:
        raise ConnectionError("role store unreachable")

