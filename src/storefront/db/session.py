"""
storefront.db.session

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Create the async engine from settings, with a driver-level query timeout so a
  stalled role store fails the lookup instead of hanging the request.
- Create the async sessionmaker used by request handlers and the role store.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront.settings import Settings


def connect_args(settings: Settings) -> dict[str, Any]:
    """DBAPI connect kwargs carrying `database_timeout_seconds` for the known drivers."""
    timeout = settings.database_timeout_seconds
    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite":
        return {"timeout": timeout}
    if url.get_driver_name() == "asyncpg":
        return {"timeout": timeout, "command_timeout": timeout}
    return {}


def create_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        connect_args=connect_args(settings),
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps returned rows readable after the session closes.
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


# --- Module Notes -----------------------------------------------------------
# The API layer scopes sessions per request (`api.deps.db_session`); role lookups
# open their own short session (`auth.authority.EmployeeRoleStore`). A timeout
# surfaces as a driver error, which the Role Authority turns into `LookupFailed`.
