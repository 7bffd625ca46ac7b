"""
storefront.api.app

FastAPI app factory for the storefront access service.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Initialize and dispose shared infrastructure (DB engine, refresh HTTP client,
  rate-limit sweep scheduler).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI

from storefront import __version__
from storefront.api.routers.auth import router as auth_router
from storefront.api.routers.backoffice import router as backoffice_router
from storefront.api.routers.dev import router as dev_router
from storefront.api.routers.employees import router as employees_router
from storefront.api.routers.health import router as health_router
from storefront.auth.authority import EmployeeRoleStore, RoleAuthority, RoleStore
from storefront.db.init_db import init_db
from storefront.db.session import create_engine, create_sessionmaker
from storefront.observability.logging import configure_logging, get_logger
from storefront.observability.middleware import RequestContextMiddleware
from storefront.ratelimit import InMemoryCounterStore, SlidingWindowRateLimiter
from storefront.session.gate import SessionContinuityMiddleware
from storefront.session.refresh import Refresher, SessionRefresher, create_http_client
from storefront.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    session_refresher: Refresher | None = None,
    role_store: RoleStore | None = None,
    rate_limiter: SlidingWindowRateLimiter | None = None,
) -> FastAPI:
    """
    The optional collaborators replace the production ones (backend refresh
    client, employees-table role store, in-memory limiter), mainly for tests.
    """

    configure_logging(service_name=settings.service_name, level=settings.log_level)

    limiter = rate_limiter or SlidingWindowRateLimiter(
        InMemoryCounterStore(),
        max_requests=settings.rate_limit_max_requests,
        window_ms=settings.rate_limit_window_ms,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, backend_configured=settings.backend_configured)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            await init_db(engine)

        app.state.role_authority = RoleAuthority(
            store=role_store or EmployeeRoleStore(app.state.sessionmaker),
            configured=settings.backend_configured,
        )

        http = None
        if session_refresher is not None:
            app.state.session_refresher = session_refresher
        elif settings.backend_configured:
            http = create_http_client(settings)
            app.state.session_refresher = SessionRefresher(settings=settings, http=http)
        else:
            app.state.session_refresher = None

        async def sweep_rate_limits() -> None:
            # Coroutine job: runs on the event loop, never concurrently with `check`.
            dropped = limiter.sweep()
            if dropped:
                log.debug("rate_limit_sweep", dropped=dropped)

        scheduler = AsyncIOScheduler()
        scheduler.add_job(
            sweep_rate_limits,
            "interval",
            seconds=settings.rate_limit_sweep_seconds,
            id="rate-limit-sweep",
            replace_existing=True,
        )
        scheduler.start()
        app.state.scheduler = scheduler
        try:
            yield
        finally:
            scheduler.shutdown(wait=False)
            if http is not None:
                await http.aclose()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Storefront Access Service",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_limiter = limiter

    # Last added runs first: request context wraps the session gate.
    app.add_middleware(SessionContinuityMiddleware, settings=settings)
    app.add_middleware(RequestContextMiddleware)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(employees_router)
    app.include_router(backoffice_router)
    if settings.env != "prod":
        app.include_router(dev_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; role rules live in `auth.roles`, cookie handling in
# `session`, and limiter state in the injected counter store.
