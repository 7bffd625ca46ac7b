"""
storefront.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide backend secrets from repr/logging (anon key, JWT secret).
- Decide whether the hosted backend is configured at all.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Value shipped in example env files; treated the same as "unset".
PLACEHOLDER = "placeholder"


def _is_set(value: str) -> bool:
    stripped = value.strip()
    return bool(stripped) and stripped != PLACEHOLDER


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SF_", case_sensitive=False)

    # Environment controls auto-init of DB tables and the dev session router.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "storefront-access"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Hosted backend (auth + tables)
    backend_url: str = ""
    backend_anon_key: str = Field(default="", repr=False)
    backend_jwt_secret: str = Field(default="", repr=False)
    backend_timeout_seconds: float = 10.0

    # Access tokens issued by the backend
    jwt_alg: str = "HS256"
    jwt_audience: str = "authenticated"

    # Role store
    database_url: str = "sqlite+aiosqlite:///./storefront.db"
    # Driver-level timeout for role-store queries (SQLite busy wait, asyncpg connect/command).
    database_timeout_seconds: float = 5.0

    # Session continuity
    session_refresh_margin_seconds: int = 90

    # Rate limiting
    rate_limit_max_requests: int = 10
    rate_limit_window_ms: int = 60_000
    rate_limit_sweep_seconds: int = 60

    # Emails that may self-assign the admin role via /v1/auth/assign-admin.
    admin_emails: list[str] = Field(default_factory=list)

    @property
    def backend_configured(self) -> bool:
        return _is_set(self.backend_url) and _is_set(self.backend_anon_key)

    @property
    def project_ref(self) -> str | None:
        """
        First DNS label of the backend host, e.g. `https://abcd.supabase.co` -> `abcd`.
        Auth cookie names embed it, so it scopes cookies to one backend project.
        """

        if not _is_set(self.backend_url):
            return None
        host = urlparse(self.backend_url.strip()).hostname
        if not host:
            return None
        return host.split(".", 1)[0]

    def is_admin_email(self, email: str | None) -> bool:
        if not email:
            return False
        return email.strip().lower() in {e.strip().lower() for e in self.admin_emails}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# `backend_configured` is the single environment-driven branch point: the session
# gate and the role authority both degrade to pass-through / absent when it is False.
