"""
storefront.db.init_db

DB initialization helpers (dev/test convenience).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from storefront.db import models  # noqa: F401  # register tables on Base.metadata
from storefront.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist.
    In production the tables are owned by the hosted backend.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
