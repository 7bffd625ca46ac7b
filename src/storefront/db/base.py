"""
storefront.db.base

SQLAlchemy declarative base for the role store tables.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# --- Module Notes -----------------------------------------------------------
# `User` and `Employee` register on `Base.metadata`; `init_db` and `alembic/env.py` read it.
