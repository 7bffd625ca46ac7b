"""
storefront.db.models

Persistence schema read by the access core.

Responsibilities:
- Define ORM models mirroring the backend tables the core touches:
  - User: profile row keyed by the backend auth user id
  - Employee: role assignment (at most one per user)
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, String, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.auth.roles import Role
from storefront.db.base import Base


def _utcnow() -> datetime:
    return datetime.utcnow()


class User(Base):
    __tablename__ = "users"

    # Backend auth user id (opaque string, usually a UUID).
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    full_name: Mapped[str | None] = mapped_column(String(256), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    employee: Mapped[Employee | None] = relationship(back_populates="user", uselist=False)


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    # unique=True: one role assignment per principal.
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False, unique=True, index=True
    )
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    employee_code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    user: Mapped[User] = relationship(back_populates="employee")


# --- Module Notes -----------------------------------------------------------
# Role values are stored lowercase ("admin", "manager", "seller") to match the
# hosted backend's check constraint on employees.role.
