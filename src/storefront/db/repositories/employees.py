"""
storefront.db.repositories.employees

Repository for `Employee` (role assignment) entities.

Responsibilities:
- Single-row role lookup by principal id (the Role Authority's backing query).
- Create/promote assignments for the provisioning endpoints.
"""

from __future__ import annotations

import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.auth.roles import Role
from storefront.db.models import Employee


# Codes are random; a few draws are enough to dodge an occasional collision.
_CODE_ATTEMPTS = 5


def new_employee_code() -> str:
    return f"EMP-{secrets.randbelow(1_000_000):06d}"


class EmployeeCodeExhausted(RuntimeError):
    pass


class EmployeeRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_user_id(self, user_id: str) -> Employee | None:
        stmt = select(Employee).where(Employee.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def role_for_user(self, user_id: str) -> Role | None:
        stmt = select(Employee.role).where(Employee.user_id == user_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def _unused_code(self) -> str:
        for _ in range(_CODE_ATTEMPTS):
            code = new_employee_code()
            stmt = select(Employee.id).where(Employee.employee_code == code)
            if (await self._session.execute(stmt)).first() is None:
                return code
        raise EmployeeCodeExhausted(f"no free employee code after {_CODE_ATTEMPTS} attempts")

    async def create(self, *, user_id: str, role: Role) -> Employee:
        code = await self._unused_code()
        emp = Employee(user_id=user_id, role=role, employee_code=code)
        self._session.add(emp)
        await self._session.flush()
        return emp

    async def set_role(self, *, user_id: str, role: Role) -> Employee:
        """Promote/demote an existing assignment, creating it when missing."""
        emp = await self.get_by_user_id(user_id)
        if emp is None:
            return await self.create(user_id=user_id, role=role)
        emp.role = role
        await self._session.flush()
        return emp

    async def list_all(self, *, limit: int = 200) -> list[Employee]:
        stmt = select(Employee).order_by(Employee.created_at).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# `role_for_user` relies on the UNIQUE(user_id) constraint: it never sees more than one row.
