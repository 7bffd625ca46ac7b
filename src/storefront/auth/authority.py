"""
storefront.auth.authority

Role Authority: resolve a principal's role from the role store.

Responsibilities:
- Perform the single-row role lookup for a principal id.
- Keep "no assignment" and "lookup failed" apart internally (`RoleLookup`),
  while `resolve_role` exposes both as `None` (no elevated access).
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.auth.models import LookupFailed, NoAssignment, RoleAssigned, RoleLookup
from storefront.auth.roles import Role
from storefront.db.models import Employee
from storefront.db.repositories.employees import EmployeeRepo
from storefront.observability.logging import get_logger

log = get_logger(__name__)

NOT_CONFIGURED = "backend not configured"


class RoleStore(Protocol):
    async def role_for(self, principal_id: str) -> Role | None: ...

    async def employee_for(self, principal_id: str) -> Employee | None: ...


class EmployeeRoleStore:
    """`RoleStore` backed by the `employees` table; one short session per lookup."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def role_for(self, principal_id: str) -> Role | None:
        async with self._session_factory() as session:
            return await EmployeeRepo(session).role_for_user(principal_id)

    async def employee_for(self, principal_id: str) -> Employee | None:
        async with self._session_factory() as session:
            return await EmployeeRepo(session).get_by_user_id(principal_id)


class RoleAuthority:
    def __init__(self, *, store: RoleStore, configured: bool = True) -> None:
        self._store = store
        self._configured = configured

    async def lookup(self, principal_id: str) -> RoleLookup:
        if not self._configured:
            return LookupFailed(NOT_CONFIGURED)
        if not principal_id:
            return NoAssignment()
        try:
            role = await self._store.role_for(principal_id)
        except Exception as e:  # any store failure collapses to "no elevated access"
            log.warning(
                "role_lookup_failed", principal_id=principal_id, error=str(e), exc_info=True
            )
            return LookupFailed(str(e) or type(e).__name__)
        if role is None:
            return NoAssignment()
        return RoleAssigned(role)

    async def resolve_role(self, principal_id: str) -> Role | None:
        result = await self.lookup(principal_id)
        if isinstance(result, RoleAssigned):
            return result.role
        return None

    async def get_employee(self, principal_id: str) -> Employee | None:
        if not self._configured or not principal_id:
            return None
        try:
            return await self._store.employee_for(principal_id)
        except Exception as e:
            log.warning(
                "employee_lookup_failed", principal_id=principal_id, error=str(e), exc_info=True
            )
            return None


# --- Module Notes -----------------------------------------------------------
# Lookup errors fail closed: a backend outage denies elevated
# access but leaves anonymous browsing untouched. The warning log is what tells a
# transient failure apart from a genuine provisioning gap.
