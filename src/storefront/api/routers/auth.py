"""
storefront.api.routers.auth

Role queries and admin bootstrap for signed-in users.

Responsibilities:
- Report the caller's role and derived capabilities (never errors; `role: null`
  for anonymous callers or failed lookups).
- Let allow-listed emails claim the admin role.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_403_FORBIDDEN, HTTP_409_CONFLICT

from storefront.api.deps import db_session, settings_dep
from storefront.api.routers.employees import EmployeeResponse
from storefront.auth.authority import RoleAuthority
from storefront.auth.deps import get_optional_principal, get_principal, get_role_authority
from storefront.auth.models import Principal
from storefront.auth.roles import (
    DashboardSection,
    Role,
    allowed_sections,
    can_access_admin,
    can_access_pos,
)
from storefront.db.models import Employee
from storefront.db.repositories.employees import EmployeeRepo
from storefront.db.repositories.users import UserRepo
from storefront.observability.logging import get_logger
from storefront.ratelimit import rate_limit
from storefront.settings import Settings

log = get_logger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


class RoleResponse(BaseModel):
    role: Role | None
    can_access_admin: bool
    can_access_pos: bool
    sections: list[DashboardSection]


class AssignAdminResponse(BaseModel):
    message: str
    employee: EmployeeResponse


@router.get("/role", response_model=RoleResponse)
async def get_my_role(
    principal: Principal | None = Depends(get_optional_principal),
    authority: RoleAuthority = Depends(get_role_authority),
) -> RoleResponse:
    role = await authority.resolve_role(principal.subject) if principal else None
    return RoleResponse(
        role=role,
        can_access_admin=can_access_admin(role),
        can_access_pos=can_access_pos(role),
        sections=allowed_sections(role),
    )


@router.post(
    "/assign-admin",
    response_model=AssignAdminResponse,
    dependencies=[Depends(rate_limit("assign-admin"))],
)
async def assign_admin(
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> AssignAdminResponse:
    if principal.email is None or not settings.is_admin_email(principal.email):
        raise HTTPException(
            status_code=HTTP_403_FORBIDDEN, detail="Email not authorized for admin access"
        )

    try:
        emp, message = await _promote_to_admin(session, principal.subject, principal.email)
        await session.commit()
    except IntegrityError as e:
        # Email owned by another user row, or a concurrent assignment won the race.
        await session.rollback()
        log.warning("admin_assign_conflict", user_id=principal.subject, error=str(e.orig))
        raise HTTPException(
            status_code=HTTP_409_CONFLICT, detail="Conflicting user or role record"
        ) from e
    log.info("admin_role_assigned", user_id=principal.subject, outcome=message)
    return AssignAdminResponse(message=message, employee=EmployeeResponse.model_validate(emp))


async def _promote_to_admin(
    session: AsyncSession, user_id: str, email: str
) -> tuple[Employee, str]:
    await UserRepo(session).upsert(user_id=user_id, email=email)
    employees = EmployeeRepo(session)
    existing = await employees.get_by_user_id(user_id)
    if existing is None:
        return await employees.create(user_id=user_id, role=Role.admin), "Admin account created"
    if existing.role != Role.admin:
        emp = await employees.set_role(user_id=user_id, role=Role.admin)
        return emp, "Role updated to admin"
    return existing, "User already has admin role"
