"""
storefront.api.routers.employees

Staff role-assignment endpoints for the admin back office.

Responsibilities:
- List role assignments (admin-panel access).
- Assign a role to an existing user by email (admin only).
"""

from __future__ import annotations

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from storefront.api.deps import db_session
from storefront.auth.deps import get_principal, require_capability, require_role
from storefront.auth.models import Principal
from storefront.auth.roles import Role, can_access_admin
from storefront.db.repositories.employees import EmployeeRepo
from storefront.db.repositories.users import UserRepo
from storefront.observability.logging import get_logger
from storefront.ratelimit import rate_limit

log = get_logger(__name__)

router = APIRouter(prefix="/v1/employees", tags=["employees"])


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    role: Role
    employee_code: str
    created_at: datetime


class EmployeeCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    role: Role


@router.get(
    "",
    response_model=list[EmployeeResponse],
    dependencies=[Depends(require_capability(can_access_admin))],
)
async def list_employees(session: AsyncSession = Depends(db_session)) -> list[EmployeeResponse]:
    employees = await EmployeeRepo(session).list_all()
    return [EmployeeResponse.model_validate(e) for e in employees]


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("employees")), Depends(require_role(Role.admin))],
)
async def create_employee(
    body: EmployeeCreateRequest,
    principal: Principal = Depends(get_principal),
    session: AsyncSession = Depends(db_session),
) -> EmployeeResponse:
    user = await UserRepo(session).get_by_email(body.email)
    if user is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="User not found with this email")

    user_id = user.id
    employees = EmployeeRepo(session)
    if await employees.get_by_user_id(user_id) is not None:
        raise HTTPException(status_code=HTTP_409_CONFLICT, detail="User already has a role")

    try:
        emp = await employees.create(user_id=user_id, role=body.role)
        await session.commit()
    except IntegrityError as e:
        # A concurrent request assigned this user (or took the code) first.
        await session.rollback()
        log.warning("employee_create_conflict", user_id=user_id, error=str(e.orig))
        raise HTTPException(
            status_code=HTTP_409_CONFLICT, detail="User already has a role"
        ) from e
    log.info("employee_created", by=principal.subject, user_id=user_id, role=body.role.value)
    return EmployeeResponse.model_validate(emp)
