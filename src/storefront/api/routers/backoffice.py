"""
storefront.api.routers.backoffice

Back-office entry points gated by role capabilities.

Responsibilities:
- Open a POS session for any staff role.
- Answer whether the caller may open a given dashboard section.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from starlette.status import HTTP_403_FORBIDDEN

from storefront.auth.deps import get_principal, get_role, require_capability
from storefront.auth.models import Principal
from storefront.auth.roles import DashboardSection, Role, can_access_pos, can_access_section

router = APIRouter(prefix="/v1/backoffice", tags=["backoffice"])


class PosSessionResponse(BaseModel):
    user_id: str
    email: str | None
    role: Role


class SectionAccessResponse(BaseModel):
    section: DashboardSection
    role: Role


@router.get("/pos", response_model=PosSessionResponse)
async def pos_session(
    principal: Principal = Depends(get_principal),
    role: Role = Depends(require_capability(can_access_pos)),
) -> PosSessionResponse:
    return PosSessionResponse(user_id=principal.subject, email=principal.email, role=role)


@router.get("/sections/{section}", response_model=SectionAccessResponse)
async def section_access(
    section: DashboardSection,
    role: Role | None = Depends(get_role),
) -> SectionAccessResponse:
    if role is None or not can_access_section(role, section):
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Section not available")
    return SectionAccessResponse(section=section, role=role)
