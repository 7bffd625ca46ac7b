"""
storefront.auth.roles

Role hierarchy and capability checks.

Responsibilities:
- Define the three staff roles and their total order (admin > manager > seller).
- Answer capability questions (admin panel, POS, dashboard sections) for an
  assigned role, where `None` means "no role assigned".

Everything here is pure; resolving a principal's role lives in `auth.authority`.
"""

from __future__ import annotations

import enum


class Role(enum.StrEnum):
    # Values are stored in the `employees.role` column; treat as stable contract.
    seller = "seller"
    manager = "manager"
    admin = "admin"


ROLE_RANK: dict[Role, int] = {
    Role.seller: 1,
    Role.manager: 2,
    Role.admin: 3,
}

# Enumerated explicitly so a future role does not gain POS access by rank alone.
POS_ROLES: frozenset[Role] = frozenset({Role.admin, Role.manager, Role.seller})


class DashboardSection(enum.StrEnum):
    dashboard = "dashboard"
    products = "products"
    orders = "orders"
    inventory = "inventory"
    employees = "employees"
    payments = "payments"
    pos = "pos"
    profile = "profile"
    settings = "settings"


_SELLER_SECTIONS = frozenset(
    {
        DashboardSection.orders,
        DashboardSection.pos,
        DashboardSection.profile,
        DashboardSection.settings,
    }
)
_ADMIN_ONLY_SECTIONS = frozenset({DashboardSection.employees})


def rank(role: Role) -> int:
    return ROLE_RANK[role]


def has_role(assigned: Role | None, required: Role) -> bool:
    """True when `assigned` sits at or above `required` in the hierarchy."""
    if assigned is None:
        return False
    return rank(assigned) >= rank(required)


def can_access_admin(assigned: Role | None) -> bool:
    # Explicit union, not a rank threshold: admin-panel access is its own capability.
    return has_role(assigned, Role.admin) or has_role(assigned, Role.manager)


def can_access_pos(assigned: Role | None) -> bool:
    return assigned in POS_ROLES


def can_access_section(assigned: Role | None, section: DashboardSection) -> bool:
    if assigned is None:
        return False
    if assigned == Role.seller:
        return section in _SELLER_SECTIONS
    if section in _ADMIN_ONLY_SECTIONS:
        return assigned == Role.admin
    return can_access_admin(assigned)


def allowed_sections(assigned: Role | None) -> list[DashboardSection]:
    # Declaration order of DashboardSection is the navigation order.
    return [s for s in DashboardSection if can_access_section(assigned, s)]


# --- Module Notes -----------------------------------------------------------
# `can_access_admin` excludes sellers; they reach their dashboard
# sections through `can_access_section` instead.
