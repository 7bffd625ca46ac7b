"""
tests.test_roles

Role hierarchy and capability checks.
"""

from __future__ import annotations

import itertools

import pytest

from storefront.auth.roles import (
    ROLE_RANK,
    DashboardSection,
    Role,
    allowed_sections,
    can_access_admin,
    can_access_pos,
    can_access_section,
    has_role,
)


@pytest.mark.parametrize(("assigned", "required"), list(itertools.product(Role, Role)))
def test_has_role_follows_rank_order(assigned: Role, required: Role) -> None:
    assert has_role(assigned, required) == (ROLE_RANK[assigned] >= ROLE_RANK[required])


def test_has_role_examples() -> None:
    assert has_role(Role.admin, Role.seller)
    assert not has_role(Role.seller, Role.admin)
    assert has_role(Role.manager, Role.manager)


@pytest.mark.parametrize("required", list(Role))
def test_absent_role_has_nothing(required: Role) -> None:
    assert has_role(None, required) is False


def test_ranks_are_a_strict_total_order() -> None:
    assert ROLE_RANK[Role.admin] > ROLE_RANK[Role.manager] > ROLE_RANK[Role.seller]
    assert len(set(ROLE_RANK.values())) == len(Role)


def test_can_access_admin() -> None:
    assert can_access_admin(Role.admin) is True
    assert can_access_admin(Role.manager) is True
    assert can_access_admin(Role.seller) is False
    assert can_access_admin(None) is False


def test_can_access_pos() -> None:
    assert can_access_pos(Role.admin) is True
    assert can_access_pos(Role.manager) is True
    assert can_access_pos(Role.seller) is True
    assert can_access_pos(None) is False


def test_seller_sections() -> None:
    assert allowed_sections(Role.seller) == [
        DashboardSection.orders,
        DashboardSection.pos,
        DashboardSection.profile,
        DashboardSection.settings,
    ]
    assert not can_access_section(Role.seller, DashboardSection.payments)


def test_manager_sees_everything_but_employees() -> None:
    sections = allowed_sections(Role.manager)
    assert DashboardSection.employees not in sections
    assert set(sections) == set(DashboardSection) - {DashboardSection.employees}


def test_admin_sees_every_section_in_navigation_order() -> None:
    assert allowed_sections(Role.admin) == list(DashboardSection)


def test_no_role_sees_no_sections() -> None:
    assert allowed_sections(None) == []
