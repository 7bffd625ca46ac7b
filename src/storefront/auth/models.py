"""
storefront.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
- Define the tagged result of a role lookup.
"""

from __future__ import annotations

from dataclasses import dataclass

from storefront.auth.roles import Role


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity, taken from the backend-issued access token.
    """

    subject: str
    email: str | None = None


@dataclass(frozen=True, slots=True)
class RoleAssigned:
    role: Role


@dataclass(frozen=True, slots=True)
class NoAssignment:
    pass


@dataclass(frozen=True, slots=True)
class LookupFailed:
    reason: str


RoleLookup = RoleAssigned | NoAssignment | LookupFailed
