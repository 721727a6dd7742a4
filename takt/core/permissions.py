"""Functional-role permission map."""

from __future__ import annotations

from typing import Dict, FrozenSet

from takt.core.models.domain.enums import FunctionalRole

DEMAND_READ = "demand:read"
DEMAND_WRITE = "demand:write"
SUPPLY_READ = "supply:read"
SUPPLY_WRITE = "supply:write"
REPOSITORIES_READ = "repositories:read"
REPOSITORIES_WRITE = "repositories:write"
ORG_ADMIN = "org:admin"

_READ_ALL = frozenset({DEMAND_READ, SUPPLY_READ, REPOSITORIES_READ})

ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    FunctionalRole.ADMIN.value: _READ_ALL | {DEMAND_WRITE, SUPPLY_WRITE, REPOSITORIES_WRITE, ORG_ADMIN},
    FunctionalRole.DEMAND_PLANNER.value: _READ_ALL | {DEMAND_WRITE, REPOSITORIES_WRITE},
    FunctionalRole.SUPPLY_PLANNER.value: _READ_ALL | {SUPPLY_WRITE, REPOSITORIES_WRITE},
    FunctionalRole.VIEWER.value: _READ_ALL,
}


def has_permission(role: str, permission: str) -> bool:
    """Check whether a functional role grants ``permission``. Unknown roles grant nothing."""
    return permission in ROLE_PERMISSIONS.get(role, frozenset())
