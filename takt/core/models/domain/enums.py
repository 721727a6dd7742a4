"""Domain enums shared by entities, schemas and services."""

from __future__ import annotations

from enum import Enum


class OrganizationStatus(str, Enum):
    """Access state of an organization. Suspended tenants are locked out of the app."""

    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"


class SubscriptionTier(str, Enum):
    STARTER = "STARTER"
    PROFESSIONAL = "PROFESSIONAL"
    ENTERPRISE = "ENTERPRISE"


class SubscriptionStatus(str, Enum):
    TRIALING = "TRIALING"
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    CANCELED = "CANCELED"


class FunctionalRole(str, Enum):
    """
    Role a user holds inside one organization.

    Permissions for each role live in ``takt.core.permissions``.
    """

    ADMIN = "ADMIN"
    DEMAND_PLANNER = "DEMAND_PLANNER"
    SUPPLY_PLANNER = "SUPPLY_PLANNER"
    VIEWER = "VIEWER"


class PlatformAdminRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    SUPPORT = "SUPPORT"


class PartyType(str, Enum):
    CLIENT = "CLIENT"
    SUPPLIER = "SUPPLIER"


class BusinessType(str, Enum):
    REGULAR = "REGULAR"
    ADHOC = "ADHOC"


class InsightType(str, Enum):
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"
    CRITICAL = "critical"
