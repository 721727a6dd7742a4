"""Domain-level value types."""

from .enums import (
    BusinessType,
    FunctionalRole,
    InsightType,
    OrganizationStatus,
    PartyType,
    PlatformAdminRole,
    SubscriptionStatus,
    SubscriptionTier,
)

__all__ = [
    "BusinessType",
    "FunctionalRole",
    "InsightType",
    "OrganizationStatus",
    "PartyType",
    "PlatformAdminRole",
    "SubscriptionStatus",
    "SubscriptionTier",
]
