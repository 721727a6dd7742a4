"""
Database entity models.

Importing this package registers every table on ``Base.metadata``.
"""

from .events import ActivityEvent, AuditLog
from .master_data import DemandCategory, Location, Party, PlanningWeek, TruckType
from .organizations import (
    Invitation,
    Organization,
    OrganizationDomain,
    OrganizationMembership,
    OrganizationSettings,
)
from .planning import DemandForecast, DemandForecastTruckType, SupplyCommitment
from .platform import AdminAuditLog, PlatformAdmin
from .users import OTPCode, PasswordResetToken, User, UserSession

__all__ = [
    "ActivityEvent",
    "AdminAuditLog",
    "AuditLog",
    "DemandCategory",
    "DemandForecast",
    "DemandForecastTruckType",
    "Invitation",
    "Location",
    "OTPCode",
    "Organization",
    "OrganizationDomain",
    "OrganizationMembership",
    "OrganizationSettings",
    "Party",
    "PasswordResetToken",
    "PlanningWeek",
    "PlatformAdmin",
    "SupplyCommitment",
    "TruckType",
    "User",
    "UserSession",
]
