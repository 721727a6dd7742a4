"""
Platform administration entity models.

Platform admins operate across every organization. Each privileged action
they take is recorded in ``AdminAuditLog``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlmodel import JSON, Field

from takt.core.models.domain.enums import PlatformAdminRole

from ..base import Base, new_id, utc_now_naive


class PlatformAdmin(Base, table=True):
    """Cross-organization administrator grant. Revoked grants keep their row.

    Table: platform_admins
    """

    __tablename__ = "platform_admins"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(foreign_key="users.id", unique=True, index=True)
    role: str = Field(default=PlatformAdminRole.ADMIN.value, max_length=32)
    granted_by: Optional[str] = Field(default=None, max_length=64)
    granted_at: datetime = Field(default_factory=utc_now_naive)
    revoked_at: Optional[datetime] = Field(default=None)
    revoked_by: Optional[str] = Field(default=None, max_length=64)

    @property
    def is_active(self) -> bool:
        return self.revoked_at is None


class AdminAuditLog(Base, table=True):
    """Immutable record of a platform-admin action.

    Table: admin_audit_logs
    """

    __tablename__ = "admin_audit_logs"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    admin_user_id: str = Field(max_length=64, index=True)
    admin_email: str = Field(max_length=255)
    action_type: str = Field(max_length=100, index=True)
    target_type: str = Field(max_length=64)
    target_id: Optional[str] = Field(default=None, max_length=64, index=True)
    target_name: Optional[str] = Field(default=None, max_length=255)
    before_state: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)
    after_state: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)
    reason: Optional[str] = Field(default=None, max_length=1000)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    created_at: datetime = Field(default_factory=utc_now_naive, index=True)
