"""
Activity and audit event entity models.

``ActivityEvent`` feeds the platform-wide activity stream; ``AuditLog`` is the
organization-level audit trail shown to tenant admins. Both are written on a
best-effort basis and never block the request that produced them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Column
from sqlmodel import JSON, Field

from ..base import Base, new_id, utc_now_naive


class ActivityEvent(Base, table=True):
    """Platform activity stream entry.

    Table: activity_events
    """

    __tablename__ = "activity_events"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: Optional[str] = Field(default=None, max_length=64, index=True)
    actor_user_id: Optional[str] = Field(default=None, max_length=64, index=True)
    actor_email: Optional[str] = Field(default=None, max_length=255)
    event_type: str = Field(max_length=100, index=True)
    entity_type: Optional[str] = Field(default=None, max_length=64)
    entity_id: Optional[str] = Field(default=None, max_length=64)
    # "metadata" is reserved on declarative classes, so the attribute is renamed
    event_metadata: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSON))
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    created_at: datetime = Field(default_factory=utc_now_naive, index=True)


class AuditLog(Base, table=True):
    """Organization-level audit trail entry.

    Table: audit_logs
    """

    __tablename__ = "audit_logs"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: Optional[str] = Field(default=None, max_length=64, index=True)
    user_id: Optional[str] = Field(default=None, max_length=64, index=True)
    action: str = Field(max_length=100, index=True)
    entity_type: Optional[str] = Field(default=None, max_length=64)
    entity_id: Optional[str] = Field(default=None, max_length=64)
    audit_metadata: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column("metadata", JSON))
    before_state: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)
    after_state: Optional[Dict[str, Any]] = Field(default=None, sa_type=JSON)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=utc_now_naive, index=True)
