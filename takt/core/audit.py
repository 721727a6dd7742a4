"""
Organization audit trail.

``create_audit_log`` records who did what inside a tenant; like activity
logging it is best effort. The formatting helpers turn stored entries into
the one-line sentences shown in the organization audit feed.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from takt.core.database import side_session
from takt.core.database.entities import AuditLog
from takt.core.logging_config import get_logger
from takt.core.request_context import client_ip

logger = get_logger(__name__)


class AuditAction:
    """Action names stored on ``AuditLog.action``."""

    DEMAND_CREATED = "demand.created"
    DEMAND_UPDATED = "demand.updated"
    DEMAND_DELETED = "demand.deleted"
    SUPPLY_COMMITTED = "supply.committed"
    SUPPLY_UPDATED = "supply.updated"
    SUPPLY_DELETED = "supply.deleted"
    USER_LOGIN = "user.logged_in"
    USER_LOGOUT = "user.logged_out"
    USER_REGISTERED = "user.registered"
    OTP_VERIFIED = "otp.verified"
    USER_ROLE_CHANGED = "user.role_changed"
    USER_PROFILE_UPDATED = "user.profile_updated"
    USER_PASSWORD_CHANGED = "user.password_changed"
    USER_PASSWORD_RESET = "user.password_reset"
    CLIENT_CREATED = "client.created"
    SUPPLIER_CREATED = "supplier.created"
    CITY_CREATED = "city.created"
    TRUCK_TYPE_CREATED = "truck_type.created"
    TRUCK_TYPE_UPDATED = "truck_type.updated"
    TRUCK_TYPE_DELETED = "truck_type.deleted"
    DEMAND_CATEGORY_CREATED = "demand_category.created"
    PLANNING_WEEK_CREATED = "planning_week.created"
    ORGANIZATION_SWITCHED = "organization.switched"
    ORGANIZATION_CREATED = "organization.created"
    MEMBER_INVITED = "organization.member_invited"
    MEMBER_JOINED = "organization.member_joined"
    INVITATION_REVOKED = "organization.invitation_revoked"


async def create_audit_log(
    session: AsyncSession,
    *,
    action: str,
    user_id: Optional[str],
    organization_id: Optional[str],
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    before_state: Optional[Dict[str, Any]] = None,
    after_state: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> Optional[AuditLog]:
    """Write an organization audit entry in its own session.

    Failures are logged and swallowed; ``session`` and its objects are left as
    they were.
    """
    entry = AuditLog(
        action=action,
        user_id=user_id,
        organization_id=organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        audit_metadata=metadata,
        before_state=before_state,
        after_state=after_state,
        ip_address=client_ip(request),
    )
    try:
        async with side_session(session) as audit_session:
            audit_session.add(entry)
            await audit_session.commit()
    except Exception as e:
        logger.error(f"Failed to create audit log {action}: {e}", extra={"action": action, "entity_id": entity_id})
        return None
    return entry


# =====================================================================
# Formatting
# =====================================================================

_NAMED_ENTITY_ACTIONS = {
    "client": "client",
    "supplier": "supplier",
    "city": "city",
    "truck_type": "truck type",
    "demand_category": "demand category",
}


def format_route(route_key: Optional[str]) -> str:
    """Render ``"Riyadh -> Jeddah"`` as ``"Riyadh → Jeddah"``."""
    if not route_key:
        return ""
    pickup, _, dropoff = route_key.partition("->")
    return f"{pickup.strip()} → {dropoff.strip()}"


def _party_name(metadata: Mapping[str, Any]) -> str:
    for key in ("partyName", "clientName", "supplierName"):
        if metadata.get(key):
            return str(metadata[key])
    return "Unknown"


def _sum_numeric(metadata: Mapping[str, Any], keys) -> int:
    return sum(metadata[key] for key in keys if isinstance(metadata.get(key), (int, float)))


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def format_audit_message(action: str, metadata: Optional[Mapping[str, Any]] = None) -> str:
    """
    Describe an audit entry as a sentence fragment (the actor's name is prefixed by the caller).

    Args:
        action: Stored action name
        metadata: Stored metadata

    Returns:
        e.g. ``created 12 loads for Acme on Riyadh → Jeddah route``
    """
    meta: Mapping[str, Any] = metadata or {}
    route = format_route(meta.get("routeKey"))
    party = _party_name(meta)

    if action == AuditAction.DEMAND_CREATED:
        if route:
            total = _sum_numeric(meta, [f"day{i}Loads" for i in range(1, 8)] + [f"week{i}Loads" for i in range(1, 6)])
            return f"created {_plural(total, 'load')} for {party} on {route} route"
        return "created a demand forecast"
    if action in (AuditAction.DEMAND_UPDATED, AuditAction.DEMAND_DELETED):
        verb = "updated" if action == AuditAction.DEMAND_UPDATED else "deleted"
        if route:
            return f"{verb} demand forecast for {party} on {route} route"
        return f"{verb} a demand forecast"
    if action == AuditAction.SUPPLY_COMMITTED:
        if route:
            total = _sum_numeric(meta, [f"day{i}Committed" for i in range(1, 8)])
            return f"committed {_plural(total, 'truck')} from {party} for {route} route"
        return "created a supply commitment"
    if action == AuditAction.SUPPLY_UPDATED:
        return f"updated commitment from {party} for {route} route" if route else "updated a supply commitment"
    if action == AuditAction.SUPPLY_DELETED:
        return f"removed commitment from {party} for {route} route" if route else "deleted a supply commitment"

    if action == AuditAction.USER_LOGIN:
        return "logged in"
    if action == AuditAction.USER_LOGOUT:
        return "logged out"
    if action == AuditAction.USER_REGISTERED:
        return "registered a new account"
    if action == AuditAction.OTP_VERIFIED:
        return "verified OTP and completed registration"
    if action == AuditAction.USER_ROLE_CHANGED:
        if meta.get("newRole") and meta.get("previousRole"):
            return f"changed role from {meta['previousRole']} to {meta['newRole']}"
        return "had their role changed"

    entity, _, verb = action.rpartition(".")
    if entity in _NAMED_ENTITY_ACTIONS and verb in ("created", "updated", "deleted"):
        return f'{verb} {_NAMED_ENTITY_ACTIONS[entity]} "{meta.get("name") or "Unknown"}"'

    if action == AuditAction.ORGANIZATION_SWITCHED:
        return f'switched to organization "{meta.get("organizationName") or "Unknown"}"'
    if action == AuditAction.ORGANIZATION_CREATED:
        return f'created organization "{meta.get("name") or "Unknown"}"'
    if action == "organization.updated":
        return "updated organization settings"
    if action == AuditAction.MEMBER_INVITED:
        return f"invited {meta.get('email') or 'a user'} to the organization"
    if action == "organization.member_removed":
        return f"removed {meta.get('email') or 'a user'} from the organization"
    if action == "organization.member_role_changed":
        return f"changed role for {meta.get('email') or 'a user'}"

    return re.sub(r"[._]", " ", action)


def get_action_category(action: str) -> str:
    """Badge category: create, update, delete, auth or other."""
    if "created" in action or "committed" in action:
        return "create"
    if "updated" in action:
        return "update"
    if "deleted" in action or "removed" in action:
        return "delete"
    if "logged" in action or "otp" in action or "registered" in action:
        return "auth"
    return "other"


_ACTION_ICONS = [
    ("demand", "📦"),
    ("supply", "🚛"),
    ("client", "👤"),
    ("supplier", "🏢"),
    ("city", "🏙️"),
    ("truck_type", "🚚"),
    ("logged_in", "🔐"),
    ("logged_out", "🚪"),
    ("organization", "🏢"),
]


def get_action_icon(action: str) -> str:
    for needle, icon in _ACTION_ICONS:
        if needle in action:
            return icon
    return "📝"
