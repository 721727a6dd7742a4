"""
Best-effort activity logging.

Activity events and last-activity timestamps are side effects of a request,
never part of its outcome: the helpers here log and swallow their own
failures. Each write runs in a separate session on the same engine, so a
failure never rolls back or expires the request session. Call them after the
request's own changes are committed.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from takt.core.database import side_session, utc_now_naive
from takt.core.database.entities import ActivityEvent, User
from takt.core.logging_config import get_logger
from takt.core.monitoring import log_domain_event
from takt.core.request_context import client_ip, user_agent

logger = get_logger(__name__)


async def log_activity(
    session: AsyncSession,
    *,
    event_type: str,
    actor: Optional[User] = None,
    organization_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> Optional[ActivityEvent]:
    """
    Record an activity event.

    Args:
        session: Request session; the event is written beside it
        event_type: Dotted event name, e.g. ``demand.created``
        actor: User who triggered the event
        organization_id: Tenant the event belongs to
        entity_type: Kind of entity affected
        entity_id: Id of the entity affected
        metadata: Free-form JSON details
        request: Source request for IP and user agent

    Returns:
        The stored event, or None when the write failed
    """
    event = ActivityEvent(
        organization_id=organization_id,
        actor_user_id=actor.id if actor else None,
        actor_email=actor.email if actor else None,
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        event_metadata=metadata,
        ip_address=client_ip(request),
        user_agent=user_agent(request),
    )
    try:
        async with side_session(session) as activity_session:
            activity_session.add(event)
            await activity_session.commit()
    except Exception as e:
        logger.error(
            f"Failed to log activity event {event_type}: {e}",
            extra={"event_type": event_type, "organization_id": organization_id, "entity_id": entity_id},
        )
        return None

    log_domain_event(event_type, organization_id, entity_type=entity_type, entity_id=entity_id)
    return event


async def update_user_activity(session: AsyncSession, user_id: str) -> None:
    """Stamp ``last_activity_at`` on a user; failures are logged only."""
    try:
        async with side_session(session) as activity_session:
            await activity_session.execute(
                update(User).where(User.id == user_id).values(last_activity_at=utc_now_naive())
            )
            await activity_session.commit()
    except Exception as e:
        logger.error(f"Failed to update last activity for user {user_id}: {e}")
