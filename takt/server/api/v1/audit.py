"""
Organization audit feed for tenant admins.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Query
from sqlalchemy import func
from sqlmodel import select

from takt.core.audit import format_audit_message, get_action_category, get_action_icon
from takt.core.database.entities import AuditLog
from takt.core.models.io import ErrorResponse, PaginatedResponse, Pagination
from takt.core.models.io.audit import AuditEntryRead
from takt.core.tenancy import org_scope_clause, org_scoped_where
from takt.server.services.deps import OrgAdminContextDep, SessionDep
from takt.server.services.planning import users_by_ids

router = APIRouter(tags=["audit"])


@router.get(
    "",
    response_model=PaginatedResponse[AuditEntryRead],
    summary="Organization Audit Log",
    description="Newest first. Each entry carries a readable message, a category badge and an icon.",
    responses={403: {"model": ErrorResponse, "description": "Not an organization admin"}},
)
async def list_audit_entries(
    ctx: OrgAdminContextDep,
    session: SessionDep,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1, le=200)] = 50,
    action: Annotated[Optional[str], Query()] = None,
) -> PaginatedResponse[AuditEntryRead]:
    count_stmt = select(func.count()).select_from(AuditLog).where(org_scope_clause(ctx, AuditLog))
    if action:
        count_stmt = count_stmt.where(AuditLog.action == action)
    total = (await session.execute(count_stmt)).scalar_one()

    stmt = (
        org_scoped_where(ctx, AuditLog, action=action or None)
        .order_by(AuditLog.created_at.desc())
        .limit(page_size)
        .offset((page - 1) * page_size)
    )
    entries = (await session.execute(stmt)).scalars().all()
    users = await users_by_ids(session, (e.user_id for e in entries if e.user_id))

    data = []
    for entry in entries:
        user = users.get(entry.user_id) if entry.user_id else None
        user_name = user.full_name if user else "Unknown user"
        data.append(
            AuditEntryRead(
                id=entry.id,
                action=entry.action,
                message=f"{user_name} {format_audit_message(entry.action, entry.audit_metadata)}",
                category=get_action_category(entry.action),
                icon=get_action_icon(entry.action),
                user_id=entry.user_id,
                user_name=user_name,
                entity_type=entry.entity_type,
                entity_id=entry.entity_id,
                metadata=entry.audit_metadata,
                created_at=entry.created_at,
            )
        )
    return PaginatedResponse(data=data, pagination=Pagination.build(page, page_size, total))
