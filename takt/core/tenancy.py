"""
Organization scoping helpers.

Every tenant-scoped read goes through ``org_scoped_where`` (or
``org_scope_clause`` for aggregate queries) and every tenant-scoped write
through ``org_scoped_data``, so a request can only ever see or create rows
belonging to the caller's current organization. Rows fetched by id are
checked with ``verify_org_ownership`` before they are returned or mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from takt.core.database.entities import Organization, User
from takt.core.database.repositories.base import QueryBuilder
from takt.core.errors import Forbidden, NotFound, OrganizationSuspended
from takt.core.logging_config import get_logger
from takt.server.core.constant import DEFAULT_SUSPENDED_REASON, SUSPENDED_PATH

logger = get_logger(__name__)

ScopedEntity = TypeVar("ScopedEntity", bound=SQLModel)


@dataclass(frozen=True)
class OrgContext:
    """The authenticated caller together with the organization their request is scoped to."""

    user: User
    organization_id: str
    role: str
    is_platform_admin: bool = False

    @property
    def user_id(self) -> str:
        return self.user.id


def org_scope_clause(ctx: OrgContext, model: Type[SQLModel]):
    """The ``organization_id = <current org>`` criterion for ``model``."""
    return getattr(model, "organization_id") == ctx.organization_id


def org_scoped_where(ctx: OrgContext, model: Type[ScopedEntity], *criteria: Any, **filters: Any):
    """
    Build a select statement for ``model`` restricted to the caller's organization.

    Extra SQL criteria and equality ``filters`` are ANDed with the
    organization filter. A caller-supplied ``organization_id`` filter is
    ignored: the current organization always wins.

    Args:
        ctx: Request organization context
        model: Tenant-scoped entity class (must define ``organization_id``)
        *criteria: Additional SQLAlchemy boolean expressions
        **filters: Equality (or ``IN`` for lists) filters on model columns

    Returns:
        A ``select`` statement that can be further ordered or paginated
    """
    filters.pop("organization_id", None)
    stmt = select(model).where(org_scope_clause(ctx, model))
    for criterion in criteria:
        stmt = stmt.where(criterion)
    return QueryBuilder.apply_filters(stmt, model, filters)


def org_scoped_data(ctx: OrgContext, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``data`` bound to the caller's organization.

    The context's organization overrides any ``organization_id`` already in
    ``data`` so a request body cannot write into another tenant.
    """
    return {**data, "organization_id": ctx.organization_id}


def verify_org_ownership(ctx: OrgContext, entity: Optional[Any]) -> None:
    """
    Ensure a fetched entity exists and belongs to the caller's organization.

    Raises:
        NotFound: If ``entity`` is None
        Forbidden: If the entity belongs to a different organization
    """
    if entity is None:
        raise NotFound("Entity not found")
    if getattr(entity, "organization_id", None) != ctx.organization_id:
        logger.warning(
            "Cross-organization access blocked",
            extra={
                "user_id": ctx.user_id,
                "organization_id": ctx.organization_id,
                "entity_type": type(entity).__name__,
                "entity_id": getattr(entity, "id", None),
            },
        )
        raise Forbidden("Access denied: Entity belongs to different organization")


async def get_owned_or_404(
    session: AsyncSession, ctx: OrgContext, model: Type[ScopedEntity], entity_id: str
) -> ScopedEntity:
    """Load ``model`` by id and verify it belongs to the caller's organization."""
    entity = await session.get(model, entity_id)
    verify_org_ownership(ctx, entity)
    return entity


async def check_org_suspension(session: AsyncSession, organization_id: Optional[str]) -> None:
    """
    Raise ``OrganizationSuspended`` when the given organization is suspended.

    No-op when the caller has no current organization or it no longer exists.
    """
    if not organization_id:
        return
    org = await session.get(Organization, organization_id)
    if org is not None and org.is_suspended:
        raise OrganizationSuspended(org.suspended_reason)


async def suspension_reason(session: AsyncSession, user: Optional[User]) -> Optional[str]:
    """
    Return the suspension reason of ``user``'s current organization, or None when it is not suspended.

    An organization suspended without a recorded reason yields the default message.
    """
    if user is None or not user.current_org_id:
        return None
    try:
        await check_org_suspension(session, user.current_org_id)
    except OrganizationSuspended as e:
        return e.reason or DEFAULT_SUSPENDED_REASON
    return None


def suspended_redirect_url(reason: str) -> str:
    return f"{SUSPENDED_PATH}?reason={quote(reason, safe='')}"
