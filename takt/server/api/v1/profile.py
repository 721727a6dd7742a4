"""
Profile endpoints for the signed-in user.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from sqlmodel import select

from takt.core.audit import AuditAction, create_audit_log
from takt.core.database.base import utc_now_naive
from takt.core.database.entities import User, UserSession
from takt.core.errors import Conflict, ValidationFailed
from takt.core.logging_config import get_logger
from takt.core.models.io import ApiResponse, ErrorResponse, MessageData
from takt.core.models.io.profile import ChangePassword, ProfileRead, ProfileUpdate
from takt.core.security import hash_password, verify_password
from takt.server.services.deps import CurrentSessionDep, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["profile"])


@router.get("", response_model=ApiResponse[ProfileRead], summary="Get Profile")
async def get_profile(current: CurrentSessionDep) -> ApiResponse[ProfileRead]:
    return ApiResponse(data=ProfileRead.model_validate(current.user))


@router.patch(
    "",
    response_model=ApiResponse[ProfileRead],
    summary="Update Profile",
    description="Change name or mobile number. The mobile number must not belong to another account.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        409: {"model": ErrorResponse, "description": "Mobile number already registered"},
    },
)
async def update_profile(
    data: ProfileUpdate, request: Request, current: CurrentSessionDep, session: SessionDep
) -> ApiResponse[ProfileRead]:
    user = current.user
    taken = await session.execute(
        select(User.id).where((User.mobile_number == data.mobile_number) & (User.id != user.id))
    )
    if taken.first() is not None:
        raise Conflict("This mobile number is already registered to another account", code="MOBILE_EXISTS")

    before = {"firstName": user.first_name, "lastName": user.last_name, "mobileNumber": user.mobile_number}
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in changes.items():
        setattr(user, key, value.strip() if key != "mobile_number" else value)
    user.updated_at = utc_now_naive()
    session.add(user)
    await session.commit()
    result = ProfileRead.model_validate(user)

    await create_audit_log(
        session,
        action=AuditAction.USER_PROFILE_UPDATED,
        user_id=user.id,
        organization_id=user.current_org_id,
        entity_type="User",
        entity_id=user.id,
        metadata={"changes": {"before": before, "after": data.model_dump(by_alias=True, exclude_unset=True)}},
        request=request,
    )
    return ApiResponse(data=result)


@router.post(
    "/password",
    response_model=ApiResponse[MessageData],
    summary="Change Password",
    description="Change the password after confirming the current one. Other sessions are signed out.",
    responses={400: {"model": ErrorResponse, "description": "Current password incorrect or new password too weak"}},
)
async def change_password(
    data: ChangePassword, request: Request, current: CurrentSessionDep, session: SessionDep
) -> ApiResponse[MessageData]:
    user = current.user
    if not verify_password(user.password_hash, data.current_password):
        raise ValidationFailed("Current password is incorrect", code="INVALID_PASSWORD")

    user.password_hash = hash_password(data.new_password)
    user.updated_at = utc_now_naive()
    session.add(user)
    others = await session.execute(
        select(UserSession).where((UserSession.user_id == user.id) & (UserSession.id != current.user_session.id))
    )
    for other in others.scalars().all():
        await session.delete(other)
    await session.commit()
    logger.info(f"Password changed for user {user.id}")

    await create_audit_log(
        session,
        action=AuditAction.USER_PASSWORD_CHANGED,
        user_id=user.id,
        organization_id=user.current_org_id,
        entity_type="User",
        entity_id=user.id,
        request=request,
    )
    return ApiResponse(data=MessageData(message="Password updated"))
