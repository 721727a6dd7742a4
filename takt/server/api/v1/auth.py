"""
Authentication endpoints.

Registration with email verification by one-time code, password login with
cookie sessions, logout, the current-user view and password reset.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Request, Response, status
from sqlalchemy import update
from sqlmodel import select

from takt.core.activity import log_activity, update_user_activity
from takt.core.audit import AuditAction, create_audit_log
from takt.core.auth import clear_session_cookie, create_user_session, destroy_session, set_session_cookie
from takt.core.database.base import utc_now_naive
from takt.core.database.entities import PasswordResetToken, User
from takt.core.database.repositories import SessionRepository, UserRepository
from takt.core.errors import EmailDeliveryError, Forbidden, NotFound, Unauthorized, ValidationFailed
from takt.core.logging_config import get_logger
from takt.core.models.io import ApiResponse, ErrorResponse, MessageData
from takt.core.models.io.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    RegisterResult,
    ResendOTPRequest,
    ResetPasswordRequest,
    SessionUser,
    VerifyOTPRequest,
)
from takt.core.otp import create_otp, verify_otp
from takt.core.security import generate_reset_token, hash_password, verify_password
from takt.server.services.accounts import build_session_user, register_user
from takt.server.services.deps import (
    CurrentSessionDep,
    EmailClientDep,
    OptionalSessionDep,
    SessionDep,
    SettingsDep,
)

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If an account exists with this email, a password reset link has been sent."


@router.post(
    "/register",
    response_model=ApiResponse[RegisterResult],
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create an account and email a verification code. The organization is resolved from the invitation token or the email domain.",
    response_description="The new user's id; the account must be verified before login.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input, or the client must ask for a role or organization name"},
        404: {"model": ErrorResponse, "description": "Invitation not found"},
        409: {"model": ErrorResponse, "description": "Email or mobile number already registered"},
        410: {"model": ErrorResponse, "description": "Invitation expired"},
    },
)
async def register(
    data: RegisterRequest,
    request: Request,
    session: SessionDep,
    app_settings: SettingsDep,
    email_client: EmailClientDep,
) -> ApiResponse[RegisterResult]:
    """
    Register a new user.

    When the email domain belongs to a verified organization the request must
    carry a ``role``; when no organization matches it must carry an
    ``organizationName``. The server answers 400 with ``needsRoleSelection``
    or ``needsOrgCreation`` in the error details so the client can ask.
    """
    user, org = await register_user(session, data)
    security = app_settings.security
    code = await create_otp(session, user.id, security.otp_expiry_minutes)
    try:
        await email_client.send_otp(user.email, user.first_name, code, security.otp_expiry_minutes)
    except EmailDeliveryError as e:
        # The user can ask for a new code from the verification screen.
        logger.error(f"Verification email not sent to {user.email}: {e}")

    result = RegisterResult(user_id=user.id)
    await create_audit_log(
        session,
        action=AuditAction.USER_REGISTERED,
        user_id=user.id,
        organization_id=org.id,
        entity_type="user",
        entity_id=user.id,
        metadata={"email": user.email},
        request=request,
    )
    await log_activity(
        session,
        event_type="user.registered",
        actor=user,
        organization_id=org.id,
        entity_type="user",
        entity_id=user.id,
        request=request,
    )
    return ApiResponse(data=result)


@router.post(
    "/verify-otp",
    response_model=ApiResponse[SessionUser],
    summary="Verify Email",
    description="Check the emailed verification code, mark the email verified and sign the user in.",
    response_description="The signed-in user.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired code, or already verified"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def verify_email(
    data: VerifyOTPRequest,
    request: Request,
    response: Response,
    session: SessionDep,
    app_settings: SettingsDep,
) -> ApiResponse[SessionUser]:
    user = await session.get(User, data.user_id)
    if user is None:
        raise NotFound("User not found", code="USER_NOT_FOUND")
    if user.email_verified:
        raise ValidationFailed("Email is already verified", code="ALREADY_VERIFIED")

    security = app_settings.security
    result = await verify_otp(session, user.id, data.code, security.otp_max_attempts)
    if not result.valid:
        raise ValidationFailed(result.error or "Invalid code", code="INVALID_OTP")

    now = utc_now_naive()
    user.email_verified = True
    user.email_verified_at = now
    user.updated_at = now
    session.add(user)
    await session.commit()

    user_session = await create_user_session(session, user, security, request)
    set_session_cookie(response, user_session, security)
    payload = await build_session_user(session, user, app_settings.platform_superadmins)

    await create_audit_log(
        session,
        action=AuditAction.OTP_VERIFIED,
        user_id=user.id,
        organization_id=user.current_org_id,
        entity_type="user",
        entity_id=user.id,
        request=request,
    )
    return ApiResponse(data=payload)


@router.post(
    "/resend-otp",
    response_model=ApiResponse[MessageData],
    summary="Resend Verification Code",
    description="Issue a fresh verification code, invalidating earlier ones.",
    response_description="Confirmation message.",
    responses={
        400: {"model": ErrorResponse, "description": "Already verified"},
        404: {"model": ErrorResponse, "description": "User not found"},
        500: {"model": ErrorResponse, "description": "The email could not be sent"},
    },
)
async def resend_code(
    data: ResendOTPRequest,
    session: SessionDep,
    app_settings: SettingsDep,
    email_client: EmailClientDep,
) -> ApiResponse[MessageData]:
    user = await session.get(User, data.user_id)
    if user is None or user.email != data.email.lower():
        raise NotFound("User not found", code="USER_NOT_FOUND")
    if user.email_verified:
        raise ValidationFailed("Email is already verified", code="ALREADY_VERIFIED")

    expiry = app_settings.security.otp_expiry_minutes
    code = await create_otp(session, user.id, expiry)
    await email_client.send_otp(user.email, user.first_name, code, expiry)
    return ApiResponse(data=MessageData(message="A new verification code has been sent"))


@router.post(
    "/login",
    response_model=ApiResponse[SessionUser],
    summary="Login",
    description="Sign in with email and password. Sets the session cookie.",
    response_description="The signed-in user.",
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Account disabled or email not verified"},
    },
)
async def login(
    data: LoginRequest,
    request: Request,
    response: Response,
    session: SessionDep,
    app_settings: SettingsDep,
) -> ApiResponse[SessionUser]:
    user = await UserRepository(session).get_by_email(data.email)
    if user is None or not verify_password(user.password_hash, data.password):
        raise Unauthorized("Invalid email or password", code="INVALID_CREDENTIALS")
    if not user.is_active:
        raise Forbidden("This account has been disabled", code="ACCOUNT_DISABLED")
    if not user.email_verified:
        raise Forbidden(
            "Please verify your email before logging in",
            code="EMAIL_NOT_VERIFIED",
            details={"requiresVerification": True, "userId": user.id},
        )

    security = app_settings.security
    user_session = await create_user_session(session, user, security, request)
    set_session_cookie(response, user_session, security)
    payload = await build_session_user(session, user, app_settings.platform_superadmins)

    await create_audit_log(
        session,
        action=AuditAction.USER_LOGIN,
        user_id=user.id,
        organization_id=user.current_org_id,
        entity_type="user",
        entity_id=user.id,
        request=request,
    )
    await update_user_activity(session, user.id)
    logger.info(f"User {user.id} logged in")
    return ApiResponse(data=payload)


@router.post(
    "/logout",
    response_model=ApiResponse[MessageData],
    summary="Logout",
    description="End the current session and clear the session cookie.",
    response_description="Confirmation message.",
)
async def logout(
    request: Request,
    response: Response,
    current: OptionalSessionDep,
    session: SessionDep,
    app_settings: SettingsDep,
) -> ApiResponse[MessageData]:
    security = app_settings.security
    if current is not None:
        user = current.user
        await destroy_session(session, current.user_session.token)
        await create_audit_log(
            session,
            action=AuditAction.USER_LOGOUT,
            user_id=user.id,
            organization_id=user.current_org_id,
            entity_type="user",
            entity_id=user.id,
            request=request,
        )
    clear_session_cookie(response, security)
    return ApiResponse(data=MessageData(message="Logged out"))


@router.get(
    "/me",
    response_model=ApiResponse[SessionUser],
    summary="Current User",
    description="Describe the signed-in user with their current organization and role.",
    response_description="The signed-in user.",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def me(current: CurrentSessionDep, session: SessionDep, app_settings: SettingsDep) -> ApiResponse[SessionUser]:
    return ApiResponse(data=await build_session_user(session, current.user, app_settings.platform_superadmins))


@router.post(
    "/forgot-password",
    response_model=ApiResponse[MessageData],
    summary="Request Password Reset",
    description="Email a password reset link valid for one hour. The answer is the same whether or not the account exists.",
    response_description="Generic confirmation message.",
)
async def forgot_password(
    data: ForgotPasswordRequest,
    session: SessionDep,
    app_settings: SettingsDep,
    email_client: EmailClientDep,
) -> ApiResponse[MessageData]:
    user = await UserRepository(session).get_by_email(data.email)
    if user is not None and user.is_active:
        now = utc_now_naive()
        await session.execute(
            update(PasswordResetToken)
            .where((PasswordResetToken.user_id == user.id) & (PasswordResetToken.used_at.is_(None)))
            .values(used_at=now)
        )
        reset = PasswordResetToken(
            user_id=user.id,
            token=generate_reset_token(),
            expires_at=now + timedelta(minutes=app_settings.security.password_reset_ttl_minutes),
            created_at=now,
        )
        session.add(reset)
        await session.commit()
        try:
            await email_client.send_password_reset(user.email, user.first_name, reset.token)
        except EmailDeliveryError as e:
            logger.error(f"Password reset email not sent for user {user.id}: {e}")
    else:
        logger.info("Password reset requested for an unknown or disabled account")
    return ApiResponse(data=MessageData(message=FORGOT_PASSWORD_MESSAGE))


@router.post(
    "/reset-password",
    response_model=ApiResponse[MessageData],
    summary="Reset Password",
    description="Set a new password using an emailed reset token. Signs the user out everywhere.",
    response_description="Confirmation message.",
    responses={400: {"model": ErrorResponse, "description": "Unknown, used or expired token"}},
)
async def reset_password(data: ResetPasswordRequest, request: Request, session: SessionDep) -> ApiResponse[MessageData]:
    result = await session.execute(select(PasswordResetToken).where(PasswordResetToken.token == data.token))
    reset = result.scalars().first()
    if reset is None or reset.used_at is not None:
        raise ValidationFailed("Invalid or already used reset link", code="INVALID_TOKEN")
    if reset.is_expired():
        raise ValidationFailed("This reset link has expired", code="TOKEN_EXPIRED")

    user = await session.get(User, reset.user_id)
    if user is None:
        raise ValidationFailed("Invalid or already used reset link", code="INVALID_TOKEN")

    now = utc_now_naive()
    user.password_hash = hash_password(data.password)
    user.updated_at = now
    reset.used_at = now
    session.add(user)
    session.add(reset)
    await SessionRepository(session).delete_for_user(user.id, commit=False)
    await session.commit()
    logger.info(f"Password reset for user {user.id}; all sessions cleared")

    await create_audit_log(
        session,
        action=AuditAction.USER_PASSWORD_RESET,
        user_id=user.id,
        organization_id=user.current_org_id,
        entity_type="user",
        entity_id=user.id,
        request=request,
    )
    return ApiResponse(data=MessageData(message="Your password has been reset. Please log in."))
