"""Authentication I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from takt.core.models.domain.enums import FunctionalRole

from .common import CamelModel
from .profile import validate_mobile_number, validate_password_strength


class RegisterRequest(CamelModel):
    """
    Sign-up request.

    The organization is resolved from ``invitation_token`` when present,
    otherwise from the verified domain of ``email``. When the domain is
    unknown the client is asked for ``organization_name`` to create one.
    """

    email: EmailStr
    password: str
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    mobile_number: Optional[str] = None
    role: Optional[FunctionalRole] = Field(default=None, description="Role requested when joining an existing org")
    organization_name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    invitation_token: Optional[str] = None

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_password_strength(value)

    @field_validator("mobile_number")
    @classmethod
    def check_mobile(cls, value: Optional[str]) -> Optional[str]:
        return validate_mobile_number(value) if value else None


class RegisterResult(CamelModel):
    requires_verification: bool = True
    user_id: str


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


class VerifyOTPRequest(CamelModel):
    user_id: str = Field(min_length=1)
    code: str = Field(min_length=6, max_length=6, pattern=r"^\d{6}$")


class ResendOTPRequest(CamelModel):
    user_id: str = Field(min_length=1)
    email: EmailStr


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(min_length=1)
    password: str

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        return validate_password_strength(value)


class SessionUser(CamelModel):
    """The signed-in user as returned by login, verify-otp and ``/auth/me``."""

    id: str
    email: str
    first_name: str
    last_name: str
    avatar_url: Optional[str] = None
    email_verified: bool
    current_org_id: Optional[str] = None
    organization_name: Optional[str] = None
    role: Optional[FunctionalRole] = None
    is_platform_admin: bool = False
    last_login_at: Optional[datetime] = None
