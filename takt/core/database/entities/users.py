"""
User and credential entity models.

This module contains the user account plus the short-lived credentials
attached to it: login sessions, password-reset tokens and email
verification codes.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, new_id, utc_now_naive


class User(Base, table=True):
    """Application user.

    A user may belong to several organizations; ``current_org_id`` selects
    the tenant every scoped query runs against.

    Table: users
    """

    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    first_name: str = Field(max_length=50)
    last_name: str = Field(max_length=50)
    mobile_number: Optional[str] = Field(default=None, max_length=20, unique=True)
    avatar_url: Optional[str] = Field(default=None, max_length=512)

    is_active: bool = Field(default=True)
    email_verified: bool = Field(default=False)
    email_verified_at: Optional[datetime] = Field(default=None)

    current_org_id: Optional[str] = Field(default=None, foreign_key="organizations.id", index=True)

    last_login_at: Optional[datetime] = Field(default=None)
    last_activity_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now_naive)
    updated_at: datetime = Field(default_factory=utc_now_naive)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email})"


class UserSession(Base, table=True):
    """Opaque login session referenced by the ``takt_session`` cookie.

    Table: user_sessions
    """

    __tablename__ = "user_sessions"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(foreign_key="users.id", index=True)
    token: str = Field(max_length=128, unique=True, index=True)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    ip_address: Optional[str] = Field(default=None, max_length=64)
    expires_at: datetime
    last_active_at: datetime = Field(default_factory=utc_now_naive)
    created_at: datetime = Field(default_factory=utc_now_naive)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now_naive()) >= self.expires_at


class PasswordResetToken(Base, table=True):
    """Single-use password reset token.

    Table: password_reset_tokens
    """

    __tablename__ = "password_reset_tokens"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(foreign_key="users.id", index=True)
    token: str = Field(max_length=128, unique=True, index=True)
    expires_at: datetime
    used_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now_naive)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utc_now_naive()) >= self.expires_at


class OTPCode(Base, table=True):
    """Hashed one-time code used to verify a user's email address.

    Table: otp_codes
    """

    __tablename__ = "otp_codes"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(foreign_key="users.id", index=True)
    code_hash: str = Field(max_length=255)
    expires_at: datetime
    attempts: int = Field(default=0)
    used_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now_naive)
