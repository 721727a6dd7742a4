"""Profile I/O models and the shared password and mobile number rules."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from .common import CamelModel

MOBILE_NUMBER_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")
AVATAR_MAX_BYTES = 5 * 1024 * 1024
AVATAR_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp")


def validate_password_strength(value: str) -> str:
    """At least 8 characters with an uppercase letter, a lowercase letter and a digit."""
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", value):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", value):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", value):
        raise ValueError("Password must contain at least one number")
    return value


def validate_mobile_number(value: str) -> str:
    if not MOBILE_NUMBER_PATTERN.match(value):
        raise ValueError("Invalid mobile number format")
    return value


class ProfileUpdate(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    mobile_number: str = Field(min_length=1)

    @field_validator("mobile_number")
    @classmethod
    def check_mobile(cls, value: str) -> str:
        return validate_mobile_number(value)


class ChangePassword(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def check_new_password(cls, value: str) -> str:
        return validate_password_strength(value)


class AvatarFile(CamelModel):
    """Metadata of an uploaded avatar image."""

    size: int = Field(le=AVATAR_MAX_BYTES, description="File size must be less than 5MB")
    type: str

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        if value not in AVATAR_CONTENT_TYPES:
            raise ValueError("File must be JPEG, PNG, or WebP")
        return value


class ProfileRead(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    mobile_number: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool
    current_org_id: Optional[str] = None
    created_at: datetime
    last_login_at: Optional[datetime] = None
