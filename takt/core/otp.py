"""
Email verification one-time codes.

Codes are 6 digits, stored hashed, expire after ``OTP_EXPIRY_MINUTES`` and
allow a limited number of attempts. Issuing a new code invalidates every
unused code the user still holds.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from takt.core.database.base import utc_now_naive
from takt.core.database.entities import OTPCode
from takt.core.logging_config import get_logger
from takt.core.security import generate_otp_code, hash_otp_code, otp_code_matches

logger = get_logger(__name__)

OTP_LENGTH = 6


@dataclass(frozen=True)
class OTPVerification:
    valid: bool
    error: Optional[str] = None


async def create_otp(session: AsyncSession, user_id: str, expiry_minutes: int = 10) -> str:
    """
    Issue a new code for ``user_id`` and return it in plain text for emailing.
    """
    now = utc_now_naive()
    await session.execute(
        update(OTPCode).where((OTPCode.user_id == user_id) & (OTPCode.used_at.is_(None))).values(used_at=now)
    )
    code = generate_otp_code(OTP_LENGTH)
    session.add(
        OTPCode(
            user_id=user_id,
            code_hash=hash_otp_code(code),
            expires_at=now + timedelta(minutes=expiry_minutes),
            created_at=now,
        )
    )
    await session.commit()
    return code


async def _latest_unused(session: AsyncSession, user_id: str) -> Optional[OTPCode]:
    stmt = (
        select(OTPCode)
        .where((OTPCode.user_id == user_id) & (OTPCode.used_at.is_(None)))
        .order_by(OTPCode.created_at.desc())
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def verify_otp(session: AsyncSession, user_id: str, code: str, max_attempts: int = 5) -> OTPVerification:
    """
    Check ``code`` against the user's most recent unused code.

    Every check of a live code counts as an attempt; a match marks the code used.
    """
    record = await _latest_unused(session, user_id)
    if record is None:
        return OTPVerification(False, "No valid OTP found. Please request a new code.")

    if utc_now_naive() > record.expires_at:
        return OTPVerification(False, "OTP has expired. Please request a new code.")

    if record.attempts >= max_attempts:
        return OTPVerification(False, "Too many failed attempts. Please request a new code.")

    record.attempts += 1
    if not otp_code_matches(record.code_hash, code):
        session.add(record)
        await session.commit()
        if record.attempts >= max_attempts:
            return OTPVerification(False, "Invalid code. Maximum attempts reached. Please request a new code.")
        return OTPVerification(False, f"Invalid code. {max_attempts - record.attempts} attempts remaining.")

    record.used_at = utc_now_naive()
    session.add(record)
    await session.commit()
    logger.debug(f"OTP verified for user {user_id}")
    return OTPVerification(True)


async def has_valid_otp(session: AsyncSession, user_id: str) -> bool:
    stmt = select(OTPCode.id).where(
        (OTPCode.user_id == user_id) & (OTPCode.used_at.is_(None)) & (OTPCode.expires_at > utc_now_naive())
    )
    result = await session.execute(stmt)
    return result.first() is not None
