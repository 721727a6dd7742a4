"""Unit tests for email verification codes."""

from datetime import timedelta

import pytest
from sqlmodel import select

from takt.core.database.base import utc_now_naive
from takt.core.database.entities import OTPCode
from takt.core.otp import create_otp, has_valid_otp, verify_otp


@pytest.fixture
async def user(make_user):
    return await make_user("new@acme.com", email_verified=False)


async def test_create_stores_hash_only(session, user):
    code = await create_otp(session, user.id)

    assert len(code) == 6 and code.isdigit()
    record = (await session.execute(select(OTPCode))).scalars().one()
    assert record.code_hash != code
    assert await has_valid_otp(session, user.id)


async def test_new_code_invalidates_previous(session, user):
    await create_otp(session, user.id)
    second = await create_otp(session, user.id)

    records = (await session.execute(select(OTPCode))).scalars().all()
    assert len(records) == 2
    assert len([r for r in records if r.used_at is None]) == 1
    assert (await verify_otp(session, user.id, second)).valid is True


async def test_verify_marks_code_used(session, user):
    code = await create_otp(session, user.id)

    assert (await verify_otp(session, user.id, code)).valid is True

    again = await verify_otp(session, user.id, code)
    assert again.valid is False
    assert again.error == "No valid OTP found. Please request a new code."
    assert not await has_valid_otp(session, user.id)


async def test_wrong_code_counts_attempts(session, user):
    await create_otp(session, user.id)

    first = await verify_otp(session, user.id, "not-a-code", max_attempts=3)
    second = await verify_otp(session, user.id, "not-a-code", max_attempts=3)
    third = await verify_otp(session, user.id, "not-a-code", max_attempts=3)
    fourth = await verify_otp(session, user.id, "not-a-code", max_attempts=3)

    assert first.error == "Invalid code. 2 attempts remaining."
    assert second.error == "Invalid code. 1 attempts remaining."
    assert third.error == "Invalid code. Maximum attempts reached. Please request a new code."
    assert fourth.error == "Too many failed attempts. Please request a new code."


async def test_locked_code_rejects_correct_value(session, user):
    code = await create_otp(session, user.id)
    for _ in range(2):
        await verify_otp(session, user.id, "not-a-code", max_attempts=2)

    assert (await verify_otp(session, user.id, code, max_attempts=2)).valid is False


async def test_expired_code(session, user):
    code = await create_otp(session, user.id)
    record = (await session.execute(select(OTPCode))).scalars().one()
    record.expires_at = utc_now_naive() - timedelta(minutes=1)
    session.add(record)
    await session.commit()

    result = await verify_otp(session, user.id, code)

    assert result.error == "OTP has expired. Please request a new code."
    assert not await has_valid_otp(session, user.id)


async def test_surrounding_whitespace_is_ignored(session, user):
    code = await create_otp(session, user.id)

    assert (await verify_otp(session, user.id, f" {code} ")).valid is True
