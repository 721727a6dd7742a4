"""Unit tests for the profile endpoints."""

import pytest
from httpx import AsyncClient
from pydantic import ValidationError

from takt.core.auth import create_user_session
from takt.core.database.entities import UserSession
from takt.core.models.io.profile import AvatarFile
from takt.core.security import verify_password

PROFILE = "/api/v1/profile"


async def test_get_profile(client: AsyncClient, planning):
    response = await client.get(PROFILE)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == "admin@acme.com"
    assert data["currentOrgId"] == planning.org.id
    assert "passwordHash" not in data


async def test_update_profile(client: AsyncClient, session, planning):
    response = await client.patch(
        PROFILE, json={"firstName": " Dana ", "lastName": "Scully", "mobileNumber": "+966501234567"}
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["firstName"] == "Dana"
    assert data["mobileNumber"] == "+966501234567"


async def test_update_requires_mobile_number(client: AsyncClient, planning):
    response = await client.patch(PROFILE, json={"firstName": "Dana"})

    assert response.status_code == 400
    assert "mobileNumber" in response.json()["error"]["details"]


async def test_update_rejects_mobile_of_another_account(client: AsyncClient, planning, make_user):
    await make_user("other@acme.com", org=planning.org, mobile_number="+966501234567")

    response = await client.patch(PROFILE, json={"mobileNumber": "+966501234567"})

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "MOBILE_EXISTS"


async def test_keeping_own_mobile_is_allowed(client: AsyncClient, session, planning):
    planning.admin.mobile_number = "+966501234567"
    session.add(planning.admin)
    await session.commit()

    response = await client.patch(PROFILE, json={"lastName": "Mulder", "mobileNumber": "+966501234567"})

    assert response.status_code == 200


class TestChangePassword:
    async def test_change_signs_out_other_sessions(self, client: AsyncClient, session, planning, app_settings):
        other = await create_user_session(session, planning.admin, app_settings.security)

        response = await client.post(
            f"{PROFILE}/password", json={"currentPassword": "Secret123", "newPassword": "Better456"}
        )

        assert response.status_code == 200
        await session.refresh(planning.admin)
        assert verify_password(planning.admin.password_hash, "Better456")
        assert await session.get(UserSession, other.id) is None
        assert (await client.get(PROFILE)).status_code == 200

    async def test_wrong_current_password(self, client: AsyncClient, planning):
        response = await client.post(
            f"{PROFILE}/password", json={"currentPassword": "wrong", "newPassword": "Better456"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_PASSWORD"

    async def test_weak_new_password(self, client: AsyncClient, planning):
        response = await client.post(
            f"{PROFILE}/password", json={"currentPassword": "Secret123", "newPassword": "short"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"


class TestAvatarFile:
    def test_accepts_small_png(self):
        assert AvatarFile(size=1024, type="image/png").type == "image/png"

    def test_rejects_large_file(self):
        with pytest.raises(ValidationError):
            AvatarFile(size=6 * 1024 * 1024, type="image/png")

    def test_rejects_gif(self):
        with pytest.raises(ValidationError, match="JPEG, PNG, or WebP"):
            AvatarFile(size=1024, type="image/gif")
