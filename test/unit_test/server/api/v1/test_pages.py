"""Unit tests for the server-rendered pages and the dashboard gate."""

from httpx import AsyncClient


async def test_dashboard_requires_session(client: AsyncClient):
    response = await client.get("/dashboard")

    assert response.status_code == 307
    assert response.headers["location"] == "/login"


async def test_dashboard_for_active_member(client: AsyncClient, planning):
    response = await client.get("/dashboard")

    assert response.status_code == 200
    assert "Welcome back, Test" in response.text


async def test_dashboard_redirects_suspended_member(client: AsyncClient, make_org, make_user, login_as):
    org = await make_org("Frozen Co", status="SUSPENDED", suspended_reason="Unpaid invoice")
    await login_as(await make_user("member@frozen.com", org=org))

    response = await client.get("/dashboard")

    assert response.status_code == 307
    assert response.headers["location"] == "/suspended?reason=Unpaid%20invoice"


async def test_suspended_page_shows_reason(client: AsyncClient):
    response = await client.get("/suspended", params={"reason": "Unpaid <invoice>"})

    assert response.status_code == 200
    assert "Unpaid &lt;invoice&gt;" in response.text
    assert "support@teamtakt.app" in response.text


async def test_suspended_page_default_reason(client: AsyncClient):
    response = await client.get("/suspended")

    assert "Your organization has been suspended" in response.text


async def test_login_page(client: AsyncClient):
    response = await client.get("/login")

    assert response.status_code == 200
    assert "Sign in to Takt" in response.text
