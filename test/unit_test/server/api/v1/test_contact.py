"""Unit tests for the public contact form."""

from httpx import AsyncClient

CONTACT = "/api/v1/contact"

FORM = {
    "name": "Layla Hassan",
    "position": "Head of Logistics",
    "number": "+966501234567",
    "email": "layla@almarai.com",
    "company": "Almarai",
    "country": "Saudi Arabia",
}


async def test_contact_is_forwarded_to_support(client: AsyncClient, email_client):
    response = await client.post(CONTACT, json=FORM)

    assert response.status_code == 202
    [message] = email_client.sent
    assert message["to"] == ["support@teamtakt.app"]
    assert message["subject"] == "Contact request from Almarai"
    assert "Head of Logistics" in message["html"]


async def test_contact_is_escaped(client: AsyncClient, email_client):
    await client.post(CONTACT, json={**FORM, "company": "<b>Evil</b> Co"})

    assert "<b>Evil</b>" not in email_client.sent[0]["html"]


async def test_invalid_form(client: AsyncClient, email_client):
    response = await client.post(CONTACT, json={**FORM, "email": "not-an-email", "name": "L"})

    assert response.status_code == 400
    details = response.json()["error"]["details"]
    assert "email" in details
    assert "name" in details
    assert email_client.sent == []


async def test_email_failure_is_reported(client: AsyncClient, email_client):
    email_client.fail = True

    response = await client.post(CONTACT, json=FORM)

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "EMAIL_ERROR"
