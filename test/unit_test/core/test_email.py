"""Unit tests for the Resend email client."""

import httpx
import pytest

from takt.core.email import EmailClient
from takt.core.errors import EmailDeliveryError
from takt.server.core.config import EmailConfig

API_URL = "http://mock.resend/emails"


@pytest.fixture
def config() -> EmailConfig:
    return EmailConfig(api_key="re_test", api_url=API_URL, app_url="http://localhost:3000/")


@pytest.fixture
def captured(monkeypatch):
    """Capture provider requests and answer them with ``captured["status"]``."""
    state = {"requests": [], "status": 200}

    async def fake_post(self, url, json=None, headers=None, **kwargs):
        state["requests"].append({"url": str(url), "json": json, "headers": headers})
        request = httpx.Request("POST", url)
        return httpx.Response(state["status"], json={"id": "email-1"}, request=request)

    monkeypatch.setattr(httpx.AsyncClient, "post", fake_post)
    return state


class TestSend:
    async def test_posts_to_provider(self, config, captured):
        message_id = await EmailClient(config).send(["a@acme.com"], "Hello", "<p>Hi</p>")

        assert message_id == "email-1"
        [request] = captured["requests"]
        assert request["url"] == API_URL
        assert request["headers"] == {"Authorization": "Bearer re_test"}
        assert request["json"] == {
            "from": "Takt <noreply@teamtakt.app>",
            "to": ["a@acme.com"],
            "subject": "Hello",
            "html": "<p>Hi</p>",
        }

    async def test_missing_api_key(self, captured):
        client = EmailClient(EmailConfig(api_key=None))

        with pytest.raises(EmailDeliveryError, match="RESEND_API_KEY"):
            await client.send(["a@acme.com"], "Hello", "<p>Hi</p>")

        assert captured["requests"] == []

    async def test_provider_rejection(self, config, captured):
        captured["status"] = 422

        with pytest.raises(EmailDeliveryError) as exc_info:
            await EmailClient(config).send(["a@acme.com"], "Hello", "<p>Hi</p>")

        assert exc_info.value.code == "EMAIL_ERROR"
        assert exc_info.value.status_code == 500


class TestTemplates:
    async def test_password_reset_link(self, config, captured):
        await EmailClient(config).send_password_reset("a@acme.com", "Dana", "abc123")

        payload = captured["requests"][0]["json"]
        assert payload["subject"] == "Reset your Takt password"
        assert "http://localhost:3000/reset-password?token=abc123" in payload["html"]

    async def test_otp(self, config, captured):
        await EmailClient(config).send_otp("a@acme.com", "Dana", "482913", 10)

        payload = captured["requests"][0]["json"]
        assert payload["subject"] == "Your Takt verification code"
        assert "<strong>482913</strong>" in payload["html"]
        assert "10 minutes" in payload["html"]

    async def test_invitation_escapes_names(self, config, captured):
        await EmailClient(config).send_invitation("a@acme.com", "Acme & Sons", "<Dana>", "tok")

        payload = captured["requests"][0]["json"]
        assert payload["subject"] == "You're invited to join Acme & Sons on Takt"
        assert "Acme &amp; Sons" in payload["html"]
        assert "&lt;Dana&gt;" in payload["html"]
        assert "http://localhost:3000/invite/tok" in payload["html"]

    async def test_contact_enquiry(self, config, captured):
        await EmailClient(config).send_contact_enquiry(
            "support@teamtakt.app", {"Name": "Dana", "Company": "Acme", "Message": "<script>"}
        )

        payload = captured["requests"][0]["json"]
        assert payload["to"] == ["support@teamtakt.app"]
        assert payload["subject"] == "Contact request from Acme"
        assert "&lt;script&gt;" in payload["html"]
