from typing import AsyncGenerator, Dict, List, Optional
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from takt.core.auth import create_user_session
from takt.core.database import get_session
from takt.core.database.entities import User, UserSession
from takt.core.email import EmailClient, get_email_client
from takt.core.errors import EmailDeliveryError
from takt.server.core.config import EmailConfig, Settings

SUPERADMIN_EMAIL = "root@takt.com"


class RecordingEmailClient(EmailClient):
    """Email client that records messages instead of calling the provider."""

    def __init__(self) -> None:
        super().__init__(EmailConfig(api_key="test-key", app_url="http://localhost:3000"))
        self.sent: List[Dict[str, object]] = []
        self.fail = False

    async def send(self, to: List[str], subject: str, html: str) -> Optional[str]:
        if self.fail:
            raise EmailDeliveryError("Email provider rejected the message")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return f"msg-{len(self.sent)}"


@pytest.fixture
def email_client() -> RecordingEmailClient:
    return RecordingEmailClient()


@pytest.fixture
def app_settings() -> Settings:
    return Settings(PLATFORM_SUPERADMINS=SUPERADMIN_EMAIL, RESEND_API_KEY="test-key")


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    session_maker, session: AsyncSession, email_client: RecordingEmailClient, app_settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from takt.server.main import app
    from takt.server.services.deps import get_settings

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_settings] = lambda: app_settings
    app.dependency_overrides[get_email_client] = lambda: email_client

    # The suspension middleware opens its own sessions
    original_session_maker = app.state.session_maker
    app.state.session_maker = session_maker

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    try:
        with patch("takt.server.main.lifespan", mock_lifespan):
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
                yield client
    finally:
        app.dependency_overrides.clear()
        app.state.session_maker = original_session_maker


@pytest.fixture
def login_as(session: AsyncSession, client: AsyncClient, app_settings: Settings):
    """Open a session for ``user`` and attach its cookie to the test client."""

    async def _login(user: User) -> UserSession:
        security = app_settings.security
        user_session = await create_user_session(session, user, security)
        client.cookies.set(security.session_cookie_name, user_session.token)
        return user_session

    return _login
