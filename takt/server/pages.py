"""
Server-rendered page routes.

The dashboard gate is the second line of suspension enforcement: even when
a request reaches it without passing ``SuspensionMiddleware`` (for example
when the middleware is disabled in a deployment), members of a suspended
organization are sent to the suspended page.
"""

from html import escape
from typing import Annotated, Optional

from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse, RedirectResponse

from takt.core.logging_config import get_logger
from takt.core.tenancy import suspended_redirect_url, suspension_reason
from takt.server.core import constant
from takt.server.services.deps import OptionalSessionDep, SessionDep

logger = get_logger(__name__)

router = APIRouter(tags=["pages"], include_in_schema=False)


def _page(title: str, body: str) -> HTMLResponse:
    return HTMLResponse(
        "<!DOCTYPE html>"
        f'<html lang="en"><head><meta charset="utf-8"><title>{escape(title)} | {constant.PROJECT_NAME}</title></head>'
        f"<body>{body}</body></html>"
    )


@router.get("/dashboard", response_model=None)
async def dashboard(current: OptionalSessionDep, session: SessionDep):
    """Gate for the authenticated app shell."""
    if current is None:
        return RedirectResponse(url=constant.LOGIN_PATH, status_code=307)

    reason = await suspension_reason(session, current.user)
    if reason is not None:
        logger.info(f"Dashboard gate redirected user {current.user.id}: organization suspended")
        return RedirectResponse(url=suspended_redirect_url(reason), status_code=307)

    return _page("Dashboard", f"<h1>Welcome back, {escape(current.user.first_name)}</h1>")


@router.get(constant.SUSPENDED_PATH, response_class=HTMLResponse)
async def suspended(reason: Annotated[Optional[str], Query()] = None) -> HTMLResponse:
    message = reason or constant.DEFAULT_SUSPENDED_REASON
    return _page(
        "Organization suspended",
        "<h1>Organization suspended</h1>"
        f"<p>{escape(message)}</p>"
        f'<p>Contact <a href="mailto:{constant.SUPPORT_EMAIL}">{constant.SUPPORT_EMAIL}</a> to restore access.</p>',
    )


@router.get(constant.LOGIN_PATH, response_class=HTMLResponse)
async def login_page() -> HTMLResponse:
    return _page(
        "Sign in",
        "<h1>Sign in to Takt</h1>"
        f"<p>Sign in through the web app; the API accepts credentials at <code>{constant.API_V1_STR}/auth/login</code>.</p>",
    )
