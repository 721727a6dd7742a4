"""
Organization suspension middleware.

Every request carrying a session cookie is checked against the status of
the user's current organization. Members of a suspended organization are
redirected to the suspended page (page requests) or refused with 403
``ORG_SUSPENDED`` (API requests). Sign-in, health, platform administration,
organization switching and the suspended page itself stay reachable.
"""

from typing import Callable, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from takt.core.auth import resolve_session
from takt.core.logging_config import get_logger
from takt.core.tenancy import suspended_redirect_url, suspension_reason
from takt.server.core import constant
from takt.server.core.config import settings

logger = get_logger(__name__)

EXEMPT_PREFIXES: Tuple[str, ...] = (
    f"{constant.API_V1_STR}/auth",
    f"{constant.API_V1_STR}/superadmin",
    f"{constant.API_V1_STR}/organizations",
    f"{constant.API_V1_STR}/openapi.json",
    f"{constant.API_V1_STR}/docs",
    f"{constant.API_V1_STR}/redoc",
    "/health",
    "/version",
    constant.SUSPENDED_PATH,
    constant.LOGIN_PATH,
)


def is_exempt(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in EXEMPT_PREFIXES)


class SuspensionMiddleware(BaseHTTPMiddleware):
    """Lock members of suspended organizations out of the app."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if is_exempt(path):
            return await call_next(request)

        token = request.cookies.get(settings.security.session_cookie_name)
        if not token:
            return await call_next(request)

        session_maker = request.app.state.session_maker
        async with session_maker() as session:
            resolved = await resolve_session(session, token)
            reason = await suspension_reason(session, resolved[1] if resolved else None)

        if reason is None:
            return await call_next(request)

        logger.info(f"Blocked request from suspended organization: {request.method} {path}")
        if path.startswith(constant.API_V1_STR):
            return JSONResponse(
                status_code=403,
                content={
                    "success": False,
                    "error": {"code": "ORG_SUSPENDED", "message": f"Organization suspended: {reason}"},
                },
            )
        return RedirectResponse(url=suspended_redirect_url(reason), status_code=307)
