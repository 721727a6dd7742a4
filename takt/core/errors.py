"""
Application error types.

Every error that should reach an API client as a structured
``{"success": false, "error": {"code", "message"}}`` body is raised as a
``TaktError`` subclass. The HTTP layer maps them to responses in
``takt.server.exception_handlers``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class TaktError(Exception):
    """Base class for errors carrying an API error code and HTTP status."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return error


class ValidationFailed(TaktError):
    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class Unauthorized(TaktError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Not authenticated"


class Forbidden(TaktError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Access denied"


class NotFound(TaktError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Entity not found"


class Conflict(TaktError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Resource already exists"


class Gone(TaktError):
    status_code = 410
    code = "GONE"
    default_message = "Resource is no longer available"


class OrganizationSuspended(Forbidden):
    """Raised when the caller's current organization has been suspended."""

    code = "ORG_SUSPENDED"

    def __init__(self, reason: Optional[str] = None) -> None:
        self.reason = reason
        super().__init__(f"Organization suspended: {reason or 'Contact support'}")


class EmailDeliveryError(TaktError):
    """Raised when the email provider is unconfigured or rejects a message."""

    code = "EMAIL_ERROR"
    default_message = "Failed to send email"
