"""
Middleware modules for the Takt server.

This package contains custom middleware for request/response logging and
performance tracking, and for locking members of suspended organizations
out of the application.
"""

from .logfire_middleware import LogfireMiddleware
from .suspension import SuspensionMiddleware

__all__ = ["LogfireMiddleware", "SuspensionMiddleware"]
