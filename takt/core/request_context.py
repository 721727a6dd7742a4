"""Helpers for pulling caller metadata out of an incoming request."""

from __future__ import annotations

from typing import Optional

from starlette.requests import Request


def client_ip(request: Optional[Request]) -> Optional[str]:
    """Best guess at the caller's IP: first ``X-Forwarded-For`` hop, then ``X-Real-IP``, then the socket peer."""
    if request is None:
        return None
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def user_agent(request: Optional[Request]) -> Optional[str]:
    if request is None:
        return None
    return request.headers.get("user-agent")
