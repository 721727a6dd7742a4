"""
Exception handlers for the Takt server.

This package contains the handlers that turn application errors, request
validation failures and unexpected exceptions into the JSON error envelope,
and a setup function to register them with the FastAPI application.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
