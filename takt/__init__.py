"""Takt: multi-tenant logistics planning backend."""

__version__ = "0.1.0"
