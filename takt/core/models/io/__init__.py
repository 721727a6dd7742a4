"""
API input/output schemas.

Request bodies and response payloads for every endpoint, grouped by area.
All models accept camelCase or snake_case on input and emit camelCase.
"""

from .common import ApiResponse, CamelModel, ErrorBody, ErrorResponse, MessageData, NamedRef, PaginatedResponse, Pagination

__all__ = [
    "ApiResponse",
    "CamelModel",
    "ErrorBody",
    "ErrorResponse",
    "MessageData",
    "NamedRef",
    "PaginatedResponse",
    "Pagination",
]
