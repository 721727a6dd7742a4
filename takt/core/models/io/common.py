"""
Shared response envelopes and base schema classes.

Every JSON endpoint answers with ``{"success": true, "data": ...}`` on
success; errors use the same envelope with an ``error`` object instead
(see ``takt.server.exception_handlers``). Field names are camelCase on the
wire and snake_case in Python.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, accepts either spelling on input, reads ORM attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Error envelope, documented on routes via ``responses=``."""

    success: bool = False
    error: ErrorBody


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope."""

    success: bool = True
    data: Optional[T] = None


class MessageData(CamelModel):
    message: str


class Pagination(CamelModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def build(cls, page: int, page_size: int, total_count: int) -> "Pagination":
        total_pages = math.ceil(total_count / page_size) if page_size else 0
        return cls(
            page=page,
            page_size=page_size,
            total_count=total_count,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """Success envelope for paged list endpoints."""

    success: bool = True
    data: List[T] = Field(default_factory=list)
    pagination: Pagination


class NamedRef(CamelModel):
    """Minimal ``{id, name}`` reference to a related record."""

    id: str
    name: str
