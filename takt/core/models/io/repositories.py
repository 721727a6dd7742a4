"""Master data (repositories) I/O models: truck types, parties, locations, weeks, categories."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import Field, model_validator

from takt.core.models.domain.enums import PartyType

from .common import CamelModel


class TruckTypeCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    capacity_tons: Optional[float] = Field(default=None, ge=0)
    is_active: bool = True


class TruckTypeUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    capacity_tons: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class TruckTypeRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    capacity_tons: Optional[float] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PartyCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, max_length=32)
    party_type: PartyType = PartyType.CLIENT


class PartyRead(CamelModel):
    id: str
    name: str
    code: Optional[str] = None
    party_type: PartyType
    is_active: bool
    created_at: datetime


class LocationCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, max_length=32)
    region: Optional[str] = Field(default=None, max_length=100)


class LocationRead(CamelModel):
    id: str
    name: str
    code: Optional[str] = None
    region: Optional[str] = None
    is_active: bool
    created_at: datetime


class PlanningWeekCreate(CamelModel):
    year: int = Field(ge=2000, le=2100)
    week_number: int = Field(ge=1, le=53)
    week_start: date
    week_end: date
    is_locked: bool = False

    @model_validator(mode="after")
    def check_range(self) -> "PlanningWeekCreate":
        if self.week_end < self.week_start:
            raise ValueError("weekEnd must not be before weekStart")
        return self


class PlanningWeekRead(CamelModel):
    id: str
    year: int
    week_number: int
    week_start: date
    week_end: date
    is_locked: bool
    created_at: datetime


class DemandCategoryCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    code: Optional[str] = Field(default=None, max_length=32)


class DemandCategoryRead(CamelModel):
    id: str
    name: str
    code: Optional[str] = None
    is_active: bool
    created_at: datetime
