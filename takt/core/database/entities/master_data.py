"""
Master-data entity models.

Reference records each organization maintains for planning: trading
parties (clients and suppliers), locations, planning weeks, demand
categories and truck types.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from takt.core.models.domain.enums import PartyType

from ..base import Base, new_id, utc_now_naive


class Party(Base, table=True):
    """Client or supplier of an organization.

    Table: parties
    """

    __tablename__ = "parties"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    name: str = Field(max_length=255)
    code: Optional[str] = Field(default=None, max_length=32)
    party_type: str = Field(default=PartyType.CLIENT.value, max_length=16, index=True)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now_naive)


class Location(Base, table=True):
    """City or site used as a pickup or dropoff point.

    Table: locations
    """

    __tablename__ = "locations"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    name: str = Field(max_length=255)
    code: Optional[str] = Field(default=None, max_length=32)
    region: Optional[str] = Field(default=None, max_length=100)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now_naive)


class PlanningWeek(Base, table=True):
    """Week being planned. Locked weeks reject demand and supply edits.

    Table: planning_weeks
    """

    __tablename__ = "planning_weeks"
    __table_args__ = (UniqueConstraint("organization_id", "year", "week_number", name="uq_planning_week"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    year: int
    week_number: int
    week_start: date
    week_end: date
    is_locked: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now_naive)


class DemandCategory(Base, table=True):
    """Optional classification for demand forecasts.

    Table: demand_categories
    """

    __tablename__ = "demand_categories"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    name: str = Field(max_length=100)
    code: Optional[str] = Field(default=None, max_length=32)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now_naive)


class TruckType(Base, table=True):
    """Vehicle class demand is expressed in. Names are unique per organization, ignoring case.

    Table: truck_types
    """

    __tablename__ = "truck_types"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    organization_id: str = Field(foreign_key="organizations.id", index=True)
    name: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    capacity_tons: Optional[float] = Field(default=None)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now_naive)
    updated_at: datetime = Field(default_factory=utc_now_naive)
