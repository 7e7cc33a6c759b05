"""Schemas for dining tables."""
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from seating.models.table import TableSection


class TableBase(BaseModel):
    number: int = Field(ge=1)
    capacity: int = Field(ge=1)
    section: TableSection = TableSection.INDOOR
    label: str | None = Field(default=None, max_length=64)


class TableCreate(TableBase):
    """Payload for adding a table."""


class TableUpdate(BaseModel):
    number: int | None = Field(default=None, ge=1)
    capacity: int | None = Field(default=None, ge=1)
    section: TableSection | None = None
    label: str | None = Field(default=None, max_length=64)


class TableRead(TableBase):
    id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)


class SlotTables(BaseModel):
    start_at: datetime
    table_ids: list[uuid.UUID]


class TableAvailabilityRead(BaseModel):
    """Free tables per bookable start time on one date."""

    service_date: date = Field(serialization_alias="date")
    slots: list[SlotTables] = Field(default_factory=list)
