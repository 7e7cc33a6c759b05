"""Schemas for availability checks."""
from __future__ import annotations

import uuid
from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, Field

from seating.core.errors import AvailabilityReason
from seating.models.reservation import ReservationOrigin
from seating.models.table import TableSection
from seating.schemas.table import TableRead


class AvailabilityCheckRequest(BaseModel):
    service_date: date = Field(alias="date")
    start_time: time = Field(alias="time")
    party_size: int = Field(gt=0)
    origin: ReservationOrigin = ReservationOrigin.CUSTOMER
    duration_minutes: int | None = Field(default=None, gt=0)
    include_outdoor: bool = True

    model_config = ConfigDict(populate_by_name=True)

    def sections(self) -> frozenset[TableSection] | None:
        if self.include_outdoor:
            return None
        return frozenset(TableSection) - {TableSection.OUTDOOR}


class AvailabilityRead(BaseModel):
    available: bool
    reason: AvailabilityReason | None = None
    message: str | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    tables: list[TableRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SlotRead(BaseModel):
    start_at: datetime
    end_at: datetime
    available: bool
    reason: AvailabilityReason | None = None
    table_ids: list[uuid.UUID] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class AvailableDatesRead(BaseModel):
    dates: list[date]
