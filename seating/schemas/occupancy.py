"""Schemas for occupancy snapshots and the daily dashboard."""
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from seating.schemas.reservation import ReservationRead


class TableStatusRead(BaseModel):
    table_id: uuid.UUID
    table_number: int
    occupied: bool
    grouped: bool = False
    reservation: ReservationRead | None = None

    model_config = ConfigDict(from_attributes=True)


class OccupancyRead(BaseModel):
    at: datetime
    tables: list[TableStatusRead]


class LateAlertRead(BaseModel):
    reservation: ReservationRead
    minutes_late: int
    message: str

    model_config = ConfigDict(from_attributes=True)


class DaySummaryRead(BaseModel):
    service_date: date = Field(serialization_alias="date")
    instant: datetime
    total_bookings: int
    covers: int
    seated_count: int
    upcoming_count: int
    occupancy_rate: float
    alerts: list[LateAlertRead] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
