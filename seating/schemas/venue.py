"""Schemas for venue hours, closed dates, special events and booking policy."""

from __future__ import annotations

import uuid
from datetime import date, time

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OpeningHourCreate(BaseModel):
    weekday: int = Field(ge=0, le=6, description="0 = Sunday")
    open_time: time | None = None
    close_time: time | None = None
    is_closed: bool = False

    @model_validator(mode="after")
    def _times_when_open(self) -> "OpeningHourCreate":
        if not self.is_closed:
            if self.open_time is None or self.close_time is None:
                raise ValueError("open_time and close_time are required when open")
            if self.open_time == self.close_time:
                raise ValueError("open_time and close_time must differ")
        return self


class OpeningHourRead(OpeningHourCreate):
    id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)


class ClosedDateCreate(BaseModel):
    closed_on: date = Field(alias="date")
    reason: str | None = Field(default=None, max_length=255)

    model_config = ConfigDict(populate_by_name=True)


class ClosedDateRead(BaseModel):
    id: uuid.UUID
    closed_on: date = Field(serialization_alias="date")
    reason: str | None = None

    model_config = ConfigDict(from_attributes=True)


class SpecialEventCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    event_date: date = Field(alias="date")
    open_time: time | None = None
    close_time: time | None = None
    notes: str | None = Field(default=None, max_length=1024)

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _both_or_neither(self) -> "SpecialEventCreate":
        if (self.open_time is None) != (self.close_time is None):
            raise ValueError("Provide both open_time and close_time, or neither")
        return self


class SpecialEventRead(BaseModel):
    id: uuid.UUID
    name: str
    event_date: date = Field(serialization_alias="date")
    open_time: time | None = None
    close_time: time | None = None
    notes: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BookingPolicyRead(BaseModel):
    slot_granularity_minutes: int
    max_duration_minutes: int
    min_advance_minutes: int
    max_advance_days: int
    buffer_minutes: int
    max_party_size_online: int
    max_capacity_threshold_percent: int
    late_grace_minutes: int

    model_config = ConfigDict(from_attributes=True)
