"""Pydantic schemas for reservations."""
from __future__ import annotations

import uuid
from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from seating.models.reservation import ReservationOrigin, ReservationStatus
from seating.schemas.table import TableRead


class CustomerDetails(BaseModel):
    """Guest contact details; all three are required."""

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(min_length=1, max_length=64)


class ReservationCreate(BaseModel):
    """Payload for creating reservations."""

    customer: CustomerDetails
    party_size: int = Field(gt=0)
    service_date: date = Field(alias="date")
    start_time: time = Field(alias="time")
    duration_minutes: int | None = Field(default=None, gt=0)
    special_requests: str | None = Field(default=None, max_length=1024)
    origin: ReservationOrigin = ReservationOrigin.CUSTOMER
    table_ids: list[uuid.UUID] | None = None
    status: ReservationStatus | None = None

    model_config = ConfigDict(populate_by_name=True)


class ReservationUpdate(BaseModel):
    """Mutable reservation fields; timing changes are re-checked."""

    customer_name: str | None = Field(default=None, max_length=255)
    customer_email: EmailStr | None = None
    customer_phone: str | None = Field(default=None, max_length=64)
    special_requests: str | None = Field(default=None, max_length=1024)
    service_date: date | None = Field(default=None, alias="date")
    start_time: time | None = Field(default=None, alias="time")
    party_size: int | None = Field(default=None, gt=0)
    duration_minutes: int | None = Field(default=None, gt=0)

    model_config = ConfigDict(populate_by_name=True)


class ReservationRead(BaseModel):
    """Serialized reservation representation."""

    id: uuid.UUID
    customer_name: str
    customer_email: str
    customer_phone: str
    party_size: int
    service_date: date = Field(serialization_alias="date")
    start_at: datetime
    end_at: datetime
    duration_minutes: int
    status: ReservationStatus
    origin: ReservationOrigin
    special_requests: str | None = None
    tables: list[TableRead] = Field(default_factory=list)
    is_grouped: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus


class ReservationTablesUpdate(BaseModel):
    """Explicit table reassignment; an empty list unassigns."""

    table_ids: list[uuid.UUID]
    origin: ReservationOrigin = ReservationOrigin.ADMINISTRATIVE
