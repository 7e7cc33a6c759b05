"""Venue opening hours, closed dates and special events."""
from __future__ import annotations

import uuid
from datetime import date, time

from sqlalchemy import Boolean, Date, Integer, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from seating.db.base import Base
from seating.models.mixins import TimestampMixin


class OpeningHour(TimestampMixin, Base):
    """Weekly opening hours; weekday 0 is Sunday."""

    __tablename__ = "opening_hours"
    __table_args__ = (UniqueConstraint("weekday", name="uq_opening_hours_weekday"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    weekday: Mapped[int] = mapped_column(Integer, nullable=False)
    open_time: Mapped[time | None] = mapped_column(Time())
    close_time: Mapped[time | None] = mapped_column(Time())
    is_closed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class ClosedDate(TimestampMixin, Base):
    """A calendar date on which the venue does not trade."""

    __tablename__ = "closed_dates"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    closed_on: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    reason: Mapped[str | None] = mapped_column(String(255))


class SpecialEvent(TimestampMixin, Base):
    """An event day, optionally with its own opening window."""

    __tablename__ = "special_events"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    open_time: Mapped[time | None] = mapped_column(Time())
    close_time: Mapped[time | None] = mapped_column(Time())
    notes: Mapped[str | None] = mapped_column(String(1024))
