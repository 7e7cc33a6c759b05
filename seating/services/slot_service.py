"""Booking policy and bookable start-time generation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from seating.core.config import Settings, get_settings
from seating.core.errors import ConfigurationError
from seating.services.calendar_service import OpenWindow


@dataclass(slots=True, frozen=True)
class BookingPolicy:
    """Process-wide booking rules; read-only for the duration of a request."""

    slot_granularity_minutes: int = 15
    max_duration_minutes: int = 120
    min_advance_minutes: int = 60
    max_advance_days: int = 30
    buffer_minutes: int = 15
    max_party_size_online: int = 6
    max_capacity_threshold_percent: int = 90
    late_grace_minutes: int = 15

    def validate(self) -> "BookingPolicy":
        if self.slot_granularity_minutes <= 0:
            raise ConfigurationError("Slot granularity must be a positive number of minutes")
        if self.max_duration_minutes <= 0:
            raise ConfigurationError("Maximum booking duration must be positive")
        for name in ("min_advance_minutes", "max_advance_days", "buffer_minutes", "late_grace_minutes"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} cannot be negative")
        if self.max_party_size_online <= 0:
            raise ConfigurationError("Online party size limit must be positive")
        if not 0 < self.max_capacity_threshold_percent <= 100:
            raise ConfigurationError("Capacity threshold must be between 1 and 100 percent")
        return self

    @property
    def max_duration(self) -> timedelta:
        return timedelta(minutes=self.max_duration_minutes)

    @property
    def buffer(self) -> timedelta:
        return timedelta(minutes=self.buffer_minutes)


def policy_from_settings(settings: Settings) -> BookingPolicy:
    return BookingPolicy(
        slot_granularity_minutes=settings.slot_granularity_minutes,
        max_duration_minutes=settings.max_duration_minutes,
        min_advance_minutes=settings.min_advance_minutes,
        max_advance_days=settings.max_advance_days,
        buffer_minutes=settings.buffer_minutes,
        max_party_size_online=settings.max_party_size_online,
        max_capacity_threshold_percent=settings.max_capacity_threshold_percent,
        late_grace_minutes=settings.late_grace_minutes,
    ).validate()


def get_booking_policy() -> BookingPolicy:
    """Return the validated policy for the current settings."""
    return policy_from_settings(get_settings())


def generate_slots(
    window: OpenWindow,
    policy: BookingPolicy,
    reference_now: datetime,
    target_date: date,
) -> list[datetime]:
    """Ordered start times bookable inside ``window``.

    The last start is ``window.end - max_duration``. On the current day, starts
    earlier than ``reference_now + min_advance`` are dropped.
    """
    if policy.slot_granularity_minutes <= 0:
        raise ConfigurationError("Slot granularity must be a positive number of minutes")
    interval = timedelta(minutes=policy.slot_granularity_minutes)
    earliest: datetime | None = None
    if target_date == reference_now.date():
        earliest = reference_now + timedelta(minutes=policy.min_advance_minutes)

    slots: list[datetime] = []
    cursor = window.start
    while cursor + policy.max_duration <= window.end:
        if earliest is None or cursor >= earliest:
            slots.append(cursor)
        cursor += interval
    return slots


def find_slot(slots: Sequence[datetime], wanted: time) -> datetime | None:
    """Return the generated slot starting at ``wanted`` (time of day), if any."""
    for slot in slots:
        if slot.time() == wanted:
            return slot
    return None
