"""Venue wall-clock helpers.

Reservation times are stored as naive venue-local datetimes. Only the HTTP layer
reads the real clock; services always receive ``reference_now`` explicitly.
"""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from seating.core.config import get_settings


def venue_now() -> datetime:
    """Return the current venue-local time without tzinfo."""
    zone = ZoneInfo(get_settings().venue_timezone)
    return datetime.now(UTC).astimezone(zone).replace(tzinfo=None)


def to_venue_time(moment: datetime) -> datetime:
    """Convert an aware timestamp to naive venue-local time; naive values pass through."""
    if moment.tzinfo is None:
        return moment
    zone = ZoneInfo(get_settings().venue_timezone)
    return moment.astimezone(zone).replace(tzinfo=None)
