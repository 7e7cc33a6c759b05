"""Common API dependencies."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime

from fastapi import Depends, Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from sqlalchemy.ext.asyncio import AsyncSession

from seating.core.clock import venue_now
from seating.core.config import get_settings
from seating.db.session import get_session
from seating.services.slot_service import BookingPolicy, get_booking_policy

_SECONDS = {
    "second": 1,
    "seconds": 1,
    "minute": 60,
    "minutes": 60,
    "hour": 3600,
    "hours": 3600,
    "day": 86400,
    "days": 86400,
}


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


def get_policy() -> BookingPolicy:
    """Booking policy for the current settings."""
    return get_booking_policy()


def get_reference_now() -> datetime:
    """The venue-local instant every time-sensitive decision is made against."""
    return venue_now()


def parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    """Turn ``"20/minute"`` into ``(20, 60)``; unparseable values use ``fallback``."""
    count_str, _, window = value.partition("/")
    try:
        count = int(count_str.strip())
    except ValueError:
        return fallback
    return count, _SECONDS.get(window.strip().lower(), fallback[1])


def rate_dependency(limit: tuple[int, int]):
    async def _dependency(request: Request, response: Response) -> None:
        # Without a limiter backend the check is skipped.
        if FastAPILimiter.redis is None:
            return None
        limiter = RateLimiter(times=limit[0], seconds=limit[1])
        await limiter(request, response)

    return Depends(_dependency)


_settings = get_settings()

BOOKING_RATE_LIMIT = rate_dependency(parse_rate(_settings.rate_limit_booking, fallback=(20, 60)))
DEFAULT_RATE_LIMIT = rate_dependency(parse_rate(_settings.rate_limit_default, fallback=(100, 60)))
