"""Venue calendar: opening hours, closed dates and special-event overrides."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from seating.core.errors import ConfigurationError
from seating.models.venue import ClosedDate, OpeningHour, SpecialEvent


@dataclass(slots=True, frozen=True)
class HoursRule:
    """Opening hours for one weekday (0 = Sunday)."""

    weekday: int
    is_closed: bool
    open_time: time | None = None
    close_time: time | None = None


@dataclass(slots=True, frozen=True)
class EventHours:
    name: str
    open_time: time | None = None
    close_time: time | None = None

    @property
    def has_custom_hours(self) -> bool:
        return self.open_time is not None and self.close_time is not None


@dataclass(slots=True, frozen=True)
class OpenWindow:
    """Concrete trading window; ``end`` may fall on the next calendar day."""

    start: datetime
    end: datetime

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)


@dataclass(slots=True, frozen=True)
class OpenStatus:
    open: bool
    window: OpenWindow | None = None
    reason: str | None = None
    event_name: str | None = None


@dataclass(frozen=True)
class VenueCalendar:
    """Read-only snapshot of the venue's trading calendar."""

    hours: Mapping[int, HoursRule] = field(default_factory=dict)
    closed_dates: Mapping[date, str | None] = field(default_factory=dict)
    events: Mapping[date, EventHours] = field(default_factory=dict)


def sunday_weekday(day: date) -> int:
    """Weekday index with Sunday as 0, as stored in opening hours."""
    return (day.weekday() + 1) % 7


def open_window(day: date, open_time: time, close_time: time) -> OpenWindow:
    start = datetime.combine(day, open_time)
    end = datetime.combine(day, close_time)
    if close_time <= open_time:
        end += timedelta(days=1)
    return OpenWindow(start=start, end=end)


def _validate_rule(rule: HoursRule) -> None:
    if not 0 <= rule.weekday <= 6:
        raise ConfigurationError(f"Invalid weekday index {rule.weekday}; expected 0-6")
    if rule.is_closed:
        return
    if rule.open_time is None or rule.close_time is None:
        raise ConfigurationError(
            f"Weekday {rule.weekday} is open but has no opening or closing time"
        )
    if rule.open_time == rule.close_time:
        raise ConfigurationError(
            f"Weekday {rule.weekday} opens and closes at the same time"
        )


def build_calendar(
    hours: Iterable[HoursRule],
    closed_dates: Mapping[date, str | None] | None = None,
    events: Iterable[tuple[date, EventHours]] = (),
) -> VenueCalendar:
    """Validate raw configuration and assemble a calendar.

    Raises ``ConfigurationError`` for an out-of-range weekday, a duplicate
    weekday rule, an open day without times, or an event with half of a
    custom window. A weekday with no rule at all is treated as closed.
    """
    by_weekday: dict[int, HoursRule] = {}
    for rule in hours:
        _validate_rule(rule)
        if rule.weekday in by_weekday:
            raise ConfigurationError(f"Duplicate opening hours for weekday {rule.weekday}")
        by_weekday[rule.weekday] = rule

    by_date: dict[date, EventHours] = {}
    for event_date, event in events:
        if (event.open_time is None) != (event.close_time is None):
            raise ConfigurationError(
                f"Special event {event.name!r} needs both opening and closing time"
            )
        current = by_date.get(event_date)
        # The first event carrying custom hours decides the window for the day.
        if current is None or (not current.has_custom_hours and event.has_custom_hours):
            by_date[event_date] = event

    return VenueCalendar(
        hours=by_weekday,
        closed_dates=dict(closed_dates or {}),
        events=by_date,
    )


def is_open(calendar: VenueCalendar, day: date) -> OpenStatus:
    """Answer whether the venue trades on ``day`` and during which window."""
    if day in calendar.closed_dates:
        return OpenStatus(open=False, reason=calendar.closed_dates[day] or "Closed")

    event = calendar.events.get(day)
    if event is not None and event.has_custom_hours:
        return OpenStatus(
            open=True,
            window=open_window(day, event.open_time, event.close_time),  # type: ignore[arg-type]
            event_name=event.name,
        )

    rule = calendar.hours.get(sunday_weekday(day))
    if rule is None or rule.is_closed:
        return OpenStatus(
            open=False,
            reason="Closed on this weekday",
            event_name=event.name if event else None,
        )
    return OpenStatus(
        open=True,
        window=open_window(day, rule.open_time, rule.close_time),  # type: ignore[arg-type]
        event_name=event.name if event else None,
    )


def open_dates(calendar: VenueCalendar, today: date, max_advance_days: int) -> list[date]:
    """Dates from ``today`` through the advance-booking horizon the venue is open."""
    days: list[date] = []
    current = today
    horizon = today + timedelta(days=max_advance_days)
    while current <= horizon:
        if is_open(calendar, current).open:
            days.append(current)
        current += timedelta(days=1)
    return days


async def load_calendar(session: AsyncSession) -> VenueCalendar:
    """Read venue hours, closures and events and validate them."""
    hours_stmt: Select[tuple[OpeningHour]] = select(OpeningHour).order_by(
        OpeningHour.weekday.asc()
    )
    hours = (await session.execute(hours_stmt)).scalars().all()

    closures_stmt: Select[tuple[ClosedDate]] = select(ClosedDate)
    closures = (await session.execute(closures_stmt)).scalars().all()

    events_stmt: Select[tuple[SpecialEvent]] = select(SpecialEvent).order_by(
        SpecialEvent.event_date.asc(), SpecialEvent.created_at.asc()
    )
    events = (await session.execute(events_stmt)).scalars().all()

    return build_calendar(
        (
            HoursRule(
                weekday=hour.weekday,
                is_closed=hour.is_closed,
                open_time=hour.open_time,
                close_time=hour.close_time,
            )
            for hour in hours
        ),
        {closure.closed_on: closure.reason for closure in closures},
        (
            (
                event.event_date,
                EventHours(
                    name=event.name,
                    open_time=event.open_time,
                    close_time=event.close_time,
                ),
            )
            for event in events
        ),
    )
