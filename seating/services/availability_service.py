"""Availability engine: can a party be seated at a given slot, and where."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from seating.core.errors import AvailabilityReason, ReservationValidationError
from seating.models.reservation import (
    BLOCKING_STATUSES,
    Reservation,
    ReservationOrigin,
    ReservationStatus,
)
from seating.models.table import CUSTOMER_SECTIONS, DiningTable, TableSection
from seating.services import calendar_service, slot_service
from seating.services.calendar_service import VenueCalendar
from seating.services.slot_service import BookingPolicy

logger = logging.getLogger(__name__)

ALL_SECTIONS: frozenset[TableSection] = frozenset(TableSection)


@dataclass(slots=True, frozen=True)
class TableInfo:
    """Immutable view of a dining table used during a decision."""

    id: uuid.UUID
    number: int
    capacity: int
    section: TableSection

    @classmethod
    def from_model(cls, table: DiningTable) -> "TableInfo":
        return cls(
            id=table.id,
            number=table.number,
            capacity=table.capacity,
            section=table.section,
        )


@dataclass(slots=True, frozen=True)
class BookedInterval:
    """An existing reservation reduced to what conflict checks need."""

    reservation_id: uuid.UUID
    start_at: datetime
    end_at: datetime
    status: ReservationStatus
    table_ids: frozenset[uuid.UUID]

    @classmethod
    def from_model(cls, reservation: Reservation) -> "BookedInterval":
        return cls(
            reservation_id=reservation.id,
            start_at=reservation.start_at,
            end_at=reservation.end_at,
            status=reservation.status,
            table_ids=reservation.table_ids,
        )

    @property
    def blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES


@dataclass(slots=True, frozen=True)
class AvailabilityQuery:
    service_date: date
    start_time: time
    party_size: int
    origin: ReservationOrigin = ReservationOrigin.CUSTOMER
    duration_minutes: int | None = None
    sections: frozenset[TableSection] | None = None
    exclude_reservation_id: uuid.UUID | None = None


@dataclass(slots=True, frozen=True)
class AvailabilityResult:
    available: bool
    reason: AvailabilityReason | None = None
    message: str | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    tables: tuple[TableInfo, ...] = ()

    @property
    def table_ids(self) -> list[uuid.UUID]:
        return [table.id for table in self.tables]

    @property
    def capacity(self) -> int:
        return sum(table.capacity for table in self.tables)


@dataclass(slots=True)
class SlotAvailability:
    start_at: datetime
    end_at: datetime
    available: bool
    reason: AvailabilityReason | None = None
    table_ids: list[uuid.UUID] = field(default_factory=list)


def intervals_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    """Half-open overlap: windows that merely touch do not conflict."""
    return first_start < second_end and first_end > second_start


def allowed_sections(
    origin: ReservationOrigin,
    requested: Iterable[TableSection] | None = None,
) -> frozenset[TableSection]:
    """Sections the request may use; customer requests never reach outdoor seating."""
    sections = frozenset(requested) if requested is not None else ALL_SECTIONS
    if origin == ReservationOrigin.CUSTOMER:
        sections &= CUSTOMER_SECTIONS
    return sections


def conflicting_table_ids(
    table_ids: Iterable[uuid.UUID],
    bookings: Iterable[BookedInterval],
    start_at: datetime,
    end_at: datetime,
    buffer: timedelta,
    exclude_reservation_id: uuid.UUID | None = None,
) -> set[uuid.UUID]:
    """Tables already held by a blocking reservation within the buffered window."""
    wanted = set(table_ids)
    guarded_start = start_at - buffer
    guarded_end = end_at + buffer
    conflicts: set[uuid.UUID] = set()
    for booking in bookings:
        if not booking.blocking or booking.reservation_id == exclude_reservation_id:
            continue
        shared = wanted & booking.table_ids
        if shared and intervals_overlap(
            booking.start_at, booking.end_at, guarded_start, guarded_end
        ):
            conflicts |= shared
    return conflicts


def free_tables(
    candidates: Sequence[TableInfo],
    bookings: Sequence[BookedInterval],
    start_at: datetime,
    end_at: datetime,
    buffer: timedelta,
    exclude_reservation_id: uuid.UUID | None = None,
) -> list[TableInfo]:
    busy = conflicting_table_ids(
        (table.id for table in candidates),
        bookings,
        start_at,
        end_at,
        buffer,
        exclude_reservation_id,
    )
    return [table for table in candidates if table.id not in busy]


def best_combination(
    tables: Sequence[TableInfo], party_size: int
) -> tuple[TableInfo, ...] | None:
    """Pick the tables seating ``party_size`` with the least spare capacity.

    Ties go to fewer tables, then to the lowest table numbers. Solved as a
    subset sum over capacities: an optimal set never exceeds
    ``party_size + max_capacity - 1`` seats, since dropping any table from a
    larger set would still seat the party.
    """
    ordered = sorted((t for t in tables if t.capacity >= 1), key=lambda t: t.number)
    if not ordered or party_size <= 0:
        return None
    limit = party_size + max(t.capacity for t in ordered) - 1

    best: dict[int, tuple[int, tuple[int, ...], tuple[TableInfo, ...]]] = {0: (0, (), ())}
    for table in ordered:
        for total, (count, numbers, picks) in list(best.items()):
            if total >= party_size:
                continue
            new_total = total + table.capacity
            if new_total > limit:
                continue
            candidate = (count + 1, numbers + (table.number,), picks + (table,))
            current = best.get(new_total)
            if current is None or candidate[:2] < current[:2]:
                best[new_total] = candidate

    options = [
        (total - party_size, count, numbers, picks)
        for total, (count, numbers, picks) in best.items()
        if total >= party_size
    ]
    if not options:
        return None
    return min(options, key=lambda option: option[:3])[3]


def committed_capacity(
    tables: Sequence[TableInfo],
    bookings: Iterable[BookedInterval],
    start_at: datetime,
    end_at: datetime,
    exclude_reservation_id: uuid.UUID | None = None,
) -> int:
    """Seats on tables held by reservations overlapping ``[start_at, end_at)``."""
    by_id = {table.id: table for table in tables}
    held: set[uuid.UUID] = set()
    for booking in bookings:
        if not booking.blocking or booking.reservation_id == exclude_reservation_id:
            continue
        if intervals_overlap(booking.start_at, booking.end_at, start_at, end_at):
            held |= booking.table_ids
    return sum(by_id[table_id].capacity for table_id in held if table_id in by_id)


def resolve_duration(policy: BookingPolicy, duration_minutes: int | None) -> int:
    if duration_minutes is None:
        return policy.max_duration_minutes
    if duration_minutes <= 0:
        raise ReservationValidationError("Duration must be a positive number of minutes")
    if duration_minutes > policy.max_duration_minutes:
        raise ReservationValidationError(
            f"Duration of {duration_minutes} minutes exceeds the "
            f"{policy.max_duration_minutes}-minute table policy"
        )
    return duration_minutes


def _reject(reason: AvailabilityReason, message: str, **extra) -> AvailabilityResult:
    return AvailabilityResult(available=False, reason=reason, message=message, **extra)


def resolve_window(
    query: AvailabilityQuery,
    *,
    calendar: VenueCalendar,
    policy: BookingPolicy,
    reference_now: datetime,
) -> AvailabilityResult:
    """Calendar, booking-window and party-size checks, before any table is considered.

    An available result carries the concrete ``start_at``/``end_at`` but no tables.
    """
    if query.party_size <= 0:
        raise ReservationValidationError("Party size must be greater than 0")
    duration = resolve_duration(policy, query.duration_minutes)

    status = calendar_service.is_open(calendar, query.service_date)
    if not status.open or status.window is None:
        return _reject(AvailabilityReason.CLOSED, status.reason or "Closed")

    today = reference_now.date()
    if query.service_date < today:
        return _reject(AvailabilityReason.OUTSIDE_POLICY_WINDOW, "Date is in the past")
    if query.service_date > today + timedelta(days=policy.max_advance_days):
        return _reject(
            AvailabilityReason.OUTSIDE_POLICY_WINDOW,
            f"Bookings open {policy.max_advance_days} days in advance",
        )

    slots = slot_service.generate_slots(
        status.window, policy, reference_now, query.service_date
    )
    start_at = slot_service.find_slot(slots, query.start_time)
    if start_at is None:
        return _reject(
            AvailabilityReason.OUTSIDE_POLICY_WINDOW,
            f"{query.start_time:%H:%M} is not a bookable time on {query.service_date}",
        )
    end_at = start_at + timedelta(minutes=duration)

    if (
        query.origin == ReservationOrigin.CUSTOMER
        and query.party_size > policy.max_party_size_online
    ):
        return _reject(
            AvailabilityReason.PARTY_TOO_LARGE,
            f"Online bookings are limited to {policy.max_party_size_online} guests",
            start_at=start_at,
            end_at=end_at,
        )
    return AvailabilityResult(available=True, start_at=start_at, end_at=end_at)


def exceeds_threshold(
    policy: BookingPolicy,
    tables: Sequence[TableInfo],
    bookings: Sequence[BookedInterval],
    chosen: Sequence[TableInfo],
    start_at: datetime,
    end_at: datetime,
    exclude_reservation_id: uuid.UUID | None = None,
) -> bool:
    """Would seating ``chosen`` push committed venue capacity past the cap?"""
    total = sum(table.capacity for table in tables)
    if total <= 0:
        return True
    committed = committed_capacity(
        tables, bookings, start_at, end_at, exclude_reservation_id
    )
    chosen_ids = {table.id for table in chosen}
    booked = committed + sum(
        table.capacity for table in tables if table.id in chosen_ids
    )
    return booked * 100 > policy.max_capacity_threshold_percent * total


def choose_tables(
    query: AvailabilityQuery,
    *,
    start_at: datetime,
    end_at: datetime,
    policy: BookingPolicy,
    tables: Sequence[TableInfo],
    bookings: Sequence[BookedInterval],
) -> AvailabilityResult:
    """Pick the best free combination for ``[start_at, end_at)``, then apply the cap."""
    sections = allowed_sections(query.origin, query.sections)
    candidates = [t for t in tables if t.section in sections and t.capacity >= 1]
    usable = free_tables(
        candidates,
        bookings,
        start_at,
        end_at,
        policy.buffer,
        query.exclude_reservation_id,
    )
    chosen = best_combination(usable, query.party_size)
    if chosen is None:
        return _reject(
            AvailabilityReason.NO_CAPACITY,
            "No table combination is free for this party",
            start_at=start_at,
            end_at=end_at,
        )

    if query.origin == ReservationOrigin.CUSTOMER and exceeds_threshold(
        policy,
        tables,
        bookings,
        chosen,
        start_at,
        end_at,
        query.exclude_reservation_id,
    ):
        return _reject(
            AvailabilityReason.THRESHOLD_EXCEEDED,
            "Online capacity for this time is fully booked",
            start_at=start_at,
            end_at=end_at,
        )

    return AvailabilityResult(
        available=True,
        start_at=start_at,
        end_at=end_at,
        tables=chosen,
    )


def evaluate(
    query: AvailabilityQuery,
    *,
    calendar: VenueCalendar,
    policy: BookingPolicy,
    tables: Sequence[TableInfo],
    bookings: Sequence[BookedInterval],
    reference_now: datetime,
) -> AvailabilityResult:
    """Decide a request against a fixed snapshot of venue state.

    Pure: identical inputs always give identical answers. Raises
    ``ReservationValidationError`` for malformed queries; every other negative
    outcome is returned as a result carrying a reason tag.
    """
    window = resolve_window(
        query, calendar=calendar, policy=policy, reference_now=reference_now
    )
    if not window.available or window.start_at is None or window.end_at is None:
        return window
    return choose_tables(
        query,
        start_at=window.start_at,
        end_at=window.end_at,
        policy=policy,
        tables=tables,
        bookings=bookings,
    )


async def load_tables(session: AsyncSession) -> list[TableInfo]:
    stmt: Select[tuple[DiningTable]] = select(DiningTable).order_by(DiningTable.number)
    result = await session.execute(stmt)
    return [TableInfo.from_model(table) for table in result.scalars().all()]


async def load_bookings(
    session: AsyncSession,
    *,
    range_start: datetime,
    range_end: datetime,
) -> list[BookedInterval]:
    """Blocking reservations touching ``[range_start, range_end)``."""
    stmt: Select[tuple[Reservation]] = (
        select(Reservation)
        .where(
            Reservation.status.in_(BLOCKING_STATUSES),
            Reservation.end_at > range_start,
            Reservation.start_at < range_end,
        )
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return [BookedInterval.from_model(r) for r in result.scalars().unique().all()]


def _day_bounds(calendar: VenueCalendar, service_date: date, policy: BookingPolicy) -> tuple[datetime, datetime]:
    status = calendar_service.is_open(calendar, service_date)
    if status.window is not None:
        start, end = status.window.start, status.window.end
    else:
        start = datetime.combine(service_date, time.min)
        end = start + timedelta(days=1)
    return start - policy.buffer, end + policy.buffer


async def check_availability(
    session: AsyncSession,
    query: AvailabilityQuery,
    *,
    policy: BookingPolicy,
    reference_now: datetime,
    calendar: VenueCalendar | None = None,
) -> AvailabilityResult:
    """Load the current venue state and evaluate ``query`` against it."""
    if calendar is None:
        calendar = await calendar_service.load_calendar(session)
    range_start, range_end = _day_bounds(calendar, query.service_date, policy)
    tables = await load_tables(session)
    bookings = await load_bookings(session, range_start=range_start, range_end=range_end)
    result = evaluate(
        query,
        calendar=calendar,
        policy=policy,
        tables=tables,
        bookings=bookings,
        reference_now=reference_now,
    )
    if not result.available:
        logger.debug(
            "Availability rejected for %s %s party=%s: %s",
            query.service_date,
            query.start_time,
            query.party_size,
            result.reason.value if result.reason else None,
        )
    return result


async def check_fixed_window(
    session: AsyncSession,
    query: AvailabilityQuery,
    *,
    start_at: datetime,
    end_at: datetime,
    policy: BookingPolicy,
) -> AvailabilityResult:
    """Choose tables for a window that is already booked.

    Slot grid and advance rules are not applied; the online party limit is.
    """
    if query.party_size <= 0:
        raise ReservationValidationError("Party size must be greater than 0")
    if (
        query.origin == ReservationOrigin.CUSTOMER
        and query.party_size > policy.max_party_size_online
    ):
        return _reject(
            AvailabilityReason.PARTY_TOO_LARGE,
            f"Online bookings are limited to {policy.max_party_size_online} guests",
            start_at=start_at,
            end_at=end_at,
        )
    tables = await load_tables(session)
    bookings = await load_bookings(
        session, range_start=start_at - policy.buffer, range_end=end_at + policy.buffer
    )
    return choose_tables(
        query,
        start_at=start_at,
        end_at=end_at,
        policy=policy,
        tables=tables,
        bookings=bookings,
    )


async def list_available_slots(
    session: AsyncSession,
    *,
    service_date: date,
    party_size: int,
    origin: ReservationOrigin,
    policy: BookingPolicy,
    reference_now: datetime,
    sections: frozenset[TableSection] | None = None,
) -> list[SlotAvailability]:
    """Every generated slot of the day with its availability for the party."""
    calendar = await calendar_service.load_calendar(session)
    status = calendar_service.is_open(calendar, service_date)
    if not status.open or status.window is None:
        return []
    range_start, range_end = _day_bounds(calendar, service_date, policy)
    tables = await load_tables(session)
    bookings = await load_bookings(session, range_start=range_start, range_end=range_end)

    slots: list[SlotAvailability] = []
    for start_at in slot_service.generate_slots(
        status.window, policy, reference_now, service_date
    ):
        result = evaluate(
            AvailabilityQuery(
                service_date=service_date,
                start_time=start_at.time(),
                party_size=party_size,
                origin=origin,
                sections=sections,
            ),
            calendar=calendar,
            policy=policy,
            tables=tables,
            bookings=bookings,
            reference_now=reference_now,
        )
        slots.append(
            SlotAvailability(
                start_at=start_at,
                end_at=start_at + policy.max_duration,
                available=result.available,
                reason=result.reason,
                table_ids=result.table_ids,
            )
        )
    return slots


async def table_availability(
    session: AsyncSession,
    *,
    service_date: date,
    policy: BookingPolicy,
    reference_now: datetime,
) -> dict[datetime, list[uuid.UUID]]:
    """Free tables (any section) for each generated slot of the day."""
    calendar = await calendar_service.load_calendar(session)
    status = calendar_service.is_open(calendar, service_date)
    if not status.open or status.window is None:
        return {}
    range_start, range_end = _day_bounds(calendar, service_date, policy)
    tables = await load_tables(session)
    bookings = await load_bookings(session, range_start=range_start, range_end=range_end)

    grid: dict[datetime, list[uuid.UUID]] = {}
    for start_at in slot_service.generate_slots(
        status.window, policy, reference_now, service_date
    ):
        usable = free_tables(
            tables, bookings, start_at, start_at + policy.max_duration, policy.buffer
        )
        grid[start_at] = [table.id for table in usable]
    return grid


async def available_dates(
    session: AsyncSession,
    *,
    policy: BookingPolicy,
    reference_now: datetime,
    party_size: int | None = None,
    origin: ReservationOrigin = ReservationOrigin.CUSTOMER,
) -> list[date]:
    """Open dates in the advance window; with a party size, only dates with a free slot."""
    calendar = await calendar_service.load_calendar(session)
    days = calendar_service.open_dates(
        calendar, reference_now.date(), policy.max_advance_days
    )
    if party_size is None:
        return days
    bookable: list[date] = []
    for day in days:
        slots = await list_available_slots(
            session,
            service_date=day,
            party_size=party_size,
            origin=origin,
            policy=policy,
            reference_now=reference_now,
        )
        if any(slot.available for slot in slots):
            bookable.append(day)
    return bookable
