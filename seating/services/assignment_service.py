"""Table assignment and the commit step for reservations.

Availability is decided optimistically against a snapshot. The write itself
happens under per-table locks, after the overlap check has been run
again on freshly loaded bookings; a table claimed in between surfaces as
``ConflictError``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from seating.core.errors import (
    AvailabilityError,
    AvailabilityReason,
    ConflictError,
    InvariantViolation,
    ReservationValidationError,
)
from seating.models.reservation import (
    BLOCKING_STATUSES,
    Reservation,
    ReservationOrigin,
    ReservationStatus,
)
from seating.models.table import CUSTOMER_SECTIONS, DiningTable
from seating.security.redact import describe_guest
from seating.services import availability_service, calendar_service, lifecycle_service
from seating.services.availability_service import (
    AvailabilityQuery,
    AvailabilityResult,
    TableInfo,
)
from seating.services.calendar_service import VenueCalendar
from seating.services.slot_service import BookingPolicy

logger = logging.getLogger(__name__)


class _LockEntry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class BookingLocks:
    """One ``asyncio.Lock`` per dining table, scoped to the running event loop.

    A lock lives only while some task holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, dict[uuid.UUID, _LockEntry]
        ] = weakref.WeakKeyDictionary()

    def _per_loop(self) -> dict[uuid.UUID, _LockEntry]:
        return self._locks.setdefault(asyncio.get_running_loop(), {})

    def active(self) -> frozenset[uuid.UUID]:
        """Tables currently held or waited on."""
        return frozenset(self._per_loop())

    @asynccontextmanager
    async def hold(self, table_ids: Iterable[uuid.UUID]) -> AsyncIterator[None]:
        per_loop = self._per_loop()
        entries: list[tuple[uuid.UUID, _LockEntry]] = []
        # Sorted acquisition keeps two multi-table holders from deadlocking.
        for table_id in sorted(set(table_ids)):
            entry = per_loop.get(table_id)
            if entry is None:
                entry = per_loop[table_id] = _LockEntry()
            entry.users += 1
            entries.append((table_id, entry))
        try:
            async with AsyncExitStack() as stack:
                for _, entry in entries:
                    await stack.enter_async_context(entry.lock)
                yield
        finally:
            for table_id, entry in entries:
                entry.users -= 1
                if entry.users == 0:
                    per_loop.pop(table_id, None)


booking_locks = BookingLocks()


@dataclass(slots=True)
class ReservationDraft:
    """A booking request that has not been written yet."""

    customer_name: str
    customer_email: str
    customer_phone: str
    party_size: int
    service_date: date
    start_time: time
    origin: ReservationOrigin = ReservationOrigin.CUSTOMER
    duration_minutes: int | None = None
    special_requests: str | None = None
    table_ids: list[uuid.UUID] | None = None
    status: ReservationStatus | None = None


@dataclass(slots=True, frozen=True)
class AssignmentPlan:
    start_at: datetime
    end_at: datetime
    table_ids: tuple[uuid.UUID, ...]


def validate_draft(draft: ReservationDraft) -> None:
    """Reject drafts missing contact details or with a non-positive party."""
    for field_name, label in (
        ("customer_name", "Name"),
        ("customer_email", "Email"),
        ("customer_phone", "Phone"),
    ):
        value = getattr(draft, field_name)
        if value is None or not str(value).strip():
            raise ReservationValidationError(f"{label} is required")
    if "@" not in draft.customer_email:
        raise ReservationValidationError("Email address is not valid")
    if draft.party_size <= 0:
        raise ReservationValidationError("Party size must be greater than 0")
    if draft.table_ids is not None and len(set(draft.table_ids)) != len(draft.table_ids):
        raise ReservationValidationError("A table can only be listed once")


def enforce_sections(origin: ReservationOrigin, tables: Iterable[TableInfo]) -> None:
    """Customer reservations may only ever hold indoor, window or bar tables."""
    if origin != ReservationOrigin.CUSTOMER:
        return
    blocked = sorted(t.number for t in tables if t.section not in CUSTOMER_SECTIONS)
    if blocked:
        raise InvariantViolation(
            "Customer reservations cannot use table(s) "
            + ", ".join(str(number) for number in blocked)
        )


def _format_numbers(tables: Iterable[TableInfo], ids: Iterable[uuid.UUID]) -> str:
    wanted = set(ids)
    return ", ".join(str(t.number) for t in sorted(tables, key=lambda t: t.number) if t.id in wanted)


def _window_or_raise(result: AvailabilityResult) -> tuple[datetime, datetime]:
    """The resolved ``(start_at, end_at)`` of a positive result; raise for a negative one."""
    if result.available and result.start_at is not None and result.end_at is not None:
        return result.start_at, result.end_at
    raise AvailabilityError(
        result.reason or AvailabilityReason.NO_CAPACITY, result.message
    )


async def load_table_models(
    session: AsyncSession, table_ids: Sequence[uuid.UUID]
) -> list[DiningTable]:
    """Fetch the listed tables, failing on any id the venue does not have."""
    if not table_ids:
        return []
    stmt: Select[tuple[DiningTable]] = (
        select(DiningTable)
        .where(DiningTable.id.in_(set(table_ids)))
        .order_by(DiningTable.number)
    )
    tables = list((await session.execute(stmt)).scalars().all())
    missing = set(table_ids) - {table.id for table in tables}
    if missing:
        raise ReservationValidationError(
            "Unknown table id(s): " + ", ".join(sorted(str(item) for item in missing))
        )
    return tables


async def _check_explicit_tables(
    session: AsyncSession,
    *,
    tables: Sequence[TableInfo],
    party_size: int,
    origin: ReservationOrigin,
    start_at: datetime,
    end_at: datetime,
    policy: BookingPolicy,
    exclude_reservation_id: uuid.UUID | None = None,
) -> None:
    enforce_sections(origin, tables)
    seats = sum(table.capacity for table in tables)
    if tables and seats < party_size:
        raise InvariantViolation(
            f"Selected tables seat {seats}, party needs {party_size}"
        )
    bookings = await availability_service.load_bookings(
        session, range_start=start_at - policy.buffer, range_end=end_at + policy.buffer
    )
    conflicts = availability_service.conflicting_table_ids(
        (table.id for table in tables),
        bookings,
        start_at,
        end_at,
        policy.buffer,
        exclude_reservation_id,
    )
    if conflicts:
        raise InvariantViolation(
            f"Table(s) {_format_numbers(tables, conflicts)} are already booked for this time"
        )
    if origin == ReservationOrigin.CUSTOMER and tables:
        all_tables = await availability_service.load_tables(session)
        if availability_service.exceeds_threshold(
            policy, all_tables, bookings, tables, start_at, end_at, exclude_reservation_id
        ):
            raise AvailabilityError(
                AvailabilityReason.THRESHOLD_EXCEEDED,
                "Online capacity for this time is fully booked",
            )


async def plan_assignment(
    session: AsyncSession,
    draft: ReservationDraft,
    *,
    policy: BookingPolicy,
    reference_now: datetime,
    calendar: VenueCalendar | None = None,
) -> AssignmentPlan:
    """Work out where the draft would sit; nothing is written.

    Without explicit tables the availability engine's combination is used.
    Explicit tables are checked for existence, section, capacity and overlap.
    """
    if calendar is None:
        calendar = await calendar_service.load_calendar(session)
    query = AvailabilityQuery(
        service_date=draft.service_date,
        start_time=draft.start_time,
        party_size=draft.party_size,
        origin=draft.origin,
        duration_minutes=draft.duration_minutes,
    )

    if not draft.table_ids:
        result = await availability_service.check_availability(
            session, query, policy=policy, reference_now=reference_now, calendar=calendar
        )
        start_at, end_at = _window_or_raise(result)
        return AssignmentPlan(start_at, end_at, tuple(result.table_ids))

    tables = [
        TableInfo.from_model(table)
        for table in await load_table_models(session, draft.table_ids)
    ]
    enforce_sections(draft.origin, tables)
    start_at, end_at = _window_or_raise(
        availability_service.resolve_window(
            query, calendar=calendar, policy=policy, reference_now=reference_now
        )
    )
    await _check_explicit_tables(
        session,
        tables=tables,
        party_size=draft.party_size,
        origin=draft.origin,
        start_at=start_at,
        end_at=end_at,
        policy=policy,
    )
    return AssignmentPlan(start_at, end_at, tuple(t.id for t in tables))


async def _guard_commit(
    session: AsyncSession,
    *,
    table_ids: Sequence[uuid.UUID],
    start_at: datetime,
    end_at: datetime,
    policy: BookingPolicy,
    exclude_reservation_id: uuid.UUID | None = None,
) -> None:
    """Re-run the overlap check on committed data right before writing."""
    if not table_ids:
        return
    bookings = await availability_service.load_bookings(
        session, range_start=start_at - policy.buffer, range_end=end_at + policy.buffer
    )
    conflicts = availability_service.conflicting_table_ids(
        table_ids, bookings, start_at, end_at, policy.buffer, exclude_reservation_id
    )
    if conflicts:
        raise ConflictError(
            "Table was booked by a concurrent reservation", frozenset(conflicts)
        )


async def _commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise


async def commit_plan(
    session: AsyncSession,
    draft: ReservationDraft,
    plan: AssignmentPlan,
    *,
    policy: BookingPolicy,
) -> Reservation:
    """Write the reservation if its tables are still free."""
    async with booking_locks.hold(plan.table_ids):
        await _guard_commit(
            session,
            table_ids=plan.table_ids,
            start_at=plan.start_at,
            end_at=plan.end_at,
            policy=policy,
        )
        tables = await load_table_models(session, plan.table_ids)
        reservation = Reservation(
            customer_name=draft.customer_name.strip(),
            customer_email=draft.customer_email.strip(),
            customer_phone=draft.customer_phone.strip(),
            party_size=draft.party_size,
            service_date=draft.service_date,
            start_at=plan.start_at,
            end_at=plan.end_at,
            status=lifecycle_service.initial_status(draft.origin, draft.status),
            origin=draft.origin,
            special_requests=draft.special_requests,
            tables=tables,
        )
        session.add(reservation)
        await _commit(session)
    await session.refresh(reservation)
    logger.info(
        "Reservation %s booked for %s party=%s at %s on table(s) %s",
        reservation.id,
        describe_guest(
            reservation.customer_name,
            reservation.customer_email,
            reservation.customer_phone,
        ),
        reservation.party_size,
        reservation.start_at.isoformat(),
        ",".join(str(table.number) for table in reservation.tables) or "-",
    )
    return reservation


async def assign(
    session: AsyncSession,
    draft: ReservationDraft,
    *,
    policy: BookingPolicy,
    reference_now: datetime,
    calendar: VenueCalendar | None = None,
) -> Reservation:
    """Plan and commit in one step."""
    plan = await plan_assignment(
        session, draft, policy=policy, reference_now=reference_now, calendar=calendar
    )
    return await commit_plan(session, draft, plan, policy=policy)


def _ensure_open(reservation: Reservation) -> None:
    if lifecycle_service.is_terminal(reservation.status):
        raise ReservationValidationError(
            f"A {reservation.status.value} reservation can no longer be changed"
        )


async def reassign_tables(
    session: AsyncSession,
    reservation: Reservation,
    table_ids: Sequence[uuid.UUID],
    *,
    policy: BookingPolicy,
    origin: ReservationOrigin | None = None,
) -> Reservation:
    """Move a reservation onto ``table_ids``; an empty list unassigns it.

    The section rule follows the reservation's own origin, whoever asks, and
    additionally the requester's ``origin`` when given.
    """
    _ensure_open(reservation)
    if len(set(table_ids)) != len(table_ids):
        raise ReservationValidationError("A table can only be listed once")
    models = await load_table_models(session, table_ids)
    tables = [TableInfo.from_model(table) for table in models]
    if origin is not None:
        enforce_sections(origin, tables)
    await _check_explicit_tables(
        session,
        tables=tables,
        party_size=reservation.party_size,
        origin=reservation.origin,
        start_at=reservation.start_at,
        end_at=reservation.end_at,
        policy=policy,
        exclude_reservation_id=reservation.id,
    )
    async with booking_locks.hold(table.id for table in tables):
        await _guard_commit(
            session,
            table_ids=[table.id for table in tables],
            start_at=reservation.start_at,
            end_at=reservation.end_at,
            policy=policy,
            exclude_reservation_id=reservation.id,
        )
        reservation.tables = models
        session.add(reservation)
        await _commit(session)
    await session.refresh(reservation)
    logger.info(
        "Reservation %s moved to table(s) %s",
        reservation.id,
        ",".join(str(table.number) for table in reservation.tables) or "-",
    )
    return reservation


async def plan_reschedule(
    session: AsyncSession,
    reservation: Reservation,
    *,
    service_date: date,
    start_time: time,
    party_size: int,
    duration_minutes: int | None,
    policy: BookingPolicy,
    reference_now: datetime,
) -> AssignmentPlan:
    """Plan a move to a new time or party size, keeping current tables when they fit.

    When date, start and duration stay the same the booked window is kept as
    it is, so a party can be resized on the day or after being seated. Slot
    and advance rules apply only to a new time.
    """
    _ensure_open(reservation)
    query = AvailabilityQuery(
        service_date=service_date,
        start_time=start_time,
        party_size=party_size,
        origin=reservation.origin,
        duration_minutes=duration_minutes,
        exclude_reservation_id=reservation.id,
    )
    same_window = (
        service_date == reservation.service_date
        and start_time == reservation.start_at.time()
        and duration_minutes == reservation.duration_minutes
    )
    calendar: VenueCalendar | None = None
    if same_window:
        start_at, end_at = reservation.start_at, reservation.end_at
        if (
            reservation.origin == ReservationOrigin.CUSTOMER
            and party_size > policy.max_party_size_online
        ):
            raise AvailabilityError(
                AvailabilityReason.PARTY_TOO_LARGE,
                f"Online bookings are limited to {policy.max_party_size_online} guests",
            )
    else:
        calendar = await calendar_service.load_calendar(session)
        start_at, end_at = _window_or_raise(
            availability_service.resolve_window(
                query, calendar=calendar, policy=policy, reference_now=reference_now
            )
        )

    current = [TableInfo.from_model(table) for table in reservation.tables]
    if current:
        try:
            await _check_explicit_tables(
                session,
                tables=current,
                party_size=party_size,
                origin=reservation.origin,
                start_at=start_at,
                end_at=end_at,
                policy=policy,
                exclude_reservation_id=reservation.id,
            )
        except InvariantViolation:
            logger.debug("Reservation %s no longer fits its tables", reservation.id)
        else:
            return AssignmentPlan(start_at, end_at, tuple(t.id for t in current))

    if calendar is None:
        result = await availability_service.check_fixed_window(
            session, query, start_at=start_at, end_at=end_at, policy=policy
        )
    else:
        result = await availability_service.check_availability(
            session, query, policy=policy, reference_now=reference_now, calendar=calendar
        )
    start_at, end_at = _window_or_raise(result)
    return AssignmentPlan(start_at, end_at, tuple(result.table_ids))


async def commit_reschedule(
    session: AsyncSession,
    reservation: Reservation,
    plan: AssignmentPlan,
    *,
    service_date: date,
    party_size: int,
    policy: BookingPolicy,
) -> Reservation:
    async with booking_locks.hold(plan.table_ids):
        await _guard_commit(
            session,
            table_ids=plan.table_ids,
            start_at=plan.start_at,
            end_at=plan.end_at,
            policy=policy,
            exclude_reservation_id=reservation.id,
        )
        reservation.tables = await load_table_models(session, plan.table_ids)
        reservation.service_date = service_date
        reservation.start_at = plan.start_at
        reservation.end_at = plan.end_at
        reservation.party_size = party_size
        session.add(reservation)
        await _commit(session)
    await session.refresh(reservation)
    logger.info(
        "Reservation %s rescheduled to %s party=%s",
        reservation.id,
        reservation.start_at.isoformat(),
        reservation.party_size,
    )
    return reservation


async def change_status(
    session: AsyncSession,
    reservation: Reservation,
    status: ReservationStatus,
    *,
    policy: BookingPolicy,
    strict: bool = True,
) -> Reservation:
    """Set ``status`` and commit.

    A cancelled or no-show reservation brought back to a table-holding status
    must still find its tables free and allowed for its origin.
    """
    reinstating = (
        reservation.status not in BLOCKING_STATUSES and status in BLOCKING_STATUSES
    )
    if not reinstating:
        lifecycle_service.apply_status(reservation, status, strict=strict)
        session.add(reservation)
        await _commit(session)
        await session.refresh(reservation)
        return reservation

    lifecycle_service.validate_status_transition(reservation.status, status, strict=strict)
    tables = [TableInfo.from_model(table) for table in reservation.tables]
    enforce_sections(reservation.origin, tables)
    start_at, end_at = reservation.start_at, reservation.end_at
    async with booking_locks.hold(table.id for table in tables):
        bookings = await availability_service.load_bookings(
            session, range_start=start_at - policy.buffer, range_end=end_at + policy.buffer
        )
        conflicts = availability_service.conflicting_table_ids(
            (table.id for table in tables),
            bookings,
            start_at,
            end_at,
            policy.buffer,
            reservation.id,
        )
        if conflicts:
            logger.warning(
                "Reservation %s cannot return to %s; table(s) %s were rebooked",
                reservation.id,
                status.value,
                _format_numbers(tables, conflicts),
            )
            raise InvariantViolation(
                f"Table(s) {_format_numbers(tables, conflicts)} are already booked for this time"
            )
        lifecycle_service.apply_status(reservation, status, strict=strict)
        session.add(reservation)
        await _commit(session)
    await session.refresh(reservation)
    return reservation


__all__ = [
    "AssignmentPlan",
    "BookingLocks",
    "ReservationDraft",
    "assign",
    "booking_locks",
    "change_status",
    "commit_plan",
    "commit_reschedule",
    "enforce_sections",
    "load_table_models",
    "plan_assignment",
    "plan_reschedule",
    "reassign_tables",
    "validate_draft",
]
