"""Read-only table occupancy projections.

Nothing here is cached: every answer is recomputed from the reservation set
passed in, which callers load fresh from the database on each query.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from seating.models.reservation import BLOCKING_STATUSES, Reservation, ReservationStatus
from seating.models.table import DiningTable
from seating.services import lifecycle_service


@dataclass(slots=True, frozen=True)
class TableStatus:
    table_id: uuid.UUID
    table_number: int
    occupied: bool
    reservation: Reservation | None = None

    @property
    def grouped(self) -> bool:
        return self.reservation is not None and self.reservation.is_grouped


@dataclass(slots=True, frozen=True)
class LateAlert:
    reservation: Reservation
    minutes_late: int

    @property
    def message(self) -> str:
        return f"{self.reservation.customer_name} is {self.minutes_late} minutes late"


@dataclass(slots=True)
class DaySummary:
    service_date: date
    instant: datetime
    total_bookings: int = 0
    covers: int = 0
    seated_count: int = 0
    upcoming_count: int = 0
    occupancy_rate: float = 0.0
    alerts: list[LateAlert] = field(default_factory=list)


def _occupies(reservation: Reservation, instant: datetime) -> bool:
    return (
        reservation.status in BLOCKING_STATUSES
        and reservation.start_at <= instant < reservation.end_at
    )


def status_of(
    table: DiningTable,
    instant: datetime,
    reservations: Iterable[Reservation],
) -> TableStatus:
    """Occupied iff a blocking reservation on ``table`` spans ``instant``."""
    for reservation in reservations:
        if table.id in reservation.table_ids and _occupies(reservation, instant):
            return TableStatus(
                table_id=table.id,
                table_number=table.number,
                occupied=True,
                reservation=reservation,
            )
    return TableStatus(table_id=table.id, table_number=table.number, occupied=False)


def snapshot(
    tables: Sequence[DiningTable],
    reservations: Sequence[Reservation],
    instant: datetime,
) -> list[TableStatus]:
    """Occupancy of every table at ``instant``, in table-number order."""
    active = [r for r in reservations if _occupies(r, instant)]
    return [
        status_of(table, instant, active)
        for table in sorted(tables, key=lambda t: t.number)
    ]


def summarize_day(
    service_date: date,
    tables: Sequence[DiningTable],
    reservations: Sequence[Reservation],
    instant: datetime,
    *,
    grace_minutes: int = 15,
) -> DaySummary:
    """Dashboard figures for one service date as seen at ``instant``."""
    day = [r for r in reservations if r.service_date == service_date]
    summary = DaySummary(service_date=service_date, instant=instant)
    summary.total_bookings = len(day)
    summary.covers = sum(r.party_size for r in day if r.status in BLOCKING_STATUSES)
    summary.seated_count = sum(
        1
        for r in day
        if r.status == ReservationStatus.SEATED and r.start_at <= instant < r.end_at
    )
    summary.upcoming_count = sum(
        1 for r in day if r.status == ReservationStatus.CONFIRMED and r.start_at > instant
    )

    total_capacity = sum(table.capacity for table in tables)
    if total_capacity:
        occupied = sum(
            table.capacity
            for table in tables
            if status_of(table, instant, day).occupied
        )
        summary.occupancy_rate = round(occupied * 100 / total_capacity, 1)

    summary.alerts = [
        LateAlert(
            reservation=r,
            minutes_late=lifecycle_service.minutes_late(r.start_at, instant),
        )
        for r in sorted(day, key=lambda item: item.start_at)
        if lifecycle_service.needs_attention(r.status, r.start_at, instant, grace_minutes)
    ]
    return summary


async def load_tables(session: AsyncSession) -> list[DiningTable]:
    stmt: Select[tuple[DiningTable]] = select(DiningTable).order_by(DiningTable.number)
    return list((await session.execute(stmt)).scalars().all())


async def occupancy_at(session: AsyncSession, instant: datetime) -> list[TableStatus]:
    """Fresh occupancy snapshot from the committed reservation set."""
    stmt: Select[tuple[Reservation]] = select(Reservation).where(
        Reservation.status.in_(BLOCKING_STATUSES),
        Reservation.start_at <= instant,
        Reservation.end_at > instant,
    )
    reservations = (await session.execute(stmt)).scalars().unique().all()
    tables = await load_tables(session)
    return snapshot(tables, list(reservations), instant)


async def day_summary(
    session: AsyncSession,
    *,
    service_date: date,
    instant: datetime,
    grace_minutes: int = 15,
) -> DaySummary:
    stmt: Select[tuple[Reservation]] = (
        select(Reservation)
        .where(Reservation.service_date == service_date)
        .order_by(Reservation.start_at.asc())
    )
    reservations = (await session.execute(stmt)).scalars().unique().all()
    tables = await load_tables(session)
    return summarize_day(
        service_date,
        tables,
        list(reservations),
        instant,
        grace_minutes=grace_minutes,
    )
