"""Dining table inventory services."""
from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from seating.core.errors import ReservationValidationError
from seating.models.table import DiningTable, TableSection


async def list_tables(
    session: AsyncSession,
    *,
    section: TableSection | None = None,
) -> list[DiningTable]:
    """Return the venue's tables ordered by number."""
    stmt = select(DiningTable).order_by(DiningTable.number)
    if section is not None:
        stmt = stmt.where(DiningTable.section == section)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_table(session: AsyncSession, *, table_id: uuid.UUID) -> DiningTable | None:
    return await session.get(DiningTable, table_id)


async def _ensure_number_free(
    session: AsyncSession, *, number: int, exclude_id: uuid.UUID | None = None
) -> None:
    stmt = select(DiningTable.id).where(DiningTable.number == number)
    if exclude_id is not None:
        stmt = stmt.where(DiningTable.id != exclude_id)
    if (await session.execute(stmt)).first() is not None:
        raise ReservationValidationError(f"Table number {number} is already in use")


def _validate_capacity(capacity: int) -> None:
    if capacity <= 0:
        raise ReservationValidationError("Table capacity must be greater than 0")


async def create_table(
    session: AsyncSession,
    *,
    number: int,
    capacity: int,
    section: TableSection,
    label: str | None = None,
) -> DiningTable:
    """Add a table to the venue inventory."""
    _validate_capacity(capacity)
    await _ensure_number_free(session, number=number)
    table = DiningTable(number=number, capacity=capacity, section=section, label=label)
    session.add(table)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise
    await session.refresh(table)
    return table


async def update_table(
    session: AsyncSession,
    *,
    table: DiningTable,
    number: int | None = None,
    capacity: int | None = None,
    section: TableSection | None = None,
    label: str | None = None,
) -> DiningTable:
    """Update table attributes; existing reservations keep their assignment."""
    if number is not None and number != table.number:
        await _ensure_number_free(session, number=number, exclude_id=table.id)
        table.number = number
    if capacity is not None:
        _validate_capacity(capacity)
        table.capacity = capacity
    if section is not None:
        table.section = section
    if label is not None:
        table.label = label
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise
    await session.refresh(table)
    return table
