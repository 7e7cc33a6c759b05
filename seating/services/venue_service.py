"""Manage venue hours, closed dates and special events."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from seating.core.errors import ReservationValidationError
from seating.models.venue import ClosedDate, OpeningHour, SpecialEvent
from seating.schemas.venue import ClosedDateCreate, OpeningHourCreate, SpecialEventCreate

logger = logging.getLogger(__name__)


async def list_hours(session: AsyncSession) -> list[OpeningHour]:
    stmt: Select[tuple[OpeningHour]] = select(OpeningHour).order_by(
        OpeningHour.weekday.asc()
    )
    result = await session.execute(stmt)
    return list(result.scalars().unique().all())


async def _apply_hour(session: AsyncSession, payload: OpeningHourCreate) -> OpeningHour:
    existing_stmt = select(OpeningHour).where(OpeningHour.weekday == payload.weekday)
    existing = (await session.execute(existing_stmt)).scalar_one_or_none()
    if existing is None:
        hour = OpeningHour(
            weekday=payload.weekday,
            open_time=payload.open_time,
            close_time=payload.close_time,
            is_closed=payload.is_closed,
        )
        session.add(hour)
        return hour

    existing.open_time = payload.open_time
    existing.close_time = payload.close_time
    existing.is_closed = payload.is_closed
    return existing


async def replace_hours(
    session: AsyncSession, *, payloads: Sequence[OpeningHourCreate]
) -> list[OpeningHour]:
    """Upsert a batch of weekday rules in one transaction."""
    weekdays = [payload.weekday for payload in payloads]
    if len(set(weekdays)) != len(weekdays):
        raise ReservationValidationError("Each weekday may only appear once")
    for payload in payloads:
        await _apply_hour(session, payload)
    await session.commit()
    logger.info("Opening hours updated for weekday(s) %s", sorted(weekdays))
    return await list_hours(session)


async def list_closed_dates(session: AsyncSession) -> list[ClosedDate]:
    stmt: Select[tuple[ClosedDate]] = select(ClosedDate).order_by(ClosedDate.closed_on.asc())
    result = await session.execute(stmt)
    return list(result.scalars().unique().all())


async def create_closed_date(
    session: AsyncSession, *, payload: ClosedDateCreate
) -> ClosedDate:
    closure = ClosedDate(closed_on=payload.closed_on, reason=payload.reason)
    session.add(closure)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ReservationValidationError(
            f"{payload.closed_on.isoformat()} is already marked closed"
        ) from None
    await session.refresh(closure)
    return closure


async def get_closed_date(session: AsyncSession, *, closure_id: uuid.UUID) -> ClosedDate | None:
    return await session.get(ClosedDate, closure_id)


async def delete_closed_date(session: AsyncSession, *, closure: ClosedDate) -> None:
    await session.delete(closure)
    await session.commit()


async def list_special_events(session: AsyncSession) -> list[SpecialEvent]:
    stmt: Select[tuple[SpecialEvent]] = select(SpecialEvent).order_by(
        SpecialEvent.event_date.asc(), SpecialEvent.created_at.asc()
    )
    result = await session.execute(stmt)
    return list(result.scalars().unique().all())


async def create_special_event(
    session: AsyncSession, *, payload: SpecialEventCreate
) -> SpecialEvent:
    event = SpecialEvent(
        name=payload.name,
        event_date=payload.event_date,
        open_time=payload.open_time,
        close_time=payload.close_time,
        notes=payload.notes,
    )
    session.add(event)
    await session.commit()
    await session.refresh(event)
    return event


async def get_special_event(session: AsyncSession, *, event_id: uuid.UUID) -> SpecialEvent | None:
    return await session.get(SpecialEvent, event_id)


async def delete_special_event(session: AsyncSession, *, event: SpecialEvent) -> None:
    await session.delete(event)
    await session.commit()
