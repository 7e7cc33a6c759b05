"""Availability lookups for the booking form and staff tools."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from seating.api import deps
from seating.models.reservation import ReservationOrigin
from seating.schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityRead,
    AvailableDatesRead,
    SlotRead,
)
from seating.services import availability_service
from seating.services.availability_service import AvailabilityQuery
from seating.services.slot_service import BookingPolicy

router = APIRouter()


@router.post(
    "/check",
    response_model=AvailabilityRead,
    summary="Check a slot",
    dependencies=[deps.DEFAULT_RATE_LIMIT],
)
async def check_availability(
    payload: AvailabilityCheckRequest,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
    reference_now: Annotated[datetime, Depends(deps.get_reference_now)],
) -> AvailabilityRead:
    """Answer whether the party fits; rejections carry a reason tag, not an error status."""
    result = await availability_service.check_availability(
        session,
        AvailabilityQuery(
            service_date=payload.service_date,
            start_time=payload.start_time,
            party_size=payload.party_size,
            origin=payload.origin,
            duration_minutes=payload.duration_minutes,
            sections=payload.sections(),
        ),
        policy=policy,
        reference_now=reference_now,
    )
    return AvailabilityRead.model_validate(result)


@router.get(
    "/slots",
    response_model=list[SlotRead],
    summary="Slots for a date",
    dependencies=[deps.DEFAULT_RATE_LIMIT],
)
async def list_slots(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
    reference_now: Annotated[datetime, Depends(deps.get_reference_now)],
    service_date: Annotated[date, Query(alias="date")],
    party_size: Annotated[int, Query(gt=0)] = 2,
    origin: ReservationOrigin = ReservationOrigin.CUSTOMER,
) -> list[SlotRead]:
    slots = await availability_service.list_available_slots(
        session,
        service_date=service_date,
        party_size=party_size,
        origin=origin,
        policy=policy,
        reference_now=reference_now,
    )
    return [SlotRead.model_validate(slot) for slot in slots]


@router.get(
    "/dates",
    response_model=AvailableDatesRead,
    summary="Bookable dates",
    dependencies=[deps.DEFAULT_RATE_LIMIT],
)
async def list_dates(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
    reference_now: Annotated[datetime, Depends(deps.get_reference_now)],
    party_size: Annotated[int | None, Query(gt=0)] = None,
    origin: ReservationOrigin = ReservationOrigin.CUSTOMER,
) -> AvailableDatesRead:
    days = await availability_service.available_dates(
        session,
        policy=policy,
        reference_now=reference_now,
        party_size=party_size,
        origin=origin,
    )
    return AvailableDatesRead(dates=days)
