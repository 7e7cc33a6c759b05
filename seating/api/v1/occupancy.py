"""Live floor occupancy and the daily dashboard."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from seating.api import deps
from seating.core.clock import to_venue_time
from seating.schemas.occupancy import DaySummaryRead, OccupancyRead, TableStatusRead
from seating.services import occupancy_service
from seating.services.slot_service import BookingPolicy

router = APIRouter()


@router.get("", response_model=OccupancyRead, summary="Table occupancy at an instant")
async def occupancy(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    reference_now: Annotated[datetime, Depends(deps.get_reference_now)],
    at: Annotated[datetime | None, Query()] = None,
) -> OccupancyRead:
    instant = to_venue_time(at) if at is not None else reference_now
    statuses = await occupancy_service.occupancy_at(session, instant)
    return OccupancyRead(
        at=instant,
        tables=[TableStatusRead.model_validate(item) for item in statuses],
    )


@router.get("/summary", response_model=DaySummaryRead, summary="Daily dashboard")
async def day_summary(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
    reference_now: Annotated[datetime, Depends(deps.get_reference_now)],
    service_date: Annotated[date | None, Query(alias="date")] = None,
    at: Annotated[datetime | None, Query()] = None,
) -> DaySummaryRead:
    instant = to_venue_time(at) if at is not None else reference_now
    summary = await occupancy_service.day_summary(
        session,
        service_date=service_date or instant.date(),
        instant=instant,
        grace_minutes=policy.late_grace_minutes,
    )
    return DaySummaryRead.model_validate(summary)
