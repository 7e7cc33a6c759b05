"""Venue hours, closures, special events and booking policy."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from seating.api import deps
from seating.schemas.venue import (
    BookingPolicyRead,
    ClosedDateCreate,
    ClosedDateRead,
    OpeningHourCreate,
    OpeningHourRead,
    SpecialEventCreate,
    SpecialEventRead,
)
from seating.services import venue_service
from seating.services.slot_service import BookingPolicy

router = APIRouter()


@router.get("/hours", response_model=list[OpeningHourRead])
async def list_hours(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[OpeningHourRead]:
    hours = await venue_service.list_hours(session)
    return [OpeningHourRead.model_validate(hour) for hour in hours]


@router.put("/hours", response_model=list[OpeningHourRead])
async def replace_hours(
    payload: list[OpeningHourCreate],
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[OpeningHourRead]:
    hours = await venue_service.replace_hours(session, payloads=payload)
    return [OpeningHourRead.model_validate(hour) for hour in hours]


@router.get("/closed-dates", response_model=list[ClosedDateRead])
async def list_closed_dates(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[ClosedDateRead]:
    closures = await venue_service.list_closed_dates(session)
    return [ClosedDateRead.model_validate(closure) for closure in closures]


@router.post(
    "/closed-dates",
    response_model=ClosedDateRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_closed_date(
    payload: ClosedDateCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ClosedDateRead:
    closure = await venue_service.create_closed_date(session, payload=payload)
    return ClosedDateRead.model_validate(closure)


@router.delete("/closed-dates/{closure_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_closed_date(
    closure_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> Response:
    closure = await venue_service.get_closed_date(session, closure_id=closure_id)
    if closure is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Closed date not found")
    await venue_service.delete_closed_date(session, closure=closure)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/special-events", response_model=list[SpecialEventRead])
async def list_special_events(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> list[SpecialEventRead]:
    events = await venue_service.list_special_events(session)
    return [SpecialEventRead.model_validate(event) for event in events]


@router.post(
    "/special-events",
    response_model=SpecialEventRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_special_event(
    payload: SpecialEventCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> SpecialEventRead:
    event = await venue_service.create_special_event(session, payload=payload)
    return SpecialEventRead.model_validate(event)


@router.delete("/special-events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_special_event(
    event_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> Response:
    event = await venue_service.get_special_event(session, event_id=event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Special event not found")
    await venue_service.delete_special_event(session, event=event)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/policy", response_model=BookingPolicyRead)
async def read_policy(
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
) -> BookingPolicyRead:
    return BookingPolicyRead.model_validate(policy)
