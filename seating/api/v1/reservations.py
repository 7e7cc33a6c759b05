"""Reservation management API."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from seating.api import deps
from seating.models.reservation import ReservationStatus
from seating.schemas.reservation import (
    ReservationCreate,
    ReservationRead,
    ReservationStatusUpdate,
    ReservationTablesUpdate,
    ReservationUpdate,
)
from seating.services import reservation_service
from seating.services.assignment_service import ReservationDraft
from seating.services.lifecycle_service import StatusCommand
from seating.services.slot_service import BookingPolicy

router = APIRouter()


@router.get("", response_model=list[ReservationRead], summary="List reservations")
async def list_reservations(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    service_date: Annotated[date | None, Query(alias="date")] = None,
    reservation_status: Annotated[ReservationStatus | None, Query(alias="status")] = None,
    skip: int = 0,
    limit: int = 50,
) -> list[ReservationRead]:
    reservations = await reservation_service.list_reservations(
        session,
        service_date=service_date,
        status=reservation_status,
        skip=skip,
        limit=min(limit, 200),
    )
    return [ReservationRead.model_validate(obj) for obj in reservations]


@router.post(
    "",
    response_model=ReservationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create reservation",
    dependencies=[deps.BOOKING_RATE_LIMIT],
)
async def create_reservation(
    payload: ReservationCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
    reference_now: Annotated[datetime, Depends(deps.get_reference_now)],
) -> ReservationRead:
    draft = ReservationDraft(
        customer_name=payload.customer.name,
        customer_email=str(payload.customer.email),
        customer_phone=payload.customer.phone,
        party_size=payload.party_size,
        service_date=payload.service_date,
        start_time=payload.start_time,
        origin=payload.origin,
        duration_minutes=payload.duration_minutes,
        special_requests=payload.special_requests,
        table_ids=payload.table_ids,
        status=payload.status,
    )
    try:
        reservation = await reservation_service.create_reservation(
            session, draft, policy=policy, reference_now=reference_now
        )
    except IntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to create reservation",
        ) from exc
    return ReservationRead.model_validate(reservation)


@router.get(
    "/{reservation_id}", response_model=ReservationRead, summary="Get reservation"
)
async def get_reservation(
    reservation_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    return ReservationRead.model_validate(reservation)


@router.patch(
    "/{reservation_id}", response_model=ReservationRead, summary="Update reservation"
)
async def update_reservation(
    reservation_id: uuid.UUID,
    payload: ReservationUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
    reference_now: Annotated[datetime, Depends(deps.get_reference_now)],
) -> ReservationRead:
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    changes = payload.model_dump(exclude_unset=True)
    if "customer_email" in changes and changes["customer_email"] is not None:
        changes["customer_email"] = str(changes["customer_email"])
    try:
        updated = await reservation_service.update_reservation(
            session,
            reservation=reservation,
            policy=policy,
            reference_now=reference_now,
            **changes,
        )
    except IntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unable to update reservation",
        ) from exc
    return ReservationRead.model_validate(updated)


@router.put(
    "/{reservation_id}/status",
    response_model=ReservationRead,
    summary="Set reservation status",
)
async def update_reservation_status(
    reservation_id: uuid.UUID,
    payload: ReservationStatusUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
) -> ReservationRead:
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    updated = await reservation_service.update_status(
        session, reservation=reservation, status=payload.status, policy=policy
    )
    return ReservationRead.model_validate(updated)


@router.post(
    "/{reservation_id}/actions/{command}",
    response_model=ReservationRead,
    summary="Run a lifecycle command",
)
async def run_reservation_command(
    reservation_id: uuid.UUID,
    command: StatusCommand,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> ReservationRead:
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    updated = await reservation_service.run_command(
        session, reservation=reservation, command=command
    )
    return ReservationRead.model_validate(updated)


@router.put(
    "/{reservation_id}/tables",
    response_model=ReservationRead,
    summary="Reassign reservation tables",
)
async def reassign_reservation_tables(
    reservation_id: uuid.UUID,
    payload: ReservationTablesUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
) -> ReservationRead:
    reservation = await reservation_service.get_reservation(
        session, reservation_id=reservation_id
    )
    updated = await reservation_service.reassign_tables(
        session,
        reservation=reservation,
        table_ids=payload.table_ids,
        policy=policy,
        origin=payload.origin,
    )
    return ReservationRead.model_validate(updated)
