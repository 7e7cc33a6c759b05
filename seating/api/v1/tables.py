"""Dining table inventory endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from seating.api import deps
from seating.models.table import TableSection
from seating.schemas.table import (
    SlotTables,
    TableAvailabilityRead,
    TableCreate,
    TableRead,
    TableUpdate,
)
from seating.services import availability_service, table_service
from seating.services.slot_service import BookingPolicy

router = APIRouter()


@router.get("", response_model=list[TableRead], summary="List tables")
async def list_tables(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    section: TableSection | None = None,
) -> list[TableRead]:
    tables = await table_service.list_tables(session, section=section)
    return [TableRead.model_validate(table) for table in tables]


@router.post(
    "",
    response_model=TableRead,
    status_code=status.HTTP_201_CREATED,
    summary="Add table",
)
async def create_table(
    payload: TableCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> TableRead:
    table = await table_service.create_table(session, **payload.model_dump())
    return TableRead.model_validate(table)


@router.patch("/{table_id}", response_model=TableRead, summary="Update table")
async def update_table(
    table_id: uuid.UUID,
    payload: TableUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> TableRead:
    table = await table_service.get_table(session, table_id=table_id)
    if table is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Table not found")
    updated = await table_service.update_table(
        session, table=table, **payload.model_dump(exclude_unset=True)
    )
    return TableRead.model_validate(updated)


@router.get(
    "/availability/{service_date}",
    response_model=TableAvailabilityRead,
    summary="Free tables per slot",
)
async def table_availability(
    service_date: date,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    policy: Annotated[BookingPolicy, Depends(deps.get_policy)],
    reference_now: Annotated[datetime, Depends(deps.get_reference_now)],
) -> TableAvailabilityRead:
    grid = await availability_service.table_availability(
        session,
        service_date=service_date,
        policy=policy,
        reference_now=reference_now,
    )
    return TableAvailabilityRead(
        service_date=service_date,
        slots=[
            SlotTables(start_at=start_at, table_ids=table_ids)
            for start_at, table_ids in grid.items()
        ],
    )
