"""Reservation management service helpers."""
from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable, Sequence
from datetime import date, datetime, time
from typing import TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seating.core.config import get_settings
from seating.core.errors import (
    AvailabilityError,
    AvailabilityReason,
    BookingTimeout,
    ConflictError,
    ReservationNotFound,
    ReservationValidationError,
)
from seating.models.reservation import Reservation, ReservationOrigin, ReservationStatus
from seating.services import assignment_service, lifecycle_service
from seating.services.assignment_service import ReservationDraft
from seating.services.lifecycle_service import StatusCommand
from seating.services.slot_service import BookingPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_CONFLICT_RETRIES = 1


def _base_reservation_query():
    return select(Reservation).order_by(Reservation.start_at.asc())


async def list_reservations(
    session: AsyncSession,
    *,
    service_date: date | None = None,
    status: ReservationStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> Sequence[Reservation]:
    stmt = _base_reservation_query()
    if service_date is not None:
        stmt = stmt.where(Reservation.service_date == service_date)
    if status is not None:
        stmt = stmt.where(Reservation.status == status)
    result = await session.execute(stmt.offset(skip).limit(limit))
    return result.scalars().unique().all()


async def get_reservation(
    session: AsyncSession,
    *,
    reservation_id: uuid.UUID,
) -> Reservation:
    stmt = _base_reservation_query().where(Reservation.id == reservation_id)
    result = await session.execute(stmt)
    reservation = result.scalars().unique().one_or_none()
    if reservation is None:
        raise ReservationNotFound(f"Reservation {reservation_id} not found")
    return reservation


async def _with_conflict_retry(
    attempt: Callable[[], Awaitable[T]],
    *,
    label: str,
) -> T:
    """Run ``attempt``; a lost commit race is retried, then reported as full."""
    retries = 0
    while True:
        try:
            return await attempt()
        except ConflictError as exc:
            if retries >= MAX_CONFLICT_RETRIES:
                logger.warning("%s lost the commit race again; giving up", label)
                raise AvailabilityError(
                    AvailabilityReason.NO_CAPACITY,
                    "Tables for this time were just taken",
                ) from exc
            retries += 1
            logger.warning(
                "%s lost the commit race on table(s) %s; retrying",
                label,
                ",".join(sorted(str(table_id) for table_id in exc.table_ids)),
            )


async def _bounded(
    session: AsyncSession,
    work: Awaitable[T],
    timeout_seconds: float | None,
) -> T:
    """Run ``work`` under the booking timeout, rolling back on any failure."""
    if timeout_seconds is None:
        timeout_seconds = get_settings().booking_timeout_seconds
    try:
        async with asyncio.timeout(timeout_seconds):
            return await work
    except TimeoutError as exc:
        await session.rollback()
        raise BookingTimeout(
            f"Booking did not complete within {timeout_seconds:g} seconds"
        ) from exc
    except (Exception, asyncio.CancelledError):
        await session.rollback()
        raise


async def create_reservation(
    session: AsyncSession,
    draft: ReservationDraft,
    *,
    policy: BookingPolicy,
    reference_now: datetime,
    timeout_seconds: float | None = None,
) -> Reservation:
    """Check availability and commit a new reservation.

    A commit that loses a race to another booking is retried once against
    fresh data; a second loss surfaces as ``AvailabilityError(no-capacity)``.
    """
    assignment_service.validate_draft(draft)

    async def attempt() -> Reservation:
        return await assignment_service.assign(
            session, draft, policy=policy, reference_now=reference_now
        )

    return await _bounded(
        session,
        _with_conflict_retry(attempt, label=f"Booking for {draft.service_date}"),
        timeout_seconds,
    )


async def update_status(
    session: AsyncSession,
    *,
    reservation: Reservation,
    status: ReservationStatus,
    policy: BookingPolicy,
    strict: bool | None = None,
) -> Reservation:
    if strict is None:
        strict = get_settings().status_transitions_strict
    return await assignment_service.change_status(
        session, reservation, status, policy=policy, strict=strict
    )


async def run_command(
    session: AsyncSession,
    *,
    reservation: Reservation,
    command: StatusCommand,
) -> Reservation:
    lifecycle_service.apply_command(reservation, command)
    session.add(reservation)
    await session.commit()
    await session.refresh(reservation)
    return reservation


async def reassign_tables(
    session: AsyncSession,
    *,
    reservation: Reservation,
    table_ids: Sequence[uuid.UUID],
    policy: BookingPolicy,
    origin: ReservationOrigin | None = None,
    timeout_seconds: float | None = None,
) -> Reservation:
    return await _bounded(
        session,
        assignment_service.reassign_tables(
            session, reservation, table_ids, policy=policy, origin=origin
        ),
        timeout_seconds,
    )


def _clean_required(value: str | None, label: str) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ReservationValidationError(f"{label} is required")
    return value


async def update_reservation(
    session: AsyncSession,
    *,
    reservation: Reservation,
    policy: BookingPolicy,
    reference_now: datetime,
    customer_name: str | None = None,
    customer_email: str | None = None,
    customer_phone: str | None = None,
    special_requests: str | None = None,
    service_date: date | None = None,
    start_time: time | None = None,
    party_size: int | None = None,
    duration_minutes: int | None = None,
    timeout_seconds: float | None = None,
) -> Reservation:
    """Edit guest details and, when timing or party size change, reschedule."""
    customer_name = _clean_required(customer_name, "Name")
    customer_email = _clean_required(customer_email, "Email")
    customer_phone = _clean_required(customer_phone, "Phone")
    if customer_email is not None and "@" not in customer_email:
        raise ReservationValidationError("Email address is not valid")
    if party_size is not None and party_size <= 0:
        raise ReservationValidationError("Party size must be greater than 0")

    reschedule = any(
        value is not None
        for value in (service_date, start_time, party_size, duration_minutes)
    )
    if reschedule:
        target_date = service_date or reservation.service_date
        target_time = start_time or reservation.start_at.time()
        target_party = party_size or reservation.party_size
        target_duration = duration_minutes or reservation.duration_minutes

        async def attempt() -> Reservation:
            plan = await assignment_service.plan_reschedule(
                session,
                reservation,
                service_date=target_date,
                start_time=target_time,
                party_size=target_party,
                duration_minutes=target_duration,
                policy=policy,
                reference_now=reference_now,
            )
            return await assignment_service.commit_reschedule(
                session,
                reservation,
                plan,
                service_date=target_date,
                party_size=target_party,
                policy=policy,
            )

        await _bounded(
            session,
            _with_conflict_retry(attempt, label=f"Reschedule of {reservation.id}"),
            timeout_seconds,
        )

    changed = False
    for attr, value in (
        ("customer_name", customer_name),
        ("customer_email", customer_email),
        ("customer_phone", customer_phone),
        ("special_requests", special_requests),
    ):
        if value is not None and getattr(reservation, attr) != value:
            setattr(reservation, attr, value)
            changed = True
    if changed:
        session.add(reservation)
        await session.commit()
        await session.refresh(reservation)
    return reservation


__all__ = [
    "MAX_CONFLICT_RETRIES",
    "create_reservation",
    "get_reservation",
    "list_reservations",
    "reassign_tables",
    "run_command",
    "update_reservation",
    "update_status",
]
