"""Reservation status state machine and late-arrival detection."""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timedelta

from seating.core.errors import InvalidStatusTransition
from seating.models.reservation import Reservation, ReservationOrigin, ReservationStatus

logger = logging.getLogger(__name__)

_ALLOWED_STATUS_TRANSITIONS: dict[ReservationStatus, set[ReservationStatus]] = {
    ReservationStatus.PENDING: {
        ReservationStatus.CONFIRMED,
        ReservationStatus.SEATED,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    },
    ReservationStatus.CONFIRMED: {
        ReservationStatus.SEATED,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    },
    ReservationStatus.SEATED: {
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    },
    ReservationStatus.COMPLETED: set(),
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.NO_SHOW: set(),
}

TERMINAL_STATUSES: frozenset[ReservationStatus] = frozenset(
    status for status, targets in _ALLOWED_STATUS_TRANSITIONS.items() if not targets
)

_ATTENTION_STATUSES = {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}


class StatusCommand(str, enum.Enum):
    """Explicit staff actions that move a reservation through its lifecycle."""

    CONFIRM = "confirm"
    SEAT = "seat"
    COMPLETE = "complete"
    CANCEL = "cancel"
    MARK_NO_SHOW = "mark-no-show"

    @property
    def target(self) -> ReservationStatus:
        return _COMMAND_TARGETS[self]


_COMMAND_TARGETS: dict[StatusCommand, ReservationStatus] = {
    StatusCommand.CONFIRM: ReservationStatus.CONFIRMED,
    StatusCommand.SEAT: ReservationStatus.SEATED,
    StatusCommand.COMPLETE: ReservationStatus.COMPLETED,
    StatusCommand.CANCEL: ReservationStatus.CANCELLED,
    StatusCommand.MARK_NO_SHOW: ReservationStatus.NO_SHOW,
}


def initial_status(
    origin: ReservationOrigin,
    requested: ReservationStatus | None = None,
) -> ReservationStatus:
    """Customer bookings always start pending; staff choose (default confirmed)."""
    if origin == ReservationOrigin.CUSTOMER:
        return ReservationStatus.PENDING
    return requested or ReservationStatus.CONFIRMED


def is_terminal(status: ReservationStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    if target == current:
        return True
    return target in _ALLOWED_STATUS_TRANSITIONS.get(current, set())


def validate_status_transition(
    current: ReservationStatus,
    target: ReservationStatus,
    *,
    strict: bool = True,
) -> None:
    """Raise unless ``current -> target`` is legal.

    With ``strict=False`` any status may be assigned directly, which keeps the
    old free-form behaviour available to venues that rely on it.
    """
    if not strict:
        return
    if not can_transition(current, target):
        raise InvalidStatusTransition(
            f"Invalid status transition from {current.value} to {target.value}"
        )


def apply_status(
    reservation: Reservation,
    target: ReservationStatus,
    *,
    strict: bool = True,
) -> Reservation:
    """Assign ``target`` directly; never advances further on its own."""
    validate_status_transition(reservation.status, target, strict=strict)
    if reservation.status != target:
        logger.info(
            "Reservation %s status %s -> %s",
            reservation.id,
            reservation.status.value,
            target.value,
        )
        reservation.status = target
    return reservation


def apply_command(reservation: Reservation, command: StatusCommand) -> Reservation:
    """Run a staff command; commands are always checked against the transition table."""
    return apply_status(reservation, command.target, strict=True)


def needs_attention(
    status: ReservationStatus,
    start_at: datetime,
    now: datetime,
    grace_minutes: int = 15,
) -> bool:
    """A pending or confirmed party more than ``grace_minutes`` past its start."""
    return status in _ATTENTION_STATUSES and now > start_at + timedelta(minutes=grace_minutes)


def minutes_late(start_at: datetime, now: datetime) -> int:
    return max(int((now - start_at).total_seconds() // 60), 0)
