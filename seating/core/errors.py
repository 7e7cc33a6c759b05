"""Booking error taxonomy shared by services and the HTTP layer."""

from __future__ import annotations

import enum
import uuid


class AvailabilityReason(str, enum.Enum):
    """Reason tags attached to a negative availability answer."""

    CLOSED = "closed"
    OUTSIDE_POLICY_WINDOW = "outside-policy-window"
    PARTY_TOO_LARGE = "party-too-large"
    NO_CAPACITY = "no-capacity"
    THRESHOLD_EXCEEDED = "threshold-exceeded"


class BookingError(Exception):
    """Base class for every error raised by the booking core."""

    code = "booking_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(BookingError):
    """Venue hours or booking policy are unusable."""

    code = "configuration_error"


class ReservationValidationError(BookingError):
    """The request is malformed and was rejected before any availability work."""

    code = "validation_error"


class AvailabilityError(BookingError):
    """The venue cannot honor the request; expected and user-facing."""

    code = "availability_error"

    def __init__(self, reason: AvailabilityReason, message: str | None = None) -> None:
        super().__init__(message or f"Reservation unavailable: {reason.value}")
        self.reason = reason


class ConflictError(BookingError):
    """A concurrent commit claimed one of the tables first."""

    code = "conflict"

    def __init__(self, message: str, table_ids: frozenset[uuid.UUID] = frozenset()) -> None:
        super().__init__(message)
        self.table_ids = table_ids


class InvariantViolation(BookingError):
    """The request would break a hard reservation invariant."""

    code = "invariant_violation"


class ReservationNotFound(BookingError):
    code = "not_found"


class BookingTimeout(BookingError):
    """The check and commit did not finish within the configured time."""

    code = "timeout"


class InvalidStatusTransition(BookingError):
    code = "invalid_status_transition"


__all__ = [
    "AvailabilityError",
    "AvailabilityReason",
    "BookingError",
    "BookingTimeout",
    "ConfigurationError",
    "ConflictError",
    "InvalidStatusTransition",
    "InvariantViolation",
    "ReservationNotFound",
    "ReservationValidationError",
]
