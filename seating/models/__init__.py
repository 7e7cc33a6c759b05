"""ORM models package export."""

from seating.models.reservation import (
    BLOCKING_STATUSES,
    Reservation,
    ReservationOrigin,
    ReservationStatus,
    reservation_tables,
)
from seating.models.table import CUSTOMER_SECTIONS, DiningTable, TableSection
from seating.models.venue import ClosedDate, OpeningHour, SpecialEvent

__all__ = [
    "BLOCKING_STATUSES",
    "CUSTOMER_SECTIONS",
    "ClosedDate",
    "DiningTable",
    "OpeningHour",
    "Reservation",
    "ReservationOrigin",
    "ReservationStatus",
    "SpecialEvent",
    "TableSection",
    "reservation_tables",
]
