"""Service layer exports."""
from seating.services import (
    assignment_service,
    availability_service,
    calendar_service,
    lifecycle_service,
    occupancy_service,
    reservation_service,
    slot_service,
    table_service,
    venue_service,
)

__all__ = [
    "assignment_service",
    "availability_service",
    "calendar_service",
    "lifecycle_service",
    "occupancy_service",
    "reservation_service",
    "slot_service",
    "table_service",
    "venue_service",
]
