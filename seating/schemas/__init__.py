"""Schema exports."""

from seating.schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityRead,
    AvailableDatesRead,
    SlotRead,
)
from seating.schemas.occupancy import (
    DaySummaryRead,
    LateAlertRead,
    OccupancyRead,
    TableStatusRead,
)
from seating.schemas.reservation import (
    CustomerDetails,
    ReservationCreate,
    ReservationRead,
    ReservationStatusUpdate,
    ReservationTablesUpdate,
    ReservationUpdate,
)
from seating.schemas.table import (
    SlotTables,
    TableAvailabilityRead,
    TableCreate,
    TableRead,
    TableUpdate,
)
from seating.schemas.venue import (
    BookingPolicyRead,
    ClosedDateCreate,
    ClosedDateRead,
    OpeningHourCreate,
    OpeningHourRead,
    SpecialEventCreate,
    SpecialEventRead,
)

__all__ = [
    "AvailabilityCheckRequest",
    "AvailabilityRead",
    "AvailableDatesRead",
    "BookingPolicyRead",
    "ClosedDateCreate",
    "ClosedDateRead",
    "CustomerDetails",
    "DaySummaryRead",
    "LateAlertRead",
    "OccupancyRead",
    "OpeningHourCreate",
    "OpeningHourRead",
    "ReservationCreate",
    "ReservationRead",
    "ReservationStatusUpdate",
    "ReservationTablesUpdate",
    "ReservationUpdate",
    "SlotRead",
    "SlotTables",
    "SpecialEventCreate",
    "SpecialEventRead",
    "TableAvailabilityRead",
    "TableCreate",
    "TableRead",
    "TableStatusRead",
    "TableUpdate",
]
