"""Reservation models."""
from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Table,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from seating.db.base import Base
from seating.models.mixins import TimestampMixin
from seating.models.table import DiningTable


def _enum_values(members: type[enum.Enum]) -> list[str]:
    return [member.value for member in members]


class ReservationStatus(str, enum.Enum):
    """Lifecycle states for reservations."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SEATED = "seated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class ReservationOrigin(str, enum.Enum):
    """Which booking flow created the reservation."""

    CUSTOMER = "customer"
    ADMINISTRATIVE = "administrative"


# Statuses that still hold their tables.
BLOCKING_STATUSES: frozenset[ReservationStatus] = frozenset(
    {
        ReservationStatus.PENDING,
        ReservationStatus.CONFIRMED,
        ReservationStatus.SEATED,
        ReservationStatus.COMPLETED,
    }
)


reservation_tables = Table(
    "reservation_tables",
    Base.metadata,
    Column(
        "reservation_id",
        ForeignKey("reservations.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "table_id",
        ForeignKey("dining_tables.id", ondelete="RESTRICT"),
        primary_key=True,
    ),
)


class Reservation(TimestampMixin, Base):
    """A party booked onto zero or more tables for a time window."""

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("party_size > 0", name="ck_reservations_party_size_positive"),
        CheckConstraint("end_at > start_at", name="ck_reservations_window_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str] = mapped_column(String(64), nullable=False)
    party_size: Mapped[int] = mapped_column(Integer, nullable=False)
    service_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        Enum(ReservationStatus, values_callable=_enum_values),
        default=ReservationStatus.PENDING,
        nullable=False,
    )
    origin: Mapped[ReservationOrigin] = mapped_column(
        Enum(ReservationOrigin, values_callable=_enum_values),
        default=ReservationOrigin.CUSTOMER,
        nullable=False,
    )
    special_requests: Mapped[str | None] = mapped_column(String(1024))

    tables: Mapped[list[DiningTable]] = relationship(
        DiningTable,
        secondary=reservation_tables,
        lazy="selectin",
        order_by=DiningTable.number,
    )

    @property
    def table_ids(self) -> frozenset[uuid.UUID]:
        return frozenset(table.id for table in self.tables)

    @property
    def is_grouped(self) -> bool:
        """True when the party spans more than one table."""
        return len(self.tables) > 1

    @property
    def duration_minutes(self) -> int:
        return int((self.end_at - self.start_at).total_seconds() // 60)
