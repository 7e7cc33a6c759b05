"""Dining table inventory."""
from __future__ import annotations

import enum
import uuid

from sqlalchemy import CheckConstraint, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from seating.db.base import Base
from seating.models.mixins import TimestampMixin


class TableSection(str, enum.Enum):
    """Floor sections a table can belong to."""

    INDOOR = "indoor"
    WINDOW = "window"
    BAR = "bar"
    OUTDOOR = "outdoor"
    PRIVATE = "private"


# Sections a customer-origin booking may ever be seated in.
CUSTOMER_SECTIONS: frozenset[TableSection] = frozenset(
    {TableSection.INDOOR, TableSection.WINDOW, TableSection.BAR}
)


class DiningTable(TimestampMixin, Base):
    """A physical table; capacity and section never change mid-booking."""

    __tablename__ = "dining_tables"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_dining_tables_capacity_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    number: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    section: Mapped[TableSection] = mapped_column(
        Enum(TableSection, values_callable=lambda members: [m.value for m in members]),
        nullable=False,
        default=TableSection.INDOOR,
    )
    label: Mapped[str | None] = mapped_column(String(64))

    def __repr__(self) -> str:
        return f"<DiningTable #{self.number} cap={self.capacity} {self.section.value}>"
