"""Initial seating schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "opening_hours",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("open_time", sa.Time()),
        sa.Column("close_time", sa.Time()),
        sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("weekday", name="uq_opening_hours_weekday"),
    )

    op.create_table(
        "closed_dates",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("closed_on", sa.Date(), nullable=False, unique=True),
        sa.Column("reason", sa.String(length=255)),
        *_timestamps(),
    )

    op.create_table(
        "special_events",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("open_time", sa.Time()),
        sa.Column("close_time", sa.Time()),
        sa.Column("notes", sa.String(length=1024)),
        *_timestamps(),
    )
    op.create_index("ix_special_events_event_date", "special_events", ["event_date"])

    table_section_enum = sa.Enum(
        "indoor", "window", "bar", "outdoor", "private", name="tablesection"
    )
    op.create_table(
        "dining_tables",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("number", sa.Integer(), nullable=False, unique=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("section", table_section_enum, nullable=False),
        sa.Column("label", sa.String(length=64)),
        *_timestamps(),
        sa.CheckConstraint("capacity > 0", name="ck_dining_tables_capacity_positive"),
    )

    reservation_status_enum = sa.Enum(
        "pending",
        "confirmed",
        "seated",
        "completed",
        "cancelled",
        "no-show",
        name="reservationstatus",
    )
    reservation_origin_enum = sa.Enum(
        "customer", "administrative", name="reservationorigin"
    )
    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("customer_email", sa.String(length=255), nullable=False),
        sa.Column("customer_phone", sa.String(length=64), nullable=False),
        sa.Column("party_size", sa.Integer(), nullable=False),
        sa.Column("service_date", sa.Date(), nullable=False),
        sa.Column("start_at", sa.DateTime(), nullable=False),
        sa.Column("end_at", sa.DateTime(), nullable=False),
        sa.Column("status", reservation_status_enum, nullable=False),
        sa.Column("origin", reservation_origin_enum, nullable=False),
        sa.Column("special_requests", sa.String(length=1024)),
        *_timestamps(),
        sa.CheckConstraint("party_size > 0", name="ck_reservations_party_size_positive"),
        sa.CheckConstraint("end_at > start_at", name="ck_reservations_window_order"),
    )
    op.create_index("ix_reservations_service_date", "reservations", ["service_date"])
    op.create_index("ix_reservations_start_at", "reservations", ["start_at"])

    op.create_table(
        "reservation_tables",
        sa.Column(
            "reservation_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("reservations.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "table_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("dining_tables.id", ondelete="RESTRICT"),
            primary_key=True,
        ),
    )


def downgrade() -> None:
    op.drop_table("reservation_tables")
    op.drop_index("ix_reservations_start_at", table_name="reservations")
    op.drop_index("ix_reservations_service_date", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("dining_tables")
    op.drop_index("ix_special_events_event_date", table_name="special_events")
    op.drop_table("special_events")
    op.drop_table("closed_dates")
    op.drop_table("opening_hours")
    sa.Enum(name="reservationorigin").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="reservationstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="tablesection").drop(op.get_bind(), checkfirst=True)
