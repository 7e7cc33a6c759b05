"""Availability engine tests against in-memory venue state."""

from __future__ import annotations

import uuid
from datetime import date, datetime, time, timedelta

import pytest

from seating.core.errors import AvailabilityReason, ReservationValidationError
from seating.models.reservation import ReservationOrigin, ReservationStatus
from seating.models.table import TableSection
from seating.services import availability_service, calendar_service
from seating.services.availability_service import (
    AvailabilityQuery,
    BookedInterval,
    TableInfo,
)
from seating.services.calendar_service import HoursRule
from seating.services.slot_service import BookingPolicy

NOW = datetime(2025, 6, 2, 9, 0)
DAY = date(2025, 6, 3)

CALENDAR = calendar_service.build_calendar(
    [
        HoursRule(weekday=weekday, is_closed=False, open_time=time(17), close_time=time(23))
        for weekday in range(7)
    ],
    {date(2025, 6, 5): "Refit"},
)


def _table(number: int, capacity: int, section: TableSection = TableSection.INDOOR) -> TableInfo:
    return TableInfo(id=uuid.uuid4(), number=number, capacity=capacity, section=section)


def _booking(
    tables: list[TableInfo],
    start: datetime,
    minutes: int = 120,
    status: ReservationStatus = ReservationStatus.CONFIRMED,
) -> BookedInterval:
    return BookedInterval(
        reservation_id=uuid.uuid4(),
        start_at=start,
        end_at=start + timedelta(minutes=minutes),
        status=status,
        table_ids=frozenset(t.id for t in tables),
    )


def _evaluate(query: AvailabilityQuery, tables, bookings=(), policy: BookingPolicy | None = None):
    return availability_service.evaluate(
        query,
        calendar=CALENDAR,
        policy=policy or BookingPolicy(),
        tables=tables,
        bookings=list(bookings),
        reference_now=NOW,
    )


def test_touching_windows_do_not_overlap() -> None:
    start = datetime(2025, 6, 3, 19, 0)
    end = datetime(2025, 6, 3, 21, 0)
    assert not availability_service.intervals_overlap(start, end, end, end + timedelta(hours=1))
    assert availability_service.intervals_overlap(
        start, end, end - timedelta(minutes=1), end + timedelta(hours=1)
    )


def test_buffer_boundary() -> None:
    table = _table(1, 2)
    existing = _booking([table], datetime(2025, 6, 3, 19, 0))
    buffer = timedelta(minutes=15)

    early = datetime(2025, 6, 3, 21, 10)
    assert availability_service.conflicting_table_ids(
        [table.id], [existing], early, early + timedelta(hours=2), buffer
    ) == {table.id}

    on_time = datetime(2025, 6, 3, 21, 15)
    assert availability_service.conflicting_table_ids(
        [table.id], [existing], on_time, on_time + timedelta(hours=2), buffer
    ) == set()


def test_buffer_boundary_through_the_engine() -> None:
    table = _table(1, 2)
    existing = _booking([table], datetime(2025, 6, 3, 19, 0))
    policy = BookingPolicy(slot_granularity_minutes=5, max_duration_minutes=90)

    def ask(at: time):
        return _evaluate(
            AvailabilityQuery(
                service_date=DAY,
                start_time=at,
                party_size=2,
                origin=ReservationOrigin.ADMINISTRATIVE,
            ),
            [table],
            [existing],
            policy,
        )

    blocked = ask(time(21, 10))
    assert not blocked.available
    assert blocked.reason == AvailabilityReason.NO_CAPACITY
    assert ask(time(21, 15)).available


def test_customer_party_never_gets_outdoor_table() -> None:
    t1, t2 = _table(1, 2), _table(2, 3)
    t3 = _table(3, 6, TableSection.OUTDOOR)
    result = _evaluate(
        AvailabilityQuery(service_date=DAY, start_time=time(19), party_size=5),
        [t1, t2, t3],
    )
    assert result.available
    assert set(result.table_ids) == {t1.id, t2.id}
    assert result.capacity == 5


def test_customer_cannot_reach_outdoor_even_when_requested() -> None:
    patio = _table(1, 4, TableSection.OUTDOOR)
    result = _evaluate(
        AvailabilityQuery(
            service_date=DAY,
            start_time=time(19),
            party_size=2,
            sections=frozenset({TableSection.OUTDOOR}),
        ),
        [patio],
    )
    assert not result.available
    assert result.reason == AvailabilityReason.NO_CAPACITY


def test_administrative_request_may_use_outdoor() -> None:
    patio = _table(1, 4, TableSection.OUTDOOR)
    result = _evaluate(
        AvailabilityQuery(
            service_date=DAY,
            start_time=time(19),
            party_size=4,
            origin=ReservationOrigin.ADMINISTRATIVE,
        ),
        [patio],
    )
    assert result.available
    assert result.table_ids == [patio.id]


def test_combination_prefers_least_surplus_then_fewest_tables_then_lowest_numbers() -> None:
    tables = [_table(1, 2), _table(2, 2), _table(3, 4), _table(4, 4), _table(5, 6)]
    chosen = availability_service.best_combination(tables, 4)
    assert chosen is not None
    assert [t.number for t in chosen] == [3]

    chosen = availability_service.best_combination(tables, 8)
    assert chosen is not None
    assert [t.number for t in chosen] == [1, 5]

    chosen = availability_service.best_combination(tables, 5)
    assert chosen is not None
    assert [t.number for t in chosen] == [5]


def test_combination_none_when_capacity_short() -> None:
    assert availability_service.best_combination([_table(1, 2), _table(2, 2)], 5) is None
    assert availability_service.best_combination([], 2) is None


def test_closed_date_is_rejected() -> None:
    result = _evaluate(
        AvailabilityQuery(service_date=date(2025, 6, 5), start_time=time(19), party_size=2),
        [_table(1, 2)],
    )
    assert result.reason == AvailabilityReason.CLOSED


@pytest.mark.parametrize(
    ("service_date", "start_time"),
    [
        (date(2025, 6, 1), time(19)),
        (NOW.date() + timedelta(days=31), time(19)),
        (DAY, time(22, 0)),
        (DAY, time(19, 10)),
    ],
)
def test_outside_policy_window(service_date: date, start_time: time) -> None:
    result = _evaluate(
        AvailabilityQuery(service_date=service_date, start_time=start_time, party_size=2),
        [_table(1, 2)],
    )
    assert not result.available
    assert result.reason == AvailabilityReason.OUTSIDE_POLICY_WINDOW


def test_large_online_party_is_refused_but_staff_can_book_it() -> None:
    tables = [_table(1, 8)]
    customer = _evaluate(
        AvailabilityQuery(service_date=DAY, start_time=time(19), party_size=7), tables
    )
    assert customer.reason == AvailabilityReason.PARTY_TOO_LARGE

    staff = _evaluate(
        AvailabilityQuery(
            service_date=DAY,
            start_time=time(19),
            party_size=7,
            origin=ReservationOrigin.ADMINISTRATIVE,
        ),
        tables,
    )
    assert staff.available


def test_threshold_applies_to_customer_origin_only() -> None:
    tables = [_table(1, 4), _table(2, 4), _table(3, 2)]
    bookings = [_booking(tables[:2], datetime(2025, 6, 3, 19, 0))]
    query = AvailabilityQuery(service_date=DAY, start_time=time(19, 30), party_size=2)

    customer = _evaluate(query, tables, bookings)
    assert not customer.available
    assert customer.reason == AvailabilityReason.THRESHOLD_EXCEEDED

    staff = _evaluate(
        AvailabilityQuery(
            service_date=DAY,
            start_time=time(19, 30),
            party_size=2,
            origin=ReservationOrigin.ADMINISTRATIVE,
        ),
        tables,
        bookings,
    )
    assert staff.available
    assert staff.table_ids == [tables[2].id]


def test_threshold_measures_against_whole_venue_capacity() -> None:
    # Customers can reach 4 seats, but the venue holds 10.
    tables = [
        _table(1, 2),
        _table(2, 2, TableSection.WINDOW),
        _table(3, 6, TableSection.OUTDOOR),
    ]
    bookings = [_booking(tables[:1], datetime(2025, 6, 3, 19, 0))]
    query = AvailabilityQuery(service_date=DAY, start_time=time(19, 0), party_size=2)

    result = _evaluate(query, tables, bookings)
    assert result.available
    assert result.table_ids == [tables[1].id]
    assert not availability_service.exceeds_threshold(
        BookingPolicy(), tables, bookings, result.tables, result.start_at, result.end_at
    )
    assert availability_service.exceeds_threshold(
        BookingPolicy(), tables[:2], bookings, result.tables, result.start_at, result.end_at
    )


def test_cancelled_and_no_show_bookings_release_tables() -> None:
    table = _table(1, 2)
    bookings = [
        _booking([table], datetime(2025, 6, 3, 19, 0), status=ReservationStatus.CANCELLED),
        _booking([table], datetime(2025, 6, 3, 19, 0), status=ReservationStatus.NO_SHOW),
    ]
    result = _evaluate(
        AvailabilityQuery(
            service_date=DAY,
            start_time=time(19),
            party_size=2,
            origin=ReservationOrigin.ADMINISTRATIVE,
        ),
        [table],
        bookings,
    )
    assert result.available


def test_excluded_reservation_does_not_block_itself() -> None:
    table = _table(1, 2)
    own = _booking([table], datetime(2025, 6, 3, 19, 0))
    query = AvailabilityQuery(
        service_date=DAY,
        start_time=time(19, 30),
        party_size=2,
        origin=ReservationOrigin.ADMINISTRATIVE,
        exclude_reservation_id=own.reservation_id,
    )
    assert _evaluate(query, [table], [own]).available


def test_repeated_checks_agree() -> None:
    tables = [_table(1, 2), _table(2, 3), _table(3, 4)]
    bookings = [_booking([tables[2]], datetime(2025, 6, 3, 18, 0))]
    query = AvailabilityQuery(service_date=DAY, start_time=time(19), party_size=4)
    first = _evaluate(query, tables, bookings)
    second = _evaluate(query, tables, bookings)
    assert first == second


@pytest.mark.parametrize("duration", [0, -30, 121])
def test_invalid_duration_raises(duration: int) -> None:
    with pytest.raises(ReservationValidationError):
        _evaluate(
            AvailabilityQuery(
                service_date=DAY, start_time=time(19), party_size=2, duration_minutes=duration
            ),
            [_table(1, 2)],
        )


def test_non_positive_party_raises() -> None:
    with pytest.raises(ReservationValidationError):
        _evaluate(
            AvailabilityQuery(service_date=DAY, start_time=time(19), party_size=0),
            [_table(1, 2)],
        )


def test_shorter_duration_shrinks_the_window() -> None:
    result = _evaluate(
        AvailabilityQuery(
            service_date=DAY, start_time=time(19), party_size=2, duration_minutes=60
        ),
        [_table(1, 2)],
    )
    assert result.end_at == datetime(2025, 6, 3, 20, 0)
