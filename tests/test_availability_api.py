"""Availability, table grid and occupancy endpoints."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

from seating.api import deps
from seating.main import app
from seating.services.slot_service import BookingPolicy

pytestmark = pytest.mark.asyncio


def _booking(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "customer": {"name": "Sam Guest", "email": "sam@example.com", "phone": "+1 555 010 1234"},
        "party_size": 2,
        "date": "2025-06-03",
        "time": "19:00",
    }
    payload.update(overrides)
    return payload


async def test_check_reports_tables_without_outdoor(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.post(
        "/api/v1/availability/check",
        json={"date": "2025-06-03", "time": "19:00", "party_size": 5},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["available"] is True
    assert body["reason"] is None
    assert all(table["section"] != "outdoor" for table in body["tables"])
    assert sum(table["capacity"] for table in body["tables"]) >= 5


async def test_check_rejections_carry_reason(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.post(
        "/api/v1/availability/check",
        json={"date": "2025-06-03", "time": "22:00", "party_size": 2},
    )
    assert response.status_code == 200
    assert response.json()["available"] is False
    assert response.json()["reason"] == "outside-policy-window"

    bad = await client.post(
        "/api/v1/availability/check",
        json={"date": "2025-06-03", "time": "19:00", "party_size": 2, "duration_minutes": 180},
    )
    assert bad.status_code == 422


async def test_staff_check_can_exclude_outdoor(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.post(
        "/api/v1/availability/check",
        json={
            "date": "2025-06-03",
            "time": "19:00",
            "party_size": 4,
            "origin": "administrative",
            "include_outdoor": False,
        },
    )
    assert response.status_code == 200
    assert [table["number"] for table in response.json()["tables"]] == [3]


async def test_slots_for_a_day(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.get(
        "/api/v1/availability/slots", params={"date": "2025-06-03", "party_size": 2}
    )
    assert response.status_code == 200
    slots = response.json()
    assert slots[0]["start_at"] == "2025-06-03T17:00:00"
    assert slots[-1]["start_at"] == "2025-06-03T21:00:00"
    assert len(slots) == 17
    assert all(slot["available"] for slot in slots)


async def test_bookable_dates(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    closure = await client.post("/api/v1/venue/closed-dates", json={"date": "2025-06-10"})
    assert closure.status_code == 201

    response = await client.get("/api/v1/availability/dates")
    assert response.status_code == 200
    dates = response.json()["dates"]
    assert dates[0] == "2025-06-02"
    assert dates[-1] == "2025-07-02"
    assert "2025-06-10" not in dates

    oversized = await client.get("/api/v1/availability/dates", params={"party_size": 7})
    assert oversized.json()["dates"] == []


async def test_threshold_blocks_online_bookings(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    app.dependency_overrides[deps.get_policy] = lambda: BookingPolicy(
        max_capacity_threshold_percent=20
    )

    first = await client.post("/api/v1/reservations", json=_booking(party_size=4))
    assert first.status_code == 201

    second = await client.post("/api/v1/reservations", json=_booking(party_size=2))
    assert second.status_code == 409
    assert second.json()["reason"] == "threshold-exceeded"

    staff = await client.post(
        "/api/v1/reservations", json=_booking(party_size=2, origin="administrative")
    )
    assert staff.status_code == 201


async def test_table_grid_and_occupancy(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    table_ids = app_context["table_ids"]
    booking = await client.post(
        "/api/v1/reservations",
        json=_booking(
            time="21:00",
            origin="administrative",
            table_ids=[str(table_ids[1]), str(table_ids[2])],
        ),
    )
    assert booking.status_code == 201
    reservation_id = booking.json()["id"]

    grid = await client.get("/api/v1/tables/availability/2025-06-03")
    assert grid.status_code == 200
    by_start = {slot["start_at"]: slot["table_ids"] for slot in grid.json()["slots"]}
    assert str(table_ids[1]) not in by_start["2025-06-03T19:00:00"]
    assert str(table_ids[1]) in by_start["2025-06-03T17:00:00"]
    assert str(table_ids[3]) in by_start["2025-06-03T19:00:00"]

    occupancy = await client.get(
        "/api/v1/occupancy", params={"at": "2025-06-03T21:30:00"}
    )
    assert occupancy.status_code == 200
    tables = {item["table_number"]: item for item in occupancy.json()["tables"]}
    assert tables[1]["occupied"] and tables[1]["grouped"]
    assert tables[2]["reservation"]["id"] == reservation_id
    assert not tables[3]["occupied"]

    summary = await client.get(
        "/api/v1/occupancy/summary",
        params={"date": "2025-06-03", "at": "2025-06-03T21:20:00"},
    )
    assert summary.status_code == 200
    body = summary.json()
    assert body["total_bookings"] == 1
    assert body["covers"] == 2
    assert len(body["alerts"]) == 1
    assert body["alerts"][0]["minutes_late"] == 20

    await client.post(f"/api/v1/reservations/{reservation_id}/actions/seat")
    summary = await client.get(
        "/api/v1/occupancy/summary",
        params={"date": "2025-06-03", "at": "2025-06-03T21:20:00"},
    )
    assert summary.json()["alerts"] == []
    assert summary.json()["seated_count"] == 1
