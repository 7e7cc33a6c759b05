"""Reservation API integration tests."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import pytest
from httpx import AsyncClient

from seating.api import deps
from seating.main import app

pytestmark = pytest.mark.asyncio


def _payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "customer": {
            "name": "Taylor Guest",
            "email": "taylor.guest@example.com",
            "phone": "+1 555 010 4477",
        },
        "party_size": 2,
        "date": "2025-06-03",
        "time": "19:00",
    }
    payload.update(overrides)
    return payload


async def _create(client: AsyncClient, **overrides: Any) -> dict[str, Any]:
    response = await client.post("/api/v1/reservations", json=_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()


async def test_reservation_lifecycle(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    reservation = await _create(client)
    reservation_id = reservation["id"]
    assert reservation["status"] == "pending"
    assert reservation["origin"] == "customer"
    assert reservation["date"] == "2025-06-03"
    assert reservation["start_at"] == "2025-06-03T19:00:00"
    assert reservation["end_at"] == "2025-06-03T21:00:00"
    assert reservation["duration_minutes"] == 120
    assert [table["number"] for table in reservation["tables"]] == [1]
    assert reservation["is_grouped"] is False

    confirm_resp = await client.post(f"/api/v1/reservations/{reservation_id}/actions/confirm")
    assert confirm_resp.status_code == 200
    assert confirm_resp.json()["status"] == "confirmed"

    seat_resp = await client.put(
        f"/api/v1/reservations/{reservation_id}/status", json={"status": "seated"}
    )
    assert seat_resp.status_code == 200
    assert seat_resp.json()["status"] == "seated"

    # Invalid transition: seated -> confirmed
    invalid_resp = await client.put(
        f"/api/v1/reservations/{reservation_id}/status", json={"status": "confirmed"}
    )
    assert invalid_resp.status_code == 400
    assert invalid_resp.json()["code"] == "invalid_status_transition"

    complete_resp = await client.post(
        f"/api/v1/reservations/{reservation_id}/actions/complete"
    )
    assert complete_resp.status_code == 200
    assert complete_resp.json()["status"] == "completed"

    fetched = await client.get(f"/api/v1/reservations/{reservation_id}")
    assert fetched.status_code == 200
    assert fetched.json()["status"] == "completed"


async def test_list_reservations_filters(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    await _create(client, time="18:00")
    await _create(client, time="20:00", date="2025-06-04")

    all_resp = await client.get("/api/v1/reservations")
    assert all_resp.status_code == 200
    assert len(all_resp.json()) == 2

    day_resp = await client.get("/api/v1/reservations", params={"date": "2025-06-04"})
    assert [item["start_at"] for item in day_resp.json()] == ["2025-06-04T20:00:00"]

    pending_resp = await client.get("/api/v1/reservations", params={"status": "confirmed"})
    assert pending_resp.json() == []


async def test_staff_booking_defaults_to_confirmed(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    reservation = await _create(client, origin="administrative", party_size=10)
    assert reservation["status"] == "confirmed"
    assert reservation["is_grouped"] is True
    assert sum(table["capacity"] for table in reservation["tables"]) >= 10


async def test_booking_errors_map_to_statuses(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    table_ids = app_context["table_ids"]

    too_large = await client.post("/api/v1/reservations", json=_payload(party_size=7))
    assert too_large.status_code == 409
    assert too_large.json()["reason"] == "party-too-large"

    patio = await client.post(
        "/api/v1/reservations", json=_payload(table_ids=[str(table_ids[4])])
    )
    assert patio.status_code == 400
    assert patio.json()["code"] == "invariant_violation"

    unknown = await client.post(
        "/api/v1/reservations",
        json=_payload(origin="administrative", table_ids=[str(uuid.uuid4())]),
    )
    assert unknown.status_code == 422
    assert unknown.json()["code"] == "validation_error"

    off_grid = await client.post("/api/v1/reservations", json=_payload(time="19:05"))
    assert off_grid.status_code == 409
    assert off_grid.json()["reason"] == "outside-policy-window"

    missing = await client.get(f"/api/v1/reservations/{uuid.uuid4()}")
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"


async def test_invalid_contact_details_are_rejected(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    payload = _payload()
    payload["customer"]["email"] = "not-an-address"
    response = await client.post("/api/v1/reservations", json=payload)
    assert response.status_code == 422

    payload = _payload(party_size=0)
    response = await client.post("/api/v1/reservations", json=payload)
    assert response.status_code == 422


async def test_closed_date_refuses_bookings(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    closure = await client.post(
        "/api/v1/venue/closed-dates", json={"date": "2025-06-03", "reason": "Refit"}
    )
    assert closure.status_code == 201

    response = await client.post("/api/v1/reservations", json=_payload())
    assert response.status_code == 409
    assert response.json()["reason"] == "closed"


async def test_reschedule_and_edit_details(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    reservation = await _create(client)

    response = await client.patch(
        f"/api/v1/reservations/{reservation['id']}",
        json={"time": "20:30", "customer_phone": "+1 555 010 9999"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["start_at"] == "2025-06-03T20:30:00"
    assert body["customer_phone"] == "+1 555 010 9999"
    assert [table["number"] for table in body["tables"]] == [1]

    grown = await client.patch(
        f"/api/v1/reservations/{reservation['id']}", json={"party_size": 4}
    )
    assert grown.status_code == 200
    assert [table["number"] for table in grown.json()["tables"]] == [3]


async def test_reassign_tables(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    table_ids = app_context["table_ids"]
    reservation = await _create(client)

    moved = await client.put(
        f"/api/v1/reservations/{reservation['id']}/tables",
        json={"table_ids": [str(table_ids[2])]},
    )
    assert moved.status_code == 200
    assert [table["number"] for table in moved.json()["tables"]] == [2]

    patio = await client.put(
        f"/api/v1/reservations/{reservation['id']}/tables",
        json={"table_ids": [str(table_ids[4])]},
    )
    assert patio.status_code == 400

    cleared = await client.put(
        f"/api/v1/reservations/{reservation['id']}/tables", json={"table_ids": []}
    )
    assert cleared.status_code == 200
    assert cleared.json()["tables"] == []


async def test_cancelled_reservation_frees_its_table(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    table_ids = app_context["table_ids"]
    first = await _create(client, origin="administrative", table_ids=[str(table_ids[3])])

    clash = await client.post(
        "/api/v1/reservations",
        json=_payload(origin="administrative", table_ids=[str(table_ids[3])]),
    )
    assert clash.status_code == 400

    cancel = await client.post(f"/api/v1/reservations/{first['id']}/actions/cancel")
    assert cancel.status_code == 200

    second = await _create(client, origin="administrative", table_ids=[str(table_ids[3])])
    assert [table["number"] for table in second["tables"]] == [3]


async def test_party_resize_on_the_day(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    reservation = await _create(client)

    app.dependency_overrides[deps.get_reference_now] = lambda: datetime(2025, 6, 3, 18, 30)
    response = await client.patch(
        f"/api/v1/reservations/{reservation['id']}", json={"party_size": 3}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["start_at"] == "2025-06-03T19:00:00"
    assert [table["number"] for table in body["tables"]] == [3]

    moved = await client.patch(
        f"/api/v1/reservations/{reservation['id']}", json={"time": "19:15"}
    )
    assert moved.status_code == 409
    assert moved.json()["reason"] == "outside-policy-window"
