"""Venue configuration and table inventory endpoints."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def test_weekly_hours_replace_and_close_a_weekday(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    response = await client.put(
        "/api/v1/venue/hours",
        json=[
            {"weekday": 1, "is_closed": True},
            {"weekday": 5, "open_time": "18:00", "close_time": "01:00"},
        ],
    )
    assert response.status_code == 200
    hours = {item["weekday"]: item for item in response.json()}
    assert len(hours) == 7
    assert hours[1]["is_closed"] is True
    assert hours[5]["close_time"] == "01:00:00"

    monday = await client.post(
        "/api/v1/availability/check",
        json={"date": "2025-06-09", "time": "19:00", "party_size": 2},
    )
    assert monday.json()["reason"] == "closed"

    friday = await client.get(
        "/api/v1/availability/slots", params={"date": "2025-06-06", "party_size": 2}
    )
    assert friday.json()[-1]["start_at"] == "2025-06-06T23:00:00"


async def test_hours_payload_validation(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    duplicate = await client.put(
        "/api/v1/venue/hours",
        json=[{"weekday": 2, "is_closed": True}, {"weekday": 2, "is_closed": True}],
    )
    assert duplicate.status_code == 422

    missing_close = await client.put(
        "/api/v1/venue/hours", json=[{"weekday": 2, "open_time": "17:00"}]
    )
    assert missing_close.status_code == 422

    bad_weekday = await client.put(
        "/api/v1/venue/hours", json=[{"weekday": 7, "is_closed": True}]
    )
    assert bad_weekday.status_code == 422


async def test_closed_dates_crud(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    created = await client.post(
        "/api/v1/venue/closed-dates", json={"date": "2025-06-05", "reason": "Refit"}
    )
    assert created.status_code == 201
    closure = created.json()
    assert closure["date"] == "2025-06-05"

    duplicate = await client.post("/api/v1/venue/closed-dates", json={"date": "2025-06-05"})
    assert duplicate.status_code == 422

    listed = await client.get("/api/v1/venue/closed-dates")
    assert [item["reason"] for item in listed.json()] == ["Refit"]

    deleted = await client.delete(f"/api/v1/venue/closed-dates/{closure['id']}")
    assert deleted.status_code == 204
    again = await client.delete(f"/api/v1/venue/closed-dates/{closure['id']}")
    assert again.status_code == 404


async def test_special_event_opens_closed_weekday(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    await client.put("/api/v1/venue/hours", json=[{"weekday": 1, "is_closed": True}])

    created = await client.post(
        "/api/v1/venue/special-events",
        json={
            "name": "Chef's table",
            "date": "2025-06-09",
            "open_time": "18:00",
            "close_time": "22:00",
        },
    )
    assert created.status_code == 201
    event = created.json()
    assert event["date"] == "2025-06-09"

    slots = await client.get(
        "/api/v1/availability/slots", params={"date": "2025-06-09", "party_size": 2}
    )
    starts = [slot["start_at"] for slot in slots.json()]
    assert starts[0] == "2025-06-09T18:00:00"
    assert starts[-1] == "2025-06-09T20:00:00"

    half = await client.post(
        "/api/v1/venue/special-events",
        json={"name": "Odd", "date": "2025-06-10", "open_time": "18:00"},
    )
    assert half.status_code == 422

    deleted = await client.delete(f"/api/v1/venue/special-events/{event['id']}")
    assert deleted.status_code == 204
    closed = await client.get(
        "/api/v1/availability/slots", params={"date": "2025-06-09", "party_size": 2}
    )
    assert closed.json() == []


async def test_policy_endpoint(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.get("/api/v1/venue/policy")
    assert response.status_code == 200
    body = response.json()
    assert body["slot_granularity_minutes"] == 15
    assert body["max_duration_minutes"] == 120
    assert body["max_party_size_online"] == 6


async def test_table_inventory(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    listed = await client.get("/api/v1/tables")
    assert [table["number"] for table in listed.json()] == [1, 2, 3, 4, 5, 6]

    outdoor = await client.get("/api/v1/tables", params={"section": "outdoor"})
    assert [table["number"] for table in outdoor.json()] == [4]

    created = await client.post(
        "/api/v1/tables", json={"number": 7, "capacity": 2, "section": "bar", "label": "Bar 1"}
    )
    assert created.status_code == 201
    table_id = created.json()["id"]

    taken = await client.post("/api/v1/tables", json={"number": 7, "capacity": 4})
    assert taken.status_code == 422

    empty = await client.post("/api/v1/tables", json={"number": 8, "capacity": 0})
    assert empty.status_code == 422

    updated = await client.patch(f"/api/v1/tables/{table_id}", json={"capacity": 3})
    assert updated.status_code == 200
    assert updated.json()["capacity"] == 3

    clash = await client.patch(f"/api/v1/tables/{table_id}", json={"number": 1})
    assert clash.status_code == 422
