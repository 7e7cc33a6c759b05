"""Test fixtures for the seating backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import date, datetime, time

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from seating.api import deps
from seating.core.config import get_settings
from seating.db.base import Base
from seating.db.session import dispose_engine, get_sessionmaker
from seating.main import app
from seating.models import DiningTable, OpeningHour, TableSection
from seating.services.slot_service import BookingPolicy

# Monday morning; every test books relative to this instant.
REFERENCE_NOW = datetime(2025, 6, 2, 9, 0)
SERVICE_DATE = date(2025, 6, 3)

# (number, capacity, section)
FLOOR: tuple[tuple[int, int, TableSection], ...] = (
    (1, 2, TableSection.WINDOW),
    (2, 2, TableSection.INDOOR),
    (3, 4, TableSection.INDOOR),
    (4, 4, TableSection.OUTDOOR),
    (5, 6, TableSection.INDOOR),
    (6, 8, TableSection.PRIVATE),
)


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def venue(reset_database: None, db_url: str) -> dict[str, object]:
    """Seed a venue open 17:00-23:00 every day with the test floor."""
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        for weekday in range(7):
            session.add(
                OpeningHour(
                    weekday=weekday,
                    open_time=time(17, 0),
                    close_time=time(23, 0),
                    is_closed=False,
                )
            )
        tables = [
            DiningTable(number=number, capacity=capacity, section=section)
            for number, capacity, section in FLOOR
        ]
        session.add_all(tables)
        await session.commit()
        table_ids = {table.number: table.id for table in tables}

    return {
        "sessionmaker": sessionmaker,
        "table_ids": table_ids,
        "reference_now": REFERENCE_NOW,
        "service_date": SERVICE_DATE,
    }


@pytest.fixture()
def policy() -> BookingPolicy:
    return BookingPolicy()


@pytest_asyncio.fixture()
async def app_context(
    venue: dict[str, object], policy: BookingPolicy
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client bound to the seeded venue with a frozen clock."""
    app.dependency_overrides[deps.get_reference_now] = lambda: REFERENCE_NOW
    app.dependency_overrides[deps.get_policy] = lambda: policy
    context = dict(venue)
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            context["client"] = client
            yield context
    finally:
        app.dependency_overrides.clear()
