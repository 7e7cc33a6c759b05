"""Seed demo opening hours and a floor of tables."""
from __future__ import annotations

import asyncio
from datetime import time

from sqlalchemy import select

from seating.db.session import get_sessionmaker
from seating.models.table import DiningTable, TableSection
from seating.schemas.venue import OpeningHourCreate
from seating.services import venue_service

# (number, capacity, section)
DEFAULT_TABLES: tuple[tuple[int, int, TableSection], ...] = (
    (1, 2, TableSection.WINDOW),
    (2, 2, TableSection.WINDOW),
    (3, 4, TableSection.INDOOR),
    (4, 4, TableSection.INDOOR),
    (5, 6, TableSection.INDOOR),
    (6, 8, TableSection.PRIVATE),
    (7, 2, TableSection.BAR),
    (8, 2, TableSection.BAR),
    (9, 4, TableSection.OUTDOOR),
    (10, 4, TableSection.OUTDOOR),
)

# Sunday-first, Monday closed.
DEFAULT_HOURS: tuple[OpeningHourCreate, ...] = (
    OpeningHourCreate(weekday=0, open_time=time(12, 0), close_time=time(21, 0)),
    OpeningHourCreate(weekday=1, is_closed=True),
    OpeningHourCreate(weekday=2, open_time=time(17, 0), close_time=time(22, 0)),
    OpeningHourCreate(weekday=3, open_time=time(17, 0), close_time=time(22, 0)),
    OpeningHourCreate(weekday=4, open_time=time(17, 0), close_time=time(22, 0)),
    OpeningHourCreate(weekday=5, open_time=time(17, 0), close_time=time(23, 30)),
    OpeningHourCreate(weekday=6, open_time=time(12, 0), close_time=time(23, 30)),
)


async def seed_venue() -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        existing = set((await session.execute(select(DiningTable.number))).scalars())
        created = 0
        for number, capacity, section in DEFAULT_TABLES:
            if number in existing:
                continue
            session.add(DiningTable(number=number, capacity=capacity, section=section))
            created += 1
        if created:
            await session.commit()
        hours = await venue_service.list_hours(session)
        if not hours:
            await venue_service.replace_hours(session, payloads=DEFAULT_HOURS)
        print(f"Seeded {created} table(s); {len(hours) or len(DEFAULT_HOURS)} weekday rule(s).")


def main() -> None:
    asyncio.run(seed_venue())


if __name__ == "__main__":
    main()
