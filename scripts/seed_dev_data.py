#!/usr/bin/env python3
"""Seed a development database with workers, a location and a week of shifts.

Usage:
    python scripts/seed_dev_data.py

Run from the repository root after `pip install -e .`. Requires
MOSAIC_DATABASE_URL (or defaults to localhost). Creates tables and the event
type catalog when missing.
"""

import asyncio
from datetime import datetime, timedelta, timezone

from app.core.database import get_session_context, init_db
from app.core.logging_config import configure_logging
from app.services import employments, locations, shifts, timekeeping, workers
from app.services.registry import seed_event_types

WORKERS = [
    {"name": "Alice Novak", "email": "alice@mosaic.dev", "phone": "+1-555-0100"},
    {"name": "Bruno Silva", "email": "bruno@mosaic.dev"},
]


async def seed():
    await init_db()

    async with get_session_context() as session:
        await seed_event_types(session)
        await session.commit()

        warehouse = await locations.create_location(
            session, {"name": "North Warehouse", "address": "1 Dock Road", "capacity": 40}
        )
        site = await locations.create_location(session, {"name": "North Site", "address": "1 Dock Road"})
        await locations.set_parent(session, warehouse.id, site.id, datetime(2024, 1, 1, tzinfo=timezone.utc))

        week_start = datetime(2024, 3, 4, 9, tzinfo=timezone.utc)
        for attrs in WORKERS:
            if await workers.worker_exists_with_email(session, attrs["email"]):
                print(f"Worker {attrs['email']} already exists.")
                continue
            worker = await workers.create_worker(session, attrs)
            employment = await employments.create_employment(
                session,
                worker.id,
                {
                    "start_time": datetime(2024, 1, 1, tzinfo=timezone.utc),
                    "status": "active",
                    "role": "Picker",
                    "contract_type": "full_time",
                },
            )
            for day in range(5):
                start = week_start + timedelta(days=day)
                await shifts.create_shift(
                    session,
                    employment.employment.id,
                    worker.id,
                    {
                        "start_time": start,
                        "end_time": start + timedelta(hours=8),
                        "status": "active",
                        "location": "North Warehouse",
                        "auto_generate_periods": True,
                    },
                )
            punch_in = await timekeeping.clock_in(session, worker.id, {"timestamp": week_start})
            punch_out = await timekeeping.clock_out(
                session, worker.id, {"timestamp": week_start + timedelta(hours=8, minutes=5)}
            )
            await timekeeping.create_clock_period(session, worker.id, punch_in.id, punch_out.id)
            print(f"Created worker {attrs['email']} with 5 shifts.")

    print("Done.")


if __name__ == "__main__":
    configure_logging("info", "text")
    asyncio.run(seed())
