"""
Bootstrap the event type catalog.

Usage:
    python -m app.scripts.seed_event_types [--create-tables]

Reads MOSAIC_DATABASE_URL. Safe to re-run: existing type names are skipped.
"""

import argparse
import asyncio

from app.core.config import get_settings
from app.core.database import get_session_context, init_db
from app.core.logging_config import configure_logging
from app.services.registry import seed_event_types

settings = get_settings()


async def seed(create_tables: bool = False) -> None:
    if create_tables:
        await init_db()

    async with get_session_context() as session:
        created = await seed_event_types(session)

    if created:
        print(f"Seeded event types: {', '.join(t.name for t in created)}")
    else:
        print("Event type catalog already up to date.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the Mosaic event type catalog.")
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create tables from the models first (development databases only).",
    )
    args = parser.parse_args()

    configure_logging(settings.log_level, "text")
    asyncio.run(seed(create_tables=args.create_tables))


if __name__ == "__main__":
    main()
