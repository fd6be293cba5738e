"""
Shared fixtures: a fresh in-memory SQLite database per test, seeded with the
event type catalog, plus helpers for building workers and employments.
"""

import os

os.environ.setdefault("MOSAIC_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("MOSAIC_BROADCAST_ENABLED", "false")

from datetime import datetime, timezone

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.database import build_engine, build_session_factory
from app.services import employments, workers
from app.services.registry import seed_event_types


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
async def engine():
    engine = build_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_factory(engine):
    factory = build_session_factory(engine)
    async with factory() as session:
        await seed_event_types(session)
        await session.commit()
    return factory


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def worker(session):
    return await workers.create_worker(session, {"name": "Alice Novak", "email": "alice@example.com"})


@pytest.fixture
async def other_worker(session):
    return await workers.create_worker(session, {"name": "Bruno Silva", "email": "bruno@example.com"})


@pytest.fixture
async def employment(session, worker):
    """Active employment for ``worker`` covering 2024."""
    result = await employments.create_employment(
        session,
        worker.id,
        {"start_time": utc(2024, 1, 1), "end_time": utc(2024, 12, 31), "status": "active", "role": "Picker"},
    )
    return result.employment
