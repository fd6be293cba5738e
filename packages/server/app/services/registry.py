"""
Event type registry: catalog lookup and bootstrap seeding.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError
from app.models.event_type import EventType

log = structlog.get_logger()

# Bootstrap catalog. ``rules.allowed_parents`` is enforced by the event store.
EVENT_TYPE_CATALOG: list[dict[str, Any]] = [
    {
        "name": "employment",
        "category": "contract",
        "can_nest": False,
        "can_have_children": True,
        "requires_participation": True,
        "rules": {"allowed_children": ["shift"], "max_duration_days": None},
    },
    {
        "name": "shift",
        "category": "work",
        "can_nest": True,
        "can_have_children": True,
        "requires_participation": True,
        "rules": {
            "allowed_children": ["work_period", "break", "task"],
            "allowed_parents": ["employment"],
        },
    },
    {
        "name": "work_period",
        "category": "work",
        "can_nest": True,
        "can_have_children": False,
        "requires_participation": True,
        "rules": {"allowed_parents": ["shift"]},
    },
    {
        "name": "break",
        "category": "work",
        "can_nest": True,
        "can_have_children": False,
        "requires_participation": True,
        "rules": {"allowed_parents": ["shift"], "is_paid": False},
    },
    {
        "name": "task",
        "category": "work",
        "can_nest": True,
        "can_have_children": False,
        "requires_participation": True,
        "rules": {"allowed_parents": ["shift"]},
    },
    {
        "name": "location_membership",
        "category": "organizational",
        "can_nest": False,
        "can_have_children": False,
        "requires_participation": True,
        "rules": {"participation_types": ["parent_location", "child_location"]},
    },
    {
        "name": "schedule",
        "category": "planning",
        "can_nest": False,
        "can_have_children": True,
        "requires_participation": True,
        "rules": {"allowed_children": ["shift"], "allowed_statuses": ["draft", "active", "completed"]},
    },
    {
        "name": "clock_event",
        "category": "timekeeping",
        "can_nest": False,
        "can_have_children": False,
        "requires_participation": True,
        "rules": {},
    },
    {
        "name": "clock_period",
        "category": "timekeeping",
        "can_nest": False,
        "can_have_children": True,
        "requires_participation": True,
        "rules": {"allowed_children": ["payroll_piece"]},
    },
    {
        "name": "payroll_piece",
        "category": "payroll",
        "can_nest": True,
        "can_have_children": False,
        "requires_participation": False,
        "rules": {"allowed_parents": ["clock_period"]},
    },
]


async def resolve(session: AsyncSession, name: str) -> EventType:
    """Return the active event type called ``name``; unknown names are errors."""
    result = await session.execute(
        select(EventType).where(EventType.name == name, EventType.is_active == True)  # noqa: E712
    )
    event_type = result.scalar_one_or_none()
    if event_type is None:
        raise NotFoundError(f"Event type not found: {name}")
    return event_type


async def get_event_type(session: AsyncSession, event_type_id: uuid.UUID) -> EventType:
    event_type = await session.get(EventType, event_type_id)
    if event_type is None:
        raise NotFoundError(f"Event type not found: {event_type_id}")
    return event_type


async def list_event_types(session: AsyncSession) -> list[EventType]:
    result = await session.execute(
        select(EventType).where(EventType.is_active == True).order_by(EventType.name)  # noqa: E712
    )
    return list(result.scalars().all())


async def seed_event_types(
    session: AsyncSession,
    catalog: list[dict[str, Any]] = EVENT_TYPE_CATALOG,
) -> list[EventType]:
    """
    Insert missing catalog rows; existing names are left untouched.

    Each row goes in as ``INSERT ... ON CONFLICT (name) DO NOTHING`` so
    concurrent bootstraps settle on one row per name instead of failing.
    """
    bind = session.get_bind()
    dialect = bind.dialect.name if bind is not None else ""
    if dialect == "postgresql":
        insert = pg_insert
    elif dialect == "sqlite":
        insert = sqlite_insert
    else:
        raise RuntimeError(f"Event type seeding does not support the '{dialect}' dialect")

    created_ids = []
    for attrs in catalog:
        values = EventType(is_active=True, **attrs).model_dump()
        stmt = (
            insert(EventType)
            .values(**values)
            .on_conflict_do_nothing(index_elements=[EventType.name])
            .returning(EventType.id)
        )
        inserted_id = (await session.execute(stmt)).scalar_one_or_none()
        if inserted_id is not None:
            created_ids.append(inserted_id)

    created = []
    if created_ids:
        result = await session.execute(select(EventType).where(EventType.id.in_(created_ids)))
        by_id = {event_type.id: event_type for event_type in result.scalars().all()}
        created = [by_id[event_type_id] for event_type_id in created_ids]
    log.info(
        "registry.seeded",
        created=[t.name for t in created],
        skipped=len(catalog) - len(created),
    )
    return created
