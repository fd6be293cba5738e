"""
Event store: generic create/update/delete for events of any registered type.

Validation here is type-agnostic. The per-type rules arrive through the
dispatcher; this module only adds the relational checks that need a session:
foreign-key existence, nesting metadata, parent containment and depth.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import ContainmentError, NotFoundError, ValidationError
from app.models.event import Event
from app.models.event_type import EventType
from app.services import temporal
from app.services.dispatch import validate_event
from app.services.fields import as_uuid, normalize_attrs


async def _load_event_type(session: AsyncSession, event_type_id: Any) -> EventType:
    event_type = await session.get(EventType, as_uuid(event_type_id, "Event type"))
    if event_type is None or not event_type.is_active:
        raise NotFoundError(f"Event type not found: {event_type_id}")
    return event_type


async def get_event(session: AsyncSession, event_id: Any) -> Event:
    event = await session.get(Event, as_uuid(event_id, "Event"))
    if event is None:
        raise NotFoundError(f"Event not found: {event_id}")
    return event


async def _depth_of(session: AsyncSession, event: Event) -> int:
    """Number of events on the path from the root down to ``event``."""
    depth = 1
    current = event
    while current.parent_id is not None:
        current = await session.get(Event, current.parent_id)
        if current is None:
            break
        depth += 1
    return depth


async def _subtree_height(session: AsyncSession, event_id: uuid.UUID) -> int:
    height = 1
    frontier = [event_id]
    while frontier:
        result = await session.execute(select(Event.id).where(Event.parent_id.in_(frontier)))
        frontier = [row[0] for row in result.all()]
        if frontier:
            height += 1
    return height


async def _check_parent(
    session: AsyncSession,
    event_type: EventType,
    values: dict[str, Any],
    event_id: Optional[uuid.UUID] = None,
) -> None:
    parent = await session.get(Event, values["parent_id"])
    if parent is None:
        raise NotFoundError(f"Parent event not found: {values['parent_id']}")
    parent_type = await session.get(EventType, parent.event_type_id)

    if not event_type.can_nest:
        raise ValidationError(
            f"Event type '{event_type.name}' cannot be nested",
            errors={"parent_id": ["nesting not allowed for this event type"]},
        )
    if not parent_type.can_have_children:
        raise ValidationError(
            f"Event type '{parent_type.name}' cannot have children",
            errors={"parent_id": ["parent event type does not accept children"]},
        )
    allowed = (event_type.rules or {}).get("allowed_parents")
    if allowed is not None and parent_type.name not in allowed:
        raise ValidationError(
            f"Event type '{event_type.name}' cannot be nested under '{parent_type.name}'",
            errors={"parent_id": [f"must be one of: {', '.join(allowed)}"]},
        )

    if event_id is not None:
        ancestor: Optional[Event] = parent
        while ancestor is not None:
            if ancestor.id == event_id:
                raise ValidationError(
                    "Event cannot be nested under itself or its descendants",
                    errors={"parent_id": ["would create a cycle"]},
                )
            ancestor = await session.get(Event, ancestor.parent_id) if ancestor.parent_id else None

    temporal.assert_contained(
        values["start_time"],
        values["end_time"],
        parent.start_time,
        parent.end_time,
        child=event_type.name.replace("_", " ").capitalize(),
        parent=parent_type.name.replace("_", " "),
    )

    height = await _subtree_height(session, event_id) if event_id is not None else 1
    max_depth = get_settings().max_event_depth
    if await _depth_of(session, parent) + height > max_depth:
        raise ValidationError(
            f"Event hierarchy deeper than {max_depth} levels",
            errors={"parent_id": ["nesting too deep"]},
        )


async def create_event(session: AsyncSession, attrs: Any) -> Event:
    """Validate through the type's registered validator and insert."""
    attrs = normalize_attrs(attrs)
    if attrs.get("event_type_id") is None:
        raise ValidationError(
            "Invalid event: event_type_id can't be blank",
            errors={"event_type_id": ["can't be blank"]},
        )
    event_type = await _load_event_type(session, attrs["event_type_id"])
    values = validate_event(event_type, attrs)
    values["event_type_id"] = event_type.id

    if values["parent_id"] is not None:
        await _check_parent(session, event_type, values)

    event = Event(**values)
    session.add(event)
    await session.flush()
    return event


async def update_event(session: AsyncSession, event: Event, attrs: Any) -> Event:
    """Re-run the same dispatch path used at creation on the merged values."""
    attrs = normalize_attrs(attrs)
    if "event_type_id" in attrs and as_uuid(attrs["event_type_id"], "Event type") != event.event_type_id:
        raise ValidationError(
            "Invalid event: event_type_id cannot be changed",
            errors={"event_type_id": ["cannot be changed"]},
        )
    event_type = await session.get(EventType, event.event_type_id)
    values = validate_event(event_type, attrs, existing=event)

    if values["parent_id"] is not None:
        await _check_parent(session, event_type, values, event_id=event.id)

    children = await list_children(session, event.id)
    for child in children:
        if not temporal.is_contained(child.start_time, child.end_time, values["start_time"], values["end_time"]):
            raise ContainmentError(
                f"Child event {child.id} would fall outside the updated bounds",
                errors={"end_time": ["child events must remain within bounds"]},
            )

    for key, value in values.items():
        setattr(event, key, value)
    session.add(event)
    await session.flush()
    return event


async def delete_event(session: AsyncSession, event: Event) -> None:
    """Hard delete. Children are orphaned, participations go with the event."""
    await session.execute(
        sa.update(Event).where(Event.parent_id == event.id).values(parent_id=None)
    )
    await session.delete(event)
    await session.flush()


async def list_children(
    session: AsyncSession,
    parent_id: uuid.UUID,
    event_type_id: Optional[uuid.UUID] = None,
) -> list[Event]:
    stmt = select(Event).where(Event.parent_id == parent_id)
    if event_type_id is not None:
        stmt = stmt.where(Event.event_type_id == event_type_id)
    result = await session.execute(stmt.order_by(Event.start_time, Event.id))
    return list(result.scalars().all())


async def list_events(
    session: AsyncSession,
    *,
    event_type_id: Optional[uuid.UUID] = None,
    status: Optional[str] = None,
    parent_id: Optional[uuid.UUID] = None,
) -> list[Event]:
    stmt = select(Event)
    if event_type_id is not None:
        stmt = stmt.where(Event.event_type_id == event_type_id)
    if status is not None:
        stmt = stmt.where(Event.status == status)
    if parent_id is not None:
        stmt = stmt.where(Event.parent_id == parent_id)
    result = await session.execute(stmt.order_by(Event.start_time, Event.id))
    return list(result.scalars().all())
