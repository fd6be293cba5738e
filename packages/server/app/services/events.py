"""
Event service layer: the shared write path for orchestrators and the read side.

Handles:
- Creating an event together with its participations inside a transaction
- Re-validating updates through the same dispatch path and emitting signals
- Read-side lookups and depth-capped tree materialization
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import or_, select

from app.core.config import get_settings
from app.core.database import Transaction, atomic
from app.core.errors import NotFoundError, ValidationError
from app.core.signals import EVENT_CREATED, EVENT_UPDATED, DomainSignal
from app.models.event import Event
from app.models.event_type import EventType
from app.models.participation import Participation
from app.services import registry
from app.services._store import entities as entity_store
from app.services._store import events as event_store
from app.services._store import participations as participation_store
from app.services.dispatch import validate_event
from app.services.fields import as_uuid, normalize_attrs
from mosaic_shared.schemas.events import EventRead, EventTree, ParticipationRead

log = structlog.get_logger()


@dataclass
class ParticipantSpec:
    """One participation to create alongside a new event."""

    participant_id: Any
    participation_type: str
    role: Optional[str] = None
    properties: dict[str, Any] = field(default_factory=dict)
    start_time: Any = None
    end_time: Any = None

    def as_attrs(self) -> dict[str, Any]:
        attrs: dict[str, Any] = {
            "participation_type": self.participation_type,
            "role": self.role,
            "properties": dict(self.properties),
        }
        if self.start_time is not None:
            attrs["start_time"] = self.start_time
        if self.end_time is not None:
            attrs["end_time"] = self.end_time
        return attrs


@dataclass
class CreatedEvent:
    event: Event
    participations: List[Participation] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Write path (used by orchestrators inside ``atomic``)
# ---------------------------------------------------------------------------


async def create_event_with_participants(
    tx: Transaction,
    type_name: str,
    attrs: Any,
    participants: Sequence[ParticipantSpec] = (),
) -> CreatedEvent:
    """Resolve ``type_name``, insert the event and each participation."""
    session = tx.session
    event_type = await registry.resolve(session, type_name)
    if event_type.requires_participation and not participants:
        raise ValidationError(
            f"Event type '{type_name}' requires at least one participant",
            errors={"participants": ["can't be blank"]},
        )

    attrs = normalize_attrs(attrs)
    attrs["event_type_id"] = event_type.id
    event = await event_store.create_event(session, attrs)

    created = []
    for spec in participants:
        participation = await participation_store.create_participation(
            session, spec.participant_id, event.id, spec.as_attrs()
        )
        created.append(participation)

    tx.emit(
        DomainSignal(
            EVENT_CREATED,
            event.id,
            type_name,
            {"parent_id": str(event.parent_id) if event.parent_id else None, "status": event.status},
        )
    )
    return CreatedEvent(event=event, participations=created)


async def validated_values(
    session: AsyncSession,
    type_name: str,
    attrs: Any,
    existing: Optional[Event] = None,
) -> dict[str, Any]:
    """Run the dispatcher without writing, for checks that need parsed times."""
    event_type = await registry.resolve(session, type_name)
    return validate_event(event_type, attrs, existing)


async def update_event(tx: Transaction, event: Event, attrs: Any, type_name: str) -> Event:
    event = await event_store.update_event(tx.session, event, attrs)
    tx.emit(DomainSignal(EVENT_UPDATED, event.id, type_name, {"status": event.status}))
    return event


async def require_event_of_type(session: AsyncSession, event_id: Any, type_name: str) -> Event:
    """Load ``event_id`` and insist it is an event of ``type_name``."""
    label = type_name.replace("_", " ").capitalize()
    event = await session.get(Event, as_uuid(event_id, label))
    if event is None:
        raise NotFoundError(f"{label} not found: {event_id}")
    event_type = await registry.get_event_type(session, event.event_type_id)
    if event_type.name != type_name:
        raise ValidationError(
            f"Event {event_id} is a {event_type.name}, not a {type_name}",
            errors={"event_id": [f"must reference a {type_name}"]},
        )
    return event


async def list_events_of_type(
    session: AsyncSession,
    type_name: str,
    *,
    participant_id: Optional[uuid.UUID] = None,
    participation_type: Optional[str] = None,
    parent_id: Optional[uuid.UUID] = None,
    statuses: Optional[Iterable[str]] = None,
    exclude_statuses: Optional[Iterable[str]] = None,
    exclude_id: Optional[uuid.UUID] = None,
    window: Optional[tuple[datetime, Optional[datetime]]] = None,
) -> list[Event]:
    """
    Events of one type, optionally narrowed to a participant or parent.

    ``window`` keeps only rows whose span may overlap ``(start, end)``; callers
    confirm with ``temporal.overlaps``.
    """
    stmt = (
        select(Event)
        .join(EventType, EventType.id == Event.event_type_id)
        .where(EventType.name == type_name)
    )
    if participant_id is not None:
        stmt = stmt.join(Participation, Participation.event_id == Event.id).where(
            Participation.participant_id == participant_id
        )
        if participation_type is not None:
            stmt = stmt.where(Participation.participation_type == participation_type)
    if parent_id is not None:
        stmt = stmt.where(Event.parent_id == parent_id)
    if statuses is not None:
        stmt = stmt.where(Event.status.in_(list(statuses)))
    if exclude_statuses is not None:
        stmt = stmt.where(Event.status.not_in(list(exclude_statuses)))
    if exclude_id is not None:
        stmt = stmt.where(Event.id != exclude_id)
    if window is not None:
        start, end = window
        stmt = stmt.where(or_(Event.end_time.is_(None), Event.end_time > start))
        if end is not None:
            stmt = stmt.where(Event.start_time < end)

    result = await session.execute(stmt.order_by(Event.start_time, Event.id))
    return list(result.scalars().unique().all())


# ---------------------------------------------------------------------------
# Read side
# ---------------------------------------------------------------------------


def to_participation_read(participation: Participation) -> ParticipationRead:
    return ParticipationRead(
        id=participation.id,
        participant_id=participation.participant_id,
        event_id=participation.event_id,
        participation_type=participation.participation_type,
        role=participation.role,
        start_time=participation.start_time,
        end_time=participation.end_time,
        properties=participation.properties or {},
    )


async def _type_names(session: AsyncSession, events: Iterable[Event]) -> dict[uuid.UUID, str]:
    ids = {e.event_type_id for e in events}
    if not ids:
        return {}
    result = await session.execute(select(EventType.id, EventType.name).where(EventType.id.in_(ids)))
    return {row[0]: row[1] for row in result.all()}


async def enrich_events(
    session: AsyncSession,
    events: Sequence[Event],
    include_participations: bool = True,
) -> list[EventRead]:
    """Convert Event rows to EventRead, batching type and participation lookups."""
    if not events:
        return []
    names = await _type_names(session, events)

    by_event: dict[uuid.UUID, list[ParticipationRead]] = {e.id: [] for e in events}
    if include_participations:
        result = await session.execute(
            select(Participation)
            .where(Participation.event_id.in_(list(by_event)))
            .order_by(Participation.created_at, Participation.id)
        )
        for p in result.scalars().all():
            by_event[p.event_id].append(to_participation_read(p))

    return [
        EventRead(
            id=e.id,
            event_type_id=e.event_type_id,
            event_type=names.get(e.event_type_id),
            parent_id=e.parent_id,
            start_time=e.start_time,
            end_time=e.end_time,
            status=e.status,
            properties=e.properties or {},
            participations=by_event[e.id],
        )
        for e in events
    ]


async def enrich_event(session: AsyncSession, event: Event, include_participations: bool = True) -> EventRead:
    return (await enrich_events(session, [event], include_participations))[0]


@dataclass
class EventDetail:
    event: EventRead
    parent: Optional[EventRead] = None
    children: List[EventRead] = field(default_factory=list)


async def get_event(
    session: AsyncSession,
    event_id: Any,
    *,
    include_children: bool = False,
    include_parent: bool = False,
    include_participations: bool = False,
) -> EventDetail:
    event = await event_store.get_event(session, event_id)
    detail = EventDetail(event=await enrich_event(session, event, include_participations))
    if include_parent and event.parent_id is not None:
        parent = await event_store.get_event(session, event.parent_id)
        detail.parent = await enrich_event(session, parent, include_participations)
    if include_children:
        children = await event_store.list_children(session, event.id)
        detail.children = await enrich_events(session, children, include_participations)
    return detail


async def get_event_tree(session: AsyncSession, event_id: Any, max_depth: Optional[int] = None) -> EventTree:
    """
    Materialize ``event_id`` and its descendants breadth-first.

    One query per level. Nodes at ``max_depth`` that still have children are
    returned with ``truncated=True`` instead of being expanded.
    """
    cap = get_settings().max_event_depth
    max_depth = cap if max_depth is None else max(1, min(max_depth, cap))

    root = await event_store.get_event(session, event_id)
    root_node = EventTree(event=await enrich_event(session, root))
    level: list[tuple[Event, EventTree]] = [(root, root_node)]
    depth = 1

    while level:
        parent_ids = [event.id for event, _ in level]
        result = await session.execute(
            select(Event).where(Event.parent_id.in_(parent_ids)).order_by(Event.start_time, Event.id)
        )
        children = list(result.scalars().all())
        if not children:
            break

        nodes = {event.id: node for event, node in level}
        if depth >= max_depth:
            for child in children:
                nodes[child.parent_id].truncated = True
            log.debug("events.tree_truncated", event_id=str(root.id), max_depth=max_depth)
            break

        reads = await enrich_events(session, children)
        next_level = []
        for child, read in zip(children, reads):
            node = EventTree(event=read)
            nodes[child.parent_id].children.append(node)
            next_level.append((child, node))
        level = next_level
        depth += 1

    return root_node


async def list_events(
    session: AsyncSession,
    *,
    type_name: Optional[str] = None,
    status: Optional[str] = None,
    parent_id: Optional[Any] = None,
) -> list[Event]:
    event_type_id = (await registry.resolve(session, type_name)).id if type_name else None
    return await event_store.list_events(
        session,
        event_type_id=event_type_id,
        status=status,
        parent_id=as_uuid(parent_id, "Event") if parent_id is not None else None,
    )


async def list_participations_for_event(session: AsyncSession, event_id: Any) -> list[Participation]:
    event = await event_store.get_event(session, event_id)
    return await participation_store.list_for_event(session, event.id)


async def list_participations_for_entity(session: AsyncSession, entity_id: Any) -> list[Participation]:
    entity = await entity_store.get_entity(session, entity_id)
    return await participation_store.list_for_entity(session, entity.id)


async def remove_participation(session: AsyncSession, participation_id: Any) -> None:
    async with atomic(session):
        participation = await participation_store.get_participation(session, participation_id)
        await participation_store.delete_participation(session, participation)
    log.info(
        "participation.removed",
        participation_id=str(participation.id),
        event_id=str(participation.event_id),
    )
