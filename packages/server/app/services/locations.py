"""
Location service layer: location entities and their time-bounded hierarchy.

A parent/child link is a ``location_membership`` event carrying two
participations, ``parent_location`` and ``child_location``. A location has at
most one parent at any instant; re-parenting ends the current membership.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlmodel import or_, select

from app.core.database import atomic
from app.core.errors import NotFoundError, OverlapError, ValidationError
from app.models.entity import Entity
from app.models.event import Event
from app.models.event_type import EventType
from app.models.participation import Participation
from app.services import events as event_service
from app.services._store import entities as entity_store
from app.services.events import ParticipantSpec
from app.services.fields import FieldErrors, as_uuid, is_blank, normalize_attrs, parse_datetime
from mosaic_shared.schemas.common import EntityType, EventStatus, ParticipationType

log = structlog.get_logger()

LOCATION_TYPE = EntityType.LOCATION.value
LOCATION_FIELDS = ("name", "address", "capacity", "facilities", "operating_hours")
MEMBERSHIP_TYPE = "location_membership"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def _name_column():
    return Entity.properties["name"].as_string()


def _validate_location(properties: dict[str, Any]) -> None:
    errors = FieldErrors()
    if is_blank(properties.get("name")):
        errors.add("name", "can't be blank")
    if is_blank(properties.get("address")):
        errors.add("address", "can't be blank")
    capacity = properties.get("capacity")
    if capacity is not None and (isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 0):
        errors.add("capacity", "must be a non-negative integer")
    facilities = properties.get("facilities")
    if facilities is not None and not isinstance(facilities, list):
        errors.add("facilities", "must be a list")
    errors.raise_if_any("Invalid location")


def _extract(attrs: dict[str, Any]) -> dict[str, Any]:
    properties = dict(attrs.get("properties") or {})
    for key in LOCATION_FIELDS:
        if key in attrs:
            properties[key] = attrs[key]
    return properties


# ---------------------------------------------------------------------------
# Location CRUD
# ---------------------------------------------------------------------------


async def create_location(session: AsyncSession, attrs: Any) -> Entity:
    properties = _extract(normalize_attrs(attrs))
    properties.setdefault("facilities", [])
    _validate_location(properties)
    async with atomic(session):
        location = await entity_store.create_entity(
            session, {"entity_type": LOCATION_TYPE, "properties": properties}
        )
    log.info("location.created", location_id=str(location.id))
    return location


async def get_location(session: AsyncSession, location_id: Any) -> Entity:
    return await entity_store.get_entity(session, location_id, LOCATION_TYPE)


async def update_location(session: AsyncSession, location_id: Any, attrs: Any) -> Entity:
    patch = _extract(normalize_attrs(attrs))
    async with atomic(session):
        location = await entity_store.get_entity(session, location_id, LOCATION_TYPE)
        _validate_location({**(location.properties or {}), **patch})
        location = await entity_store.update_entity(session, location, {"properties": patch})
    log.info("location.updated", location_id=str(location.id), fields=sorted(patch))
    return location


async def delete_location(session: AsyncSession, location_id: Any) -> None:
    async with atomic(session):
        location = await entity_store.get_entity(session, location_id, LOCATION_TYPE)
        await entity_store.delete_entity(session, location)
    log.info("location.deleted", location_id=str(location_id))


async def list_locations(session: AsyncSession) -> list[Entity]:
    result = await session.execute(
        select(Entity).where(Entity.entity_type == LOCATION_TYPE).order_by(_name_column(), Entity.id)
    )
    return list(result.scalars().all())


async def search_locations(session: AsyncSession, term: str) -> list[Entity]:
    """Case-insensitive substring match on name or address."""
    pattern = f"%{term.lower()}%"
    address = Entity.properties["address"].as_string()
    result = await session.execute(
        select(Entity)
        .where(
            Entity.entity_type == LOCATION_TYPE,
            or_(func.lower(_name_column()).like(pattern), func.lower(address).like(pattern)),
        )
        .order_by(_name_column(), Entity.id)
    )
    return list(result.scalars().all())


async def locations_with_capacity(session: AsyncSession, min_capacity: int) -> list[Entity]:
    capacity = Entity.properties["capacity"].as_integer()
    result = await session.execute(
        select(Entity)
        .where(Entity.entity_type == LOCATION_TYPE, capacity >= min_capacity)
        .order_by(capacity.desc(), Entity.id)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------


def _membership_query(at: datetime, *, statuses: Optional[List[str]] = None):
    parent_p = aliased(Participation)
    child_p = aliased(Participation)
    stmt = (
        select(Event, parent_p.participant_id, child_p.participant_id)
        .join(EventType, EventType.id == Event.event_type_id)
        .join(parent_p, parent_p.event_id == Event.id)
        .join(child_p, child_p.event_id == Event.id)
        .where(
            EventType.name == MEMBERSHIP_TYPE,
            parent_p.participation_type == ParticipationType.PARENT_LOCATION.value,
            child_p.participation_type == ParticipationType.CHILD_LOCATION.value,
            Event.start_time <= at,
            or_(Event.end_time.is_(None), Event.end_time > at),
        )
    )
    if statuses is None:
        stmt = stmt.where(Event.status != EventStatus.CANCELLED.value)
    else:
        stmt = stmt.where(Event.status.in_(statuses))
    return stmt, parent_p, child_p


async def _current_membership(
    session: AsyncSession, location_id: uuid.UUID, at: datetime
) -> Optional[tuple[Event, uuid.UUID]]:
    stmt, _, child_p = _membership_query(at)
    result = await session.execute(
        stmt.where(child_p.participant_id == location_id).order_by(Event.start_time.desc()).limit(1)
    )
    row = result.first()
    return (row[0], row[1]) if row else None


async def _has_membership_after(session: AsyncSession, location_id: uuid.UUID, start: datetime) -> bool:
    child_p = aliased(Participation)
    result = await session.execute(
        select(Event.id)
        .join(EventType, EventType.id == Event.event_type_id)
        .join(child_p, child_p.event_id == Event.id)
        .where(
            EventType.name == MEMBERSHIP_TYPE,
            child_p.participant_id == location_id,
            child_p.participation_type == ParticipationType.CHILD_LOCATION.value,
            Event.start_time > start,
            Event.status != EventStatus.CANCELLED.value,
        )
        .limit(1)
    )
    return result.first() is not None


async def get_parent(session: AsyncSession, location_id: Any, at: Any = None) -> Optional[uuid.UUID]:
    """Parent location id at ``at`` (default now), or None."""
    at = parse_datetime(at) or _utcnow()
    membership = await _current_membership(session, as_uuid(location_id, "Location"), at)
    return membership[1] if membership else None


async def get_children(session: AsyncSession, location_id: Any, at: Any = None) -> list[uuid.UUID]:
    at = parse_datetime(at) or _utcnow()
    stmt, parent_p, child_p = _membership_query(at)
    result = await session.execute(
        stmt.where(parent_p.participant_id == as_uuid(location_id, "Location")).order_by(Event.start_time, Event.id)
    )
    return [row[2] for row in result.all()]


async def _is_descendant(session: AsyncSession, candidate: uuid.UUID, ancestor: uuid.UUID, at: datetime) -> bool:
    seen = set()
    current: Optional[uuid.UUID] = candidate
    while current is not None and current not in seen:
        seen.add(current)
        membership = await _current_membership(session, current, at)
        current = membership[1] if membership else None
        if current == ancestor:
            return True
    return False


async def set_parent(session: AsyncSession, child_id: Any, parent_id: Any, start_time: Any = None) -> Event:
    """
    Link ``child_id`` under ``parent_id`` from ``start_time`` (default now).

    Any membership the child holds at that instant is ended there first. A
    membership of the child starting later rejects the link with OverlapError.
    """
    start = parse_datetime(start_time) or _utcnow()
    async with atomic(session) as tx:
        child = await entity_store.lock_entity(session, child_id, LOCATION_TYPE)
        parent = await entity_store.get_entity(session, parent_id, LOCATION_TYPE)
        if child.id == parent.id:
            raise ValidationError(
                "A location cannot be its own parent",
                errors={"parent_id": ["cannot reference the location itself"]},
            )
        if await _is_descendant(session, parent.id, child.id, start):
            raise ValidationError(
                "Cannot create circular reference: parent is a descendant of child",
                errors={"parent_id": ["would create a cycle"]},
            )

        current = await _current_membership(session, child.id, start)
        if (current is not None and current[0].start_time >= start) or await _has_membership_after(
            session, child.id, start
        ):
            raise OverlapError(
                "Location already has a parent starting at or after this time",
                errors={"start_time": ["overlaps an existing parent relationship"]},
            )
        if current is not None:
            membership, _ = current
            await event_service.update_event(
                tx, membership, {"end_time": start, "status": EventStatus.ENDED.value}, MEMBERSHIP_TYPE
            )

        created = await event_service.create_event_with_participants(
            tx,
            MEMBERSHIP_TYPE,
            {"start_time": start, "status": EventStatus.ACTIVE.value},
            [
                ParticipantSpec(parent.id, ParticipationType.PARENT_LOCATION.value),
                ParticipantSpec(child.id, ParticipationType.CHILD_LOCATION.value),
            ],
        )
    log.info("location.parent_set", child_id=str(child.id), parent_id=str(parent.id))
    return created.event


async def remove_parent(session: AsyncSession, location_id: Any) -> Event:
    """End and cancel the location's active membership."""
    now = _utcnow()
    async with atomic(session) as tx:
        location = await entity_store.lock_entity(session, location_id, LOCATION_TYPE)
        stmt, _, child_p = _membership_query(now, statuses=[EventStatus.ACTIVE.value])
        result = await session.execute(stmt.where(child_p.participant_id == location.id).limit(1))
        row = result.first()
        if row is None:
            raise NotFoundError("No active parent relationship found")
        membership = row[0]
        end = now if now > membership.start_time else membership.start_time + timedelta(seconds=1)
        membership = await event_service.update_event(
            tx, membership, {"end_time": end, "status": EventStatus.CANCELLED.value}, MEMBERSHIP_TYPE
        )
    log.info("location.parent_removed", location_id=str(location.id))
    return membership
