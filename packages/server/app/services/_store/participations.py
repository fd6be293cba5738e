"""Participation store: typed links between entities and events."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, ContainmentError, NotFoundError
from app.models.entity import Entity
from app.models.event import Event
from app.models.participation import Participation
from app.services import temporal
from app.services.fields import FieldErrors, as_uuid, cast_datetime, is_blank, normalize_attrs


def _validate(attrs: dict[str, Any], event: Event) -> dict[str, Any]:
    errors = FieldErrors()
    participation_type = attrs.get("participation_type")
    if is_blank(participation_type):
        errors.add("participation_type", "can't be blank")
    elif not isinstance(participation_type, str):
        errors.add("participation_type", "is invalid")

    role = attrs.get("role")
    if role is not None and not isinstance(role, str):
        errors.add("role", "is invalid")

    start = cast_datetime(attrs, "start_time", errors)
    end = cast_datetime(attrs, "end_time", errors)
    if start is not None and end is not None and end <= start:
        errors.add("end_time", "must be after start time")

    properties = attrs.get("properties") or {}
    if not isinstance(properties, Mapping) or not all(isinstance(k, str) for k in properties):
        errors.add("properties", "must be a map with string keys")

    errors.raise_if_any("Invalid participation")

    # Sub-bounds may narrow the event's span, never widen it.
    if start is not None and not temporal.is_contained(start, end or event.end_time, event.start_time, event.end_time):
        raise ContainmentError("Participation falls outside its event")
    if start is None and end is not None and event.end_time is not None and end > event.end_time:
        raise ContainmentError("Participation ends after its event")

    return {
        "participation_type": participation_type,
        "role": role,
        "start_time": start,
        "end_time": end,
        "properties": dict(properties),
    }


async def create_participation(
    session: AsyncSession,
    participant_id: Any,
    event_id: Any,
    attrs: Any,
) -> Participation:
    attrs = normalize_attrs(attrs)
    participant_uuid = as_uuid(participant_id, "Participant")
    event_uuid = as_uuid(event_id, "Event")

    if await session.get(Entity, participant_uuid) is None:
        raise NotFoundError(f"Participant not found: {participant_id}")
    event = await session.get(Event, event_uuid)
    if event is None:
        raise NotFoundError(f"Event not found: {event_id}")

    values = _validate(attrs, event)

    existing = await session.execute(
        select(Participation.id).where(
            Participation.participant_id == participant_uuid,
            Participation.event_id == event_uuid,
            Participation.participation_type == values["participation_type"],
        )
    )
    if existing.first() is not None:
        raise ConflictError(
            "Participation already exists",
            errors={"participation_type": ["has already been taken"]},
        )

    participation = Participation(participant_id=participant_uuid, event_id=event_uuid, **values)
    try:
        async with session.begin_nested():
            session.add(participation)
    except IntegrityError as exc:
        # Lost a race with a concurrent writer; the unique index decides.
        raise ConflictError(
            "Participation already exists",
            errors={"participation_type": ["has already been taken"]},
        ) from exc
    return participation


async def get_participation(session: AsyncSession, participation_id: Any) -> Participation:
    participation = await session.get(Participation, as_uuid(participation_id, "Participation"))
    if participation is None:
        raise NotFoundError(f"Participation not found: {participation_id}")
    return participation


async def delete_participation(session: AsyncSession, participation: Participation) -> None:
    await session.delete(participation)
    await session.flush()


async def list_for_event(
    session: AsyncSession,
    event_id: uuid.UUID,
    participation_type: Optional[str] = None,
) -> list[Participation]:
    stmt = select(Participation).where(Participation.event_id == event_id)
    if participation_type is not None:
        stmt = stmt.where(Participation.participation_type == participation_type)
    result = await session.execute(stmt.order_by(Participation.created_at, Participation.id))
    return list(result.scalars().all())


async def list_for_entity(
    session: AsyncSession,
    participant_id: uuid.UUID,
    participation_type: Optional[str] = None,
) -> list[Participation]:
    stmt = select(Participation).where(Participation.participant_id == participant_id)
    if participation_type is not None:
        stmt = stmt.where(Participation.participation_type == participation_type)
    result = await session.execute(stmt.order_by(Participation.created_at, Participation.id))
    return list(result.scalars().all())


async def get_participant_id(
    session: AsyncSession,
    event_id: uuid.UUID,
    participation_type: str,
) -> Optional[uuid.UUID]:
    """First participant linked to ``event_id`` with the given type, if any."""
    result = await session.execute(
        select(Participation.participant_id)
        .where(
            Participation.event_id == event_id,
            Participation.participation_type == participation_type,
        )
        .order_by(Participation.created_at, Participation.id)
        .limit(1)
    )
    row = result.first()
    return row[0] if row else None
