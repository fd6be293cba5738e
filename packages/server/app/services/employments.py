"""
Employment service layer: contract periods linking a worker to the organization.

An employment is an ``employment`` event with an ``employee`` participation.
A worker may not hold two overlapping active employments.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import atomic
from app.core.errors import OverlapError
from app.models.event import Event
from app.models.event_type import EventType
from app.models.participation import Participation
from app.services import events as event_service
from app.services import temporal
from app.services._store import entities as entity_store
from app.services._store import participations as participation_store
from app.services.events import ParticipantSpec
from app.services.fields import as_uuid, normalize_attrs
from mosaic_shared.schemas.common import EntityType, EventStatus, ParticipationType

log = structlog.get_logger()

EMPLOYMENT_TYPE = "employment"
EMPLOYEE = ParticipationType.EMPLOYEE.value


@dataclass
class EmploymentResult:
    employment: Event
    participation: Participation


async def _assert_no_overlap(
    session: AsyncSession,
    worker_id: uuid.UUID,
    start: datetime,
    end: Optional[datetime],
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    candidates = await event_service.list_events_of_type(
        session,
        EMPLOYMENT_TYPE,
        participant_id=worker_id,
        participation_type=EMPLOYEE,
        statuses=[EventStatus.ACTIVE.value],
        exclude_id=exclude_id,
        window=(start, end),
    )
    for other in candidates:
        if temporal.overlaps(start, end, other.start_time, other.end_time):
            raise OverlapError(
                "Worker has overlapping active employment periods",
                errors={"start_time": [f"overlaps employment {other.id}"]},
            )


async def create_employment(session: AsyncSession, worker_id: Any, attrs: Any) -> EmploymentResult:
    attrs = normalize_attrs(attrs)
    attrs.pop("worker_id", None)
    participation_properties = attrs.pop("participation_properties", None) or {}

    async with atomic(session) as tx:
        worker = await entity_store.lock_entity(session, worker_id, EntityType.PERSON.value)
        values = await event_service.validated_values(session, EMPLOYMENT_TYPE, attrs)
        await _assert_no_overlap(session, worker.id, values["start_time"], values["end_time"])

        created = await event_service.create_event_with_participants(
            tx,
            EMPLOYMENT_TYPE,
            attrs,
            [ParticipantSpec(worker.id, EMPLOYEE, role=attrs.get("role"), properties=participation_properties)],
        )
    log.info("employment.created", employment_id=str(created.event.id), worker_id=str(worker.id))
    return EmploymentResult(employment=created.event, participation=created.participations[0])


async def get_employment(session: AsyncSession, employment_id: Any) -> Event:
    return await event_service.require_event_of_type(session, employment_id, EMPLOYMENT_TYPE)


async def get_worker_id(session: AsyncSession, employment: Event) -> Optional[uuid.UUID]:
    return await participation_store.get_participant_id(session, employment.id, EMPLOYEE)


async def update_employment(session: AsyncSession, employment_id: Any, attrs: Any) -> Event:
    """Apply ``attrs`` and re-check overlap on the merged values, excluding self."""
    attrs = normalize_attrs(attrs)
    async with atomic(session) as tx:
        employment = await get_employment(session, employment_id)
        worker_id = await get_worker_id(session, employment)
        if worker_id is not None:
            await entity_store.lock_entity(session, worker_id)
        values = await event_service.validated_values(session, EMPLOYMENT_TYPE, attrs, existing=employment)
        if worker_id is not None:
            await _assert_no_overlap(
                session, worker_id, values["start_time"], values["end_time"], exclude_id=employment.id
            )
        employment = await event_service.update_event(tx, employment, attrs, EMPLOYMENT_TYPE)
    log.info("employment.updated", employment_id=str(employment.id))
    return employment


async def list_employments(session: AsyncSession) -> list[Event]:
    employments = await event_service.list_events_of_type(session, EMPLOYMENT_TYPE)
    return sorted(employments, key=lambda e: e.start_time, reverse=True)


async def list_employments_for_worker(session: AsyncSession, worker_id: Any) -> list[Event]:
    worker = await entity_store.get_entity(session, worker_id, EntityType.PERSON.value)
    employments = await event_service.list_events_of_type(
        session, EMPLOYMENT_TYPE, participant_id=worker.id, participation_type=EMPLOYEE
    )
    return sorted(employments, key=lambda e: e.start_time, reverse=True)


async def count_active_employments(session: AsyncSession, worker_id: Any) -> int:
    result = await session.execute(
        select(func.count(Event.id))
        .join(EventType, EventType.id == Event.event_type_id)
        .join(Participation, Participation.event_id == Event.id)
        .where(
            EventType.name == EMPLOYMENT_TYPE,
            Participation.participant_id == as_uuid(worker_id, "Worker"),
            Participation.participation_type == EMPLOYEE,
            Event.status == EventStatus.ACTIVE.value,
        )
    )
    return result.scalar_one()
