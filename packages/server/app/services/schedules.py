"""
Schedule service layer: planning windows scoped to a location.

A schedule is a ``schedule`` event with a ``location_scope`` participation.
Drafts may overlap freely; publishing requires that no other active schedule
of the same location overlaps.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import atomic
from app.core.errors import OverlapError
from app.models.event import Event
from app.models.participation import Participation
from app.services import events as event_service
from app.services import temporal
from app.services._store import entities as entity_store
from app.services._store import participations as participation_store
from app.services.events import ParticipantSpec
from app.services.fields import normalize_attrs
from mosaic_shared.schemas.common import EntityType, EventStatus, ParticipationType

log = structlog.get_logger()

SCHEDULE_TYPE = "schedule"
LOCATION_SCOPE = ParticipationType.LOCATION_SCOPE.value


@dataclass
class ScheduleResult:
    schedule: Event
    participation: Participation


async def create_schedule(session: AsyncSession, location_id: Any, attrs: Any) -> ScheduleResult:
    attrs = normalize_attrs(attrs)
    attrs.pop("location_id", None)
    attrs.setdefault("status", EventStatus.DRAFT.value)

    async with atomic(session) as tx:
        location = await entity_store.lock_entity(session, location_id, EntityType.LOCATION.value)
        values = await event_service.validated_values(session, SCHEDULE_TYPE, attrs)
        if values["status"] == EventStatus.ACTIVE.value:
            await _assert_no_active_overlap(session, location.id, values)
        created = await event_service.create_event_with_participants(
            tx, SCHEDULE_TYPE, attrs, [ParticipantSpec(location.id, LOCATION_SCOPE)]
        )
    log.info("schedule.created", schedule_id=str(created.event.id), location_id=str(location.id))
    return ScheduleResult(schedule=created.event, participation=created.participations[0])


async def get_schedule(session: AsyncSession, schedule_id: Any) -> Event:
    return await event_service.require_event_of_type(session, schedule_id, SCHEDULE_TYPE)


async def get_location_id(session: AsyncSession, schedule: Event) -> Optional[uuid.UUID]:
    return await participation_store.get_participant_id(session, schedule.id, LOCATION_SCOPE)


async def _assert_no_active_overlap(
    session: AsyncSession,
    location_id: Optional[uuid.UUID],
    values: dict[str, Any],
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    if location_id is None:
        return
    await entity_store.lock_entity(session, location_id)
    candidates = await event_service.list_events_of_type(
        session,
        SCHEDULE_TYPE,
        participant_id=location_id,
        participation_type=LOCATION_SCOPE,
        statuses=[EventStatus.ACTIVE.value],
        exclude_id=exclude_id,
        window=(values["start_time"], values["end_time"]),
    )
    for other in candidates:
        if temporal.overlaps(values["start_time"], values["end_time"], other.start_time, other.end_time):
            raise OverlapError(
                "Location already has an active schedule for this period",
                errors={"start_time": [f"overlaps schedule {other.id}"]},
            )


async def update_schedule(session: AsyncSession, schedule_id: Any, attrs: Any) -> Event:
    attrs = normalize_attrs(attrs)
    async with atomic(session) as tx:
        schedule = await get_schedule(session, schedule_id)
        values = await event_service.validated_values(session, SCHEDULE_TYPE, attrs, existing=schedule)
        if values["status"] == EventStatus.ACTIVE.value:
            await _assert_no_active_overlap(
                session, await get_location_id(session, schedule), values, exclude_id=schedule.id
            )
        schedule = await event_service.update_event(tx, schedule, attrs, SCHEDULE_TYPE)
    log.info("schedule.updated", schedule_id=str(schedule.id))
    return schedule


async def publish_schedule(session: AsyncSession, schedule_id: Any) -> Event:
    """Mark the schedule active and stamp ``published_at``."""
    async with atomic(session) as tx:
        schedule = await get_schedule(session, schedule_id)
        attrs = {
            "status": EventStatus.ACTIVE.value,
            "properties": {
                **(schedule.properties or {}),
                "published_at": datetime.now(timezone.utc).isoformat(),
            },
        }
        values = await event_service.validated_values(session, SCHEDULE_TYPE, attrs, existing=schedule)
        await _assert_no_active_overlap(
            session, await get_location_id(session, schedule), values, exclude_id=schedule.id
        )
        schedule = await event_service.update_event(tx, schedule, attrs, SCHEDULE_TYPE)
    log.info("schedule.published", schedule_id=str(schedule.id))
    return schedule


async def archive_schedule(session: AsyncSession, schedule_id: Any) -> Event:
    async with atomic(session) as tx:
        schedule = await get_schedule(session, schedule_id)
        schedule = await event_service.update_event(
            tx, schedule, {"status": EventStatus.COMPLETED.value}, SCHEDULE_TYPE
        )
    log.info("schedule.archived", schedule_id=str(schedule.id))
    return schedule


async def list_schedules(session: AsyncSession) -> list[Event]:
    schedules = await event_service.list_events_of_type(session, SCHEDULE_TYPE)
    return sorted(schedules, key=lambda e: e.start_time, reverse=True)


async def list_schedules_for_location(session: AsyncSession, location_id: Any) -> list[Event]:
    location = await entity_store.get_entity(session, location_id, EntityType.LOCATION.value)
    schedules = await event_service.list_events_of_type(
        session, SCHEDULE_TYPE, participant_id=location.id, participation_type=LOCATION_SCOPE
    )
    return sorted(schedules, key=lambda e: e.start_time, reverse=True)
