"""
Timekeeping service layer: clock punches and the periods consolidated from them.

A punch is a ``clock_event`` spanning one second, ``[t, t+1s)``, tagged with
``clock_type`` in/out. A clock period spans from a clock-in to a clock-out of
the same worker and records the planned shift it most likely belongs to.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import atomic
from app.core.errors import ValidationError
from app.models.event import Event
from app.models.event_type import EventType
from app.models.participation import Participation
from app.services import events as event_service
from app.services._store import entities as entity_store
from app.services._store import participations as participation_store
from app.services.events import ParticipantSpec
from app.services.fields import as_uuid, normalize_attrs, parse_datetime
from mosaic_shared.schemas.common import ClockType, EntityType, EventStatus, ParticipationType

log = structlog.get_logger()

CLOCK_EVENT_TYPE = "clock_event"
CLOCK_PERIOD_TYPE = "clock_period"
WORKER = ParticipationType.WORKER.value
PUNCH_LENGTH = timedelta(seconds=1)
PUNCH_FIELDS = ("device_id", "location_id", "gps_coords")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


async def _punch(session: AsyncSession, worker_id: Any, clock_type: ClockType, opts: Any) -> Event:
    opts = normalize_attrs(opts)
    timestamp = parse_datetime(opts.get("timestamp")) or _utcnow()
    properties = {key: opts[key] for key in PUNCH_FIELDS if opts.get(key) is not None}
    properties["clock_type"] = clock_type.value

    async with atomic(session) as tx:
        worker = await entity_store.lock_entity(session, worker_id, EntityType.PERSON.value)
        created = await event_service.create_event_with_participants(
            tx,
            CLOCK_EVENT_TYPE,
            {
                "start_time": timestamp,
                "end_time": timestamp + PUNCH_LENGTH,
                "status": EventStatus.ACTIVE.value,
                "properties": properties,
            },
            [ParticipantSpec(worker.id, WORKER)],
        )
    log.info(f"timekeeping.clock_{clock_type.value}", worker_id=str(worker.id), event_id=str(created.event.id))
    return created.event


async def clock_in(session: AsyncSession, worker_id: Any, opts: Any = None) -> Event:
    """Record a clock-in at ``opts['timestamp']`` (default now, whole seconds)."""
    return await _punch(session, worker_id, ClockType.IN, opts)


async def clock_out(session: AsyncSession, worker_id: Any, opts: Any = None) -> Event:
    return await _punch(session, worker_id, ClockType.OUT, opts)


async def _require_punch(session: AsyncSession, event_id: Any, expected: ClockType) -> Event:
    event = await event_service.require_event_of_type(session, event_id, CLOCK_EVENT_TYPE)
    if (event.properties or {}).get("clock_type") != expected.value:
        raise ValidationError(
            f"Clock event {event_id} is not a clock-{expected.value} event",
            errors={f"clock_{expected.value}_event_id": [f"must reference a clock-{expected.value} event"]},
        )
    return event


async def find_matching_shift(session: AsyncSession, worker_id: uuid.UUID, clock_time: datetime) -> Optional[uuid.UUID]:
    """
    Earliest non-cancelled shift of the worker whose bounds contain ``clock_time``.

    No match is not an error. When several shifts qualify the earliest start
    wins and the ambiguity is logged for reconciliation.
    """
    result = await session.execute(
        select(Event.id)
        .join(EventType, EventType.id == Event.event_type_id)
        .join(Participation, Participation.event_id == Event.id)
        .where(
            EventType.name == "shift",
            Participation.participant_id == worker_id,
            Participation.participation_type == WORKER,
            Event.start_time <= clock_time,
            Event.end_time >= clock_time,
            Event.status != EventStatus.CANCELLED.value,
        )
        .order_by(Event.start_time, Event.id)
    )
    matches = [row[0] for row in result.all()]
    if len(matches) > 1:
        log.warning(
            "clock_period.shift_match_ambiguous",
            worker_id=str(worker_id),
            clock_time=clock_time.isoformat(),
            candidates=[str(m) for m in matches],
        )
    return matches[0] if matches else None


async def create_clock_period(
    session: AsyncSession,
    worker_id: Any,
    clock_in_event_id: Any,
    clock_out_event_id: Any,
) -> Event:
    async with atomic(session) as tx:
        worker = await entity_store.lock_entity(session, worker_id, EntityType.PERSON.value)
        punch_in = await _require_punch(session, clock_in_event_id, ClockType.IN)
        punch_out = await _require_punch(session, clock_out_event_id, ClockType.OUT)

        if punch_in.start_time >= punch_out.start_time:
            raise ValidationError(
                "Clock-out must be after clock-in",
                errors={"clock_out_event_id": ["must be after clock-in"]},
            )
        for label, punch in (("in", punch_in), ("out", punch_out)):
            if await participation_store.get_participant_id(session, punch.id, WORKER) != worker.id:
                raise ValidationError(
                    f"Clock-{label} event does not belong to worker",
                    errors={f"clock_{label}_event_id": ["belongs to another worker"]},
                )

        shift_id = await find_matching_shift(session, worker.id, punch_in.start_time)
        created = await event_service.create_event_with_participants(
            tx,
            CLOCK_PERIOD_TYPE,
            {
                "start_time": punch_in.start_time,
                "end_time": punch_out.start_time,
                "status": EventStatus.ACTIVE.value,
                "properties": {
                    "clock_in_event_id": str(punch_in.id),
                    "clock_out_event_id": str(punch_out.id),
                    "planned_shift_id": str(shift_id) if shift_id else None,
                },
            },
            [ParticipantSpec(worker.id, WORKER)],
        )
    log.info(
        "clock_period.created",
        clock_period_id=str(created.event.id),
        worker_id=str(worker.id),
        planned_shift_id=str(shift_id) if shift_id else None,
    )
    return created.event


async def list_clock_events(session: AsyncSession, worker_id: Any) -> list[Event]:
    return await event_service.list_events_of_type(
        session, CLOCK_EVENT_TYPE, participant_id=as_uuid(worker_id, "Worker"), participation_type=WORKER
    )


async def list_clock_periods(session: AsyncSession, worker_id: Any) -> list[Event]:
    return await event_service.list_events_of_type(
        session, CLOCK_PERIOD_TYPE, participant_id=as_uuid(worker_id, "Worker"), participation_type=WORKER
    )
