"""
Shift service layer: planned work inside an employment.

Handles:
- Shift creation under an employment with containment and overlap checks
- Optional auto-split into work periods around a mandatory unpaid break
- Breaks, work periods and tasks added inside an existing shift
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, List, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import Transaction, atomic
from app.core.errors import OverlapError, ValidationError
from app.models.event import Event
from app.models.participation import Participation
from app.services import events as event_service
from app.services import temporal
from app.services._store import entities as entity_store
from app.services._store import participations as participation_store
from app.services.events import ParticipantSpec
from app.services.fields import as_uuid, normalize_attrs
from mosaic_shared.schemas.common import EntityType, EventStatus, ParticipationType

log = structlog.get_logger()

SHIFT_TYPE = "shift"
WORKER = ParticipationType.WORKER.value

BREAK_AFTER = timedelta(hours=4)
BREAK_LENGTH = timedelta(minutes=30)


@dataclass
class ShiftResult:
    shift: Event
    participation: Participation
    periods: List[Event] = field(default_factory=list)


async def _assert_no_overlap(
    session: AsyncSession,
    worker_id: uuid.UUID,
    start: datetime,
    end: Optional[datetime],
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    candidates = await event_service.list_events_of_type(
        session,
        SHIFT_TYPE,
        participant_id=worker_id,
        exclude_statuses=[EventStatus.CANCELLED.value],
        exclude_id=exclude_id,
        window=(start, end),
    )
    for other in candidates:
        if temporal.overlaps(start, end, other.start_time, other.end_time):
            raise OverlapError(
                "Worker has overlapping shifts",
                errors={"start_time": [f"overlaps shift {other.id}"]},
            )


def _assert_in_employment(values: dict[str, Any], employment: Event) -> None:
    temporal.assert_contained(
        values["start_time"],
        values["end_time"],
        employment.start_time,
        employment.end_time,
        child="Shift",
        parent="employment",
    )


async def create_shift(session: AsyncSession, employment_id: Any, worker_id: Any, attrs: Any) -> ShiftResult:
    """
    Create a shift and its ``worker`` participation under ``employment_id``.

    With ``auto_generate_periods`` the shift is subdivided in the same
    transaction; see ``generate_periods``.
    """
    attrs = normalize_attrs(attrs)
    auto_generate = bool(attrs.pop("auto_generate_periods", False))
    attrs.pop("employment_id", None)
    attrs.pop("worker_id", None)

    async with atomic(session) as tx:
        employment = await event_service.require_event_of_type(session, employment_id, "employment")
        worker = await entity_store.lock_entity(session, worker_id, EntityType.PERSON.value)

        values = await event_service.validated_values(session, SHIFT_TYPE, attrs)
        _assert_in_employment(values, employment)
        await _assert_no_overlap(session, worker.id, values["start_time"], values["end_time"])

        attrs["parent_id"] = employment.id
        created = await event_service.create_event_with_participants(
            tx, SHIFT_TYPE, attrs, [ParticipantSpec(worker.id, WORKER)]
        )
        periods = await generate_periods(tx, created.event, worker.id) if auto_generate else []

    log.info(
        "shift.created",
        shift_id=str(created.event.id),
        employment_id=str(employment.id),
        worker_id=str(worker.id),
        periods=len(periods),
    )
    return ShiftResult(shift=created.event, participation=created.participations[0], periods=periods)


async def generate_periods(tx: Transaction, shift: Event, worker_id: uuid.UUID) -> list[Event]:
    """
    Split ``shift`` into child events.

    Longer than four hours: work period, 30 minute unpaid break, work period.
    Otherwise a single work period covering the whole shift.
    """
    if shift.end_time is None or shift.end_time <= shift.start_time:
        raise ValidationError("Invalid shift duration", errors={"end_time": ["is required for auto-split"]})

    start, end = shift.start_time, shift.end_time
    if end - start > BREAK_AFTER:
        break_start = start + BREAK_AFTER
        break_end = break_start + BREAK_LENGTH
        plan = [
            ("work_period", start, break_start, {}),
            ("break", break_start, break_end, {"is_paid": False}),
            ("work_period", break_end, end, {}),
        ]
    else:
        plan = [("work_period", start, end, {})]

    periods = []
    for type_name, period_start, period_end, properties in plan:
        created = await event_service.create_event_with_participants(
            tx,
            type_name,
            {
                "parent_id": shift.id,
                "start_time": period_start,
                "end_time": period_end,
                "status": EventStatus.ACTIVE.value,
                "properties": properties,
            },
            [ParticipantSpec(worker_id, WORKER)],
        )
        periods.append(created.event)

    log.info("shift.periods_generated", shift_id=str(shift.id), count=len(periods))
    return periods


async def get_shift(session: AsyncSession, shift_id: Any) -> Event:
    return await event_service.require_event_of_type(session, shift_id, SHIFT_TYPE)


async def get_worker_id(session: AsyncSession, shift: Event) -> Optional[uuid.UUID]:
    return await participation_store.get_participant_id(session, shift.id, WORKER)


async def update_shift(session: AsyncSession, shift_id: Any, attrs: Any) -> Event:
    """Re-check containment and overlap against the merged values, excluding self."""
    attrs = normalize_attrs(attrs)
    async with atomic(session) as tx:
        shift = await get_shift(session, shift_id)
        worker_id = await get_worker_id(session, shift)
        if worker_id is not None:
            await entity_store.lock_entity(session, worker_id)

        values = await event_service.validated_values(session, SHIFT_TYPE, attrs, existing=shift)
        if shift.parent_id is not None:
            employment = await event_service.require_event_of_type(session, shift.parent_id, "employment")
            _assert_in_employment(values, employment)
        if worker_id is not None and values["status"] != EventStatus.CANCELLED.value:
            await _assert_no_overlap(
                session, worker_id, values["start_time"], values["end_time"], exclude_id=shift.id
            )
        shift = await event_service.update_event(tx, shift, attrs, SHIFT_TYPE)
    log.info("shift.updated", shift_id=str(shift.id))
    return shift


async def list_shifts_for_employment(session: AsyncSession, employment_id: Any) -> list[Event]:
    employment = await event_service.require_event_of_type(session, employment_id, "employment")
    return await event_service.list_events_of_type(session, SHIFT_TYPE, parent_id=employment.id)


async def list_shifts_for_worker(session: AsyncSession, worker_id: Any) -> list[Event]:
    return await event_service.list_events_of_type(
        session, SHIFT_TYPE, participant_id=as_uuid(worker_id, "Worker"), participation_type=WORKER
    )


# ---------------------------------------------------------------------------
# Sub-events
# ---------------------------------------------------------------------------


async def _add_child(session: AsyncSession, shift_id: Any, type_name: str, attrs: Any) -> Event:
    attrs = normalize_attrs(attrs)
    attrs.setdefault("status", EventStatus.ACTIVE.value)
    async with atomic(session) as tx:
        shift = await get_shift(session, shift_id)
        worker_id = await get_worker_id(session, shift)
        values = await event_service.validated_values(session, type_name, attrs)
        temporal.assert_contained(
            values["start_time"],
            values["end_time"],
            shift.start_time,
            shift.end_time,
            child=type_name.replace("_", " ").capitalize(),
            parent="shift",
        )
        attrs["parent_id"] = shift.id
        participants = [ParticipantSpec(worker_id, WORKER)] if worker_id is not None else []
        created = await event_service.create_event_with_participants(tx, type_name, attrs, participants)
    log.info(f"shift.{type_name}_added", shift_id=str(shift.id), event_id=str(created.event.id))
    return created.event


async def add_break(session: AsyncSession, shift_id: Any, attrs: Any) -> Event:
    return await _add_child(session, shift_id, "break", attrs)


async def add_work_period(session: AsyncSession, shift_id: Any, attrs: Any) -> Event:
    return await _add_child(session, shift_id, "work_period", attrs)


async def add_task(session: AsyncSession, shift_id: Any, attrs: Any) -> Event:
    return await _add_child(session, shift_id, "task", attrs)
