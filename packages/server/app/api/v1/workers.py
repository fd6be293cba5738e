"""
Worker endpoints: CRUD, search, and the worker's employments, shifts and punches.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.models.entity import Entity
from app.services import employments, shifts, timekeeping, workers
from app.services.events import enrich_event, enrich_events, list_participations_for_entity, to_participation_read
from mosaic_shared.schemas.entities import EntityRead, WorkerCreate, WorkerUpdate
from mosaic_shared.schemas.events import EventRead, ParticipationRead
from mosaic_shared.schemas.timekeeping import ClockPunch

router = APIRouter()


def to_entity_read(entity: Entity) -> EntityRead:
    return EntityRead(
        id=entity.id,
        entity_type=entity.entity_type,
        properties=entity.properties or {},
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )


# ---------------------------------------------------------------------------
# Worker CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=List[EntityRead])
async def list_workers_endpoint(
    q: Optional[str] = Query(None, min_length=1),
    session: AsyncSession = Depends(get_session),
):
    """List workers ordered by name, or search by name/email with ``q``."""
    rows = await workers.search_workers(session, q) if q else await workers.list_workers(session)
    return [to_entity_read(w) for w in rows]


@router.post("/", response_model=EntityRead, status_code=status.HTTP_201_CREATED)
async def create_worker_endpoint(
    body: WorkerCreate,
    session: AsyncSession = Depends(get_session),
):
    return to_entity_read(await workers.create_worker(session, body))


@router.get("/{worker_id}", response_model=EntityRead)
async def get_worker_endpoint(
    worker_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return to_entity_read(await workers.get_worker(session, worker_id))


@router.patch("/{worker_id}", response_model=EntityRead)
async def update_worker_endpoint(
    worker_id: uuid.UUID,
    body: WorkerUpdate,
    session: AsyncSession = Depends(get_session),
):
    return to_entity_read(await workers.update_worker(session, worker_id, body))


@router.delete("/{worker_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_worker_endpoint(
    worker_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    await workers.delete_worker(session, worker_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Worker timeline
# ---------------------------------------------------------------------------


@router.get("/{worker_id}/employments", response_model=List[EventRead])
async def list_worker_employments_endpoint(
    worker_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    rows = await employments.list_employments_for_worker(session, worker_id)
    return await enrich_events(session, rows)


@router.get("/{worker_id}/shifts", response_model=List[EventRead])
async def list_worker_shifts_endpoint(
    worker_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    await workers.get_worker(session, worker_id)
    return await enrich_events(session, await shifts.list_shifts_for_worker(session, worker_id))


@router.get("/{worker_id}/participations", response_model=List[ParticipationRead])
async def list_worker_participations_endpoint(
    worker_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    rows = await list_participations_for_entity(session, worker_id)
    return [to_participation_read(p) for p in rows]


# ---------------------------------------------------------------------------
# Clock punches
# ---------------------------------------------------------------------------


@router.post("/{worker_id}/clock-in", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def clock_in_endpoint(
    worker_id: uuid.UUID,
    body: ClockPunch,
    session: AsyncSession = Depends(get_session),
):
    event = await timekeeping.clock_in(session, worker_id, body)
    return await enrich_event(session, event)


@router.post("/{worker_id}/clock-out", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def clock_out_endpoint(
    worker_id: uuid.UUID,
    body: ClockPunch,
    session: AsyncSession = Depends(get_session),
):
    event = await timekeeping.clock_out(session, worker_id, body)
    return await enrich_event(session, event)


@router.get("/{worker_id}/clock-events", response_model=List[EventRead])
async def list_clock_events_endpoint(
    worker_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    await workers.get_worker(session, worker_id)
    return await enrich_events(session, await timekeeping.list_clock_events(session, worker_id))


@router.get("/{worker_id}/clock-periods", response_model=List[EventRead])
async def list_clock_periods_endpoint(
    worker_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    await workers.get_worker(session, worker_id)
    return await enrich_events(session, await timekeeping.list_clock_periods(session, worker_id))
