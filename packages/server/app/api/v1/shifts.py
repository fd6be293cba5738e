"""
Shift endpoints: creation (with optional auto-split), updates, sub-events
and derived hours.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import hours, shifts
from app.services.events import enrich_event, get_event_tree
from mosaic_shared.schemas.events import EventRead, EventTree
from mosaic_shared.schemas.shifts import ShiftCreate, ShiftHours, ShiftUpdate, SubEventCreate

router = APIRouter()


@router.post("/", response_model=EventTree, status_code=status.HTTP_201_CREATED)
async def create_shift_endpoint(
    body: ShiftCreate,
    session: AsyncSession = Depends(get_session),
):
    """Create a shift; the response includes any generated periods."""
    result = await shifts.create_shift(session, body.employment_id, body.worker_id, body)
    return await get_event_tree(session, result.shift.id, max_depth=2)


@router.get("/{shift_id}", response_model=EventTree)
async def get_shift_endpoint(
    shift_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    shift = await shifts.get_shift(session, shift_id)
    return await get_event_tree(session, shift.id, max_depth=2)


@router.patch("/{shift_id}", response_model=EventRead)
async def update_shift_endpoint(
    shift_id: uuid.UUID,
    body: ShiftUpdate,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_event(session, await shifts.update_shift(session, shift_id, body))


@router.get("/{shift_id}/hours", response_model=ShiftHours)
async def shift_hours_endpoint(
    shift_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    summary = await hours.shift_summary(session, shift_id)
    return ShiftHours(shift_id=shift_id, **summary)


# ---------------------------------------------------------------------------
# Sub-events
# ---------------------------------------------------------------------------


@router.post("/{shift_id}/breaks", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def add_break_endpoint(
    shift_id: uuid.UUID,
    body: SubEventCreate,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_event(session, await shifts.add_break(session, shift_id, body))


@router.post("/{shift_id}/work-periods", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def add_work_period_endpoint(
    shift_id: uuid.UUID,
    body: SubEventCreate,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_event(session, await shifts.add_work_period(session, shift_id, body))


@router.post("/{shift_id}/tasks", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def add_task_endpoint(
    shift_id: uuid.UUID,
    body: SubEventCreate,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_event(session, await shifts.add_task(session, shift_id, body))
