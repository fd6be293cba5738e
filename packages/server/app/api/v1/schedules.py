"""
Schedule endpoints: draft, publish and archive location schedules.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import schedules
from app.services.events import enrich_event, enrich_events
from mosaic_shared.schemas.events import EventRead
from mosaic_shared.schemas.schedules import ScheduleCreate, ScheduleUpdate

router = APIRouter()


@router.get("/", response_model=List[EventRead])
async def list_schedules_endpoint(session: AsyncSession = Depends(get_session)):
    return await enrich_events(session, await schedules.list_schedules(session))


@router.post("/", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_schedule_endpoint(
    body: ScheduleCreate,
    session: AsyncSession = Depends(get_session),
):
    result = await schedules.create_schedule(session, body.location_id, body)
    return await enrich_event(session, result.schedule)


@router.get("/{schedule_id}", response_model=EventRead)
async def get_schedule_endpoint(
    schedule_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_event(session, await schedules.get_schedule(session, schedule_id))


@router.patch("/{schedule_id}", response_model=EventRead)
async def update_schedule_endpoint(
    schedule_id: uuid.UUID,
    body: ScheduleUpdate,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_event(session, await schedules.update_schedule(session, schedule_id, body))


@router.post("/{schedule_id}/publish", response_model=EventRead)
async def publish_schedule_endpoint(
    schedule_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_event(session, await schedules.publish_schedule(session, schedule_id))


@router.post("/{schedule_id}/archive", response_model=EventRead)
async def archive_schedule_endpoint(
    schedule_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_event(session, await schedules.archive_schedule(session, schedule_id))
