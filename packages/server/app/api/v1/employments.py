"""
Employment endpoints.

An employment is created for one worker; overlapping active employments for
the same worker are rejected with 409.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import employments, shifts
from app.services.events import enrich_event, enrich_events
from mosaic_shared.schemas.employments import EmploymentCreate, EmploymentUpdate
from mosaic_shared.schemas.events import EventRead

router = APIRouter()


@router.get("/", response_model=List[EventRead])
async def list_employments_endpoint(session: AsyncSession = Depends(get_session)):
    return await enrich_events(session, await employments.list_employments(session))


@router.post("/", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_employment_endpoint(
    body: EmploymentCreate,
    session: AsyncSession = Depends(get_session),
):
    result = await employments.create_employment(session, body.worker_id, body)
    return await enrich_event(session, result.employment)


@router.get("/{employment_id}", response_model=EventRead)
async def get_employment_endpoint(
    employment_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_event(session, await employments.get_employment(session, employment_id))


@router.patch("/{employment_id}", response_model=EventRead)
async def update_employment_endpoint(
    employment_id: uuid.UUID,
    body: EmploymentUpdate,
    session: AsyncSession = Depends(get_session),
):
    employment = await employments.update_employment(session, employment_id, body)
    return await enrich_event(session, employment)


@router.get("/{employment_id}/shifts", response_model=List[EventRead])
async def list_employment_shifts_endpoint(
    employment_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_events(session, await shifts.list_shifts_for_employment(session, employment_id))
