"""
Timekeeping endpoints: clock periods, their payroll pieces and rate summaries.

Clock punches themselves are posted under ``/workers/{worker_id}``.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import payroll, timekeeping
from app.services.events import enrich_event, enrich_events
from mosaic_shared.schemas.events import EventRead
from mosaic_shared.schemas.timekeeping import ClockPeriodCreate, PayrollPieceCreate, RateTypeHours

router = APIRouter()


@router.post("/clock-periods", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_clock_period_endpoint(
    body: ClockPeriodCreate,
    session: AsyncSession = Depends(get_session),
):
    period = await timekeeping.create_clock_period(
        session, body.worker_id, body.clock_in_event_id, body.clock_out_event_id
    )
    return await enrich_event(session, period)


@router.post(
    "/clock-periods/{clock_period_id}/payroll-pieces",
    response_model=EventRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_payroll_piece_endpoint(
    clock_period_id: uuid.UUID,
    body: PayrollPieceCreate,
    session: AsyncSession = Depends(get_session),
):
    piece = await payroll.create_payroll_piece(session, clock_period_id, body)
    return await enrich_event(session, piece)


@router.get("/clock-periods/{clock_period_id}/payroll-pieces", response_model=List[EventRead])
async def list_payroll_pieces_endpoint(
    clock_period_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_events(session, await payroll.list_payroll_pieces(session, clock_period_id))


@router.get("/clock-periods/{clock_period_id}/hours", response_model=RateTypeHours)
async def rate_type_hours_endpoint(
    clock_period_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    totals = await payroll.hours_by_rate_type(session, clock_period_id)
    return RateTypeHours(clock_period_id=clock_period_id, hours=totals)
