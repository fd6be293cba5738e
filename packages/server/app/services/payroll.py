"""Payroll service layer: cost-allocated pieces of a clock period."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import atomic
from app.models.event import Event
from app.services import events as event_service
from app.services import hours, temporal
from app.services.fields import normalize_attrs
from mosaic_shared.schemas.common import EventStatus

log = structlog.get_logger()

PAYROLL_PIECE_TYPE = "payroll_piece"


async def create_payroll_piece(session: AsyncSession, clock_period_id: Any, attrs: Any) -> Event:
    """Create a payroll piece inside the clock period's bounds. No participation."""
    attrs = normalize_attrs(attrs)
    attrs.setdefault("status", EventStatus.ACTIVE.value)

    async with atomic(session) as tx:
        clock_period = await event_service.require_event_of_type(session, clock_period_id, "clock_period")
        values = await event_service.validated_values(session, PAYROLL_PIECE_TYPE, attrs)
        temporal.assert_contained(
            values["start_time"],
            values["end_time"],
            clock_period.start_time,
            clock_period.end_time,
            child="Payroll piece",
            parent="clock period",
        )
        attrs["parent_id"] = clock_period.id
        created = await event_service.create_event_with_participants(tx, PAYROLL_PIECE_TYPE, attrs)
    log.info(
        "payroll_piece.created",
        payroll_piece_id=str(created.event.id),
        clock_period_id=str(clock_period.id),
        rate_type=created.event.properties.get("rate_type"),
    )
    return created.event


async def list_payroll_pieces(session: AsyncSession, clock_period_id: Any) -> list[Event]:
    clock_period = await event_service.require_event_of_type(session, clock_period_id, "clock_period")
    return await event_service.list_events_of_type(session, PAYROLL_PIECE_TYPE, parent_id=clock_period.id)


async def hours_by_rate_type(session: AsyncSession, clock_period_id: Any) -> dict[str, float]:
    return await hours.hours_by_rate_type_for_clock_period(session, clock_period_id)
