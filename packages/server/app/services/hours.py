"""
Derived time measures over event trees.

The ``*_hours`` functions are pure and operate on already-loaded child rows;
the ``*_for_*`` coroutines load the children of one shift or clock period and
delegate. All reads, no writes.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.event import Event
from app.models.event_type import EventType
from app.services import temporal
from app.services.events import require_event_of_type
from mosaic_shared.schemas.common import RateType

DEFAULT_RATE_TYPE = RateType.REGULAR.value

# (type name, event) pairs; the type name is resolved once per query.
TypedEvents = Iterable[tuple[str, Event]]


def duration(event: Event) -> Optional[float]:
    """Length in hours, or None while the event is open-ended."""
    return event.duration_hours()


def _sum(durations: Iterable[Optional[float]]) -> float:
    return float(sum(d for d in durations if d is not None))


def worked_hours(children: TypedEvents) -> float:
    return _sum(duration(e) for name, e in children if name == "work_period")


def break_hours(children: TypedEvents) -> float:
    return _sum(duration(e) for name, e in children if name == "break")


def _is_unpaid(event: Event) -> bool:
    return (event.properties or {}).get("is_paid") is False


def unpaid_break_hours(children: TypedEvents) -> float:
    return _sum(duration(e) for name, e in children if name == "break" and _is_unpaid(e))


def net_hours(children: TypedEvents) -> float:
    """
    Worked hours less the unpaid break time that falls inside work periods.

    Breaks generated by the shift auto-split sit between work periods, so they
    are already absent from worked time and deduct nothing.
    """
    children = list(children)
    periods = [e for name, e in children if name == "work_period" and e.end_time is not None]
    unpaid = [e for name, e in children if name == "break" and _is_unpaid(e)]
    deducted = sum(
        temporal.overlap_hours(b.start_time, b.end_time, p.start_time, p.end_time)
        for b in unpaid
        for p in periods
    )
    return worked_hours(children) - deducted


def hours_by_rate_type(children: TypedEvents) -> dict[str, float]:
    """Payroll piece hours keyed by ``rate_type``; unset means regular."""
    totals: dict[str, float] = defaultdict(float)
    for name, event in children:
        if name != "payroll_piece":
            continue
        hours = duration(event)
        if hours is None:
            continue
        rate_type = (event.properties or {}).get("rate_type") or DEFAULT_RATE_TYPE
        totals[rate_type] += hours
    return dict(totals)


async def load_children(session: AsyncSession, parent_id: Any) -> list[tuple[str, Event]]:
    result = await session.execute(
        select(EventType.name, Event)
        .join(EventType, EventType.id == Event.event_type_id)
        .where(Event.parent_id == parent_id)
        .order_by(Event.start_time, Event.id)
    )
    return [(row[0], row[1]) for row in result.all()]


async def shift_summary(session: AsyncSession, shift_id: Any) -> dict[str, float]:
    shift = await require_event_of_type(session, shift_id, "shift")
    children = await load_children(session, shift.id)
    return {
        "worked_hours": worked_hours(children),
        "break_hours": break_hours(children),
        "unpaid_break_hours": unpaid_break_hours(children),
        "net_hours": net_hours(children),
    }


async def worked_hours_for_shift(session: AsyncSession, shift_id: Any) -> float:
    return (await shift_summary(session, shift_id))["worked_hours"]


async def break_hours_for_shift(session: AsyncSession, shift_id: Any) -> float:
    return (await shift_summary(session, shift_id))["break_hours"]


async def unpaid_break_hours_for_shift(session: AsyncSession, shift_id: Any) -> float:
    return (await shift_summary(session, shift_id))["unpaid_break_hours"]


async def net_hours_for_shift(session: AsyncSession, shift_id: Any) -> float:
    return (await shift_summary(session, shift_id))["net_hours"]


async def hours_by_rate_type_for_clock_period(session: AsyncSession, clock_period_id: Any) -> dict[str, float]:
    clock_period = await require_event_of_type(session, clock_period_id, "clock_period")
    return hours_by_rate_type(await load_children(session, clock_period.id))
