"""
Read-only event endpoints: listing, detail, tree materialization and the
event type catalog. Participations can be detached here as well.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import events as event_service
from app.services import registry
from mosaic_shared.schemas.common import EventStatus
from mosaic_shared.schemas.events import EventRead, EventTree, EventTypeRead, ParticipationRead

router = APIRouter()


@router.get("/types", response_model=List[EventTypeRead])
async def list_event_types_endpoint(session: AsyncSession = Depends(get_session)):
    rows = await registry.list_event_types(session)
    return [
        EventTypeRead(
            id=t.id,
            name=t.name,
            category=t.category,
            can_nest=t.can_nest,
            can_have_children=t.can_have_children,
            requires_participation=t.requires_participation,
            rules=t.rules or {},
            is_active=t.is_active,
        )
        for t in rows
    ]


@router.get("/", response_model=List[EventRead])
async def list_events_endpoint(
    type: Optional[str] = None,
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    parent_id: Optional[uuid.UUID] = None,
    session: AsyncSession = Depends(get_session),
):
    rows = await event_service.list_events(
        session,
        type_name=type,
        status=status_filter.value if status_filter else None,
        parent_id=parent_id,
    )
    return await event_service.enrich_events(session, rows)


@router.get("/{event_id}")
async def get_event_endpoint(
    event_id: uuid.UUID,
    include_children: bool = False,
    include_parent: bool = False,
    include_participations: bool = True,
    session: AsyncSession = Depends(get_session),
):
    detail = await event_service.get_event(
        session,
        event_id,
        include_children=include_children,
        include_parent=include_parent,
        include_participations=include_participations,
    )
    return {
        "event": detail.event.model_dump(mode="json"),
        "parent": detail.parent.model_dump(mode="json") if detail.parent else None,
        "children": [c.model_dump(mode="json") for c in detail.children],
    }


@router.get("/{event_id}/tree", response_model=EventTree)
async def get_event_tree_endpoint(
    event_id: uuid.UUID,
    max_depth: Optional[int] = Query(None, ge=1),
    session: AsyncSession = Depends(get_session),
):
    return await event_service.get_event_tree(session, event_id, max_depth)


@router.get("/{event_id}/participations", response_model=List[ParticipationRead])
async def list_event_participations_endpoint(
    event_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    rows = await event_service.list_participations_for_event(session, event_id)
    return [event_service.to_participation_read(p) for p in rows]


@router.delete("/participations/{participation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_participation_endpoint(
    participation_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    await event_service.remove_participation(session, participation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
