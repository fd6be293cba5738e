"""
Location endpoints: CRUD, capacity search, hierarchy and schedules.

The hierarchy is time-bounded: ``GET .../parent`` and ``GET .../children``
accept an ``at`` instant and default to now.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.workers import to_entity_read
from app.core.database import get_session
from app.services import locations, schedules
from app.services.events import enrich_event, enrich_events
from mosaic_shared.schemas.entities import EntityRead, LocationCreate, LocationParentSet, LocationUpdate
from mosaic_shared.schemas.events import EventRead

router = APIRouter()


@router.get("/", response_model=List[EntityRead])
async def list_locations_endpoint(
    q: Optional[str] = Query(None, min_length=1),
    min_capacity: Optional[int] = Query(None, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """List locations; ``q`` searches name/address, ``min_capacity`` filters by capacity."""
    if q:
        rows = await locations.search_locations(session, q)
    elif min_capacity is not None:
        rows = await locations.locations_with_capacity(session, min_capacity)
    else:
        rows = await locations.list_locations(session)
    return [to_entity_read(loc) for loc in rows]


@router.post("/", response_model=EntityRead, status_code=status.HTTP_201_CREATED)
async def create_location_endpoint(
    body: LocationCreate,
    session: AsyncSession = Depends(get_session),
):
    return to_entity_read(await locations.create_location(session, body))


@router.get("/{location_id}", response_model=EntityRead)
async def get_location_endpoint(
    location_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return to_entity_read(await locations.get_location(session, location_id))


@router.patch("/{location_id}", response_model=EntityRead)
async def update_location_endpoint(
    location_id: uuid.UUID,
    body: LocationUpdate,
    session: AsyncSession = Depends(get_session),
):
    return to_entity_read(await locations.update_location(session, location_id, body))


@router.delete("/{location_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_location_endpoint(
    location_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    await locations.delete_location(session, location_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------


@router.put("/{location_id}/parent", response_model=EventRead)
async def set_parent_endpoint(
    location_id: uuid.UUID,
    body: LocationParentSet,
    session: AsyncSession = Depends(get_session),
):
    membership = await locations.set_parent(session, location_id, body.parent_id, body.start_time)
    return await enrich_event(session, membership)


@router.get("/{location_id}/parent")
async def get_parent_endpoint(
    location_id: uuid.UUID,
    at: Optional[datetime] = None,
    session: AsyncSession = Depends(get_session),
):
    await locations.get_location(session, location_id)
    parent_id = await locations.get_parent(session, location_id, at)
    return {"parent_id": str(parent_id) if parent_id else None}


@router.delete("/{location_id}/parent", response_model=EventRead)
async def remove_parent_endpoint(
    location_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    membership = await locations.remove_parent(session, location_id)
    return await enrich_event(session, membership)


@router.get("/{location_id}/children")
async def get_children_endpoint(
    location_id: uuid.UUID,
    at: Optional[datetime] = None,
    session: AsyncSession = Depends(get_session),
):
    await locations.get_location(session, location_id)
    children = await locations.get_children(session, location_id, at)
    return {"children": [str(c) for c in children]}


@router.get("/{location_id}/schedules", response_model=List[EventRead])
async def list_location_schedules_endpoint(
    location_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    return await enrich_events(session, await schedules.list_schedules_for_location(session, location_id))
