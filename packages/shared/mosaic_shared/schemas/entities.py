"""Entity-related Pydantic schemas (workers, locations, generic entities)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import UUID4, BaseModel, Field


class EntityRead(BaseModel):
    id: UUID4
    entity_type: str
    properties: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Workers
# ---------------------------------------------------------------------------

class WorkerCreate(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None


class WorkerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------

class LocationCreate(BaseModel):
    name: str
    address: str
    capacity: Optional[int] = None
    facilities: list[str] = Field(default_factory=list)
    operating_hours: Optional[str] = None


class LocationUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    capacity: Optional[int] = None
    facilities: Optional[list[str]] = None
    operating_hours: Optional[str] = None


class LocationParentSet(BaseModel):
    """Request body for PUT /locations/{locationId}/parent."""
    parent_id: UUID4
    start_time: Optional[datetime] = None
