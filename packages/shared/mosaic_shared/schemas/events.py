"""Event, participation and event-type read schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import UUID4, BaseModel, Field


class EventTypeRead(BaseModel):
    id: UUID4
    name: str
    category: Optional[str] = None
    can_nest: bool
    can_have_children: bool
    requires_participation: bool
    rules: dict[str, Any] = Field(default_factory=dict)
    is_active: bool


class ParticipationRead(BaseModel):
    id: UUID4
    participant_id: UUID4
    event_id: UUID4
    participation_type: str
    role: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    properties: dict[str, Any] = Field(default_factory=dict)


class EventRead(BaseModel):
    id: UUID4
    event_type_id: UUID4
    event_type: Optional[str] = None
    parent_id: Optional[UUID4] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    status: str
    properties: dict[str, Any] = Field(default_factory=dict)
    participations: List[ParticipationRead] = Field(default_factory=list)


class EventTree(BaseModel):
    """An event with its materialized descendants (depth-capped)."""
    event: EventRead
    children: List["EventTree"] = Field(default_factory=list)
    truncated: bool = False


EventTree.model_rebuild()
