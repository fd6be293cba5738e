"""Schedule request schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import UUID4, BaseModel, Field


class ScheduleCreate(BaseModel):
    location_id: UUID4
    start_time: datetime
    end_time: datetime
    timezone: Optional[str] = None
    recurrence_rule: Optional[str] = None
    coverage_notes: Optional[str] = None
    properties: dict[str, Any] = Field(default_factory=dict)


class ScheduleUpdate(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    timezone: Optional[str] = None
    recurrence_rule: Optional[str] = None
    coverage_notes: Optional[str] = None
    version: Optional[int] = None
