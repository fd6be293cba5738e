"""Employment request schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import UUID4, BaseModel, Field

from .common import EventStatus


class EmploymentCreate(BaseModel):
    worker_id: UUID4
    start_time: datetime
    end_time: Optional[datetime] = None
    status: EventStatus = EventStatus.DRAFT
    role: Optional[str] = None
    contract_type: Optional[str] = None
    salary: Optional[float] = None
    properties: dict[str, Any] = Field(default_factory=dict)
    participation_properties: dict[str, Any] = Field(default_factory=dict)


class EmploymentUpdate(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[EventStatus] = None
    role: Optional[str] = None
    contract_type: Optional[str] = None
    salary: Optional[float] = None
