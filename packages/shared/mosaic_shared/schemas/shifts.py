"""Shift and shift sub-event request schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import UUID4, BaseModel, Field

from .common import EventStatus


class ShiftCreate(BaseModel):
    employment_id: UUID4
    worker_id: UUID4
    start_time: datetime
    end_time: datetime
    status: EventStatus = EventStatus.DRAFT
    location: Optional[str] = None
    department: Optional[str] = None
    notes: Optional[str] = None
    properties: dict[str, Any] = Field(default_factory=dict)
    auto_generate_periods: bool = False


class ShiftUpdate(BaseModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: Optional[EventStatus] = None
    location: Optional[str] = None
    department: Optional[str] = None
    notes: Optional[str] = None


class SubEventCreate(BaseModel):
    """Request body for breaks, work periods and tasks inside a shift."""
    start_time: datetime
    end_time: datetime
    status: EventStatus = EventStatus.ACTIVE
    is_paid: Optional[bool] = None
    title: Optional[str] = None
    description: Optional[str] = None
    properties: dict[str, Any] = Field(default_factory=dict)


class ShiftHours(BaseModel):
    shift_id: UUID4
    worked_hours: float
    break_hours: float
    unpaid_break_hours: float
    net_hours: float
