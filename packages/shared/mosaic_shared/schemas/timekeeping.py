"""Clock punch, clock period and payroll piece schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import UUID4, BaseModel, Field

from .common import RateType


class ClockPunch(BaseModel):
    """Request body for POST /workers/{workerId}/clock-in and clock-out."""
    timestamp: Optional[datetime] = None
    device_id: Optional[str] = None
    location_id: Optional[str] = None
    gps_coords: Optional[str] = None


class ClockPeriodCreate(BaseModel):
    worker_id: UUID4
    clock_in_event_id: UUID4
    clock_out_event_id: UUID4


class PayrollPieceCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    cost_center: Optional[str] = None
    job_code: Optional[str] = None
    union_rule: Optional[str] = None
    rate_type: Optional[RateType] = None
    properties: dict[str, Any] = Field(default_factory=dict)


class RateTypeHours(BaseModel):
    clock_period_id: UUID4
    hours: dict[str, float] = Field(default_factory=dict)
