"""Event model: a time-bounded occurrence, optionally nested under a parent event."""

from datetime import datetime
from typing import Any, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin
from .types import JSONType, UTCDateTime


class Event(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "events"
    __table_args__ = (
        sa.Index("ix_events_event_type_id_start_time", "event_type_id", "start_time"),
        sa.Index("ix_events_start_time_end_time", "start_time", "end_time"),
        sa.Index("ix_events_properties_gin", "properties", postgresql_using="gin"),
    )

    event_type_id: uuid.UUID = Field(foreign_key="event_types.id", ondelete="RESTRICT", nullable=False)
    parent_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="events.id", ondelete="SET NULL", index=True
    )
    start_time: datetime = Field(nullable=False, sa_type=UTCDateTime())
    end_time: Optional[datetime] = Field(default=None, sa_type=UTCDateTime())  # None = ongoing
    status: str = Field(nullable=False, default="draft", index=True)  # draft | active | completed | cancelled | ended
    properties: dict[str, Any] = Field(default_factory=dict, sa_type=JSONType, nullable=False)

    def duration_hours(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() / 3600
