"""Participation model: a typed link between one entity and one event."""

from datetime import datetime
from typing import Any, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin
from .types import JSONType, UTCDateTime


class Participation(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "participations"
    __table_args__ = (
        sa.UniqueConstraint(
            "participant_id",
            "event_id",
            "participation_type",
            name="uq_participations_participant_event_type",
        ),
    )

    participant_id: uuid.UUID = Field(
        foreign_key="entities.id", ondelete="CASCADE", nullable=False, index=True
    )
    event_id: uuid.UUID = Field(foreign_key="events.id", ondelete="CASCADE", nullable=False, index=True)
    participation_type: str = Field(nullable=False, index=True)  # employee | worker | location_scope | ...
    role: Optional[str] = None
    start_time: Optional[datetime] = Field(default=None, sa_type=UTCDateTime())
    end_time: Optional[datetime] = Field(default=None, sa_type=UTCDateTime())
    properties: dict[str, Any] = Field(default_factory=dict, sa_type=JSONType, nullable=False)
