"""Event type catalog model (seeded at bootstrap)."""

from typing import Any, Optional

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin
from .types import JSONType


class EventType(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "event_types"

    name: str = Field(nullable=False, unique=True)
    category: Optional[str] = None
    can_nest: bool = Field(default=False, nullable=False)
    can_have_children: bool = Field(default=False, nullable=False)
    requires_participation: bool = Field(default=True, nullable=False)
    property_schema: dict[str, Any] = Field(default_factory=dict, sa_type=JSONType, nullable=False)
    rules: dict[str, Any] = Field(default_factory=dict, sa_type=JSONType, nullable=False)
    is_active: bool = Field(default=True, nullable=False, index=True)
