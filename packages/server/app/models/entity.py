"""Entity model: a generic participant (person, organization, location, resource)."""

from typing import Any

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin
from .types import JSONType


class Entity(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "entities"

    entity_type: str = Field(nullable=False, index=True)  # ^[a-z_]+$, open set
    properties: dict[str, Any] = Field(default_factory=dict, sa_type=JSONType, nullable=False)
