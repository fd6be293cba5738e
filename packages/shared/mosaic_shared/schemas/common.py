from enum import Enum
from typing import Optional

from pydantic import BaseModel


class EventStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ENDED = "ended"


EVENT_STATUSES: frozenset[str] = frozenset(s.value for s in EventStatus)


class EntityType(str, Enum):
    PERSON = "person"
    ORGANIZATION = "organization"
    LOCATION = "location"
    RESOURCE = "resource"


class ParticipationType(str, Enum):
    EMPLOYEE = "employee"
    WORKER = "worker"
    LOCATION_SCOPE = "location_scope"
    PARENT_LOCATION = "parent_location"
    CHILD_LOCATION = "child_location"


class ClockType(str, Enum):
    IN = "in"
    OUT = "out"


class RateType(str, Enum):
    REGULAR = "regular"
    OVERTIME = "overtime"
    DOUBLE_TIME = "double_time"


class ErrorBody(BaseModel):
    code: str
    message: str
    status: int
    details: Optional[dict[str, list[str]]] = None


class ErrorResponse(BaseModel):
    error: ErrorBody

