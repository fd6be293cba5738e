# SQLModel definitions: imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .entity import Entity  # noqa: F401
from .event_type import EventType  # noqa: F401
from .event import Event  # noqa: F401
from .participation import Participation  # noqa: F401
