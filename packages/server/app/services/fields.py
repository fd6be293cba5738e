"""
Attribute coercion shared by the dispatcher and the stores.

Attribute maps crossing the service boundary use string keys only; pydantic
request models are dumped to JSON-compatible dicts before they reach here.
"""

from __future__ import annotations

import uuid
from collections import defaultdict
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import NotFoundError, ValidationError

_DATETIME = TypeAdapter(datetime)


class FieldErrors:
    """Collects field-level messages, changeset style."""

    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = defaultdict(list)

    def add(self, field: str, message: str) -> None:
        self._errors[field].append(message)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def as_dict(self) -> dict[str, list[str]]:
        return dict(self._errors)

    def raise_if_any(self, message: str = "Validation failed") -> None:
        if self._errors:
            first_field, messages = next(iter(self._errors.items()))
            raise ValidationError(f"{message}: {first_field} {messages[0]}", errors=self.as_dict())


def normalize_attrs(attrs: Any) -> dict[str, Any]:
    """Return a string-keyed copy of ``attrs`` (a mapping or a pydantic model)."""
    if attrs is None:
        return {}
    if isinstance(attrs, BaseModel):
        return attrs.model_dump(exclude_unset=True, mode="json")
    if not isinstance(attrs, Mapping):
        raise ValidationError("Attributes must be a mapping")
    bad_keys = [k for k in attrs if not isinstance(k, str)]
    if bad_keys:
        raise ValidationError(
            "Attribute keys must be strings",
            errors={"attrs": [f"non-string key: {k!r}" for k in bad_keys]},
        )
    return dict(attrs)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a datetime or ISO-8601 string; naive values are taken as UTC."""
    if value is None:
        return None
    parsed = _DATETIME.validate_python(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def cast_datetime(attrs: Mapping[str, Any], key: str, errors: FieldErrors) -> Optional[datetime]:
    try:
        return parse_datetime(attrs.get(key))
    except PydanticValidationError:
        errors.add(key, "is not a valid datetime")
        return None


def as_uuid(value: Any, what: str = "Record") -> uuid.UUID:
    """Coerce an id; anything that cannot be an id cannot resolve either."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise NotFoundError(f"{what} not found: {value}") from None


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")
