"""
Per-type validation dispatch for generic event writes.

The event store knows nothing about shifts or employments. Every create and
update is routed through ``validate_event`` which picks the validator
registered for the event type's name, or the explicit generic fallback.
Adding an event type means registering one validator here and seeding one
catalog row; neither the store nor this dispatcher changes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Optional

import structlog

from app.core.errors import NotFoundError
from app.models.event import Event
from app.models.event_type import EventType
from app.services.fields import FieldErrors, as_uuid, cast_datetime, is_blank, normalize_attrs
from mosaic_shared.schemas.common import EVENT_STATUSES

log = structlog.get_logger()

DEFAULT_STATUS = "draft"


def validate_generic(
    attrs: Mapping[str, Any],
    existing: Optional[Event],
    errors: FieldErrors,
) -> dict[str, Any]:
    """
    Type-agnostic rules: required fields, status enumeration, time ordering.

    Returns the full column set for the row, with ``attrs`` laid over the
    existing row (update) or over defaults (create).
    """
    values: dict[str, Any] = {
        "event_type_id": existing.event_type_id if existing else None,
        "parent_id": existing.parent_id if existing else None,
        "start_time": existing.start_time if existing else None,
        "end_time": existing.end_time if existing else None,
        "status": existing.status if existing else DEFAULT_STATUS,
        "properties": dict(existing.properties or {}) if existing else {},
    }

    for key in ("event_type_id", "parent_id"):
        if key in attrs:
            raw = attrs[key]
            if raw is None:
                values[key] = None
            else:
                try:
                    values[key] = as_uuid(raw)
                except NotFoundError:
                    errors.add(key, "is invalid")

    for key in ("start_time", "end_time"):
        if key in attrs:
            values[key] = cast_datetime(attrs, key, errors)

    if "status" in attrs:
        values["status"] = attrs["status"]

    if "properties" in attrs:
        props = attrs["properties"]
        if props is None:
            values["properties"] = {}
        elif isinstance(props, Mapping) and all(isinstance(k, str) for k in props):
            values["properties"] = dict(props)
        else:
            errors.add("properties", "must be a map with string keys")

    if values["event_type_id"] is None:
        errors.add("event_type_id", "can't be blank")
    if values["start_time"] is None and "start_time" not in errors.as_dict():
        errors.add("start_time", "can't be blank")
    if values["status"] not in EVENT_STATUSES:
        errors.add("status", "is invalid")

    start, end = values["start_time"], values["end_time"]
    if start is not None and end is not None and end <= start:
        errors.add("end_time", "must be after start time")

    return values


class EventTypeValidator:
    """
    Base validator. Subclasses declare which incoming fields they lift into
    ``properties``, defaults for new rows, and their own property rules.
    """

    type_name: ClassVar[Optional[str]] = None
    property_fields: ClassVar[tuple[str, ...]] = ()
    property_defaults: ClassVar[dict[str, Any]] = {}
    requires_end_time: ClassVar[bool] = False

    def validate(self, attrs: Any, existing: Optional[Event] = None) -> dict[str, Any]:
        attrs = normalize_attrs(attrs)
        errors = FieldErrors()
        values = validate_generic(attrs, existing, errors)
        values["properties"] = self.cast_properties(attrs, values["properties"], creating=existing is None)

        if self.requires_end_time and values["end_time"] is None and "end_time" not in errors.as_dict():
            errors.add("end_time", "can't be blank")

        self.validate_properties(values["properties"], errors)
        errors.raise_if_any(f"Invalid {self.type_name or 'event'}")
        return values

    def cast_properties(self, attrs: Mapping[str, Any], properties: dict[str, Any], *, creating: bool) -> dict[str, Any]:
        updated = dict(properties)
        for field in self.property_fields:
            value = attrs.get(field)
            if value is not None:
                updated[field] = value
        if creating:
            for key, default in self.property_defaults.items():
                updated.setdefault(key, default)
        return updated

    def validate_properties(self, properties: dict[str, Any], errors: FieldErrors) -> None:
        """Hook for type-specific property rules."""

    @staticmethod
    def require_property(properties: Mapping[str, Any], key: str, message: str, errors: FieldErrors) -> None:
        if is_blank(properties.get(key)):
            errors.add(key, message)


class GenericEventValidator(EventTypeValidator):
    """Fallback for registered event types without their own rules."""


class ValidatorRegistry:
    """Maps event type names to validator instances with a mandatory fallback."""

    def __init__(self, default: EventTypeValidator):
        self._default = default
        self._validators: dict[str, EventTypeValidator] = {}

    def register(self, validator_cls: type[EventTypeValidator]) -> type[EventTypeValidator]:
        name = validator_cls.type_name
        if not name:
            raise ValueError(f"{validator_cls.__name__} does not declare a type_name")
        if name in self._validators:
            raise ValueError(f"A validator for '{name}' is already registered")
        self._validators[name] = validator_cls()
        return validator_cls

    def for_type(self, name: str) -> EventTypeValidator:
        validator = self._validators.get(name)
        if validator is None:
            log.debug("dispatch.fallback", event_type=name)
            return self._default
        return validator

    def has_validator(self, name: str) -> bool:
        return name in self._validators


validators = ValidatorRegistry(default=GenericEventValidator())


def validate_event(event_type: EventType, attrs: Any, existing: Optional[Event] = None) -> dict[str, Any]:
    """Validate ``attrs`` for an event of ``event_type``; returns column values."""
    attrs = normalize_attrs(attrs)
    attrs.setdefault("event_type_id", event_type.id)
    return validators.for_type(event_type.name).validate(attrs, existing)
