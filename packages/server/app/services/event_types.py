"""
Validators for the seeded event types.

Each class declares the fields it lifts into ``properties`` and the rules
specific to its type. Registration happens at import time; the services
package imports this module so the registry is always populated.
"""

from __future__ import annotations

from numbers import Number
from typing import Any

from app.services.dispatch import EventTypeValidator, validators
from app.services.fields import FieldErrors
from mosaic_shared.schemas.common import ClockType


@validators.register
class EmploymentValidator(EventTypeValidator):
    type_name = "employment"
    property_fields = ("role", "contract_type", "salary")

    def validate_properties(self, properties: dict[str, Any], errors: FieldErrors) -> None:
        salary = properties.get("salary")
        if salary is not None and (isinstance(salary, bool) or not isinstance(salary, Number) or salary < 0):
            errors.add("salary", "must be a non-negative number")


@validators.register
class ShiftValidator(EventTypeValidator):
    type_name = "shift"
    property_fields = ("location", "department", "notes")
    requires_end_time = True

    def validate_properties(self, properties: dict[str, Any], errors: FieldErrors) -> None:
        self.require_property(properties, "location", "Location is required", errors)


@validators.register
class WorkPeriodValidator(EventTypeValidator):
    type_name = "work_period"
    requires_end_time = True


@validators.register
class BreakValidator(EventTypeValidator):
    type_name = "break"
    property_fields = ("is_paid",)
    property_defaults = {"is_paid": False}
    requires_end_time = True

    def validate_properties(self, properties: dict[str, Any], errors: FieldErrors) -> None:
        if not isinstance(properties.get("is_paid"), bool):
            errors.add("is_paid", "must be true or false")


@validators.register
class TaskValidator(EventTypeValidator):
    type_name = "task"
    property_fields = ("title", "description")
    requires_end_time = True


@validators.register
class ScheduleValidator(EventTypeValidator):
    type_name = "schedule"
    property_fields = ("timezone", "recurrence_rule", "coverage_notes", "version", "published_at")
    property_defaults = {"timezone": "UTC", "version": 1}
    requires_end_time = True

    def validate_properties(self, properties: dict[str, Any], errors: FieldErrors) -> None:
        if not isinstance(properties.get("timezone", "UTC"), str):
            errors.add("timezone", "Timezone must be a string")
        version = properties.get("version")
        if version is not None and (isinstance(version, bool) or not isinstance(version, int) or version < 1):
            errors.add("version", "Version must be a positive integer")


@validators.register
class ClockEventValidator(EventTypeValidator):
    type_name = "clock_event"
    property_fields = ("clock_type", "device_id", "location_id", "gps_coords")
    requires_end_time = True

    def validate_properties(self, properties: dict[str, Any], errors: FieldErrors) -> None:
        if properties.get("clock_type") not in {c.value for c in ClockType}:
            errors.add("clock_type", "must be 'in' or 'out'")


@validators.register
class ClockPeriodValidator(EventTypeValidator):
    type_name = "clock_period"
    property_fields = ("clock_in_event_id", "clock_out_event_id", "planned_shift_id")
    requires_end_time = True

    def validate_properties(self, properties: dict[str, Any], errors: FieldErrors) -> None:
        self.require_property(properties, "clock_in_event_id", "Clock-in reference is required", errors)
        self.require_property(properties, "clock_out_event_id", "Clock-out reference is required", errors)


@validators.register
class PayrollPieceValidator(EventTypeValidator):
    type_name = "payroll_piece"
    property_fields = ("cost_center", "job_code", "union_rule", "rate_type")
    requires_end_time = True
