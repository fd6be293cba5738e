"""
Domain error taxonomy.

Every orchestrator operation fails with exactly one of these. ``code`` is the
stable tag surfaced to callers; ``errors`` maps a field name to its messages.
"""

from __future__ import annotations

from typing import Optional


class MosaicError(Exception):
    code = "ERROR"
    status_code = 400

    def __init__(self, message: str, *, errors: Optional[dict[str, list[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "status": self.status_code,
            "details": self.errors or None,
        }


class ValidationError(MosaicError):
    """Missing or malformed fields, bad status, end before start."""

    code = "VALIDATION_FAILED"
    status_code = 422


class OverlapError(MosaicError):
    """A temporal conflict with an existing row."""

    code = "OVERLAP"
    status_code = 409


class ContainmentError(MosaicError):
    """A child interval falls outside its parent's bounds."""

    code = "CONTAINMENT"
    status_code = 422


class NotFoundError(MosaicError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(MosaicError):
    """Storage-level uniqueness violation."""

    code = "CONFLICT"
    status_code = 409
