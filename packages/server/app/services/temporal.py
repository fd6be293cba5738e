"""
Interval overlap and hierarchical containment.

Pure functions, no I/O. A ``None`` end means the interval is open-ended
(unbounded going forward). Intervals are half-open: touching ends do not
overlap.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from app.core.errors import ContainmentError


def overlaps(
    a_start: datetime,
    a_end: Optional[datetime],
    b_start: datetime,
    b_end: Optional[datetime],
) -> bool:
    """NOT (a_end <= b_start OR a_start >= b_end), with a missing end as +inf."""
    if a_end is not None and a_end <= b_start:
        return False
    if b_end is not None and a_start >= b_end:
        return False
    return True


def is_contained(
    child_start: datetime,
    child_end: Optional[datetime],
    parent_start: datetime,
    parent_end: Optional[datetime],
) -> bool:
    if child_start < parent_start:
        return False
    if parent_end is None:
        return True
    return child_end is not None and child_end <= parent_end


def overlap_hours(
    a_start: datetime,
    a_end: Optional[datetime],
    b_start: datetime,
    b_end: Optional[datetime],
) -> float:
    """Length of the shared span in hours; 0 when disjoint or unbounded."""
    if not overlaps(a_start, a_end, b_start, b_end):
        return 0.0
    ends = [e for e in (a_end, b_end) if e is not None]
    if not ends:
        return 0.0
    return (min(ends) - max(a_start, b_start)).total_seconds() / 3600


def assert_contained(
    child_start: datetime,
    child_end: Optional[datetime],
    parent_start: datetime,
    parent_end: Optional[datetime],
    *,
    child: str = "Event",
    parent: str = "parent event",
) -> None:
    """Raise ContainmentError naming the violated bound."""
    if child_start < parent_start:
        raise ContainmentError(f"{child} starts before {parent}")
    if parent_end is not None and child_start >= parent_end:
        raise ContainmentError(f"{child} starts after {parent} ends")
    if parent_end is not None and child_end is None:
        raise ContainmentError(f"{child} has no end but {parent} does")
    if not is_contained(child_start, child_end, parent_start, parent_end):
        raise ContainmentError(f"{child} ends after {parent}")
