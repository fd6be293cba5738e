"""
Unit tests for interval overlap and containment.

Tests cover:
- Symmetry of overlaps and the open-ended (None) end convention
- Half-open intervals: touching ends do not overlap
- Containment under bounded and open parents, with bound-specific errors
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import product

import pytest

from app.core.errors import ContainmentError
from app.services.temporal import assert_contained, is_contained, overlap_hours, overlaps

T = datetime(2024, 3, 4, 9, tzinfo=timezone.utc)
H = timedelta(hours=1)


class TestOverlaps:
    def test_symmetry(self):
        """overlaps(A, B) == overlaps(B, A) over a grid of bounded and open intervals."""
        starts = [T, T + H, T + 2 * H]
        ends = [None, T + H, T + 2 * H, T + 3 * H]
        intervals = [(s, e) for s, e in product(starts, ends) if e is None or e > s]
        for (a_s, a_e), (b_s, b_e) in product(intervals, intervals):
            assert overlaps(a_s, a_e, b_s, b_e) == overlaps(b_s, b_e, a_s, a_e)

    def test_open_end_overlaps_later_interval(self):
        assert overlaps(T, None, T + H, T + 2 * H) is True

    def test_bounded_before_open_interval_does_not_overlap(self):
        assert overlaps(T, T + H, T + 2 * H, None) is False

    def test_touching_ends_do_not_overlap(self):
        assert overlaps(T, T + H, T + H, T + 2 * H) is False

    def test_partial_overlap(self):
        assert overlaps(T, T + 2 * H, T + H, T + 3 * H) is True

    def test_nested_interval_overlaps(self):
        assert overlaps(T, T + 8 * H, T + H, T + 2 * H) is True

    def test_two_open_intervals_overlap(self):
        assert overlaps(T, None, T + 100 * H, None) is True


class TestContainment:
    def test_open_parent_contains_anything_after_start(self):
        assert is_contained(T + H, T + 2 * H, T, None) is True
        assert is_contained(T, None, T, None) is True

    def test_child_starting_before_parent(self):
        assert is_contained(T - H, T + H, T, T + 8 * H) is False

    def test_child_ending_after_parent(self):
        assert is_contained(T + H, T + 9 * H, T, T + 8 * H) is False

    def test_open_child_in_bounded_parent(self):
        assert is_contained(T + H, None, T, T + 8 * H) is False

    def test_exact_bounds_are_contained(self):
        assert is_contained(T, T + 8 * H, T, T + 8 * H) is True

    def test_assert_contained_names_the_start_bound(self):
        with pytest.raises(ContainmentError, match="Shift starts before employment"):
            assert_contained(T - H, T, T, T + H, child="Shift", parent="employment")

    def test_assert_contained_reports_start_after_parent_end(self):
        with pytest.raises(ContainmentError, match="starts after employment"):
            assert_contained(T + 2 * H, T + 3 * H, T, T + H, child="Shift", parent="employment")

    def test_assert_contained_reports_end_after_parent(self):
        with pytest.raises(ContainmentError, match="Break ends after shift"):
            assert_contained(T + H, T + 3 * H, T, T + 2 * H, child="Break", parent="shift")

    def test_assert_contained_passes_silently(self):
        assert assert_contained(T + H, T + 2 * H, T, None) is None


class TestOverlapHours:
    def test_shared_span(self):
        assert overlap_hours(T, T + 4 * H, T + 3 * H, T + 8 * H) == pytest.approx(1.0)

    def test_disjoint(self):
        assert overlap_hours(T, T + H, T + 2 * H, T + 3 * H) == 0.0

    def test_one_open_side_uses_the_bounded_end(self):
        assert overlap_hours(T, None, T + H, T + 3 * H) == pytest.approx(2.0)
