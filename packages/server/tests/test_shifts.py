"""
Tests for the shift service and hour calculations over its children.

Tests cover:
- Containment of a shift in its employment
- Overlap between shifts of the same worker
- Auto-split into work periods and an unpaid break
- All-or-nothing creation when a step fails
- Breaks, work periods and tasks added to an existing shift
"""

import uuid
from datetime import datetime, timezone

import pytest

from app.core.errors import ContainmentError, NotFoundError, OverlapError, ValidationError
from app.services import employments, hours, registry, shifts
from app.services._store import participations as participation_store


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def _shift(start, end, **extra):
    return {"start_time": start, "end_time": end, "location": "Warehouse A", "status": "active", **extra}


class TestCreateShift:
    @pytest.mark.asyncio
    async def test_creates_shift_under_employment(self, session, worker, employment):
        result = await shifts.create_shift(
            session, employment.id, worker.id, _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17), department="Inbound")
        )
        assert result.shift.parent_id == employment.id
        assert result.shift.properties == {"location": "Warehouse A", "department": "Inbound"}
        assert result.participation.participation_type == "worker"
        assert result.periods == []

    @pytest.mark.asyncio
    async def test_location_required(self, session, worker, employment):
        with pytest.raises(ValidationError) as exc_info:
            await shifts.create_shift(
                session, employment.id, worker.id, {"start_time": utc(2024, 3, 4, 9), "end_time": utc(2024, 3, 4, 17)}
            )
        assert exc_info.value.errors["location"] == ["Location is required"]

    @pytest.mark.asyncio
    async def test_end_time_required(self, session, worker, employment):
        with pytest.raises(ValidationError):
            await shifts.create_shift(session, employment.id, worker.id, _shift(utc(2024, 3, 4, 9), None))

    @pytest.mark.asyncio
    async def test_must_fall_inside_employment(self, session, worker, employment):
        with pytest.raises(ContainmentError, match="Shift starts after employment ends"):
            await shifts.create_shift(
                session, employment.id, worker.id, _shift(utc(2025, 2, 1, 9), utc(2025, 2, 1, 17))
            )

    @pytest.mark.asyncio
    async def test_cannot_start_before_employment(self, session, worker, employment):
        with pytest.raises(ContainmentError, match="Shift starts before employment"):
            await shifts.create_shift(
                session, employment.id, worker.id, _shift(utc(2023, 12, 31, 20), utc(2024, 1, 1, 4))
            )

    @pytest.mark.asyncio
    async def test_unknown_employment(self, session, worker):
        with pytest.raises(NotFoundError, match="Employment not found"):
            await shifts.create_shift(
                session, uuid.uuid4(), worker.id, _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17))
            )

    @pytest.mark.asyncio
    async def test_overlapping_shift_rejected(self, session, worker, employment):
        await shifts.create_shift(session, employment.id, worker.id, _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17)))
        with pytest.raises(OverlapError, match="overlapping shifts"):
            await shifts.create_shift(
                session, employment.id, worker.id, _shift(utc(2024, 3, 4, 16), utc(2024, 3, 4, 20))
            )

    @pytest.mark.asyncio
    async def test_back_to_back_shifts_allowed(self, session, worker, employment):
        await shifts.create_shift(session, employment.id, worker.id, _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17)))
        await shifts.create_shift(session, employment.id, worker.id, _shift(utc(2024, 3, 4, 17), utc(2024, 3, 4, 21)))
        assert len(await shifts.list_shifts_for_worker(session, worker.id)) == 2

    @pytest.mark.asyncio
    async def test_cancelled_shift_frees_the_slot(self, session, worker, employment):
        first = await shifts.create_shift(
            session, employment.id, worker.id, _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17))
        )
        await shifts.update_shift(session, first.shift.id, {"status": "cancelled"})
        await shifts.create_shift(session, employment.id, worker.id, _shift(utc(2024, 3, 4, 10), utc(2024, 3, 4, 14)))


class TestAutoSplit:
    @pytest.mark.asyncio
    async def test_long_shift_gets_break(self, session, worker, employment):
        result = await shifts.create_shift(
            session,
            employment.id,
            worker.id,
            _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17), auto_generate_periods=True),
        )
        first, pause, second = result.periods
        assert (first.start_time, first.end_time) == (utc(2024, 3, 4, 9), utc(2024, 3, 4, 13))
        assert (pause.start_time, pause.end_time) == (utc(2024, 3, 4, 13), utc(2024, 3, 4, 13, 30))
        assert pause.properties == {"is_paid": False}
        assert (second.start_time, second.end_time) == (utc(2024, 3, 4, 13, 30), utc(2024, 3, 4, 17))
        assert all(p.parent_id == result.shift.id for p in result.periods)

        summary = await hours.shift_summary(session, result.shift.id)
        assert summary == {
            "worked_hours": 7.5,
            "break_hours": 0.5,
            "unpaid_break_hours": 0.5,
            "net_hours": 7.5,
        }

    @pytest.mark.asyncio
    async def test_children_carry_worker_participation(self, session, worker, employment):
        result = await shifts.create_shift(
            session,
            employment.id,
            worker.id,
            _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17), auto_generate_periods=True),
        )
        for period in result.periods:
            assert await participation_store.get_participant_id(session, period.id, "worker") == worker.id

    @pytest.mark.asyncio
    async def test_exactly_four_hours_is_one_period(self, session, worker, employment):
        result = await shifts.create_shift(
            session,
            employment.id,
            worker.id,
            _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 13), auto_generate_periods=True),
        )
        assert len(result.periods) == 1
        assert await hours.net_hours_for_shift(session, result.shift.id) == 4.0
        assert await hours.break_hours_for_shift(session, result.shift.id) == 0.0

    @pytest.mark.asyncio
    async def test_failure_rolls_back_everything(self, session, worker, employment):
        work_period = await registry.resolve(session, "work_period")
        work_period.is_active = False
        await session.flush()

        with pytest.raises(NotFoundError):
            await shifts.create_shift(
                session,
                employment.id,
                worker.id,
                _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17), auto_generate_periods=True),
            )
        assert await shifts.list_shifts_for_worker(session, worker.id) == []
        assert await shifts.list_shifts_for_employment(session, employment.id) == []


class TestUpdateShift:
    @pytest.mark.asyncio
    async def test_move_within_employment(self, session, worker, employment):
        result = await shifts.create_shift(
            session, employment.id, worker.id, _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17))
        )
        updated = await shifts.update_shift(
            session, result.shift.id, {"start_time": utc(2024, 3, 5, 9), "end_time": utc(2024, 3, 5, 17)}
        )
        assert updated.start_time == utc(2024, 3, 5, 9)

    @pytest.mark.asyncio
    async def test_move_outside_employment_rejected(self, session, worker, employment):
        result = await shifts.create_shift(
            session, employment.id, worker.id, _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17))
        )
        with pytest.raises(ContainmentError):
            await shifts.update_shift(
                session, result.shift.id, {"start_time": utc(2025, 3, 5, 9), "end_time": utc(2025, 3, 5, 17)}
            )

    @pytest.mark.asyncio
    async def test_move_onto_other_shift_rejected(self, session, worker, employment):
        await shifts.create_shift(session, employment.id, worker.id, _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17)))
        second = await shifts.create_shift(
            session, employment.id, worker.id, _shift(utc(2024, 3, 5, 9), utc(2024, 3, 5, 17))
        )
        with pytest.raises(OverlapError):
            await shifts.update_shift(session, second.shift.id, {"start_time": utc(2024, 3, 4, 12)})


class TestSubEvents:
    @pytest.fixture
    async def shift(self, session, worker, employment):
        result = await shifts.create_shift(
            session, employment.id, worker.id, _shift(utc(2024, 3, 4, 9), utc(2024, 3, 4, 17))
        )
        return result.shift

    @pytest.mark.asyncio
    async def test_add_break_inside_shift(self, session, shift):
        pause = await shifts.add_break(
            session, shift.id, {"start_time": utc(2024, 3, 4, 12), "end_time": utc(2024, 3, 4, 12, 15), "is_paid": True}
        )
        assert pause.parent_id == shift.id
        assert pause.status == "active"
        assert await hours.unpaid_break_hours_for_shift(session, shift.id) == 0.0
        assert await hours.break_hours_for_shift(session, shift.id) == 0.25

    @pytest.mark.asyncio
    async def test_break_outside_shift_rejected(self, session, shift):
        with pytest.raises(ContainmentError, match="Break ends after shift"):
            await shifts.add_break(
                session, shift.id, {"start_time": utc(2024, 3, 4, 16, 45), "end_time": utc(2024, 3, 4, 17, 15)}
            )

    @pytest.mark.asyncio
    async def test_unpaid_break_inside_work_period_deducted(self, session, shift):
        await shifts.add_work_period(
            session, shift.id, {"start_time": utc(2024, 3, 4, 9), "end_time": utc(2024, 3, 4, 17)}
        )
        await shifts.add_break(
            session, shift.id, {"start_time": utc(2024, 3, 4, 12), "end_time": utc(2024, 3, 4, 13), "is_paid": False}
        )
        summary = await hours.shift_summary(session, shift.id)
        assert summary["worked_hours"] == 8.0
        assert summary["net_hours"] == 7.0

    @pytest.mark.asyncio
    async def test_add_task(self, session, worker, shift):
        task = await shifts.add_task(
            session,
            shift.id,
            {"start_time": utc(2024, 3, 4, 10), "end_time": utc(2024, 3, 4, 11), "title": "Cycle count"},
        )
        assert task.properties["title"] == "Cycle count"
        assert await participation_store.get_participant_id(session, task.id, "worker") == worker.id

    @pytest.mark.asyncio
    async def test_shrinking_shift_below_children_rejected(self, session, shift):
        await shifts.add_task(session, shift.id, {"start_time": utc(2024, 3, 4, 15), "end_time": utc(2024, 3, 4, 16)})
        with pytest.raises(ContainmentError):
            await shifts.update_shift(session, shift.id, {"end_time": utc(2024, 3, 4, 14)})
