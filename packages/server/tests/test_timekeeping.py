"""
Tests for clock punches, clock periods and payroll pieces.

Tests cover:
- Punches as one-second clock events with worker participation
- Clock period consolidation and planned shift matching
- Rejection of mismatched or misordered punches
- Payroll pieces contained in their clock period and hours by rate type
"""

from datetime import datetime, timedelta, timezone

import pytest
from structlog.testing import capture_logs

from app.core.errors import ContainmentError, NotFoundError, ValidationError
from app.services import payroll, shifts, timekeeping
from app.services._store import participations as participation_store


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


async def _shift(session, employment, worker, start, end):
    result = await shifts.create_shift(
        session,
        employment.id,
        worker.id,
        {"start_time": start, "end_time": end, "location": "Warehouse A", "status": "active"},
    )
    return result.shift


async def _period(session, worker, clock_in_at, clock_out_at):
    punch_in = await timekeeping.clock_in(session, worker.id, {"timestamp": clock_in_at})
    punch_out = await timekeeping.clock_out(session, worker.id, {"timestamp": clock_out_at})
    return await timekeeping.create_clock_period(session, worker.id, punch_in.id, punch_out.id)


class TestPunches:
    @pytest.mark.asyncio
    async def test_clock_in_is_one_second_event(self, session, worker):
        punch = await timekeeping.clock_in(
            session, worker.id, {"timestamp": utc(2024, 3, 4, 8, 58), "device_id": "kiosk-2"}
        )
        assert punch.start_time == utc(2024, 3, 4, 8, 58)
        assert punch.end_time - punch.start_time == timedelta(seconds=1)
        assert punch.properties == {"clock_type": "in", "device_id": "kiosk-2"}
        assert punch.status == "active"
        assert await participation_store.get_participant_id(session, punch.id, "worker") == worker.id

    @pytest.mark.asyncio
    async def test_clock_out_defaults_to_now(self, session, worker):
        before = datetime.now(timezone.utc).replace(microsecond=0)
        punch = await timekeeping.clock_out(session, worker.id)
        assert punch.properties["clock_type"] == "out"
        assert punch.start_time >= before
        assert punch.start_time.microsecond == 0

    @pytest.mark.asyncio
    async def test_unknown_worker(self, session):
        with pytest.raises(NotFoundError):
            await timekeeping.clock_in(session, "00000000-0000-0000-0000-000000000000")

    @pytest.mark.asyncio
    async def test_list_clock_events(self, session, worker, other_worker):
        await timekeeping.clock_in(session, worker.id, {"timestamp": utc(2024, 3, 4, 9)})
        await timekeeping.clock_in(session, other_worker.id, {"timestamp": utc(2024, 3, 4, 9)})
        assert len(await timekeeping.list_clock_events(session, worker.id)) == 1


class TestClockPeriods:
    @pytest.mark.asyncio
    async def test_spans_punches_and_matches_shift(self, session, worker, employment):
        shift = await _shift(session, employment, worker, utc(2024, 3, 4, 9), utc(2024, 3, 4, 17))
        period = await _period(session, worker, utc(2024, 3, 4, 8, 55), utc(2024, 3, 4, 17, 5))
        assert (period.start_time, period.end_time) == (utc(2024, 3, 4, 8, 55), utc(2024, 3, 4, 17, 5))
        # Clock-in before the shift starts finds no match.
        assert period.properties["planned_shift_id"] is None

        late = await _period(session, worker, utc(2024, 3, 4, 9, 10), utc(2024, 3, 4, 17, 20))
        assert late.properties["planned_shift_id"] == str(shift.id)

    @pytest.mark.asyncio
    async def test_cancelled_shift_not_matched(self, session, worker, employment):
        shift = await _shift(session, employment, worker, utc(2024, 3, 4, 9), utc(2024, 3, 4, 17))
        await shifts.update_shift(session, shift.id, {"status": "cancelled"})
        period = await _period(session, worker, utc(2024, 3, 4, 9, 10), utc(2024, 3, 4, 17))
        assert period.properties["planned_shift_id"] is None

    @pytest.mark.asyncio
    async def test_ambiguous_match_takes_earliest(self, session, worker, employment):
        morning = await _shift(session, employment, worker, utc(2024, 3, 4, 9), utc(2024, 3, 4, 13))
        await _shift(session, employment, worker, utc(2024, 3, 4, 13), utc(2024, 3, 4, 17))

        with capture_logs() as logs:
            match = await timekeeping.find_matching_shift(session, worker.id, utc(2024, 3, 4, 13))
        assert match == morning.id
        assert any(entry["event"] == "clock_period.shift_match_ambiguous" for entry in logs)

    @pytest.mark.asyncio
    async def test_out_must_follow_in(self, session, worker):
        punch_in = await timekeeping.clock_in(session, worker.id, {"timestamp": utc(2024, 3, 4, 17)})
        punch_out = await timekeeping.clock_out(session, worker.id, {"timestamp": utc(2024, 3, 4, 9)})
        with pytest.raises(ValidationError, match="Clock-out must be after clock-in"):
            await timekeeping.create_clock_period(session, worker.id, punch_in.id, punch_out.id)

    @pytest.mark.asyncio
    async def test_punch_kinds_checked(self, session, worker):
        first = await timekeeping.clock_in(session, worker.id, {"timestamp": utc(2024, 3, 4, 9)})
        second = await timekeeping.clock_in(session, worker.id, {"timestamp": utc(2024, 3, 4, 17)})
        with pytest.raises(ValidationError):
            await timekeeping.create_clock_period(session, worker.id, first.id, second.id)

    @pytest.mark.asyncio
    async def test_punches_must_belong_to_worker(self, session, worker, other_worker):
        punch_in = await timekeeping.clock_in(session, worker.id, {"timestamp": utc(2024, 3, 4, 9)})
        punch_out = await timekeeping.clock_out(session, other_worker.id, {"timestamp": utc(2024, 3, 4, 17)})
        worker_id = worker.id
        with pytest.raises(ValidationError, match="does not belong to worker"):
            await timekeeping.create_clock_period(session, worker_id, punch_in.id, punch_out.id)
        assert await timekeeping.list_clock_periods(session, worker_id) == []


class TestPayroll:
    @pytest.fixture
    async def clock_period(self, session, worker):
        return await _period(session, worker, utc(2024, 3, 4, 9), utc(2024, 3, 4, 19))

    @pytest.mark.asyncio
    async def test_hours_by_rate_type(self, session, clock_period):
        await payroll.create_payroll_piece(
            session,
            clock_period.id,
            {"start_time": utc(2024, 3, 4, 9), "end_time": utc(2024, 3, 4, 17), "cost_center": "CC-100"},
        )
        await payroll.create_payroll_piece(
            session,
            clock_period.id,
            {"start_time": utc(2024, 3, 4, 17), "end_time": utc(2024, 3, 4, 19), "rate_type": "overtime"},
        )
        assert await payroll.hours_by_rate_type(session, clock_period.id) == {"regular": 8.0, "overtime": 2.0}
        assert len(await payroll.list_payroll_pieces(session, clock_period.id)) == 2

    @pytest.mark.asyncio
    async def test_no_pieces_no_hours(self, session, clock_period):
        assert await payroll.hours_by_rate_type(session, clock_period.id) == {}

    @pytest.mark.asyncio
    async def test_piece_outside_period_rejected(self, session, clock_period):
        with pytest.raises(ContainmentError, match="Payroll piece ends after clock period"):
            await payroll.create_payroll_piece(
                session, clock_period.id, {"start_time": utc(2024, 3, 4, 18), "end_time": utc(2024, 3, 4, 20)}
            )

    @pytest.mark.asyncio
    async def test_piece_has_no_participants(self, session, clock_period):
        piece = await payroll.create_payroll_piece(
            session, clock_period.id, {"start_time": utc(2024, 3, 4, 9), "end_time": utc(2024, 3, 4, 10)}
        )
        assert piece.parent_id == clock_period.id
        assert await participation_store.list_for_event(session, piece.id) == []
