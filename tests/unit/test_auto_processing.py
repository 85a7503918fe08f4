"""
Unit tests for the end-of-day sweeps and the missed-day backfill.
"""
import pytest
from datetime import date, datetime, timedelta

from attendtrack.models.session_payload import SessionKind
from attendtrack.services.attendance_types import AttendanceErrorCode


DAY = date(2025, 3, 5)  # Wednesday


def at(hour, minute=0, second=0, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute, second)


def snapshot(models):
    WorkAttendance = models['WorkAttendance']
    return sorted(
        (r.employee_id, r.attendance_date, r.status, tuple(s.to_dict()['check_out'] for s in r.sessions))
        for r in WorkAttendance.query.all()
    )


class TestAutoCheckout:

    @pytest.mark.unit
    def test_closes_open_session_at_five(self, engine, scheduler, sample_employee):
        engine.check_in(sample_employee.id, at(8, 30))

        assert engine.check_out(sample_employee.id, at(17, 5)).error.code == AttendanceErrorCode.OUTSIDE_HOURS
        closed = scheduler.auto_checkout_sweep(DAY, at(17, 0))

        record = engine.get_record(sample_employee.id, DAY)
        assert closed == 1
        assert record.status == 'Present'
        assert record.sessions[0].kind == SessionKind.AUTO_CLOSED
        assert record.sessions[0].check_out == at(17, 0, 0)
        assert record.check_out_time == at(17, 0, 0)

    @pytest.mark.unit
    def test_does_nothing_before_five(self, engine, scheduler, sample_employee):
        engine.check_in(sample_employee.id, at(8, 30))

        assert scheduler.auto_checkout_sweep(DAY, at(16, 59, 59)) == 0
        assert engine.get_record(sample_employee.id, DAY).has_open_session

    @pytest.mark.unit
    def test_run_late_still_uses_fixed_cutoff(self, engine, scheduler, sample_employee):
        engine.check_in(sample_employee.id, at(8, 30))
        scheduler.auto_checkout_sweep(DAY, at(22, 45))
        assert engine.get_record(sample_employee.id, DAY).sessions[0].check_out == at(17, 0)

    @pytest.mark.unit
    def test_second_run_changes_nothing(self, engine, scheduler, models, employee_factory):
        for hour in (8, 9, 10):
            engine.check_in(employee_factory().id, at(hour, 15))

        assert scheduler.auto_checkout_sweep(DAY, at(17, 0)) == 3
        first = snapshot(models)
        assert scheduler.auto_checkout_sweep(DAY, at(17, 30)) == 0
        assert snapshot(models) == first

    @pytest.mark.unit
    def test_closed_sessions_untouched(self, engine, scheduler, sample_employee):
        engine.check_in(sample_employee.id, at(8, 0))
        engine.check_out(sample_employee.id, at(12, 0))

        assert scheduler.auto_checkout_sweep(DAY, at(17, 0)) == 0
        assert engine.get_record(sample_employee.id, DAY).sessions[0].kind == SessionKind.CLOSED


class TestAbsenceSweep:

    @pytest.mark.unit
    def test_marks_inactive_day_once(self, engine, scheduler, models, employee_factory):
        present = employee_factory()
        idle = employee_factory()
        employee_factory(is_active=False)
        engine.check_in(present.id, at(8, 30))

        counts = [scheduler.absence_sweep(DAY, at(17, 0)) for _ in range(3)]

        assert counts == [1, 0, 0]
        absent = models['WorkAttendance'].query.filter_by(status='Absent').all()
        assert len(absent) == 1
        assert absent[0].employee_id == idle.id
        assert absent[0].sessions == []

    @pytest.mark.unit
    def test_not_before_end_of_day(self, scheduler, models, sample_employee):
        assert scheduler.absence_sweep(DAY, at(16, 0)) == 0
        assert models['WorkAttendance'].query.count() == 0

    @pytest.mark.unit
    def test_future_date_is_skipped(self, scheduler, models, sample_employee):
        assert scheduler.absence_sweep(DAY + timedelta(days=1), at(18, 0)) == 0


class TestBackfill:

    @pytest.mark.unit
    def test_weekdays_only_and_today_excluded(self, scheduler, past_weekdays):
        missed = scheduler.missed_dates(at(18, 0))
        assert missed == past_weekdays
        assert DAY not in missed
        assert all(d.weekday() < 5 for d in missed)

    @pytest.mark.unit
    def test_backfill_finalizes_each_missed_day(self, scheduler, models, sample_employee, past_weekdays):
        finalized = scheduler.backfill(at(8, 0))

        assert finalized == len(past_weekdays)
        ProcessingLog = models['AttendanceProcessingLog']
        ledger = ProcessingLog.query.order_by(ProcessingLog.processing_date).all()
        assert [entry.processing_date for entry in ledger] == past_weekdays
        assert all(entry.records_processed == 1 for entry in ledger)
        assert models['WorkAttendance'].query.filter_by(status='Absent').count() == len(past_weekdays)

    @pytest.mark.unit
    def test_three_runs_create_no_duplicates(self, scheduler, models, sample_employee, past_weekdays):
        results = [scheduler.backfill(at(8, 0)) for _ in range(3)]

        assert results == [len(past_weekdays), 0, 0]
        assert models['AttendanceProcessingLog'].query.count() == len(past_weekdays)
        assert models['WorkAttendance'].query.filter_by(status='Absent').count() == len(past_weekdays)

    @pytest.mark.unit
    def test_closes_stale_sessions_of_past_days(self, engine, scheduler, sample_employee):
        yesterday = DAY - timedelta(days=1)
        engine.check_in(sample_employee.id, at(9, 45, day=yesterday))

        scheduler.backfill(at(8, 0))

        record = engine.get_record(sample_employee.id, yesterday)
        assert record.status == 'Late'
        assert record.sessions[0].kind == SessionKind.AUTO_CLOSED
        assert record.sessions[0].check_out == at(17, 0, day=yesterday)

    @pytest.mark.unit
    def test_failed_day_is_left_for_next_run(self, scheduler, models, monkeypatch, sample_employee, past_weekdays):
        from attendtrack.services.auto_processing import SweepCounts

        original = scheduler._mark_absent
        broken_day = past_weekdays[0]

        def flaky(day):
            if day == broken_day:
                return SweepCounts(processed=0, failed=1)
            return original(day)

        monkeypatch.setattr(scheduler, '_mark_absent', flaky)
        assert scheduler.backfill(at(8, 0)) == len(past_weekdays) - 1
        assert broken_day in scheduler.missed_dates(at(8, 0))

        monkeypatch.setattr(scheduler, '_mark_absent', original)
        assert scheduler.backfill(at(8, 0)) == 1
        assert scheduler.missed_dates(at(8, 0)) == []


class TestRun:

    @pytest.mark.unit
    def test_summary_after_hours(self, engine, scheduler, employee_factory, past_weekdays):
        worker = employee_factory()
        employee_factory()
        engine.check_in(worker.id, at(8, 30))

        result = scheduler.run(at(17, 0))

        assert result == {
            'autoCheckouts': 1,
            'absentRecords': 1,
            'missedDaysProcessed': len(past_weekdays),
        }

    @pytest.mark.unit
    def test_morning_run_only_backfills(self, engine, scheduler, sample_employee, past_weekdays):
        engine.check_in(sample_employee.id, at(8, 30))

        result = scheduler.run(at(10, 0))

        assert result['autoCheckouts'] == 0
        assert result['absentRecords'] == 0
        assert result['missedDaysProcessed'] == len(past_weekdays)
        assert engine.get_record(sample_employee.id, DAY).has_open_session

    @pytest.mark.unit
    def test_three_triggers_mark_absent_once(self, scheduler, models, employee_factory):
        idle = employee_factory()

        for _ in range(3):
            scheduler.run(at(17, 0))

        WorkAttendance = models['WorkAttendance']
        assert WorkAttendance.query.filter_by(employee_id=idle.id, attendance_date=DAY).count() == 1
        record = WorkAttendance.query.filter_by(employee_id=idle.id, attendance_date=DAY).one()
        assert record.status == 'Absent'
        assert record.sessions == []
