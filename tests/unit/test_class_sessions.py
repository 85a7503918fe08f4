"""
Unit tests for trainer class sessions layered on the work session.
"""
import pytest
from datetime import date, datetime, timedelta

from attendtrack.services.attendance_types import AttendanceErrorCode


DAY = date(2025, 3, 5)


def at(hour, minute=0, second=0, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute, second)


@pytest.fixture
def trainer_at_work(engine, sample_trainer):
    engine.check_in(sample_trainer.id, at(8, 0))
    return sample_trainer


@pytest.fixture
def class_a(class_factory, assign, sample_trainer):
    training_class = class_factory(name='Class A', code='A01', duration_hours=3)
    assign(sample_trainer, training_class)
    return training_class


@pytest.fixture
def class_b(class_factory, assign, sample_trainer):
    training_class = class_factory(name='Class B', code='B01', duration_hours=1)
    assign(sample_trainer, training_class)
    return training_class


class TestClassCheckIn:

    @pytest.mark.unit
    def test_duration_cap_and_single_active_class(self, overlay, trainer_at_work, class_a, class_b):
        result = overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0))
        assert result.ok
        assert overlay.effective_end(result.record) == at(12, 0)

        blocked = overlay.class_check_in(trainer_at_work.id, class_b.id, at(10, 30))
        assert blocked.error.code == AttendanceErrorCode.CLASS_SESSION_ACTIVE
        assert blocked.error.details['activeClassId'] == class_a.id

        later = overlay.class_check_in(trainer_at_work.id, class_b.id, at(12, 30))
        assert later.ok
        assert later.record.class_id == class_b.id

    @pytest.mark.unit
    def test_effective_end_never_exceeds_two_hours(self, overlay, trainer_at_work, class_factory, assign):
        long_class = class_factory(duration_hours=8)
        assign(trainer_at_work, long_class)

        record = overlay.class_check_in(trainer_at_work.id, long_class.id, at(9, 0)).record

        assert overlay.effective_end(record) <= record.check_in_time + timedelta(hours=2)
        assert overlay.is_active(record, at(10, 59)) is True
        assert overlay.is_active(record, at(11, 0)) is False

    @pytest.mark.unit
    def test_work_record_is_locked_before_class_rows_are_scanned(self, overlay, monkeypatch,
                                                                 trainer_at_work, class_a):
        calls = []
        get_record = overlay.engine.get_record
        today_records = overlay._today_records

        def spy_get_record(employee_id, day, lock=False):
            calls.append(('work', lock))
            return get_record(employee_id, day, lock=lock)

        def spy_today_records(trainer_id, day, lock=False):
            calls.append(('classes', lock))
            return today_records(trainer_id, day, lock=lock)

        monkeypatch.setattr(overlay.engine, 'get_record', spy_get_record)
        monkeypatch.setattr(overlay, '_today_records', spy_today_records)

        # No class row exists yet today, so only the work record can serialize
        result = overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0))

        assert result.ok
        assert calls == [('work', True), ('classes', True)]

    @pytest.mark.unit
    def test_requires_open_work_session(self, overlay, sample_trainer, class_a):
        result = overlay.class_check_in(sample_trainer.id, class_a.id, at(10, 0))
        assert result.error.code == AttendanceErrorCode.WORK_SESSION_REQUIRED

    @pytest.mark.unit
    def test_work_session_closed_blocks_class(self, overlay, engine, trainer_at_work, class_a):
        engine.check_out(trainer_at_work.id, at(9, 30))
        result = overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0))
        assert result.error.code == AttendanceErrorCode.WORK_SESSION_REQUIRED

    @pytest.mark.unit
    def test_unassigned_class(self, overlay, trainer_at_work, class_factory):
        other = class_factory()
        result = overlay.class_check_in(trainer_at_work.id, other.id, at(10, 0))
        assert result.error.code == AttendanceErrorCode.NOT_ASSIGNED

    @pytest.mark.unit
    def test_inactive_assignment_or_class(self, overlay, trainer_at_work, class_factory, assign):
        retired = class_factory(is_active=False)
        assign(trainer_at_work, retired)
        revoked = class_factory()
        assign(trainer_at_work, revoked, is_active=False)

        assert overlay.class_check_in(trainer_at_work.id, retired.id, at(10, 0)).error.code \
            == AttendanceErrorCode.NOT_ASSIGNED
        assert overlay.class_check_in(trainer_at_work.id, revoked.id, at(10, 0)).error.code \
            == AttendanceErrorCode.NOT_ASSIGNED

    @pytest.mark.unit
    def test_same_class_again_reuses_record_and_keeps_status(self, overlay, models, trainer_at_work, class_a):
        first = overlay.class_check_in(trainer_at_work.id, class_a.id, at(9, 0)).record
        first_id = first.id
        overlay.class_check_out(first_id, trainer_at_work.id, at(9, 30))

        second = overlay.class_check_in(trainer_at_work.id, class_a.id, at(14, 0))

        assert second.ok
        assert second.record.id == first_id
        assert second.record.check_in_time == at(14, 0)
        assert second.record.check_out_time is None
        assert second.record.auto_checkout is True
        assert second.record.status == 'Present'
        assert models['ClassAttendance'].query.count() == 1

    @pytest.mark.unit
    def test_links_work_record(self, overlay, engine, trainer_at_work, class_a):
        record = overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0)).record
        work = engine.get_record(trainer_at_work.id, DAY)
        assert record.work_attendance_id == work.id


class TestClassCheckOut:

    @pytest.mark.unit
    def test_early_check_out(self, overlay, trainer_at_work, class_a):
        record = overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0)).record

        result = overlay.class_check_out(record.id, trainer_at_work.id, at(11, 0))

        assert result.ok
        assert result.record.check_out_time == at(11, 0)
        assert result.record.auto_checkout is False
        assert overlay.is_active(result.record, at(11, 1)) is False

    @pytest.mark.unit
    def test_twice_is_already_closed(self, overlay, trainer_at_work, class_a):
        record = overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0)).record
        overlay.class_check_out(record.id, trainer_at_work.id, at(11, 0))

        result = overlay.class_check_out(record.id, trainer_at_work.id, at(11, 5))

        assert result.error.code == AttendanceErrorCode.ALREADY_CLOSED
        assert result.error.code.retryable is False

    @pytest.mark.unit
    def test_after_cutoff_is_already_closed(self, overlay, trainer_at_work, class_a):
        record = overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0)).record
        result = overlay.class_check_out(record.id, trainer_at_work.id, at(12, 0))
        assert result.error.code == AttendanceErrorCode.ALREADY_CLOSED

    @pytest.mark.unit
    def test_someone_elses_record(self, overlay, trainer_at_work, class_a, employee_factory):
        record = overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0)).record
        stranger = employee_factory()

        assert overlay.class_check_out(record.id, stranger.id, at(10, 30)).error.code \
            == AttendanceErrorCode.NO_RECORD
        assert overlay.class_check_out(99999, trainer_at_work.id, at(10, 30)).error.code \
            == AttendanceErrorCode.NO_RECORD


class TestClassStatus:

    @pytest.mark.unit
    def test_status_and_monthly_stats(self, overlay, trainer_at_work, class_a, class_b):
        first = overlay.class_check_in(trainer_at_work.id, class_b.id, at(8, 30)).record
        assert overlay.effective_end(first) == at(9, 30)
        overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0))

        status = overlay.class_status(trainer_at_work.id, at(11, 0))

        assert status['canCheckIntoNewClass'] is False
        assert len(status['todayAttendance']) == 2
        assert [s['class_id'] for s in status['activeClassSessions']] == [class_a.id]
        assert status['stats'] == {
            'totalClassesThisMonth': 1,
            'hoursThisMonth': '1h 0m',
            'activeClasses': 2,
            'activeSessionsToday': 1,
        }

    @pytest.mark.unit
    def test_can_check_in_after_sessions_end(self, overlay, trainer_at_work, class_a):
        overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0))
        status = overlay.class_status(trainer_at_work.id, at(12, 0))
        assert status['canCheckIntoNewClass'] is True
        assert status['stats']['hoursThisMonth'] == '2h 0m'

    @pytest.mark.unit
    def test_assigned_classes_include_todays_record(self, overlay, trainer_at_work, class_a, class_b):
        overlay.class_check_in(trainer_at_work.id, class_a.id, at(10, 0))

        classes = overlay.assigned_classes(trainer_at_work.id, DAY, at(10, 30))

        by_code = {c['code']: c for c in classes}
        assert set(by_code) == {'A01', 'B01'}
        assert by_code['A01']['effective_duration_hours'] == 2
        assert by_code['A01']['today_attendance']['is_active'] is True
        assert by_code['B01']['today_attendance'] is None
