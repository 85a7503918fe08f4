"""
Attendance Engine
Session state machine for one employee's work day

Rules:
- Check-in only inside the daily window; the first check-in of the day
  decides Present/Late and later check-ins never change it
- At most one open session per record
- Check-out closes the open session and refreshes the legacy mirrors
- An employee counts as checked in only while a session is open and the
  work day has not ended

Every operation receives `now` from the caller's Clock and returns an
AttendanceResult; expected rejections are never raised.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from attendtrack.models.session_payload import WorkSession
from attendtrack.services.attendance_types import AttendanceErrorCode, AttendanceResult
from attendtrack.services.time_policy import DEFAULT_POLICY, TimePolicy
from attendtrack.utils.timezone import format_duration

logger = logging.getLogger(__name__)

HISTORY_DAYS = 30


class AttendanceEngine:
    """
    Check-in/check-out operations on WorkAttendance records
    """

    def __init__(self, db_session, models: dict, policy: TimePolicy = None):
        """
        Args:
            db_session: SQLAlchemy database session
            models: Dictionary of model classes from the registry
            policy: TimePolicy (defaults to the standard window)
        """
        self.db = db_session
        self.WorkAttendance = models['WorkAttendance']
        self.policy = policy or DEFAULT_POLICY

    def _load_record(self, employee_id: int, day: date, lock: bool = False):
        query = self.db.query(self.WorkAttendance).filter_by(
            employee_id=employee_id,
            attendance_date=day
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    def _record_exists(self, employee_id: int, day: date) -> bool:
        try:
            return self.db.query(self.WorkAttendance.id).filter_by(
                employee_id=employee_id,
                attendance_date=day
            ).first() is not None
        except SQLAlchemyError:
            self.db.rollback()
            return False

    def get_record(self, employee_id: int, day: date, lock: bool = False):
        return self._load_record(employee_id, day, lock=lock)

    def check_in(self, employee_id: int, now: datetime, source: str = 'web',
                 location: Optional[dict] = None) -> AttendanceResult:
        """
        Open a new work session for today

        Returns:
            AttendanceResult with the record, or OUTSIDE_HOURS / ALREADY_ACTIVE / INTERNAL
        """
        if not self.policy.check_in_allowed(now):
            return AttendanceResult.fail(
                AttendanceErrorCode.OUTSIDE_HOURS,
                f"Check-in is only allowed between {self.policy.check_in_open_hour:02d}:00 "
                f"and {self.policy.workday_end_hour:02d}:00"
            )

        day = now.date()
        try:
            record = self._load_record(employee_id, day, lock=True)
            if record is not None and record.has_open_session:
                self.db.rollback()
                return AttendanceResult.fail(AttendanceErrorCode.ALREADY_ACTIVE)

            session = WorkSession.start(now, source=source, location=location)
            if record is None:
                record = self.WorkAttendance(
                    employee_id=employee_id,
                    attendance_date=day,
                    status=self.policy.classify_arrival(now),
                )
                record.replace_sessions([session])
                self.db.add(record)
            elif record.status == self.WorkAttendance.STATUS_ABSENT:
                # Finalized as Absent by the sweep; no further transitions that day
                self.db.rollback()
                return AttendanceResult.fail(
                    AttendanceErrorCode.OUTSIDE_HOURS,
                    f"Attendance for {day.isoformat()} has already been finalized"
                )
            else:
                record.replace_sessions(list(record.sessions) + [session])

            self.db.commit()

        except StaleDataError as e:
            # A concurrent check-in for the same employee and day won
            self.db.rollback()
            logger.info(f"Concurrent check-in for employee {employee_id} on {day}: {e}")
            return AttendanceResult.fail(AttendanceErrorCode.ALREADY_ACTIVE)

        except IntegrityError as e:
            self.db.rollback()
            if self._record_exists(employee_id, day):
                # Lost the insert race on (employee_id, attendance_date)
                logger.info(f"Concurrent check-in for employee {employee_id} on {day}: {e}")
                return AttendanceResult.fail(AttendanceErrorCode.ALREADY_ACTIVE)
            logger.error(f"Check-in failed for employee {employee_id}: {e}", exc_info=True)
            return AttendanceResult.fail(AttendanceErrorCode.INTERNAL)

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Check-in failed for employee {employee_id}: {e}", exc_info=True)
            return AttendanceResult.fail(AttendanceErrorCode.INTERNAL)

        logger.info(f"Employee {employee_id} checked in at {now.isoformat()} ({record.status}, {source})")
        return AttendanceResult.success(record, isCheckedIn=True)

    def check_out(self, employee_id: int, now: datetime, source: str = 'web',
                  location: Optional[dict] = None) -> AttendanceResult:
        """
        Close the open work session for today

        Returns:
            AttendanceResult with the record, or OUTSIDE_HOURS / NO_RECORD /
            NO_OPEN_SESSION / INTERNAL
        """
        if not self.policy.check_out_allowed(now):
            return AttendanceResult.fail(
                AttendanceErrorCode.OUTSIDE_HOURS,
                f"Check-out is not allowed after {self.policy.workday_end_hour:02d}:00; "
                f"open sessions are closed automatically"
            )

        day = now.date()
        try:
            record = self._load_record(employee_id, day, lock=True)
            if record is None:
                self.db.rollback()
                return AttendanceResult.fail(AttendanceErrorCode.NO_RECORD)
            if not record.has_open_session:
                self.db.rollback()
                return AttendanceResult.fail(AttendanceErrorCode.NO_OPEN_SESSION)

            record.replace_sessions(
                [s.close(now) if s.is_open else s for s in record.sessions]
            )
            self.db.commit()

        except StaleDataError as e:
            self.db.rollback()
            logger.info(f"Concurrent update while checking out employee {employee_id}: {e}")
            return AttendanceResult.fail(AttendanceErrorCode.INTERNAL, "The record changed, please retry")

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Check-out failed for employee {employee_id}: {e}", exc_info=True)
            return AttendanceResult.fail(AttendanceErrorCode.INTERNAL)

        logger.info(f"Employee {employee_id} checked out at {now.isoformat()} ({source})")
        return AttendanceResult.success(record, isCheckedIn=False)

    def derive_is_checked_in(self, record, now: datetime) -> bool:
        """True while the record has an open session and the work day has not ended"""
        if record is None:
            return False
        return record.has_open_session and not self.policy.is_after_hours(now)

    def worked_minutes(self, record, now: datetime) -> float:
        """Closed sessions plus the open one up to min(now, end of that day)"""
        if record is None:
            return 0.0
        until = min(now, self.policy.day_cutoff(record.attendance_date))
        return sum(s.minutes(until) for s in record.sessions or [])

    def status(self, employee_id: int, day: date, now: datetime) -> AttendanceResult:
        """
        Read-only status for one employee and day

        Returns:
            AttendanceResult with data:
            {
                'isCheckedIn': bool,
                'status': 'Present' | 'Late' | 'Absent' | None,
                'sessions': [...],
                'todayHours': 'Xh Ym',
                'history': [...]   # last 30 days, newest first
            }
        """
        record = self._load_record(employee_id, day)
        is_checked_in = day == now.date() and self.derive_is_checked_in(record, now)

        history_start = day - timedelta(days=HISTORY_DAYS)
        history = (
            self.db.query(self.WorkAttendance)
            .filter(
                self.WorkAttendance.employee_id == employee_id,
                self.WorkAttendance.attendance_date >= history_start,
                self.WorkAttendance.attendance_date <= day
            )
            .order_by(self.WorkAttendance.attendance_date.desc())
            .all()
        )

        return AttendanceResult.success(
            record,
            isCheckedIn=is_checked_in,
            status=record.status if record else None,
            sessions=[s.to_dict() for s in record.sessions] if record else [],
            todayHours=format_duration(self.worked_minutes(record, now)),
            history=[
                dict(r.to_dict(), hours=format_duration(self.worked_minutes(r, now)))
                for r in history
            ],
        )
