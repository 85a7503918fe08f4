"""
Class Session Overlay
Trainer class check-in/check-out layered on top of the work session

A trainer may be in at most one class at a time, and only while checked in
to work. A class session ends on its own at check_in + min(duration, cap);
that end is computed when read and never written back, so no sweep touches
class rows.
"""
import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from attendtrack.services.attendance_engine import AttendanceEngine
from attendtrack.services.attendance_types import AttendanceErrorCode, AttendanceResult
from attendtrack.services.time_policy import DEFAULT_POLICY, TimePolicy
from attendtrack.utils.timezone import format_duration

logger = logging.getLogger(__name__)

CLASS_STATUS_PRESENT = 'Present'


class ClassSessionOverlay:
    """
    Class attendance operations for trainers
    """

    def __init__(self, db_session, models: dict, policy: TimePolicy = None,
                 engine: AttendanceEngine = None):
        self.db = db_session
        self.ClassAttendance = models['ClassAttendance']
        self.TrainingClass = models['TrainingClass']
        self.TrainerClassAssignment = models['TrainerClassAssignment']
        self.policy = policy or DEFAULT_POLICY
        self.engine = engine or AttendanceEngine(db_session, models, self.policy)

    # Derived session state

    def effective_end(self, record) -> datetime:
        """Explicit check-out if any, else the capped cutoff"""
        if record.check_out_time is not None:
            return record.check_out_time
        return self.policy.class_cutoff(record.check_in_time, record.training_class.duration_hours)

    def is_active(self, record, now: datetime) -> bool:
        return record.check_out_time is None and now < self.effective_end(record)

    def session_minutes(self, record, now: datetime) -> float:
        end = min(self.effective_end(record), now)
        return max(0.0, (end - record.check_in_time).total_seconds() / 60)

    def serialize(self, record, now: datetime) -> dict:
        data = record.to_dict()
        data['is_active'] = self.is_active(record, now)
        data['effective_end'] = self.effective_end(record).isoformat()
        data['duration'] = format_duration(self.session_minutes(record, now))
        return data

    def _today_records(self, trainer_id: int, day: date, lock: bool = False) -> List:
        query = (
            self.db.query(self.ClassAttendance)
            .filter_by(trainer_id=trainer_id, attendance_date=day)
            .order_by(self.ClassAttendance.check_in_time)
        )
        if lock:
            query = query.with_for_update()
        return query.all()

    def _active_assignment(self, trainer_id: int, class_id: int):
        return (
            self.db.query(self.TrainerClassAssignment)
            .join(self.TrainingClass, self.TrainerClassAssignment.class_id == self.TrainingClass.id)
            .filter(
                self.TrainerClassAssignment.trainer_id == trainer_id,
                self.TrainerClassAssignment.class_id == class_id,
                self.TrainerClassAssignment.is_active.is_(True),
                self.TrainingClass.is_active.is_(True)
            )
            .first()
        )

    # Operations

    def class_check_in(self, trainer_id: int, class_id: int, now: datetime) -> AttendanceResult:
        """
        Start a class session

        Order of checks: open work session, active assignment, no other
        active class session today.

        The trainer's work record is locked first and held until commit, so
        concurrent check-ins for the same trainer scan and insert one at a
        time even when no class row exists yet.
        """
        day = now.date()
        try:
            work_record = self.engine.get_record(trainer_id, day, lock=True)
            if not self.engine.derive_is_checked_in(work_record, now):
                self.db.rollback()
                return AttendanceResult.fail(AttendanceErrorCode.WORK_SESSION_REQUIRED)

            if self._active_assignment(trainer_id, class_id) is None:
                self.db.rollback()
                return AttendanceResult.fail(AttendanceErrorCode.NOT_ASSIGNED)

            records = self._today_records(trainer_id, day, lock=True)
            active = [r for r in records if self.is_active(r, now)]
            if active:
                self.db.rollback()
                current = active[0]
                return AttendanceResult.fail(
                    AttendanceErrorCode.CLASS_SESSION_ACTIVE,
                    activeClassId=current.class_id,
                    activeUntil=self.effective_end(current).isoformat()
                )

            record = next((r for r in records if r.class_id == class_id), None)
            if record is None:
                record = self.ClassAttendance(
                    trainer_id=trainer_id,
                    class_id=class_id,
                    attendance_date=day,
                    status=CLASS_STATUS_PRESENT,
                )
                self.db.add(record)
            # A second same-day check-in restarts the session; status stays as first recorded
            record.check_in_time = now
            record.check_out_time = None
            record.auto_checkout = True
            record.work_attendance_id = work_record.id
            self.db.commit()

        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Concurrent class check-in for trainer {trainer_id}, class {class_id}: {e}")
            return AttendanceResult.fail(AttendanceErrorCode.CLASS_SESSION_ACTIVE)

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Class check-in failed for trainer {trainer_id}: {e}", exc_info=True)
            return AttendanceResult.fail(AttendanceErrorCode.INTERNAL)

        logger.info(f"Trainer {trainer_id} checked into class {class_id} at {now.isoformat()}")
        return AttendanceResult.success(
            record,
            effectiveEnd=self.effective_end(record).isoformat()
        )

    def class_check_out(self, attendance_id: int, trainer_id: int, now: datetime) -> AttendanceResult:
        """End a class session early"""
        try:
            record = (
                self.db.query(self.ClassAttendance)
                .filter_by(id=attendance_id)
                .with_for_update()
                .first()
            )
            if record is None or record.trainer_id != trainer_id:
                self.db.rollback()
                return AttendanceResult.fail(AttendanceErrorCode.NO_RECORD)

            if not self.is_active(record, now):
                self.db.rollback()
                return AttendanceResult.fail(AttendanceErrorCode.ALREADY_CLOSED)

            record.check_out_time = now
            record.auto_checkout = False
            self.db.commit()

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Class check-out failed for attendance {attendance_id}: {e}", exc_info=True)
            return AttendanceResult.fail(AttendanceErrorCode.INTERNAL)

        logger.info(f"Trainer {trainer_id} checked out of class {record.class_id} at {now.isoformat()}")
        return AttendanceResult.success(record)

    def class_status(self, trainer_id: int, now: datetime) -> dict:
        """
        Today's class sessions plus this month's statistics

        Returns:
            Dict:
            {
                'todayAttendance': [...],
                'activeClassSessions': [...],
                'canCheckIntoNewClass': bool,
                'attendanceHistory': [...],
                'stats': {totalClassesThisMonth, hoursThisMonth, activeClasses, activeSessionsToday}
            }
        """
        today = now.date()
        today_records = self._today_records(trainer_id, today)
        active_sessions = [r for r in today_records if self.is_active(r, now)]

        month_start = today.replace(day=1)
        monthly = (
            self.db.query(self.ClassAttendance)
            .filter(
                self.ClassAttendance.trainer_id == trainer_id,
                self.ClassAttendance.attendance_date >= month_start,
                self.ClassAttendance.attendance_date <= today
            )
            .order_by(self.ClassAttendance.attendance_date.desc())
            .all()
        )
        completed = [r for r in monthly if not self.is_active(r, now)]
        completed_minutes = sum(self.session_minutes(r, now) for r in completed)

        active_assignments = (
            self.db.query(self.TrainerClassAssignment)
            .join(self.TrainingClass, self.TrainerClassAssignment.class_id == self.TrainingClass.id)
            .filter(
                self.TrainerClassAssignment.trainer_id == trainer_id,
                self.TrainerClassAssignment.is_active.is_(True),
                self.TrainingClass.is_active.is_(True)
            )
            .count()
        )

        return {
            'todayAttendance': [self.serialize(r, now) for r in today_records],
            'activeClassSessions': [self.serialize(r, now) for r in active_sessions],
            'canCheckIntoNewClass': not active_sessions,
            'attendanceHistory': [self.serialize(r, now) for r in monthly],
            'stats': {
                'totalClassesThisMonth': len(completed),
                'hoursThisMonth': format_duration(completed_minutes),
                'activeClasses': active_assignments,
                'activeSessionsToday': len(active_sessions),
            },
        }

    def assigned_classes(self, trainer_id: int, day: date, now: Optional[datetime] = None) -> list:
        """Active assignments, each with the trainer's record for `day` if any"""
        assignments = (
            self.db.query(self.TrainerClassAssignment)
            .join(self.TrainingClass, self.TrainerClassAssignment.class_id == self.TrainingClass.id)
            .filter(
                self.TrainerClassAssignment.trainer_id == trainer_id,
                self.TrainerClassAssignment.is_active.is_(True),
                self.TrainingClass.is_active.is_(True)
            )
            .order_by(self.TrainingClass.name)
            .all()
        )
        by_class = {r.class_id: r for r in self._today_records(trainer_id, day)}

        classes = []
        for assignment in assignments:
            data = assignment.training_class.to_dict()
            data['effective_duration_hours'] = self.policy.effective_class_hours(
                assignment.training_class.duration_hours
            )
            record = by_class.get(assignment.class_id)
            if record is None:
                data['today_attendance'] = None
            elif now is None:
                data['today_attendance'] = record.to_dict()
            else:
                data['today_attendance'] = self.serialize(record, now)
            classes.append(data)
        return classes
