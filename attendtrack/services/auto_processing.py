"""
Auto Processing Scheduler
End-of-day reconciliation of work attendance

Runs after hours to:
- Close every session still open at the fixed end-of-day instant
- Mark active employees with no record for the day as Absent
- Catch up on recent weekdays that were never finalized (backfill)

Every step is idempotent: the auto-checkout time is the fixed cutoff,
absent rows are inserted only when missing, and a date with a completed
ledger entry is never processed again.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from attendtrack.services.time_policy import DEFAULT_POLICY, TimePolicy

logger = logging.getLogger(__name__)


@dataclass
class SweepCounts:
    """Rows changed and rows skipped because of an error"""
    processed: int = 0
    failed: int = 0

    def __iadd__(self, other: 'SweepCounts') -> 'SweepCounts':
        self.processed += other.processed
        self.failed += other.failed
        return self


class AutoProcessingScheduler:
    """
    Batch sweeps over WorkAttendance records
    """

    def __init__(self, db_session, models: dict, policy: TimePolicy = None, backfill_days: int = 7):
        """
        Args:
            db_session: SQLAlchemy database session
            models: Dictionary of model classes from the registry
            policy: TimePolicy (defaults to the standard window)
            backfill_days: How many past days the backfill looks at
        """
        self.db = db_session
        self.Employee = models['Employee']
        self.WorkAttendance = models['WorkAttendance']
        self.ProcessingLog = models['AttendanceProcessingLog']
        self.policy = policy or DEFAULT_POLICY
        self.backfill_days = backfill_days

    def _day_is_over(self, day: date, now: datetime) -> bool:
        today = now.date()
        if day < today:
            return True
        return day == today and self.policy.is_after_hours(now)

    # Auto-checkout

    def _close_open_sessions(self, day: date) -> SweepCounts:
        counts = SweepCounts()
        cutoff = self.policy.day_cutoff(day)

        candidate_ids = [
            r.id for r in self.db.query(self.WorkAttendance).filter(
                self.WorkAttendance.attendance_date == day,
                self.WorkAttendance.status != self.WorkAttendance.STATUS_ABSENT
            ).all()
            if r.has_open_session
        ]

        for record_id in candidate_ids:
            try:
                record = (
                    self.db.query(self.WorkAttendance)
                    .filter_by(id=record_id)
                    .with_for_update()
                    .first()
                )
                if record is None or not record.has_open_session:
                    self.db.rollback()
                    continue
                record.replace_sessions(
                    [s.close(cutoff, auto=True) if s.is_open else s for s in record.sessions]
                )
                self.db.commit()
                counts.processed += 1
                logger.debug(f"Auto-checked out employee {record.employee_id} on {day} at {cutoff}")
            except (StaleDataError, SQLAlchemyError) as e:
                self.db.rollback()
                counts.failed += 1
                logger.error(f"Auto-checkout failed for record {record_id} on {day}: {e}", exc_info=True)

        return counts

    def auto_checkout_sweep(self, day: date, now: datetime) -> int:
        """
        Close every open session of `day` at that day's cutoff

        Does nothing for today before the end of the work day, or for a future date.

        Returns:
            Number of records closed
        """
        if not self._day_is_over(day, now):
            return 0
        counts = self._close_open_sessions(day)
        logger.info(f"Auto-checkout sweep for {day}: {counts.processed} closed, {counts.failed} failed")
        return counts.processed

    # Absence marking

    def _mark_absent(self, day: date) -> SweepCounts:
        counts = SweepCounts()

        active_ids = {
            row.id for row in self.db.query(self.Employee.id).filter(self.Employee.is_active.is_(True)).all()
        }
        with_record = {
            row.employee_id for row in self.db.query(self.WorkAttendance.employee_id).filter(
                self.WorkAttendance.attendance_date == day
            ).all()
        }
        missing = active_ids - with_record
        if not missing:
            return counts

        # Someone may have checked in since the first read
        arrived = {
            row.employee_id for row in self.db.query(self.WorkAttendance.employee_id).filter(
                self.WorkAttendance.attendance_date == day,
                self.WorkAttendance.employee_id.in_(missing),
                self.WorkAttendance.status != self.WorkAttendance.STATUS_ABSENT
            ).all()
        }
        missing -= arrived

        for employee_id in sorted(missing):
            try:
                with self.db.begin_nested():
                    exists = self.db.query(self.WorkAttendance.id).filter_by(
                        employee_id=employee_id,
                        attendance_date=day
                    ).first()
                    if exists is not None:
                        continue
                    record = self.WorkAttendance(
                        employee_id=employee_id,
                        attendance_date=day,
                        status=self.WorkAttendance.STATUS_ABSENT,
                    )
                    record.replace_sessions([])
                    self.db.add(record)
                counts.processed += 1
            except IntegrityError:
                # A check-in for this employee and day won the race
                logger.info(f"Employee {employee_id} has a record for {day}, not marking absent")
            except SQLAlchemyError as e:
                counts.failed += 1
                logger.error(f"Absence marking failed for employee {employee_id} on {day}: {e}", exc_info=True)

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Committing absence records for {day} failed: {e}", exc_info=True)
            return SweepCounts(processed=0, failed=max(1, counts.processed + counts.failed))

        return counts

    def absence_sweep(self, day: date, now: datetime) -> int:
        """
        Insert an Absent record for every active employee with no record on `day`

        Does nothing for today before the end of the work day, or for a future date.

        Returns:
            Number of Absent records created
        """
        if not self._day_is_over(day, now):
            return 0
        counts = self._mark_absent(day)
        logger.info(f"Absence sweep for {day}: {counts.processed} marked absent, {counts.failed} failed")
        return counts.processed

    # Backfill

    def missed_dates(self, now: datetime) -> List[date]:
        """Weekdays in the backfill window (today excluded) without a completed ledger entry"""
        today = now.date()
        candidates = [today - timedelta(days=offset) for offset in range(self.backfill_days, 0, -1)]
        candidates = [d for d in candidates if d.weekday() < 5]
        if not candidates:
            return []

        completed = {
            row.processing_date for row in self.db.query(self.ProcessingLog.processing_date).filter(
                self.ProcessingLog.processing_date.in_(candidates),
                self.ProcessingLog.status == self.ProcessingLog.STATUS_COMPLETED
            ).all()
        }
        return [d for d in candidates if d not in completed]

    def backfill(self, now: datetime) -> int:
        """
        Finalize recent weekdays that were never processed

        For each missed date: close stale sessions, mark absences, and write
        a completed ledger entry only when no record failed, so a partly
        failed date is retried on the next run.

        Returns:
            Number of dates finalized
        """
        finalized = 0
        for day in self.missed_dates(now):
            counts = self._close_open_sessions(day)
            counts += self._mark_absent(day)

            if counts.failed:
                logger.warning(f"Backfill for {day} had {counts.failed} failures, leaving it unfinalized")
                continue

            try:
                self.db.add(self.ProcessingLog(
                    processing_date=day,
                    records_processed=counts.processed,
                    status=self.ProcessingLog.STATUS_COMPLETED,
                    processed_at=now,
                ))
                self.db.commit()
                finalized += 1
                logger.info(f"Backfilled {day}: {counts.processed} records")
            except IntegrityError:
                # Another worker finalized this date first
                self.db.rollback()
                logger.info(f"Ledger entry for {day} already written")

        return finalized

    def run(self, now: datetime) -> Dict[str, int]:
        """
        Full pass: backfill, then today's sweeps

        Returns:
            {'autoCheckouts': int, 'absentRecords': int, 'missedDaysProcessed': int}
        """
        logger.info(f"Starting automatic attendance processing at {now.isoformat()}")
        missed = self.backfill(now)

        today = now.date()
        checkouts = self.auto_checkout_sweep(today, now)
        absences = self.absence_sweep(today, now)

        result = {
            'autoCheckouts': checkouts,
            'absentRecords': absences,
            'missedDaysProcessed': missed,
        }
        logger.info(f"Automatic attendance processing complete: {result}")
        return result
