"""
Work Attendance Model
One record per employee per calendar day holding that day's work sessions
"""
from datetime import datetime

from .session_payload import SessionList


def create_work_attendance_model(db):
    """
    Factory function to create WorkAttendance model with database instance

    Args:
        db: SQLAlchemy database instance

    Returns:
        WorkAttendance: Model class for daily work attendance
    """

    class WorkAttendance(db.Model):
        """
        Daily work attendance for one employee

        One record per employee per day (UNIQUE on employee_id + attendance_date).
        `sessions` is the ordered list of WorkSession objects; at most one of
        them is open. An Absent record never has sessions.

        check_in_time / check_out_time mirror the first check-in and the most
        recent check-out for readers that predate multi-session days.

        `version` is an optimistic lock: a writer that loaded a stale copy
        fails with StaleDataError instead of overwriting a concurrent change.
        """
        __tablename__ = 'work_attendance'

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        employee_id = db.Column(
            db.Integer,
            db.ForeignKey('employees.id', ondelete='CASCADE'),
            nullable=False,
            index=True
        )
        attendance_date = db.Column(db.Date, nullable=False, index=True)
        status = db.Column(db.String(10), nullable=False)  # Present, Late, Absent
        sessions = db.Column(SessionList, nullable=False, default=lambda: [])

        # Legacy scalar mirrors
        check_in_time = db.Column(db.DateTime, nullable=True)
        check_out_time = db.Column(db.DateTime, nullable=True)

        version = db.Column(db.Integer, nullable=False)
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
        updated_at = db.Column(db.DateTime, nullable=True, onupdate=datetime.utcnow)

        __table_args__ = (
            db.UniqueConstraint('employee_id', 'attendance_date', name='uix_work_attendance_employee_date'),
            db.Index('ix_work_attendance_date_status', 'attendance_date', 'status'),
        )
        __mapper_args__ = {'version_id_col': version}

        employee = db.relationship('Employee', backref='work_attendance_records', lazy=True)

        STATUS_PRESENT = 'Present'
        STATUS_LATE = 'Late'
        STATUS_ABSENT = 'Absent'

        VALID_STATUSES = [STATUS_PRESENT, STATUS_LATE, STATUS_ABSENT]

        @property
        def open_session(self):
            """The open session, or None"""
            for session in self.sessions or []:
                if session.is_open:
                    return session
            return None

        @property
        def has_open_session(self):
            return self.open_session is not None

        def replace_sessions(self, sessions):
            """
            Store a new session list and refresh the legacy mirrors

            Always assigns a fresh list so the change is flushed.
            """
            sessions = list(sessions)
            self.sessions = sessions
            self.check_in_time = sessions[0].check_in if sessions else None
            closed = [s.check_out for s in sessions if s.check_out is not None]
            self.check_out_time = closed[-1] if closed else None

        def to_dict(self):
            """
            Convert attendance record to dictionary for JSON serialization

            Returns:
                dict: Attendance record as dictionary
            """
            return {
                'id': self.id,
                'employee_id': self.employee_id,
                'employee_name': self.employee.name if self.employee else None,
                'attendance_date': self.attendance_date.isoformat() if self.attendance_date else None,
                'status': self.status,
                'sessions': [s.to_dict() for s in self.sessions or []],
                'check_in_time': self.check_in_time.isoformat() if self.check_in_time else None,
                'check_out_time': self.check_out_time.isoformat() if self.check_out_time else None,
            }

        def __repr__(self):
            return f'<WorkAttendance {self.id}: {self.employee_id} on {self.attendance_date} - {self.status}>'

    return WorkAttendance
