"""
Class Attendance Model
Tracks a trainer's presence in a class on a given day
"""
from datetime import datetime


def create_class_attendance_model(db):
    """
    Factory function to create ClassAttendance model with database instance

    Args:
        db: SQLAlchemy database instance

    Returns:
        ClassAttendance: Model class for trainer class sessions
    """

    class ClassAttendance(db.Model):
        """
        One record per trainer, class and day

        check_out_time is only written by an explicit (early) check-out.
        Whether a session is still running is derived at read time from
        check_in_time and the capped class duration; nothing sweeps these rows.

        Attributes:
            trainer_id: Employee teaching the class
            class_id: The class
            attendance_date: Day of the session
            check_in_time: Latest check-in for this class today
            check_out_time: Explicit check-out, if any
            auto_checkout: True while the session ends on its own at the cutoff
            status: Arrival status, fixed at the first check-in of the day
            work_attendance_id: Work record that was open at check-in
        """
        __tablename__ = 'class_attendance'

        id = db.Column(db.Integer, primary_key=True, autoincrement=True)
        trainer_id = db.Column(
            db.Integer,
            db.ForeignKey('employees.id', ondelete='CASCADE'),
            nullable=False,
            index=True
        )
        class_id = db.Column(
            db.Integer,
            db.ForeignKey('classes.id', ondelete='CASCADE'),
            nullable=False
        )
        attendance_date = db.Column(db.Date, nullable=False, index=True)
        check_in_time = db.Column(db.DateTime, nullable=False)
        check_out_time = db.Column(db.DateTime, nullable=True)
        auto_checkout = db.Column(db.Boolean, nullable=False, default=True)
        status = db.Column(db.String(10), nullable=False, default='Present')
        work_attendance_id = db.Column(
            db.Integer,
            db.ForeignKey('work_attendance.id', ondelete='SET NULL'),
            nullable=True
        )
        created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
        updated_at = db.Column(db.DateTime, nullable=True, onupdate=datetime.utcnow)

        __table_args__ = (
            db.UniqueConstraint('trainer_id', 'class_id', 'attendance_date', name='uix_class_attendance_trainer_class_date'),
        )

        training_class = db.relationship('TrainingClass', lazy='joined')

        def to_dict(self):
            return {
                'id': self.id,
                'trainer_id': self.trainer_id,
                'class_id': self.class_id,
                'class_name': self.training_class.name if self.training_class else None,
                'class_code': self.training_class.code if self.training_class else None,
                'attendance_date': self.attendance_date.isoformat() if self.attendance_date else None,
                'check_in_time': self.check_in_time.isoformat() if self.check_in_time else None,
                'check_out_time': self.check_out_time.isoformat() if self.check_out_time else None,
                'auto_checkout': self.auto_checkout,
                'status': self.status,
            }

        def __repr__(self):
            return f'<ClassAttendance {self.id}: trainer {self.trainer_id} class {self.class_id} on {self.attendance_date}>'

    return ClassAttendance
