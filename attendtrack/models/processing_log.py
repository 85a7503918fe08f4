"""
Attendance Processing Log
Ledger of calendar dates whose end-of-day processing has completed
"""
from datetime import datetime


def create_processing_log_model(db):
    """Factory function to create AttendanceProcessingLog model"""

    class AttendanceProcessingLog(db.Model):
        """
        One row per processed date, written once

        A 'completed' row makes the backfill for that date a no-op.
        """
        __tablename__ = 'attendance_processing_log'

        id = db.Column(db.Integer, primary_key=True)
        processing_date = db.Column(db.Date, nullable=False, unique=True)
        records_processed = db.Column(db.Integer, nullable=False, default=0)
        status = db.Column(db.String(20), nullable=False, default='completed')
        processed_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

        STATUS_COMPLETED = 'completed'

        def to_dict(self):
            return {
                'processing_date': self.processing_date.isoformat(),
                'records_processed': self.records_processed,
                'status': self.status,
                'processed_at': self.processed_at.isoformat() if self.processed_at else None,
            }

        def __repr__(self):
            return f'<AttendanceProcessingLog {self.processing_date}: {self.status} ({self.records_processed})>'

    return AttendanceProcessingLog
