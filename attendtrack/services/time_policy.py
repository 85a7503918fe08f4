"""
Time Policy
The fixed daily attendance window and the class session duration cap.

Defaults: check-in opens 07:00, arrivals after 09:00 are Late, the work day
ends at 17:00 (no manual check-in/out from then on; the sweep closes open
sessions at exactly 17:00), and class sessions last at most 2 hours.
All datetimes are naive organization-local times.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta


STATUS_PRESENT = 'Present'
STATUS_LATE = 'Late'


@dataclass(frozen=True)
class TimePolicy:
    check_in_open_hour: int = 7
    late_cutoff: time = time(9, 0)
    workday_end_hour: int = 17
    class_max_hours: float = 2.0

    @classmethod
    def from_config(cls, config) -> 'TimePolicy':
        """Build the policy from a Flask config mapping."""
        late = config.get('LATE_CUTOFF', '09:00')
        if isinstance(late, str):
            late = datetime.strptime(late, '%H:%M').time()
        return cls(
            check_in_open_hour=int(config.get('CHECK_IN_OPEN_HOUR', 7)),
            late_cutoff=late,
            workday_end_hour=int(config.get('WORKDAY_END_HOUR', 17)),
            class_max_hours=float(config.get('CLASS_MAX_HOURS', 2.0)),
        )

    def check_in_allowed(self, now: datetime) -> bool:
        return self.check_in_open_hour <= now.hour < self.workday_end_hour

    def check_out_allowed(self, now: datetime) -> bool:
        # At/after the end of day only the sweep may close a session
        return now.hour < self.workday_end_hour

    def classify_arrival(self, now: datetime) -> str:
        return STATUS_LATE if now.time() > self.late_cutoff else STATUS_PRESENT

    def is_after_hours(self, now: datetime) -> bool:
        return now.hour >= self.workday_end_hour

    def day_cutoff(self, day: date) -> datetime:
        """Fixed instant at which the sweep closes the day's open sessions."""
        return datetime.combine(day, time(self.workday_end_hour, 0, 0))

    def class_cutoff(self, check_in: datetime, duration_hours: float) -> datetime:
        hours = min(float(duration_hours or 0), self.class_max_hours)
        return check_in + timedelta(hours=hours)

    def effective_class_hours(self, duration_hours: float) -> float:
        return min(float(duration_hours or 0), self.class_max_hours)


DEFAULT_POLICY = TimePolicy()


def get_policy() -> TimePolicy:
    """Return the policy registered on the current app."""
    from flask import current_app
    return current_app.extensions.get('time_policy', DEFAULT_POLICY)
