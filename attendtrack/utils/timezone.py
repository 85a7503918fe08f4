"""Organization clock and time zone helpers.

Every attendance computation takes its "now" from one Clock bound to the
organization's time zone. Timestamps are stored as naive organization-local
datetimes, so the engine never mixes zones.
"""

from datetime import datetime, timedelta
from functools import lru_cache
from zoneinfo import ZoneInfo


@lru_cache(maxsize=8)
def _get_tz(tz_name):
    return ZoneInfo(tz_name)


class Clock:
    """Wall clock in the organization's zone.

    Args:
        tz_name: IANA time zone name, e.g. 'Africa/Nairobi'.
    """

    def __init__(self, tz_name):
        self.tz_name = tz_name
        self.tz = _get_tz(tz_name)

    def now(self):
        """Current organization-local time as a naive datetime."""
        return datetime.now(self.tz).replace(tzinfo=None, microsecond=0)

    def today(self):
        return self.now().date()

    def localize(self, dt):
        """Convert an aware datetime to naive organization-local time."""
        if dt.tzinfo is None:
            return dt
        return dt.astimezone(self.tz).replace(tzinfo=None)


class FixedClock(Clock):
    """Clock pinned to a given local instant; advance() moves it forward."""

    def __init__(self, tz_name, at):
        super().__init__(tz_name)
        self.current = at

    def now(self):
        return self.current

    def set(self, at):
        self.current = at

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)
        return self.current


def get_clock():
    """Return the clock registered on the current app."""
    from flask import current_app
    return current_app.extensions['clock']


def format_duration(total_minutes):
    """Format minutes as 'Xh Ym' the way the dashboards display hours."""
    total_minutes = max(0, int(total_minutes))
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"
