"""
Work session payload
One typed session variant stored in work_attendance.sessions, with an
explicit schema version. Decoding happens once, in the column type, so the
rest of the code only ever sees lists of WorkSession.

Stored shape (schema_version 1):
    {"schema_version": 1,
     "sessions": [{"kind": "closed", "check_in": "2025-03-03T08:30:00",
                   "check_out": "2025-03-03T12:00:00", "source": "web",
                   "location": null}]}
"""
import json
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.types import JSON, TypeDecorator

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class SessionKind(str, Enum):
    """Tag of a work session"""
    OPEN = "open"
    CLOSED = "closed"            # closed by the employee
    AUTO_CLOSED = "auto_closed"  # closed by the end-of-day sweep


@dataclass(frozen=True)
class WorkSession:
    """One check-in/check-out pair within a day's record"""
    kind: SessionKind
    check_in: datetime
    check_out: Optional[datetime] = None
    source: str = 'web'
    location: Optional[Dict[str, float]] = field(default=None, compare=False)

    @classmethod
    def start(cls, at: datetime, source: str = 'web', location: Optional[dict] = None) -> 'WorkSession':
        return cls(kind=SessionKind.OPEN, check_in=at, source=source, location=location)

    @property
    def is_open(self) -> bool:
        return self.kind == SessionKind.OPEN

    def close(self, at: datetime, auto: bool = False) -> 'WorkSession':
        """Return a closed copy of this session."""
        kind = SessionKind.AUTO_CLOSED if auto else SessionKind.CLOSED
        return replace(self, kind=kind, check_out=at)

    def minutes(self, until: Optional[datetime] = None) -> float:
        """Worked minutes; an open session counts up to `until`."""
        end = self.check_out or until
        if end is None:
            return 0.0
        return max(0.0, (end - self.check_in).total_seconds() / 60)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind.value,
            'check_in': self.check_in.isoformat(),
            'check_out': self.check_out.isoformat() if self.check_out else None,
            'source': self.source,
            'location': self.location,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkSession':
        check_out = _parse_ts(data.get('check_out'))
        kind = data.get('kind')
        if kind is None:
            kind = SessionKind.CLOSED if check_out else SessionKind.OPEN
        return cls(
            kind=SessionKind(kind),
            check_in=_parse_ts(data['check_in']),
            check_out=check_out,
            source=data.get('source') or 'web',
            location=data.get('location'),
        )


def _parse_ts(value) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    # Legacy payloads carry a trailing 'Z'; stored times are org-local and naive
    parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    return parsed.replace(tzinfo=None)


def _upgrade_legacy(entries: List[Dict[str, Any]]) -> List[WorkSession]:
    """
    Convert pre-versioned payloads into WorkSession lists

    Older writers used several shapes: {check_in, check_out} pairs,
    {check_in_time, check_out_time, type} entries, and standalone checkout
    entries (only check_out_time) appended after the matching check-in.
    """
    sessions: List[WorkSession] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        check_in = entry.get('check_in', entry.get('check_in_time'))
        check_out = entry.get('check_out', entry.get('check_out_time'))
        auto = bool(entry.get('auto_checkout'))

        if check_in:
            session = WorkSession.start(_parse_ts(check_in), source=entry.get('source', 'web'),
                                        location=entry.get('location'))
            if check_out:
                session = session.close(_parse_ts(check_out), auto=auto)
            sessions.append(session)
        elif check_out and sessions and sessions[-1].is_open:
            sessions[-1] = sessions[-1].close(_parse_ts(check_out), auto=auto)
    return sessions


def decode_sessions(value: Any) -> List[WorkSession]:
    """Decode a stored payload (any known schema) into WorkSession objects."""
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value) if value.strip() else None
        if value is None:
            return []
    if isinstance(value, list):
        return _upgrade_legacy(value)
    if isinstance(value, dict):
        version = value.get('schema_version')
        if version != SCHEMA_VERSION:
            logger.warning(f"Unknown session schema_version {version!r}, treating as legacy list")
            return _upgrade_legacy(value.get('sessions') or [])
        return [WorkSession.from_dict(item) for item in value.get('sessions') or []]
    raise ValueError(f"Unsupported session payload type: {type(value).__name__}")


def encode_sessions(sessions: List[WorkSession]) -> Dict[str, Any]:
    return {
        'schema_version': SCHEMA_VERSION,
        'sessions': [s.to_dict() for s in sessions or []],
    }


class SessionList(TypeDecorator):
    """JSON column holding a list of WorkSession objects"""
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return encode_sessions([])
        return encode_sessions(value)

    def process_result_value(self, value, dialect):
        return decode_sessions(value)
