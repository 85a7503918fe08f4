"""
Result types and error codes for attendance operations
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class AttendanceErrorCode(str, Enum):
    """Expected outcomes that reject an attendance action"""
    OUTSIDE_HOURS = "OUTSIDE_HOURS"
    ALREADY_ACTIVE = "ALREADY_ACTIVE"
    NO_RECORD = "NO_RECORD"
    NO_OPEN_SESSION = "NO_OPEN_SESSION"
    OUTSIDE_GEOFENCE = "OUTSIDE_GEOFENCE"
    BIOMETRIC_REQUIRED = "BIOMETRIC_REQUIRED"
    WORK_SESSION_REQUIRED = "WORK_SESSION_REQUIRED"
    NOT_ASSIGNED = "NOT_ASSIGNED"
    CLASS_SESSION_ACTIVE = "CLASS_SESSION_ACTIVE"
    ALREADY_CLOSED = "ALREADY_CLOSED"
    INTERNAL = "INTERNAL"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]

    @property
    def retryable(self) -> bool:
        """False when repeating the same request can never succeed"""
        return self not in (AttendanceErrorCode.ALREADY_ACTIVE, AttendanceErrorCode.ALREADY_CLOSED)

    @property
    def default_message(self) -> str:
        return _MESSAGES[self]


_HTTP_STATUS = {
    AttendanceErrorCode.OUTSIDE_HOURS: 400,
    AttendanceErrorCode.ALREADY_ACTIVE: 409,
    AttendanceErrorCode.NO_RECORD: 404,
    AttendanceErrorCode.NO_OPEN_SESSION: 409,
    AttendanceErrorCode.OUTSIDE_GEOFENCE: 403,
    AttendanceErrorCode.BIOMETRIC_REQUIRED: 403,
    AttendanceErrorCode.WORK_SESSION_REQUIRED: 409,
    AttendanceErrorCode.NOT_ASSIGNED: 403,
    AttendanceErrorCode.CLASS_SESSION_ACTIVE: 409,
    AttendanceErrorCode.ALREADY_CLOSED: 409,
    AttendanceErrorCode.INTERNAL: 500,
}

_MESSAGES = {
    AttendanceErrorCode.OUTSIDE_HOURS: "Attendance actions are only allowed during working hours",
    AttendanceErrorCode.ALREADY_ACTIVE: "You already have an active session",
    AttendanceErrorCode.NO_RECORD: "No attendance record found",
    AttendanceErrorCode.NO_OPEN_SESSION: "No active session to check out from",
    AttendanceErrorCode.OUTSIDE_GEOFENCE: "You are outside the allowed area",
    AttendanceErrorCode.BIOMETRIC_REQUIRED: "Biometric verification is required",
    AttendanceErrorCode.WORK_SESSION_REQUIRED: "Check in to work before checking into a class",
    AttendanceErrorCode.NOT_ASSIGNED: "You are not assigned to this class",
    AttendanceErrorCode.CLASS_SESSION_ACTIVE: "You are already checked into another class",
    AttendanceErrorCode.ALREADY_CLOSED: "This class session has already ended",
    AttendanceErrorCode.INTERNAL: "An internal error occurred",
}


@dataclass
class AttendanceError:
    code: AttendanceErrorCode
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        body = {
            'success': False,
            'error': self.code.value,
            'message': self.message,
            'retryable': self.code.retryable,
        }
        body.update(self.details)
        return body


@dataclass
class AttendanceResult:
    """Outcome of an engine operation: either a record or an error"""
    record: Any = None
    error: Optional[AttendanceError] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, record=None, **data) -> 'AttendanceResult':
        return cls(record=record, data=data)

    @classmethod
    def fail(cls, code: AttendanceErrorCode, message: Optional[str] = None, **details) -> 'AttendanceResult':
        return cls(error=AttendanceError(code=code, message=message or code.default_message, details=details))

    @property
    def http_status(self) -> int:
        return 200 if self.ok else self.error.code.http_status

    def to_dict(self) -> Dict[str, Any]:
        if not self.ok:
            return self.error.to_dict()
        body = {'success': True}
        if self.record is not None:
            body['record'] = self.record.to_dict()
        body.update(self.data)
        return body

    def __str__(self):
        if self.ok:
            return "ok"
        return f"[{self.error.code.value}] {self.error.message}"
