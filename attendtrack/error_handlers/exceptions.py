"""
Custom exception hierarchy for type-safe error handling

Maps request-level failures to HTTP status codes so that every endpoint
renders them the same way. Attendance outcomes (OUTSIDE_HOURS,
ALREADY_ACTIVE, ...) are NOT exceptions: the engines return them as
typed results, see services/attendance_types.py.

Exception Hierarchy:
    AppException (base)
    ├── ValidationException (400)
    ├── AuthenticationException (401)
    ├── ConfigurationException (500)
    └── DatabaseException (500)
"""
from typing import Dict, Any, Optional


class AppException(Exception):
    """
    Base exception for all application errors

    Attributes:
        status_code: HTTP status code for the error
        error_type: String identifier for the error type
        message: Human-readable error message
        details: Additional context about the error
    """
    status_code = 500
    error_type = 'ApplicationError'

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        if status_code:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to JSON-serializable dictionary

        Returns:
            Dictionary suitable for JSON response
        """
        result = {
            'success': False,
            'error': self.error_type,
            'message': self.message,
            'status_code': self.status_code
        }

        if self.details:
            result.update(self.details)

        return result

    def __str__(self) -> str:
        return f"{self.error_type}: {self.message}"

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}('{self.message}', status_code={self.status_code})>"


class ValidationException(AppException):
    """
    Validation errors (HTTP 400)

    Raised when request data fails validation checks.

    Example:
        >>> if 'location' not in payload:
        ...     raise ValidationException('location is required')
    """
    status_code = 400
    error_type = 'ValidationError'


class AuthenticationException(AppException):
    """
    Authentication errors (HTTP 401)

    Raised when no session token is presented or it does not resolve to
    an identity.
    """
    status_code = 401
    error_type = 'AuthenticationError'


class ConfigurationException(AppException):
    """
    Configuration errors (HTTP 500)

    Raised at startup when required production settings are missing.
    """
    status_code = 500
    error_type = 'ConfigurationError'


class DatabaseException(AppException):
    """
    Database operation errors (HTTP 500)

    Raised when an idempotent read still fails after its retry. Rendered
    with the INTERNAL code so clients see the same retryable error as a
    failed write.
    """
    status_code = 500
    error_type = 'INTERNAL'
