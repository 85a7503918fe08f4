"""
Validation utilities for the attendance API
Provides reusable parsing/validation functions for request payloads

All functions raise ValidationException (HTTP 400) so that endpoints
decorated with @handle_errors render a consistent error body.
"""
import re
from datetime import datetime, date
from typing import Any, Dict, List, Optional

from attendtrack.error_handlers.exceptions import ValidationException


def validate_date_param(date_str: Optional[str], param_name: str = 'date') -> Optional[date]:
    """
    Validate and parse date parameter from string.

    Args:
        date_str: Date string in YYYY-MM-DD format, or None
        param_name: Name of parameter for error messages (default: 'date')

    Returns:
        date: Parsed date object, or None when no value was given

    Raises:
        ValidationException: If date format is invalid

    Examples:
        >>> validate_date_param('2025-10-15')
        date(2025, 10, 15)
    """
    if not date_str:
        return None
    try:
        return datetime.strptime(date_str, '%Y-%m-%d').date()
    except ValueError:
        raise ValidationException(
            f"Invalid {param_name} format. Use YYYY-MM-DD (e.g., 2025-10-15)"
        )


def validate_required_fields(data: Optional[Dict[str, Any]], required_fields: List[str]) -> Dict[str, Any]:
    """
    Validate that all required fields are present in request data.

    Args:
        data: Request data dictionary (None when the body was not JSON)
        required_fields: List of required field names

    Returns:
        The data dictionary, for chaining

    Raises:
        ValidationException: If the body is missing or a field is absent
    """
    if not isinstance(data, dict):
        raise ValidationException('Request body must be a JSON object')

    missing = [field for field in required_fields if data.get(field) is None]
    if missing:
        raise ValidationException(f"Missing required fields: {', '.join(missing)}")
    return data


def validate_int(value: Any, param_name: str) -> int:
    """Coerce an id-like value to int, rejecting booleans and junk."""
    if isinstance(value, bool):
        raise ValidationException(f"{param_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationException(f"{param_name} must be an integer")


def validate_location(payload: Any, require_timestamp: bool = True) -> Dict[str, float]:
    """
    Validate a device location payload.

    Expected shape:
        {"latitude": -1.22, "longitude": 36.7, "accuracy": 12.5, "timestamp": 1718000000000}

    Returns:
        dict with float latitude/longitude/accuracy and the timestamp as given

    Raises:
        ValidationException: If a field is missing, non-numeric or out of range
    """
    required = ['latitude', 'longitude', 'accuracy']
    if require_timestamp:
        required.append('timestamp')
    validate_required_fields(payload, required)

    location = {}
    for field in required:
        value = payload[field]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationException(f"location.{field} must be a number")
        location[field] = float(value)

    if not -90.0 <= location['latitude'] <= 90.0:
        raise ValidationException('location.latitude must be between -90 and 90')
    if not -180.0 <= location['longitude'] <= 180.0:
        raise ValidationException('location.longitude must be between -180 and 180')
    if location['accuracy'] < 0:
        raise ValidationException('location.accuracy must not be negative')

    return location


def sanitize_request_data(data: str) -> str:
    """
    Remove sensitive data from request strings for safe logging.

    Redacts common sensitive field patterns (passwords, tokens, secrets).

    Examples:
        >>> sanitize_request_data('{"token": "abc"}')
        '{"token": "[REDACTED]"}'
    """
    for key in ('password', 'token', 'secret', 'credential', 'challenge', 'authenticationResponse'):
        data = re.sub(rf'("{key}"\s*:\s*")[^"]*(")', r'\1[REDACTED]\2', data, flags=re.IGNORECASE)
    return data
