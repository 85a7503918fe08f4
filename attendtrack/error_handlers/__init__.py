"""
Unified Error Handling System

Provides centralized, consistent error handling across the entire application.

Usage:
    from attendtrack.error_handlers import handle_errors, ValidationException

    @attendance_api_bp.route('/check-in', methods=['POST'])
    @handle_errors
    def check_in():
        if not valid:
            raise ValidationException('Invalid data')
        return jsonify({'success': True})
"""
from .exceptions import (
    AppException,
    ValidationException,
    AuthenticationException,
    ConfigurationException,
    DatabaseException
)
from .decorators import handle_errors, retry_once_on_db_error
from .logging import setup_logging, register_error_handlers


__all__ = [
    # Exceptions
    'AppException',
    'ValidationException',
    'AuthenticationException',
    'ConfigurationException',
    'DatabaseException',
    # Decorators
    'handle_errors',
    'retry_once_on_db_error',
    # Setup
    'setup_logging',
    'register_error_handlers',
]
