"""
Error handling decorators

Provides decorators for consistent error handling across endpoints.
"""
import logging
from functools import wraps
from flask import jsonify, current_app
from datetime import datetime
from sqlalchemy.exc import OperationalError, DBAPIError
from .exceptions import AppException, DatabaseException

logger = logging.getLogger(__name__)


def handle_errors(f):
    """
    Universal error handler decorator - use on all endpoints

    Provides:
    - Consistent JSON error responses
    - Automatic logging with error IDs
    - Exception type hierarchy support

    Usage:
        @attendance_api_bp.route('/check-in', methods=['POST'])
        @handle_errors
        def check_in():
            if not valid:
                raise ValidationException('Invalid input')
            return jsonify({'success': True})

    Args:
        f: Function to decorate

    Returns:
        Decorated function with error handling
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)

        except AppException as e:
            # Custom exceptions - already formatted
            current_app.logger.warning(
                f"{e.error_type} in {f.__name__}: {e.message}",
                extra={'details': e.details} if e.details else {}
            )
            return jsonify(e.to_dict()), e.status_code

        except Exception as e:
            # Unexpected errors - log with ID and full traceback
            error_id = datetime.utcnow().strftime('%Y%m%d_%H%M%S_%f')

            current_app.logger.error(
                f"Unexpected error [{error_id}] in {f.__name__}: {str(e)}",
                exc_info=True
            )

            # Don't expose internal error details in production
            return jsonify({
                'success': False,
                'error': 'INTERNAL',
                'message': 'An unexpected error occurred',
                'error_id': error_id,
                'status_code': 500
            }), 500

    return decorated


def retry_once_on_db_error(f):
    """
    Retry an idempotent read once when the storage layer drops the connection

    Only for functions with no side effects: the session is rolled back
    before the second attempt, and a second failure is raised as
    DatabaseException.

    Usage:
        @retry_once_on_db_error
        def load_status(employee_id, day):
            ...
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (OperationalError, DBAPIError) as e:
            logger.warning(f"Storage error in {f.__name__}, retrying once: {e}")
            db = current_app.extensions['sqlalchemy']
            db.session.rollback()
            try:
                return f(*args, **kwargs)
            except (OperationalError, DBAPIError) as retry_error:
                db.session.rollback()
                logger.error(f"Storage error in {f.__name__} after retry: {retry_error}")
                raise DatabaseException(
                    'Storage is unavailable, please retry',
                    details={'retryable': True}
                ) from retry_error

    return decorated
