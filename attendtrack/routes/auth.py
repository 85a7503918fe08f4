"""
Authentication helpers
Resolves an already-issued session token to the caller's identity

Sessions are created by the identity service and stored in Redis as
`session:<id>` -> {"user_info": {...}, "created_at": ...}. The token
arrives either in the `session_id` cookie (web) or as a Bearer token (mobile).
"""
from flask import request, current_app, g
from functools import wraps
import json
import urllib.parse

import redis

from attendtrack.error_handlers.exceptions import AuthenticationException

# Redis Connection (Lazy loading pattern)
_redis_client = None


def get_redis_client():
    """Get or create Redis client"""
    global _redis_client
    if _redis_client is None:
        redis_url = current_app.config.get('REDIS_URL', 'redis://localhost:6379/0')
        # Handle case where REDIS_PASSWORD is set but not in URL
        redis_password = current_app.config.get('REDIS_PASSWORD')
        if redis_password and '@' not in redis_url:
            parts = redis_url.split('://')
            if len(parts) == 2:
                encoded_password = urllib.parse.quote_plus(redis_password)
                redis_url = f"{parts[0]}://:{encoded_password}@{parts[1]}"

        _redis_client = redis.from_url(redis_url, decode_responses=True)
    return _redis_client


def get_session(session_id):
    """Retrieve session data from Redis"""
    if not session_id:
        return None
    try:
        client = get_redis_client()
        data = client.get(f"session:{session_id}")
        if data:
            return json.loads(data)
    except redis.RedisError as e:
        current_app.logger.error(f"Redis session read error: {e}")
    return None


def get_session_token():
    """Session id from the cookie, else from an Authorization: Bearer header"""
    session_id = request.cookies.get('session_id')
    if session_id:
        return session_id
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def get_current_identity():
    """
    Identity of the caller, or None

    Returns:
        dict: {'employeeId': int, 'role': str, 'name': str, 'department': str}
    """
    session_data = get_session(get_session_token())
    if not session_data:
        return None
    user_info = session_data.get('user_info') or {}
    if user_info.get('employeeId') is None:
        return None
    return user_info


def require_authentication():
    """Decorator to require an authenticated caller; sets g.identity"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            identity = get_current_identity()
            if identity is None:
                raise AuthenticationException('Authentication required')
            g.identity = identity
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def current_employee_id():
    """Employee id of the authenticated caller (inside require_authentication)"""
    return int(g.identity['employeeId'])
