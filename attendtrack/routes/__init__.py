"""
Routes package for the attendance service
Centralizes all route blueprints
"""
from .auth import (
    get_current_identity,
    require_authentication
)
from .health import health_bp

__all__ = [
    'health_bp',
    'get_current_identity',
    'require_authentication'
]
