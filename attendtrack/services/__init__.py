"""
Services package for attendance business logic and background processing
"""

from .attendance_types import (
    AttendanceError,
    AttendanceErrorCode,
    AttendanceResult
)

from .time_policy import TimePolicy, get_policy
from .geofence import GeofenceConfig, GeofenceValidator, distance_meters, within_fence, load_geofence_config
from .attendance_engine import AttendanceEngine
from .class_sessions import ClassSessionOverlay
from .auto_processing import AutoProcessingScheduler
from .challenge_store import ChallengeStore
from .location_heartbeat import LocationHeartbeatService

__all__ = [
    # Result types
    'AttendanceError',
    'AttendanceErrorCode',
    'AttendanceResult',
    # Policy
    'TimePolicy',
    'get_policy',
    'GeofenceConfig',
    'GeofenceValidator',
    'distance_meters',
    'within_fence',
    'load_geofence_config',
    # Services
    'AttendanceEngine',
    'ClassSessionOverlay',
    'AutoProcessingScheduler',
    'ChallengeStore',
    'LocationHeartbeatService',
]
