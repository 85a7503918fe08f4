"""
Location heartbeat service
Records periodic device positions from the mobile app and prunes old ones
"""
import logging
from datetime import datetime, timedelta

from attendtrack.services.geofence import GeofenceValidator

logger = logging.getLogger(__name__)


class LocationHeartbeatService:

    def __init__(self, db_session, models: dict, validator: GeofenceValidator):
        self.db = db_session
        self.LocationHeartbeat = models['LocationHeartbeat']
        self.validator = validator

    def record(self, employee_id: int, latitude: float, longitude: float,
               accuracy: float, now: datetime):
        """Store one heartbeat with its fence check; returns the new row"""
        check = self.validator.check(latitude, longitude)
        heartbeat = self.LocationHeartbeat(
            employee_id=employee_id,
            latitude=latitude,
            longitude=longitude,
            accuracy=accuracy,
            distance_meters=check.distance_meters,
            is_inside_fence=check.inside,
            recorded_at=now,
        )
        self.db.add(heartbeat)
        self.db.commit()
        return heartbeat

    def prune(self, now: datetime, retention_hours: int = 24) -> int:
        """Delete heartbeats older than the retention window"""
        threshold = now - timedelta(hours=retention_hours)
        deleted = (
            self.db.query(self.LocationHeartbeat)
            .filter(self.LocationHeartbeat.recorded_at < threshold)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info(f"Pruned {deleted} location heartbeats older than {threshold.isoformat()}")
        return deleted
