"""
Geofence Validator
Great-circle distance check of a reported position against the
organization's configured center and radius.

The configuration comes from the active Organization row when one exists
and falls back to the GEOFENCE_* application settings otherwise, so every
entry point (web, mobile, heartbeat) applies the same fence.
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371e3

Coordinates = Tuple[float, float]  # (latitude, longitude) in degrees


def distance_meters(a: Coordinates, b: Coordinates) -> float:
    """Haversine distance between two (lat, lng) points in meters."""
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    d_lat = lat2 - lat1
    d_lon = lon2 - lon1

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def within_fence(point: Coordinates, center: Coordinates, radius_meters: float) -> bool:
    """Boundary inclusive: a point exactly on the radius is inside."""
    return distance_meters(point, center) <= radius_meters


@dataclass(frozen=True)
class GeofenceConfig:
    center_lat: float
    center_lng: float
    radius_meters: float
    enabled: bool = True

    @property
    def center(self) -> Coordinates:
        return (self.center_lat, self.center_lng)


@dataclass(frozen=True)
class GeofenceCheck:
    inside: bool
    distance_meters: Optional[float]

    @property
    def rounded_distance(self) -> Optional[int]:
        return None if self.distance_meters is None else int(round(self.distance_meters))


class GeofenceValidator:
    """Applies one GeofenceConfig to reported positions"""

    def __init__(self, config: GeofenceConfig):
        self.config = config

    def check(self, latitude: float, longitude: float) -> GeofenceCheck:
        if not self.config.enabled:
            return GeofenceCheck(inside=True, distance_meters=None)

        distance = distance_meters((latitude, longitude), self.config.center)
        inside = distance <= self.config.radius_meters
        if not inside:
            logger.info(
                f"Position ({latitude:.6f}, {longitude:.6f}) is {distance:.1f}m from center, "
                f"radius {self.config.radius_meters}m"
            )
        return GeofenceCheck(inside=inside, distance_meters=distance)


def load_geofence_config(models, app_config) -> GeofenceConfig:
    """
    Resolve the fence for the current organization

    Args:
        models: Model registry dict (needs 'Organization')
        app_config: Flask config mapping with GEOFENCE_* fallbacks
    """
    organization = models['Organization'].get_active()
    if organization is not None and organization.center_latitude is not None \
            and organization.center_longitude is not None:
        return GeofenceConfig(
            center_lat=float(organization.center_latitude),
            center_lng=float(organization.center_longitude),
            radius_meters=float(organization.max_distance_meters or app_config.get('GEOFENCE_RADIUS_METERS', 50.0)),
            enabled=bool(organization.geofencing_enabled),
        )

    return GeofenceConfig(
        center_lat=float(app_config.get('GEOFENCE_CENTER_LAT', 0.0)),
        center_lng=float(app_config.get('GEOFENCE_CENTER_LNG', 0.0)),
        radius_meters=float(app_config.get('GEOFENCE_RADIUS_METERS', 50.0)),
        enabled=bool(app_config.get('GEOFENCE_ENABLED', True)),
    )
