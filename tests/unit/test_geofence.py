"""
Unit tests for distance calculation and geofence configuration.
"""
import math
import pytest

from attendtrack.services.geofence import (
    EARTH_RADIUS_METERS,
    GeofenceConfig,
    GeofenceValidator,
    distance_meters,
    load_geofence_config,
    within_fence
)


def point_east_of_origin(meters):
    """Point on the equator `meters` east of (0, 0)"""
    return (0.0, math.degrees(meters / EARTH_RADIUS_METERS))


class TestDistance:

    @pytest.mark.unit
    def test_same_point_is_zero(self):
        assert distance_meters((-1.22486, 36.70958), (-1.22486, 36.70958)) == 0

    @pytest.mark.unit
    def test_along_equator_matches_arc_length(self):
        assert distance_meters((0.0, 0.0), point_east_of_origin(600001)) == pytest.approx(600001, abs=1e-3)

    @pytest.mark.unit
    def test_symmetric(self):
        a, b = (-1.2921, 36.8219), (-1.22486, 36.70958)
        assert distance_meters(a, b) == pytest.approx(distance_meters(b, a))


class TestFence:

    @pytest.mark.unit
    def test_boundary_is_inclusive(self):
        point = (-1.2250, 36.7100)
        center = (-1.22486, 36.70958)
        radius = distance_meters(point, center)
        assert within_fence(point, center, radius) is True

    @pytest.mark.unit
    def test_just_beyond_radius_is_rejected_with_distance(self):
        validator = GeofenceValidator(GeofenceConfig(0.0, 0.0, 600000))
        check = validator.check(*point_east_of_origin(600001))
        assert check.inside is False
        assert check.rounded_distance == 600001

    @pytest.mark.unit
    def test_just_inside_radius_is_accepted(self):
        validator = GeofenceValidator(GeofenceConfig(0.0, 0.0, 600000))
        check = validator.check(*point_east_of_origin(599999))
        assert check.inside is True

    @pytest.mark.unit
    def test_disabled_fence_accepts_everything(self):
        validator = GeofenceValidator(GeofenceConfig(0.0, 0.0, 10, enabled=False))
        check = validator.check(45.0, 90.0)
        assert check.inside is True
        assert check.distance_meters is None


class TestConfigLoading:

    @pytest.mark.unit
    def test_falls_back_to_app_config(self, app, models):
        config = load_geofence_config(models, app.config)
        assert config == GeofenceConfig(0.0, 0.0, 600000.0, enabled=True)

    @pytest.mark.unit
    def test_active_organization_wins(self, app, models, db):
        db.session.add(models['Organization'](
            name='Head Office',
            center_latitude=-1.22486,
            center_longitude=36.70958,
            max_distance_meters=50,
            geofencing_enabled=True,
        ))
        db.session.commit()

        config = load_geofence_config(models, app.config)
        assert config.center_lat == pytest.approx(-1.22486)
        assert config.center_lng == pytest.approx(36.70958)
        assert config.radius_meters == 50
        assert config.enabled is True

    @pytest.mark.unit
    def test_inactive_organization_is_ignored(self, app, models, db):
        db.session.add(models['Organization'](
            name='Old Office',
            center_latitude=10,
            center_longitude=10,
            max_distance_meters=5,
            is_active=False,
        ))
        db.session.commit()

        assert load_geofence_config(models, app.config).radius_meters == 600000.0
