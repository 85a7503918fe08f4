"""
Unit tests for the biometric challenge store and location heartbeats.
"""
import json
import pytest
from datetime import datetime, timedelta

from attendtrack.services.challenge_store import CHALLENGE_PREFIX, ChallengeStore
from attendtrack.services.geofence import GeofenceConfig, GeofenceValidator
from attendtrack.services.location_heartbeat import LocationHeartbeatService


class TestChallengeStore:

    @pytest.mark.unit
    def test_issue_stores_with_ttl(self, fake_redis):
        store = ChallengeStore(fake_redis, ttl_seconds=300)

        challenge_id, challenge = store.issue(7)

        key = f'{CHALLENGE_PREFIX}{challenge_id}'
        assert fake_redis.ttls[key] == 300
        assert json.loads(fake_redis.store[key])['challenge'] == challenge

    @pytest.mark.unit
    def test_consume_once(self, fake_redis):
        store = ChallengeStore(fake_redis)
        challenge_id, challenge = store.issue(7)

        assert store.consume(challenge_id, 7) == challenge
        assert store.consume(challenge_id, 7) is None

    @pytest.mark.unit
    def test_other_user_cannot_consume(self, fake_redis):
        store = ChallengeStore(fake_redis)
        challenge_id, _ = store.issue(7)

        assert store.consume(challenge_id, 8) is None
        # Presenting it to the wrong user burns it
        assert store.consume(challenge_id, 7) is None

    @pytest.mark.unit
    def test_expired_challenge(self, fake_redis):
        store = ChallengeStore(fake_redis)
        challenge_id, _ = store.issue(7)
        fake_redis.expire(f'{CHALLENGE_PREFIX}{challenge_id}')

        assert store.consume(challenge_id, 7) is None

    @pytest.mark.unit
    def test_challenges_are_unique(self, fake_redis):
        store = ChallengeStore(fake_redis)
        issued = {store.issue(7) for _ in range(20)}
        assert len(issued) == 20


class TestLocationHeartbeat:

    @pytest.mark.unit
    def test_record_and_prune(self, db, models, sample_employee):
        service = LocationHeartbeatService(
            db.session, models, GeofenceValidator(GeofenceConfig(0.0, 0.0, 1000))
        )
        now = datetime(2025, 3, 5, 10, 0)

        old = service.record(sample_employee.id, 0.0, 0.001, 5.0, now - timedelta(hours=25))
        inside = service.record(sample_employee.id, 0.0, 0.001, 5.0, now)
        outside = service.record(sample_employee.id, 1.0, 1.0, 5.0, now)

        old_id, inside_id, outside_id = old.id, inside.id, outside.id
        assert inside.is_inside_fence is True
        assert outside.is_inside_fence is False
        assert outside.distance_meters > 1000

        assert service.prune(now, retention_hours=24) == 1
        remaining = {h.id for h in models['LocationHeartbeat'].query.all()}
        assert remaining == {inside_id, outside_id}
        assert old_id not in remaining
