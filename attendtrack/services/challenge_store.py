"""
Biometric challenge store
Short-lived WebAuthn challenges kept in Redis so every worker sees them

Each challenge lives under its own key with a TTL and is deleted by the
read that consumes it, so a challenge can be used at most once.
"""
import base64
import json
import logging
import secrets
from datetime import datetime
from typing import Optional, Tuple

import redis

logger = logging.getLogger(__name__)

CHALLENGE_PREFIX = "biometric_challenge:"
DEFAULT_TTL_SECONDS = 300


class ChallengeStore:
    """
    Issue and consume biometric challenges

    Args:
        client: redis.Redis instance (decode_responses=True)
        ttl_seconds: Lifetime of an unused challenge
    """

    def __init__(self, client, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(challenge_id: str) -> str:
        return f"{CHALLENGE_PREFIX}{challenge_id}"

    def issue(self, user_id: int) -> Tuple[str, str]:
        """
        Create a challenge for a user

        Returns:
            (challenge_id, challenge) - challenge is URL-safe base64 of 32 random bytes
        """
        challenge_id = secrets.token_urlsafe(16)
        challenge = base64.urlsafe_b64encode(secrets.token_bytes(32)).rstrip(b'=').decode('ascii')
        payload = {
            'user_id': user_id,
            'challenge': challenge,
            'issued_at': datetime.utcnow().isoformat(),
        }
        self.client.setex(self._key(challenge_id), self.ttl_seconds, json.dumps(payload))
        logger.debug(f"Issued biometric challenge {challenge_id[:8]}... for user {user_id}")
        return challenge_id, challenge

    def consume(self, challenge_id: str, user_id: int) -> Optional[str]:
        """
        Atomically fetch and delete a challenge

        Returns:
            The challenge, or None if it is unknown, expired, or belongs to another user
        """
        if not challenge_id:
            return None
        try:
            data = self.client.getdel(self._key(challenge_id))
        except redis.RedisError as e:
            logger.error(f"Redis challenge read error: {e}")
            return None
        if not data:
            return None

        payload = json.loads(data)
        if payload.get('user_id') != user_id:
            logger.warning(f"Challenge {challenge_id[:8]}... presented by user {user_id}, issued to another user")
            return None
        return payload.get('challenge')


def get_challenge_store() -> ChallengeStore:
    """Challenge store bound to the app's Redis connection"""
    from flask import current_app
    from attendtrack.routes.auth import get_redis_client
    return ChallengeStore(
        get_redis_client(),
        ttl_seconds=current_app.config.get('BIOMETRIC_CHALLENGE_TTL', DEFAULT_TTL_SECONDS)
    )
