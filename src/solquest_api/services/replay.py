"""Replay protection for wallet sign-in challenges."""

from __future__ import annotations

import logging
import time
from threading import Lock

import redis

from solquest_api.core.errors import StoreUnavailableError
from solquest_api.core.settings import settings

logger = logging.getLogger(__name__)


class ReplayProtectionService:
    """Remembers which challenges have been redeemed so each works only once.

    Keys live in Redis when `REDIS_URL` is configured so that every API
    instance shares them; otherwise an in-process map is used, which is only
    correct for a single instance.
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self._redis = redis_client
        self._seen: dict[str, float] = {}
        self._lock = Lock()

    @staticmethod
    def _key(wallet_address: str, challenge_id: str) -> str:
        return f"challenge:{wallet_address}:{challenge_id}"

    def consume(self, wallet_address: str, challenge_id: str, ttl_seconds: int) -> bool:
        """Mark a challenge as used.

        Returns:
            True if this call was the first to redeem the challenge, False if
            it had already been redeemed within `ttl_seconds`.
        """
        key = self._key(wallet_address, challenge_id)
        ttl = max(1, int(ttl_seconds))
        if self._redis is not None:
            try:
                return bool(self._redis.set(key, "1", nx=True, ex=ttl))
            except redis.RedisError as err:
                logger.warning("Challenge replay store unavailable: %s", err)
                raise StoreUnavailableError("Challenge replay store unavailable") from err

        now = time.monotonic()
        with self._lock:
            self._purge(now)
            if key in self._seen:
                return False
            self._seen[key] = now + ttl
            return True

    def _purge(self, now: float) -> None:
        expired = [key for key, expiry in self._seen.items() if expiry <= now]
        for key in expired:
            del self._seen[key]


_replay_service: ReplayProtectionService | None = None


def get_replay_service() -> ReplayProtectionService:
    """Return the process-wide replay protection service."""
    global _replay_service
    if _replay_service is None:
        client = redis.from_url(settings.redis_url) if settings.redis_url else None
        _replay_service = ReplayProtectionService(client)
    return _replay_service
