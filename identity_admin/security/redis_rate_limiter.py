"""Login rate limiting shared across service replicas through Redis."""

from __future__ import annotations

import logging
import time
import uuid

from redis import Redis

logger = logging.getLogger(__name__)


class RedisLoginRateLimiter:
    """Sliding log of login attempts, one sorted set per rate limit key.

    Every attempt is recorded and counted inside a single ``MULTI`` block. An
    attempt over the limit removes its own entry again, so refused attempts do
    not extend the lockout. Keys expire with the window.
    """

    def __init__(
        self,
        client: Redis,
        *,
        max_requests: int,
        window_seconds: int,
        namespace: str = "identity-admin:ratelimit",
    ) -> None:
        self._client = client
        self._max_requests = max_requests
        self._window = window_seconds
        self._namespace = namespace

    def allow(self, key: str) -> bool:
        """Return ``True`` when the key is still within the shared rate limit."""
        now = time.time()
        redis_key = f"{self._namespace}:{key}"
        member = f"{now:.6f}:{uuid.uuid4().hex}"

        with self._client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(redis_key, "-inf", now - self._window)
            pipe.zadd(redis_key, {member: now})
            pipe.zcard(redis_key)
            pipe.expire(redis_key, max(self._window, 1))
            _, _, attempts, _ = pipe.execute()

        if attempts > self._max_requests:
            self._client.zrem(redis_key, member)
            logger.info("rate limit reached for %s", key)
            return False
        return True
