"""
redis_client.py – singleton Redis connection + helpers
======================================================

• 100 % lazy: first call triggers connect; gives up after a few attempts
  so a dead broker never stalls a refresh pass.
• `heartbeat(service)` once per pass.
• `RedisPublisher` – best-effort fan-out of refreshed forex snapshots.
"""

from __future__ import annotations

import json
import os
import time
from typing import Any, Callable, Mapping, Optional

import redis

from .constants import (
    CHANNEL_TEMPLATE,
    KEY_HEARTBEAT,
    PUBLISH_EXCHANGE,
    PUBLISH_ROUTING_KEY,
)
from .logging import get_logger

# ───── CONFIG ──────────────────────────────────────────────────────────
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CONNECT_ATTEMPTS = int(os.getenv("REDIS_CONNECT_ATTEMPTS", 5))
log = get_logger("shared.redis")

# ───── LAZY SINGLETON ─────────────────────────────────────────────────
class _LazyRedis:
    """Proxy object that connects on first attribute access."""
    _client: Optional[redis.Redis] = None

    def __init__(self, url: str = REDIS_URL, attempts: int = CONNECT_ATTEMPTS) -> None:
        self._url = url
        self._attempts = max(1, attempts)

    def __getattr__(self, name: str) -> Callable[..., Any]:  # noqa: D401
        if self._client is None:
            self._connect()
        return getattr(self._client, name)

    def _connect(self) -> None:
        for attempt in range(1, self._attempts + 1):
            try:
                client = redis.Redis.from_url(
                    self._url,
                    decode_responses=True,
                    socket_timeout=2,
                )
                client.ping()
                self._client = client
                log.info("Connected to Redis at %s", self._url)
                return
            except redis.RedisError as exc:
                log.warning("Redis unavailable (%d/%d) – %s",
                            attempt, self._attempts, exc)
                if attempt < self._attempts:
                    time.sleep(2)
        raise redis.ConnectionError(f"could not reach Redis at {self._url}")

# Exposed singleton used by all services
rds: redis.Redis = _LazyRedis()  # type: ignore[assignment]

def connect(url: str) -> redis.Redis:
    """Lazy client for an explicit URL (e.g. `Settings.redis_url`)."""
    if url == REDIS_URL:
        return rds
    return _LazyRedis(url)  # type: ignore[return-value]

# ───── HELPER FUNCTIONS ───────────────────────────────────────────────
def heartbeat(service: str, client: Any = None) -> None:
    """Store current epoch-seconds in `heartbeat:<service>`."""
    try:
        (client or rds).set(KEY_HEARTBEAT.format(service), time.time())
    except redis.RedisError as exc:
        log.error("heartbeat failed – %s", exc)


class RedisPublisher:
    """
    Publishes one JSON message per call on channel `<exchange>.<routing_key>`.

    Fire-and-forget: no acknowledgement is awaited and a broker failure is
    logged, never raised, so one unavailable broker cannot break a refresh.
    """

    def __init__(self, client: Any = None,
                 exchange: str = PUBLISH_EXCHANGE,
                 routing_key: str = PUBLISH_ROUTING_KEY) -> None:
        self._client = client if client is not None else rds
        self.channel = CHANNEL_TEMPLATE.format(exchange, routing_key)

    def publish(self, payload: Mapping[str, Any]) -> bool:
        try:
            self._client.publish(self.channel, json.dumps(payload, default=str))
            return True
        except redis.RedisError as exc:
            log.warning("publish to %s dropped – %s", self.channel, exc)
            return False
