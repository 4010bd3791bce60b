"""Cache backends for the stats entry: Redis when configured, memory otherwise."""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

import redis

from .config import settings

logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def set(self, key: str, value: Dict[str, Any], ttl: int) -> None: ...

    def delete(self, key: str) -> None: ...


@dataclass
class RedisCache:
    client: redis.Redis

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            data = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("Redis get failed: %s", exc)
            return None
        if not data:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            return None

    def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        try:
            self.client.setex(key, max(int(ttl), 1), json.dumps(value))
        except redis.RedisError as exc:
            logger.warning("Redis set failed: %s", exc)

    def delete(self, key: str) -> None:
        try:
            self.client.delete(key)
        except redis.RedisError as exc:
            logger.warning("Redis delete failed: %s", exc)


class InMemoryCache:
    """Process-local store; expiry is left to the caller's own TTL check.

    ``ttl`` is accepted for protocol compatibility only, so an entry stays
    readable until it is overwritten or deleted.
    """

    def __init__(self) -> None:
        self._store: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        return self._store.get(key)

    def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)


def create_cache(
    backend: str | None = None,
    redis_factory: Callable[[], redis.Redis] | None = None,
) -> CacheBackend:
    backend = (backend or settings.stats_cache_backend).lower()
    if backend != "redis":
        return InMemoryCache()
    factory = redis_factory or (
        lambda: redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=False)
    )
    try:
        client = factory()
        client.ping()
        logger.info("Using Redis stats cache at %s:%s", settings.redis_host, settings.redis_port)
        return RedisCache(client)
    except redis.RedisError:
        logger.warning("Redis not available, using in-memory stats cache")
        return InMemoryCache()


def wall_clock() -> float:
    return time.time()
