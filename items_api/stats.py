"""Aggregate stats over the record set, cached for a fixed window."""
from __future__ import annotations

import logging
from numbers import Real
from typing import Any, Callable, Dict, Sequence

from .cache import CacheBackend, InMemoryCache, wall_clock

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


def _is_price(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def compute_stats(records: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """Count records and average their numeric ``price`` (0 when there is none)."""
    prices = [float(record["price"]) for record in records if _is_price(record.get("price"))]
    average = sum(prices) / len(prices) if prices else 0.0
    return {"total": len(records), "averagePrice": average}


class StatsCache:
    """Single stats entry stamped with ``computedAt``.

    A read strictly less than ``ttl_seconds`` after ``computedAt`` returns the
    stored entry untouched; otherwise the entry is recomputed and replaced.
    """

    def __init__(
        self,
        backend: CacheBackend | None = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = wall_clock,
        key: str = "items:stats",
    ) -> None:
        self.backend = backend if backend is not None else InMemoryCache()
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.key = key

    def fresh(self) -> Dict[str, Any] | None:
        """Return the stored entry if it is still inside the window, else ``None``."""
        entry = self.backend.get(self.key)
        if entry is not None and self.clock() - entry.get("computedAt", float("-inf")) < self.ttl_seconds:
            return entry
        return None

    def get(self, records: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        entry = self.fresh()
        if entry is not None:
            return entry
        now = self.clock()
        entry = {**compute_stats(records), "computedAt": now}
        self.backend.set(self.key, entry, self.ttl_seconds)
        logger.info("Recomputed stats total=%s averagePrice=%.2f", entry["total"], entry["averagePrice"])
        return entry

    def invalidate(self) -> None:
        self.backend.delete(self.key)
        logger.debug("Stats cache invalidated")
