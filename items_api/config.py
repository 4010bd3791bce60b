"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    data_path: str = _get_env("DATA_PATH", "data/items.json")
    stats_ttl_seconds: int = int(_get_env("STATS_TTL_SECONDS", "300"))
    stats_cache_backend: str = _get_env("STATS_CACHE_BACKEND", "memory").lower()
    redis_host: str = _get_env("REDIS_HOST", "localhost")
    redis_port: int = int(_get_env("REDIS_PORT", "6379"))
    stats_cache_key: str = _get_env("STATS_CACHE_KEY", "items:stats")
    frontend_origin: str = _get_env("FRONTEND_ORIGIN", "http://localhost:3000")
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
