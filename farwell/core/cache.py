"""
Key/value cache with per-entry TTL.

Two backends share one interface: an in-process store (default, single
worker) and Redis (``CACHE_BACKEND=redis``) for deployments running several
workers. Values must be JSON-serialisable; the Redis backend stores them as
JSON text and the in-memory backend keeps a JSON round-tripped copy so both
behave the same for callers.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Optional

from farwell.core.config import get_settings

logger = logging.getLogger(__name__)

SWEEP_INTERVAL_SECONDS = 60.0


class CacheBackend(ABC):
    """Abstract interface for cache backends."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` when missing or expired."""

    @abstractmethod
    def put(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def forget(self, key: str) -> None:
        """Drop ``key`` if present."""


@dataclass
class CacheEntry:
    payload: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryCacheBackend(CacheBackend):
    """Thread-safe dictionary cache; ``clock`` is injectable for tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock
        self._lock = Lock()
        self._next_sweep = 0.0

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        if now < self._next_sweep:
            return
        self._entries = {key: entry for key, entry in self._entries.items() if not entry.is_expired(now)}
        self._next_sweep = now + SWEEP_INTERVAL_SECONDS

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return default
            payload = entry.payload
        return json.loads(payload)

    def put(self, key: str, value: Any, ttl_seconds: float) -> None:
        payload = json.dumps(value)
        with self._lock:
            now = self._clock()
            self._sweep(now)
            self._entries[key] = CacheEntry(payload=payload, expires_at=now + ttl_seconds)

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisCacheBackend(CacheBackend):
    """Redis-backed cache; keys are namespaced with ``prefix``."""

    def __init__(self, client, prefix: str = "farwell:"):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, redis_url: str, prefix: str = "farwell:") -> "RedisCacheBackend":
        import redis

        return cls(redis.from_url(redis_url, decode_responses=True), prefix=prefix)

    def get(self, key: str, default: Any = None) -> Any:
        data = self._client.get(f"{self._prefix}{key}")
        if data is None:
            return default
        return json.loads(data)

    def put(self, key: str, value: Any, ttl_seconds: float) -> None:
        ttl = max(1, int(ttl_seconds))
        self._client.setex(f"{self._prefix}{key}", ttl, json.dumps(value))

    def forget(self, key: str) -> None:
        self._client.delete(f"{self._prefix}{key}")


def _create_backend() -> CacheBackend:
    settings = get_settings()
    if settings.cache_backend == "redis":
        if not settings.redis_url:
            raise RuntimeError("REDIS_URL must be configured when CACHE_BACKEND=redis.")
        logger.info("Using Redis cache backend")
        return RedisCacheBackend.from_url(settings.redis_url)
    return InMemoryCacheBackend()


_cache: Optional[CacheBackend] = None
_cache_lock = Lock()


def get_cache() -> CacheBackend:
    """Get or create the process-wide cache backend."""
    global _cache
    if _cache is None:
        with _cache_lock:
            if _cache is None:
                _cache = _create_backend()
    return _cache


def set_cache(backend: Optional[CacheBackend]) -> None:
    """Replace (or with ``None`` reset) the process-wide backend."""
    global _cache
    with _cache_lock:
        _cache = backend
