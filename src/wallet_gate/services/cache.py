"""Key/value cache backends used for short-lived authentication state."""

from __future__ import annotations

import heapq
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock

import redis

from wallet_gate.core.settings import settings

logger = logging.getLogger(__name__)


class CacheError(RuntimeError):
    """Raised when the backing cache cannot be reached or errors.

    This signals infrastructure trouble, never an invalid credential, and is
    surfaced to clients as a server-side failure.
    """


@dataclass(frozen=True)
class CacheDir:
    """Location of a cached value under a purpose-namespaced key."""

    key: str


class CacheRouter:
    """Single place where cache keys are namespaced by purpose."""

    AUTH_NONCE_KEY = "auth_nonce"

    @classmethod
    def get_auth_nonce_cache_dir(cls, nonce: str) -> CacheDir:
        return CacheDir(key=f"{cls.AUTH_NONCE_KEY}_{nonce}")


class CacheService(ABC):
    """Minimal cache contract consumed by the authentication services.

    Every method is a single atomic operation on the backing store.
    """

    @abstractmethod
    def get(self, cache_dir: CacheDir) -> str | None:
        """Return the stored value, or None if missing or expired."""

    @abstractmethod
    def set(self, cache_dir: CacheDir, value: str, expire_seconds: int) -> None:
        """Store `value` for `expire_seconds` seconds."""

    @abstractmethod
    def delete_by_key(self, key: str) -> None:
        """Delete the entry stored under `key`. Missing keys are ignored."""

    @abstractmethod
    def get_and_delete(self, cache_dir: CacheDir) -> str | None:
        """Atomically read and remove a value.

        Returns the value for exactly one of any number of concurrent callers;
        every other caller gets None.
        """


class RedisCacheService(CacheService):
    """Cache service backed by Redis."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    def get(self, cache_dir: CacheDir) -> str | None:
        try:
            return self._decode(self._redis.get(cache_dir.key))
        except redis.RedisError as err:
            logger.error("Redis GET failed for %s: %s", cache_dir.key, err)
            raise CacheError("Cache read failed") from err

    def set(self, cache_dir: CacheDir, value: str, expire_seconds: int) -> None:
        try:
            self._redis.set(cache_dir.key, value, ex=int(expire_seconds))
        except redis.RedisError as err:
            logger.error("Redis SET failed for %s: %s", cache_dir.key, err)
            raise CacheError("Cache write failed") from err

    def delete_by_key(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except redis.RedisError as err:
            logger.error("Redis DEL failed for %s: %s", key, err)
            raise CacheError("Cache delete failed") from err

    def get_and_delete(self, cache_dir: CacheDir) -> str | None:
        try:
            return self._decode(self._redis.getdel(cache_dir.key))
        except redis.RedisError as err:
            logger.error("Redis GETDEL failed for %s: %s", cache_dir.key, err)
            raise CacheError("Cache read failed") from err

    @staticmethod
    def _decode(value: bytes | str | None) -> str | None:
        if isinstance(value, bytes):
            return value.decode()
        return value


class InMemoryCacheService(CacheService):
    """Process-local cache with TTL semantics for development and tests.

    Expired entries are swept on every write, so keys that are never read
    again do not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._expiries: list[tuple[float, str]] = []
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, cache_dir: CacheDir) -> str | None:
        with self._lock:
            return self._live_value(cache_dir.key)

    def set(self, cache_dir: CacheDir, value: str, expire_seconds: int) -> None:
        if expire_seconds <= 0:
            raise ValueError("expire_seconds must be positive")
        with self._lock:
            now = self._clock()
            self._sweep(now)
            expires_at = now + expire_seconds
            self._entries[cache_dir.key] = (value, expires_at)
            heapq.heappush(self._expiries, (expires_at, cache_dir.key))

    def delete_by_key(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def get_and_delete(self, cache_dir: CacheDir) -> str | None:
        with self._lock:
            value = self._live_value(cache_dir.key)
            self._entries.pop(cache_dir.key, None)
            return value

    def _sweep(self, now: float) -> None:
        # Heap items may be stale after an overwrite or delete; only drop the
        # entry when its stored expiry is the one being popped.
        while self._expiries and self._expiries[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiries)
            entry = self._entries.get(key)
            if entry is not None and entry[1] == expires_at:
                del self._entries[key]

    def _live_value(self, storage_key: str) -> str | None:
        entry = self._entries.get(storage_key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= self._clock():
            del self._entries[storage_key]
            return None
        return value


@lru_cache(maxsize=1)
def get_cache_service() -> CacheService:
    """Return the process-wide cache service selected by configuration."""
    if settings.cache_backend == "memory":
        logger.warning("Using in-memory cache backend; nonces are not shared across processes")
        return InMemoryCacheService()
    client = redis.Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout_seconds,
        socket_connect_timeout=settings.redis_socket_timeout_seconds,
    )
    return RedisCacheService(client)
