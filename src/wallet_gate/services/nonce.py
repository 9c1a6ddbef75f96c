"""Sign-in nonce lifecycle backed by the cache service."""

from __future__ import annotations

import logging
import secrets
from typing import Final

from wallet_gate.core.settings import settings
from wallet_gate.services.cache import CacheRouter, CacheService, get_cache_service

logger = logging.getLogger(__name__)

# EIP-4361 reference clients use 17 alphanumeric characters (~96 bits). Hex
# output is generated a whole byte at a time, so the length must be even.
NONCE_LENGTH: Final[int] = 18


class NonceService:
    """Issue, look up and retire single-use sign-in nonces.

    Nonces are written to the cache with a fixed TTL. The login flow retires
    them with `consume_nonce`, a single atomic claim, so two concurrent
    requests can never both accept the same nonce.
    """

    def __init__(self, cache: CacheService, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("Nonce TTL must be a positive number of seconds")
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    @staticmethod
    def generate_nonce() -> str:
        """Return 18 lowercase hex characters drawn from a CSPRNG."""
        # One byte is two hex chars
        return secrets.token_bytes(NONCE_LENGTH // 2).hex()

    def store_nonce(self, nonce: str) -> None:
        cache_dir = CacheRouter.get_auth_nonce_cache_dir(nonce)
        self._cache.set(cache_dir, nonce, self._ttl_seconds)

    def get_nonce(self, nonce: str) -> str | None:
        cache_dir = CacheRouter.get_auth_nonce_cache_dir(nonce)
        return self._cache.get(cache_dir)

    def clear_nonce(self, nonce: str) -> None:
        cache_dir = CacheRouter.get_auth_nonce_cache_dir(nonce)
        self._cache.delete_by_key(cache_dir.key)

    def consume_nonce(self, nonce: str) -> bool:
        """Atomically claim a stored nonce.

        Returns:
            True if this call removed a live nonce; False if it was never
            issued, has expired, or was already used.
        """
        cache_dir = CacheRouter.get_auth_nonce_cache_dir(nonce)
        claimed = self._cache.get_and_delete(cache_dir)
        if claimed != nonce:
            logger.info("Rejected unknown or reused nonce %s...", nonce[:6])
            return False
        return True

    def issue_nonce(self) -> str:
        """Generate a fresh nonce and store it for the configured TTL."""
        nonce = self.generate_nonce()
        self.store_nonce(nonce)
        logger.info("Issued sign-in nonce %s... (ttl=%ss)", nonce[:6], self._ttl_seconds)
        return nonce


def get_nonce_service() -> NonceService:
    """Return a nonce service bound to the configured cache and TTL."""
    return NonceService(get_cache_service(), settings.auth_nonce_ttl_seconds)
