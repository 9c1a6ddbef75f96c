# src/wallet_gate/services/__init__.py
"""Business logic services for Wallet Gate."""

from .cache import CacheError, CacheService, InMemoryCacheService, RedisCacheService
from .nonce import NonceService
from .siwe import SiweService

__all__ = [
    "CacheError",
    "CacheService",
    "InMemoryCacheService",
    "RedisCacheService",
    "NonceService",
    "SiweService",
]
