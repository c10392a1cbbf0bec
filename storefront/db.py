"""
Key-Value Storage - Credential and cache stores

Provides the async key-value contract used for the auth token, the
serialized cart and the recently viewed list, with two implementations:
- MemoryKeyValueStore: process-local dict (tests, offline sessions)
- RedisKeyValueStore: Upstash Redis REST client, namespaced per session
"""

import os
from abc import ABC, abstractmethod
from typing import Dict, Optional

from upstash_redis.asyncio import Redis as AsyncRedis

from storefront.logging import get_logger

logger = get_logger(__name__)

# Upstash Redis - standard env var names per docs
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

_redis_client: Optional[AsyncRedis] = None


class StorageKeys:
    """Keys used by the storefront core."""

    TOKEN = "token"
    CART = "cart"
    RECENTLY_VIEWED = "recentlyViewed"


class TTL:
    """Time-to-live constants for Redis keys (seconds, None = no expiry)."""

    TOKEN = None
    CART = 604800  # 7 days
    RECENTLY_VIEWED = 2592000  # 30 days

    @classmethod
    def for_key(cls, key: str) -> Optional[int]:
        return {
            StorageKeys.CART: cls.CART,
            StorageKeys.RECENTLY_VIEWED: cls.RECENTLY_VIEWED,
        }.get(key, cls.TOKEN)


class KeyValueStore(ABC):
    """Async string key-value store."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value or None."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store `value` under `key`."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove `key`; missing keys are ignored."""


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class RedisKeyValueStore(KeyValueStore):
    """
    Upstash Redis backed store.

    Keys are stored as `storefront:{namespace}:{key}` so several sessions can
    share one database.
    """

    def __init__(self, redis: Optional[AsyncRedis] = None, namespace: str = "default") -> None:
        self._redis = redis
        self.namespace = namespace

    @property
    def redis(self) -> AsyncRedis:
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            self._redis = get_redis()
        return self._redis

    def _key(self, key: str) -> str:
        return f"storefront:{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[str]:
        value = await self.redis.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        ttl = TTL.for_key(key)
        if ttl:
            await self.redis.set(self._key(key), value, ex=ttl)
        else:
            await self.redis.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)
        logger.info("Upstash Redis client initialized")

    return _redis_client
