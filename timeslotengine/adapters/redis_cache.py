"""
Redis-backed profile cache using ``redis.asyncio``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from redis.asyncio import Redis

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600


class RedisProfileCache:
    """
    Stores profile records as JSON strings with an expiry.

    Args:
        client: Async Redis client created with ``decode_responses=True``
        ttl_seconds: Lifetime of every entry
        key_prefix: Prepended to every key, to share one Redis between apps
    """

    def __init__(
        self,
        client: Redis,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        key_prefix: str = "",
    ) -> None:
        self._client = client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    @classmethod
    def from_url(
        cls,
        redis_url: str,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        key_prefix: str = "",
    ) -> "RedisProfileCache":
        client = Redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
        return cls(client, ttl_seconds=ttl_seconds, key_prefix=key_prefix)

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        data = await self._client.get(self._key(key))
        if not data:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring undecodable cache entry %s: %s", key, exc)
            return None

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        await self._client.setex(self._key(key), self._ttl_seconds, json.dumps(value))

    async def delete(self, key: str) -> None:
        await self._client.delete(self._key(key))

    async def close(self) -> None:
        await self._client.aclose()

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"
