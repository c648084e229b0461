import json
import logging
from typing import Any, Optional
from uuid import UUID

import redis.asyncio as redis

from photogram.config_secrets import PROFILE_CACHE_EXPIRY, REDIS_URL

logger = logging.getLogger(__name__)


async def init_cache(url: Optional[str] = None) -> redis.Redis:
    """Create the Redis client"""
    return redis.from_url(url or REDIS_URL, decode_responses=True)


async def close_cache(client: Optional[redis.Redis]) -> None:
    """Close the Redis client"""
    if client:
        await client.aclose()


# Helper function to convert UUID and dates to strings for Redis
def _serialize(obj: Any) -> Any:
    if isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, dict):
        return {k: _serialize(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_serialize(item) for item in obj]
    elif hasattr(obj, "isoformat"):
        return obj.isoformat()
    return obj


class ProfileCache:
    """
    User profile cache.

    Without a client every call is a no-op, so services work unchanged when
    Redis is not configured.

    A deferred cache only collects invalidations until ``flush()``, which the
    request runs after its transaction commits.
    """

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        expiry: int = PROFILE_CACHE_EXPIRY,
        deferred: bool = False,
    ):
        self.client = client
        self.expiry = expiry
        self.deferred = deferred
        self.pending: set[UUID] = set()

    @staticmethod
    def _key(user_id: UUID) -> str:
        return f"user:{user_id}"

    async def get(self, user_id: UUID) -> Optional[dict[str, Any]]:
        """Get cached user profile data"""
        if not self.client:
            return None

        cached = await self.client.get(self._key(user_id))
        if cached:
            return json.loads(cached)
        return None

    async def set(self, user_id: UUID, profile: dict[str, Any]) -> None:
        """Cache user profile data in Redis"""
        if not self.client:
            return

        await self.client.setex(self._key(user_id), self.expiry, json.dumps(_serialize(profile)))

    async def invalidate(self, *user_ids: UUID) -> None:
        """Invalidate the cached profile of every given user"""
        if not self.client or not user_ids:
            return

        if self.deferred:
            self.pending.update(user_ids)
            return

        await self.client.delete(*(self._key(user_id) for user_id in user_ids))
        logger.debug("Invalidated cached profiles for %s", ", ".join(str(u) for u in user_ids))

    async def flush(self) -> None:
        """Apply the invalidations collected by a deferred cache"""
        pending, self.pending = self.pending, set()
        if not self.client or not pending:
            return

        await self.client.delete(*(self._key(user_id) for user_id in sorted(pending, key=str)))
        logger.debug("Invalidated cached profiles for %s", ", ".join(sorted(str(u) for u in pending)))
