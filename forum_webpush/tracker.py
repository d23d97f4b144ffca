"""Recipient tracker — remembers who was pushed under a dedup tag, for later rescission."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

from instrukt_ai_logging import get_logger

from forum_webpush.redis_keys import decode, tracker_key

logger = get_logger(__name__)

DEFAULT_TTL_HOURS = 48


class RecipientTracker:
    """Append-only uid sets per tag; each write pushes expiry out to ``ttl_hours`` from now."""

    def __init__(self, redis_client: Any, ttl_hours: int = DEFAULT_TTL_HOURS) -> None:
        self._redis = redis_client
        self._ttl_ms = ttl_hours * 60 * 60 * 1000

    async def track(self, tag: str, uids: Iterable[int]) -> None:
        members = [str(uid) for uid in uids]
        if not members:
            return
        key = tracker_key(tag)
        # One MULTI/EXEC: the set never exists without its expiry
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.sadd(key, *members)
            pipe.pexpire(key, self._ttl_ms)
            await pipe.execute()
        logger.debug("tracked push recipients", tag=tag, count=len(members))

    async def resolve(self, tags: Iterable[str]) -> dict[str, set[int]]:
        """Recipients per tag; unknown or expired tags map to an empty set."""
        tags = list(dict.fromkeys(tags))
        members = await asyncio.gather(*(self._redis.smembers(tracker_key(tag)) for tag in tags))
        return {tag: {int(decode(m)) for m in raw or ()} for tag, raw in zip(tags, members)}
