"""Subscription directory — maps users to their push subscription descriptors."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Protocol

from instrukt_ai_logging import get_logger
from pydantic import ValidationError

from forum_webpush.models import PushSubscription
from forum_webpush.redis_keys import subscriptions_key

logger = get_logger(__name__)


class SubscriptionDirectory(Protocol):
    async def list(self, uids: Iterable[int]) -> dict[int, set[PushSubscription]]: ...

    async def add(self, uid: int, subscription: PushSubscription) -> None: ...

    async def remove(self, uid: int, subscription: PushSubscription) -> None: ...


class RedisSubscriptionDirectory:
    """One Redis set per user holding canonical JSON descriptors."""

    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    async def list(self, uids: Iterable[int]) -> dict[int, set[PushSubscription]]:
        uids = list(dict.fromkeys(uids))
        members = await asyncio.gather(*(self._redis.smembers(subscriptions_key(uid)) for uid in uids))
        return {uid: self._parse(uid, raw) for uid, raw in zip(uids, members)}

    async def add(self, uid: int, subscription: PushSubscription) -> None:
        await self._redis.sadd(subscriptions_key(uid), subscription.to_json())

    async def remove(self, uid: int, subscription: PushSubscription) -> None:
        await self._redis.srem(subscriptions_key(uid), subscription.to_json())

    @staticmethod
    def _parse(uid: int, raw: Iterable[bytes | str] | None) -> set[PushSubscription]:
        subs: set[PushSubscription] = set()
        for item in raw or ():
            try:
                subs.add(PushSubscription.from_json(item))
            except ValidationError:
                logger.warning("skipping malformed stored subscription", uid=uid)
        return subs
