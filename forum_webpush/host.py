"""Host forum collaborators: translation, user settings and notification lookups."""

from __future__ import annotations

import asyncio
from typing import Any, Protocol, Sequence

from forum_webpush.models import UserSettings
from forum_webpush.redis_keys import decode, notification_key, user_settings_key


class Translator(Protocol):
    async def translate_keys(self, keys: Sequence[str], language: str) -> list[str]:
        """Render ``[[namespace:key, args]]`` strings in *language*, order preserved."""
        ...


class UserSettingsLookup(Protocol):
    async def get_multiple_user_settings(self, uids: Sequence[int]) -> list[UserSettings]:
        """Settings for each uid, order-aligned with the input."""
        ...


class NotificationStore(Protocol):
    async def get_merge_ids(self, nids: Sequence[str]) -> list[str | None]:
        """Stored ``mergeId`` for each nid, order-aligned; None when absent."""
        ...


class RedisUserSettings:
    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    async def get_multiple_user_settings(self, uids: Sequence[int]) -> list[UserSettings]:
        langs = await asyncio.gather(*(self._redis.hget(user_settings_key(uid), "userLang") for uid in uids))
        return [UserSettings(user_lang=decode(lang) if lang is not None else None) for lang in langs]


class RedisNotificationStore:
    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    async def get_merge_ids(self, nids: Sequence[str]) -> list[str | None]:
        raw = await asyncio.gather(*(self._redis.hget(notification_key(nid), "mergeId") for nid in nids))
        return [(decode(v) or None) if v is not None else None for v in raw]
