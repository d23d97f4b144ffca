"""Live plugin settings stored in the host's Redis hash."""

from __future__ import annotations

from typing import Any

from forum_webpush.config import WebPushSettings
from forum_webpush.redis_keys import SETTINGS_KEY, decode


class WebPushSettingsStore:
    def __init__(self, redis_client: Any, key: str = SETTINGS_KEY) -> None:
        self._redis = redis_client
        self._key = key

    async def get(self) -> WebPushSettings:
        raw = await self._redis.hgetall(self._key) or {}
        return WebPushSettings.model_validate({decode(k): decode(v) for k, v in raw.items()})

    async def set(self, **fields: str | int) -> None:
        """Write camelCase fields (``publicKey``, ``maxLength`` ...) into the hash."""
        if fields:
            await self._redis.hset(self._key, mapping={k: str(v) for k, v in fields.items()})
