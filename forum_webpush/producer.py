"""Host-side emitter handing notification events to the consumer."""

from __future__ import annotations

from typing import Any

from forum_webpush.consumer import EVENT_PUSH, EVENT_RESCIND, STREAM_NAME
from forum_webpush.models import NotificationPushEvent, NotificationRescindEvent


class NotificationEventProducer:
    def __init__(self, redis_client: Any, stream: str = STREAM_NAME, maxlen: int = 10000) -> None:
        self._redis = redis_client
        self._stream = stream
        self._maxlen = maxlen

    async def emit_push(self, event: NotificationPushEvent) -> str:
        return await self._emit(EVENT_PUSH, event.model_dump_json(by_alias=True))

    async def emit_rescind(self, event: NotificationRescindEvent) -> str:
        return await self._emit(EVENT_RESCIND, event.model_dump_json())

    async def _emit(self, event: str, payload: str) -> str:
        entry_id = await self._redis.xadd(self._stream, {"event": event, "payload": payload}, maxlen=self._maxlen)
        return entry_id.decode() if isinstance(entry_id, bytes) else str(entry_id)
