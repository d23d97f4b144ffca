"""Notification event consumer — Redis Streams consumer group feeding the web push plugin.

An entry is ACKed once its dispatch or rescind has finished, or once it is
known to be malformed. Entries whose handling failed stay pending and are
retried by the recovery pass on the next start.
"""

from __future__ import annotations

import asyncio
import json
import socket
from typing import Any

from instrukt_ai_logging import get_logger

from forum_webpush.plugin import WebPushPlugin
from forum_webpush.redis_keys import decode

logger = get_logger(__name__)

STREAM_NAME = "forum:notifications"
CONSUMER_GROUP = "web-push"

EVENT_PUSH = "notification.push"
EVENT_RESCIND = "notification.rescind"


class NotificationEventConsumer:
    def __init__(
        self,
        redis_client: Any,
        plugin: WebPushPlugin,
        stream: str = STREAM_NAME,
        group: str = CONSUMER_GROUP,
        consumer_name: str | None = None,
    ) -> None:
        self._redis = redis_client
        self._plugin = plugin
        self._stream = stream
        self._group = group
        # Stable across restarts so pending entries are recovered by the same name
        self._consumer = consumer_name or f"web-push-{socket.gethostname()}"

    async def start(self, shutdown_event: asyncio.Event) -> None:
        await self._ensure_consumer_group()
        await self._recover_pending()

        logger.info("NotificationEventConsumer started", stream=self._stream, group=self._group)

        while not shutdown_event.is_set():
            try:
                entries = await self._redis.xreadgroup(
                    self._group,
                    self._consumer,
                    {self._stream: ">"},
                    count=10,
                    block=1000,
                )
                if not entries:
                    continue
                await self._process_entries(entries)
            except asyncio.CancelledError:
                break
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("NotificationEventConsumer read loop error; sleeping 1s")
                await asyncio.sleep(1.0)

        logger.info("NotificationEventConsumer stopped")

    async def _ensure_consumer_group(self) -> None:
        try:
            await self._redis.xgroup_create(self._stream, self._group, id="$", mkstream=True)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            if "BUSYGROUP" not in str(exc):
                raise

    async def _recover_pending(self) -> None:
        try:
            entries = await self._redis.xreadgroup(self._group, self._consumer, {self._stream: "0"}, count=50)
            if entries:
                logger.info("NotificationEventConsumer recovering pending entries", count=len(entries))
                await self._process_entries(entries)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("NotificationEventConsumer pending recovery failed")

    async def _process_entries(self, entries: Any) -> None:
        for _stream, messages in entries:
            for entry_id, data in messages:
                try:
                    await self.route(data)
                except ValueError as exc:
                    # Undecodable or invalid payloads cannot succeed on retry
                    logger.warning("dropping malformed notification event", entry_id=entry_id, error=str(exc))
                except Exception:  # pylint: disable=broad-exception-caught
                    logger.exception("NotificationEventConsumer failed to handle entry; left pending", entry_id=entry_id)
                    continue
                await self._ack(entry_id)

    async def _ack(self, entry_id: Any) -> None:
        try:
            await self._redis.xack(self._stream, self._group, entry_id)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("NotificationEventConsumer failed to ACK entry", entry_id=entry_id)

    async def route(self, data: dict[bytes, bytes] | dict[str, str]) -> None:
        """Run the handler for one stream entry to completion."""
        fields = {decode(k): decode(v) for k, v in data.items()}
        event = fields.get("event", "")
        payload = json.loads(fields.get("payload") or "{}")
        if event == EVENT_PUSH:
            await self._plugin.handle_push(payload)
        elif event == EVENT_RESCIND:
            await self._plugin.handle_rescind(payload)
        else:
            logger.warning("ignoring unknown notification event", event=event)
