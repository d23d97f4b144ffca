"""Service bootstrap: Redis connection, plugin and stream consumer wired from one config."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from instrukt_ai_logging import get_logger
from redis.asyncio import Redis

from forum_webpush import api_routes
from forum_webpush.config import WebPushConfig
from forum_webpush.consumer import NotificationEventConsumer
from forum_webpush.host import Translator
from forum_webpush.logging_config import setup_logging
from forum_webpush.plugin import create_plugin
from forum_webpush.producer import NotificationEventProducer

logger = get_logger(__name__)


async def connect(config: WebPushConfig) -> Redis:
    """Open the Redis client named by ``config.redis_url`` and check it answers."""
    redis_client: Redis = Redis.from_url(config.redis_url, decode_responses=False)
    try:
        await redis_client.ping()
    except Exception as e:
        logger.error("Failed to connect to Redis: %s", e)
        await redis_client.aclose()
        raise
    logger.info("Redis connection successful")
    return redis_client


def create_producer(redis_client: Any, config: WebPushConfig) -> NotificationEventProducer:
    """Host-side producer writing to the stream this service consumes."""
    return NotificationEventProducer(redis_client, stream=config.stream)


async def run(
    config: WebPushConfig,
    translator: Translator,
    shutdown_event: asyncio.Event,
    log_level: Optional[str] = None,
) -> None:
    """Serve notification events until *shutdown_event* is set.

    Startup failures (unreachable Redis, unusable VAPID subject) propagate.
    """
    setup_logging(log_level)
    redis_client = await connect(config)
    try:
        plugin = await create_plugin(config, redis_client, translator)
        api_routes.set_plugin(plugin)
        consumer = NotificationEventConsumer(
            redis_client,
            plugin,
            stream=config.stream,
            group=config.consumer_group,
            consumer_name=config.consumer_name,
        )
        try:
            await consumer.start(shutdown_event)
        finally:
            api_routes.set_plugin(None)
            await plugin.shutdown()
    finally:
        await redis_client.aclose()
