"""Web push plugin — the host-facing entry points and their wiring."""

from __future__ import annotations

from typing import Any, Mapping

from instrukt_ai_logging import get_logger
from pydantic import ValidationError

from forum_webpush.config import WebPushConfig
from forum_webpush.dispatcher import Dispatcher
from forum_webpush.fanout import SendOutcome
from forum_webpush.host import (
    NotificationStore,
    RedisNotificationStore,
    RedisUserSettings,
    Translator,
    UserSettingsLookup,
)
from forum_webpush.models import NotificationPushEvent, NotificationRescindEvent
from forum_webpush.payload import PayloadBuilder
from forum_webpush.rescinder import Rescinder
from forum_webpush.settings import WebPushSettingsStore
from forum_webpush.subscriptions import RedisSubscriptionDirectory, SubscriptionDirectory
from forum_webpush.tasks import TaskRegistry
from forum_webpush.tracker import RecipientTracker
from forum_webpush.transport import WebPushTransport
from forum_webpush.vapid import ensure_vapid_keys, vapid_subject

logger = get_logger(__name__)


class WebPushPlugin:
    """Receives host notification events and runs fan-out/rescission in the background.

    The ``on_*`` handlers return as soon as the work is scheduled; nothing
    raised by the work reaches the host. The ``handle_*`` coroutines run the
    same work inline for callers that must know when it is done.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        rescinder: Rescinder,
        transport: WebPushTransport,
        directory: SubscriptionDirectory,
        config: WebPushConfig,
        tasks: TaskRegistry | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.rescinder = rescinder
        self.transport = transport
        self.directory = directory
        self.config = config
        self.tasks = tasks or TaskRegistry()

    def on_notification_push(self, event: NotificationPushEvent | Mapping[str, Any]) -> None:
        try:
            push = NotificationPushEvent.model_validate(event)
        except ValidationError as exc:
            logger.warning("dropping malformed notification push event", error=str(exc))
            return
        self.tasks.spawn(
            self.dispatcher.dispatch(push.notification, push.uids_notified),
            name=f"web-push:dispatch:{push.notification.nid}",
        )

    def on_notification_rescind(self, event: NotificationRescindEvent | Mapping[str, Any]) -> None:
        try:
            rescind = NotificationRescindEvent.model_validate(event)
        except ValidationError as exc:
            logger.warning("dropping malformed notification rescind event", error=str(exc))
            return
        self.tasks.spawn(self.rescinder.rescind(rescind.nids), name="web-push:rescind")

    async def handle_push(self, event: NotificationPushEvent | Mapping[str, Any]) -> list[SendOutcome]:
        """Validate and dispatch in the caller's task; ``ValidationError`` propagates."""
        push = NotificationPushEvent.model_validate(event)
        return await self.dispatcher.dispatch(push.notification, push.uids_notified)

    async def handle_rescind(self, event: NotificationRescindEvent | Mapping[str, Any]) -> list[SendOutcome]:
        rescind = NotificationRescindEvent.model_validate(event)
        return await self.rescinder.rescind(rescind.nids)

    def append_config(self, config: dict[str, Any]) -> dict[str, Any]:
        """Expose the VAPID public key to the browser client."""
        config["web-push"] = {"vapidKey": self.transport.public_key}
        return config

    async def drain(self) -> None:
        await self.tasks.drain()

    async def shutdown(self, timeout: float = 5.0) -> None:
        await self.tasks.shutdown(timeout=timeout)


async def create_plugin(
    config: WebPushConfig,
    redis_client: Any,
    translator: Translator,
    user_settings: UserSettingsLookup | None = None,
    notifications: NotificationStore | None = None,
    directory: SubscriptionDirectory | None = None,
) -> WebPushPlugin:
    """Bootstrap: load or generate VAPID keys, then wire the fan-out components.

    No push can be sent before this returns.
    """
    settings = WebPushSettingsStore(redis_client)
    vapid = await ensure_vapid_keys(settings, subject=vapid_subject(config.url, config.vapid_subject))
    transport = WebPushTransport(vapid)

    directory = directory or RedisSubscriptionDirectory(redis_client)
    tracker = RecipientTracker(redis_client, ttl_hours=config.tracker_ttl_hours)
    dispatcher = Dispatcher(
        directory=directory,
        user_settings=user_settings or RedisUserSettings(redis_client),
        builder=PayloadBuilder(config, translator, settings),
        tracker=tracker,
        sender=transport,
    )
    rescinder = Rescinder(
        notifications=notifications or RedisNotificationStore(redis_client),
        tracker=tracker,
        directory=directory,
        sender=transport,
    )
    return WebPushPlugin(dispatcher, rescinder, transport, directory, config)
