"""forum_webpush — web push fan-out and rescission for forum notifications."""

from forum_webpush.config import WebPushConfig, WebPushSettings, load_config
from forum_webpush.dispatcher import Dispatcher
from forum_webpush.fanout import PushJob, SendOutcome, send_isolated
from forum_webpush.models import (
    ClearPayload,
    NotificationPushEvent,
    NotificationRecord,
    NotificationRescindEvent,
    PushPayload,
    PushSubscription,
)
from forum_webpush.payload import PayloadBuilder
from forum_webpush.plugin import WebPushPlugin, create_plugin
from forum_webpush.rescinder import Rescinder
from forum_webpush.tracker import RecipientTracker
from forum_webpush.transport import PushSendError, VapidCredentials, WebPushTransport

__all__ = [
    "WebPushConfig",
    "WebPushSettings",
    "load_config",
    "PushSubscription",
    "NotificationRecord",
    "NotificationPushEvent",
    "NotificationRescindEvent",
    "PushPayload",
    "ClearPayload",
    "PayloadBuilder",
    "RecipientTracker",
    "Dispatcher",
    "Rescinder",
    "PushJob",
    "SendOutcome",
    "send_isolated",
    "PushSendError",
    "VapidCredentials",
    "WebPushTransport",
    "WebPushPlugin",
    "create_plugin",
]
