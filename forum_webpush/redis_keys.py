"""Redis key layout shared with the host forum."""

from __future__ import annotations

SETTINGS_KEY = "settings:web-push"


def tracker_key(tag: str) -> str:
    return f"web-push:nid:{tag}:uids"


def subscriptions_key(uid: int) -> str:
    return f"web-push:uid:{uid}:subscriptions"


def notification_key(nid: str) -> str:
    return f"notifications:{nid}"


def user_settings_key(uid: int) -> str:
    return f"user:{uid}:settings"


def decode(value: bytes | str) -> str:
    return value.decode() if isinstance(value, bytes) else value
