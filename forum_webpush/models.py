"""Boundary models — subscriptions, notifications, push payloads and inbound events."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubscriptionKeys(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    p256dh: str
    auth: str


class PushSubscription(BaseModel):
    """One browser/device registration as produced by ``PushManager.subscribe()``."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    endpoint: str
    keys: SubscriptionKeys
    expiration_time: float | None = Field(default=None, alias="expirationTime")

    def to_subscription_info(self) -> dict[str, Any]:
        """Shape expected by ``pywebpush.webpush``."""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.keys.p256dh, "auth": self.keys.auth}}

    def to_json(self) -> str:
        """Canonical serialization; equal descriptors always produce equal strings."""
        return json.dumps(self.model_dump(by_alias=True), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: bytes | str) -> "PushSubscription":
        return cls.model_validate_json(raw)


class NotificationRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    nid: str
    merge_id: str | None = Field(default=None, alias="mergeId")
    body_short: str = Field(default="", alias="bodyShort")
    body_long: str = Field(default="", alias="bodyLong")
    path: str = ""
    language: str | None = None

    @field_validator("nid", mode="before")
    @classmethod
    def coerce_nid(cls, v: object) -> object:
        return str(v) if isinstance(v, int) else v

    @field_validator("merge_id", mode="before")
    @classmethod
    def empty_merge_id(cls, v: object) -> object:
        # Hosts send "" or null for unmerged notifications
        if v in ("", None):
            return None
        return str(v)

    @property
    def tag(self) -> str:
        return dedup_tag(self.nid, self.merge_id)


def dedup_tag(nid: str, merge_id: str | None) -> str:
    """Key correlating a push with its later rescission."""
    return merge_id or str(nid)


class PushData(BaseModel):
    url: str


class PushPayload(BaseModel):
    title: str
    body: str
    tag: str
    data: PushData


class ClearPayload(BaseModel):
    """Tag-only message; clients remove the notification carrying this tag."""

    tag: str


class UserSettings(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    user_lang: str | None = Field(default=None, alias="userLang")

    @field_validator("user_lang", mode="before")
    @classmethod
    def empty_lang(cls, v: object) -> object:
        return v or None


class NotificationPushEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    notification: NotificationRecord
    uids_notified: list[int] = Field(default_factory=list, alias="uidsNotified")


class NotificationRescindEvent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    nids: list[str]

    @field_validator("nids", mode="before")
    @classmethod
    def coerce_nids(cls, v: object) -> object:
        if isinstance(v, list):
            return [str(n) if isinstance(n, int) else n for n in v]
        return v
