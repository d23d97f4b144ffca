"""Shared fixtures for forum_webpush tests."""

from __future__ import annotations

import os
import time
from typing import Sequence
from unittest.mock import AsyncMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from py_vapid.utils import b64urlencode

from forum_webpush.config import WebPushConfig
from forum_webpush.models import PushSubscription, UserSettings


class FakePipeline:
    """Queues set/expiry commands and applies them together on ``execute``."""

    def __init__(self, redis: FakeRedis, transaction: bool) -> None:
        self._redis = redis
        self.transaction = transaction
        self._queued: list[tuple[str, tuple[object, ...]]] = []

    async def __aenter__(self) -> FakePipeline:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self._queued.clear()

    def sadd(self, key: str, *members: object) -> FakePipeline:
        self._queued.append(("sadd", (key, *members)))
        return self

    def pexpire(self, key: str, ms: int) -> FakePipeline:
        self._queued.append(("pexpire", (key, ms)))
        return self

    async def execute(self) -> list[object]:
        queued, self._queued = self._queued, []
        self._redis.executed.append([name for name, _ in queued])
        return [await getattr(self._redis, name)(*args) for name, args in queued]


class FakeRedis:
    """In-memory stand-in covering the set/hash commands used by forum_webpush."""

    def __init__(self) -> None:
        self.sets: dict[str, set[bytes]] = {}
        self.hashes: dict[str, dict[bytes, bytes]] = {}
        self.expiry_ms: dict[str, int] = {}
        self.executed: list[list[str]] = []

    @staticmethod
    def _b(value: object) -> bytes:
        return value if isinstance(value, bytes) else str(value).encode()

    def _expired(self, key: str) -> bool:
        deadline = self.expiry_ms.get(key)
        return deadline is not None and deadline <= int(time.time() * 1000)

    async def sadd(self, key: str, *members: object) -> int:
        bucket = self.sets.setdefault(key, set())
        before = len(bucket)
        bucket.update(self._b(m) for m in members)
        return len(bucket) - before

    async def srem(self, key: str, *members: object) -> int:
        bucket = self.sets.get(key, set())
        removed = {self._b(m) for m in members} & bucket
        bucket -= removed
        return len(removed)

    async def smembers(self, key: str) -> set[bytes]:
        if self._expired(key):
            return set()
        return set(self.sets.get(key, set()))

    async def pexpire(self, key: str, ms: int) -> bool:
        self.expiry_ms[key] = int(time.time() * 1000) + ms
        return True

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction)

    async def hget(self, key: str, field: str) -> bytes | None:
        return self.hashes.get(key, {}).get(self._b(field))

    async def hgetall(self, key: str) -> dict[bytes, bytes]:
        return dict(self.hashes.get(key, {}))

    async def hset(self, key: str, field: str | None = None, value: object = None, mapping: dict | None = None) -> int:
        bucket = self.hashes.setdefault(key, {})
        items = dict(mapping or {})
        if field is not None:
            items[field] = value
        for k, v in items.items():
            bucket[self._b(k)] = self._b(v)
        return len(items)


class FakeTranslator:
    """Returns keys untouched unless a rendering is registered."""

    def __init__(self, renderings: dict[str, str] | None = None) -> None:
        self.renderings = renderings or {}
        self.calls: list[tuple[list[str], str]] = []

    async def translate_keys(self, keys: Sequence[str], language: str) -> list[str]:
        self.calls.append((list(keys), language))
        return [self.renderings.get(key, key) for key in keys]


class FakeUserSettings:
    def __init__(self, langs: dict[int, str | None] | None = None) -> None:
        self.langs = langs or {}
        self.calls: list[list[int]] = []

    async def get_multiple_user_settings(self, uids: Sequence[int]) -> list[UserSettings]:
        self.calls.append(list(uids))
        return [UserSettings(user_lang=self.langs.get(uid)) for uid in uids]


def make_subscription(name: str) -> PushSubscription:
    return PushSubscription.model_validate(
        {
            "endpoint": f"https://push.example.com/send/{name}",
            "expirationTime": None,
            "keys": {"p256dh": f"p256dh-{name}", "auth": f"auth-{name}"},
        }
    )


def make_browser_subscription(name: str) -> PushSubscription:
    """Subscription carrying real P-256/auth keys, so payload encryption succeeds."""
    client_key = ec.generate_private_key(ec.SECP256R1())
    p256dh = client_key.public_key().public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    return PushSubscription.model_validate(
        {
            "endpoint": f"https://push.example.com/send/{name}",
            "keys": {"p256dh": b64urlencode(p256dh), "auth": b64urlencode(os.urandom(16))},
        }
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def user_settings() -> FakeUserSettings:
    return FakeUserSettings()


@pytest.fixture
def config() -> WebPushConfig:
    return WebPushConfig(url="https://forum.example.com", title="Example Forum", default_lang="en-GB")


@pytest.fixture
def subscription_factory():  # type: ignore[no-untyped-def]
    return make_subscription


@pytest.fixture
def sender() -> AsyncMock:
    mock = AsyncMock()
    mock.send = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def browser_subscription() -> PushSubscription:
    return make_browser_subscription("browser")
