"""Tests for VAPID key bootstrap."""

from __future__ import annotations

import pytest

from cryptography.hazmat.primitives import serialization
from py_vapid import Vapid
from py_vapid.utils import b64urlencode

from forum_webpush.settings import WebPushSettingsStore
from forum_webpush.vapid import VapidConfigError, ensure_vapid_keys, generate_vapid_keys, vapid_subject


def test_generated_keys_are_browser_compatible() -> None:
    public_key, private_key = generate_vapid_keys()

    # 65-byte uncompressed point and 32-byte scalar, unpadded base64url
    assert len(public_key) == 87
    assert len(private_key) == 43
    assert "=" not in public_key + private_key

    restored = Vapid.from_string(private_key=private_key)
    restored_public = restored.public_key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    assert b64urlencode(restored_public) == public_key


@pytest.mark.asyncio
async def test_missing_keys_are_generated_and_stored(fake_redis) -> None:  # type: ignore[no-untyped-def]
    store = WebPushSettingsStore(fake_redis)

    creds = await ensure_vapid_keys(store, subject="https://forum.example.com")

    stored = await store.get()
    assert stored.public_key == creds.public_key
    assert stored.private_key == creds.private_key
    assert creds.subject == "https://forum.example.com"


@pytest.mark.asyncio
async def test_existing_keys_are_kept(fake_redis) -> None:  # type: ignore[no-untyped-def]
    store = WebPushSettingsStore(fake_redis)
    public_key, private_key = generate_vapid_keys()
    await store.set(publicKey=public_key, privateKey=private_key, maxLength=100)

    creds = await ensure_vapid_keys(store, subject="https://forum.example.com")

    assert (creds.public_key, creds.private_key) == (public_key, private_key)
    assert (await store.get()).max_length == 100


@pytest.mark.asyncio
async def test_half_configured_pair_is_regenerated(fake_redis) -> None:  # type: ignore[no-untyped-def]
    store = WebPushSettingsStore(fake_redis)
    await store.set(publicKey="orphan")

    creds = await ensure_vapid_keys(store, subject="https://forum.example.com")

    assert creds.public_key != "orphan"
    assert creds.private_key


@pytest.mark.asyncio
async def test_unreadable_private_key_is_regenerated(fake_redis) -> None:  # type: ignore[no-untyped-def]
    store = WebPushSettingsStore(fake_redis)
    await store.set(publicKey="pub", privateKey="not-a-key")

    creds = await ensure_vapid_keys(store, subject="https://forum.example.com")

    assert creds.private_key != "not-a-key"
    assert (await store.get()).private_key == creds.private_key


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://forum.example.com", "https://forum.example.com"),
        ("https://example.com/forum", "https://example.com"),
        ("https://forum.example.com:8443/community", "https://forum.example.com"),
        ("http://localhost:4567", "mailto:webpush@localhost"),
        ("http://forum.internal", "mailto:webpush@forum.internal"),
    ],
)
def test_subject_derived_from_url(url: str, expected: str) -> None:
    assert vapid_subject(url) == expected


def test_configured_subject_wins() -> None:
    assert vapid_subject("http://localhost:4567", "mailto:admin@example.com") == "mailto:admin@example.com"


@pytest.mark.asyncio
async def test_unsignable_subject_fails_at_startup(fake_redis) -> None:  # type: ignore[no-untyped-def]
    store = WebPushSettingsStore(fake_redis)

    with pytest.raises(VapidConfigError):
        await ensure_vapid_keys(store, subject="http://localhost:4567")
