"""VAPID key bootstrap — load the application server key pair, generating it when absent."""

from __future__ import annotations

from urllib.parse import urlsplit

from cryptography.hazmat.primitives import serialization
from instrukt_ai_logging import get_logger
from py_vapid import Vapid, VapidException
from py_vapid.utils import b64urlencode

from forum_webpush.settings import WebPushSettingsStore
from forum_webpush.transport import VapidCredentials

logger = get_logger(__name__)

# Any real push service origin; only the subject is under test
_CHECK_AUDIENCE = "https://fcm.googleapis.com"


class VapidConfigError(RuntimeError):
    """The VAPID subject cannot be signed; fatal at startup."""


def generate_vapid_keys() -> tuple[str, str]:
    """New P-256 key pair as (public, private), both base64url like the browser expects."""
    vapid = Vapid()
    vapid.generate_keys()
    public_raw = vapid.public_key.public_bytes(
        serialization.Encoding.X962,
        serialization.PublicFormat.UncompressedPoint,
    )
    private_raw = vapid.private_key.private_numbers().private_value.to_bytes(32, "big")
    return b64urlencode(public_raw), b64urlencode(private_raw)


def vapid_subject(url: str, configured: str | None = None) -> str:
    """Contact claim for the JWT: *configured* if given, else derived from the host URL.

    Push services accept only ``mailto:`` or a bare ``https://host`` subject,
    so path, port and plain-http schemes never make it into the claim.
    """
    if configured:
        return configured
    parts = urlsplit(url)
    host = parts.hostname or "localhost"
    if parts.scheme == "https":
        return f"https://{host}"
    return f"mailto:webpush@{host}"


def _loadable(private_key: str) -> bool:
    try:
        Vapid.from_string(private_key=private_key)
    except (ValueError, VapidException):
        return False
    return True


def _check_subject(private_key: str, subject: str) -> None:
    try:
        Vapid.from_string(private_key=private_key).sign({"sub": subject, "aud": _CHECK_AUDIENCE})
    except VapidException as exc:
        raise VapidConfigError(f"unusable VAPID subject {subject!r}: {exc}") from exc


async def ensure_vapid_keys(store: WebPushSettingsStore, subject: str) -> VapidCredentials:
    settings = await store.get()
    public_key, private_key = settings.public_key, settings.private_key
    if not public_key or not private_key or not _loadable(private_key):
        logger.warning("VAPID key pair not found or invalid, regenerating.")
        public_key, private_key = generate_vapid_keys()
        await store.set(publicKey=public_key, privateKey=private_key)
    else:
        logger.info("VAPID keys OK.")
    _check_subject(private_key, subject)
    return VapidCredentials(subject=subject, public_key=public_key, private_key=private_key)
