"""FastAPI router for managing a user's push subscriptions.

The host's auth middleware is expected to set ``request.state.uid`` for
logged-in users; anonymous requests carry no uid.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, ConfigDict

from forum_webpush.config import DEFAULT_TITLE
from forum_webpush.models import PushData, PushPayload, PushSubscription
from forum_webpush.transport import PushSendError

if TYPE_CHECKING:
    from forum_webpush.plugin import WebPushPlugin

router = APIRouter(prefix="/web-push", tags=["web-push"])

# Set by the host during startup
_plugin: WebPushPlugin | None = None


def set_plugin(plugin: WebPushPlugin | None) -> None:
    global _plugin
    _plugin = plugin


def _get_plugin() -> WebPushPlugin:
    if _plugin is None:
        raise HTTPException(status_code=503, detail="Web push not initialized")
    return _plugin


def _uid(request: Request) -> int | None:
    uid = getattr(request.state, "uid", None)
    return int(uid) if uid else None


class SubscriptionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    subscription: PushSubscription


@router.post("/subscription")
async def add_subscription(req: SubscriptionRequest, request: Request) -> Response:
    plugin = _get_plugin()
    uid = _uid(request)
    if not uid:
        return Response(status_code=204)
    await plugin.directory.add(uid, req.subscription)
    return Response(status_code=200)


@router.delete("/subscription")
async def remove_subscription(req: SubscriptionRequest, request: Request) -> Response:
    plugin = _get_plugin()
    uid = _uid(request)
    if not uid:
        raise HTTPException(status_code=403, detail="Not allowed")
    await plugin.directory.remove(uid, req.subscription)
    return Response(status_code=200)


@router.post("/test")
async def send_test(req: SubscriptionRequest, request: Request) -> Response:
    plugin = _get_plugin()
    if not _uid(request):
        raise HTTPException(status_code=403, detail="Not allowed")

    title = plugin.config.title or DEFAULT_TITLE
    payload = PushPayload(
        title="Test notification",
        body=f"This is a test message sent from {title}",
        tag="web-push:test",
        data=PushData(url=f"{plugin.config.url}/me/web-push"),
    )
    try:
        await plugin.transport.send(req.subscription, payload)
    except PushSendError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return Response(status_code=200)


@router.get("/config")
async def client_config() -> dict[str, dict[str, str]]:
    """Public VAPID key for ``PushManager.subscribe()``."""
    return _get_plugin().append_config({})
