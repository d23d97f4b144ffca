"""Encrypts and delivers one Web Push message to one subscription."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import requests
from py_vapid import VapidException
from pydantic import BaseModel
from pywebpush import WebPushException, webpush

from forum_webpush.models import PushSubscription

# Push services keep undelivered messages up to four weeks
DEFAULT_TTL_S = 60 * 60 * 24 * 28


@dataclass(frozen=True)
class VapidCredentials:
    subject: str
    public_key: str
    private_key: str


class PushSendError(Exception):
    def __init__(self, code: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return f"{self.code}; {self.message}; statusCode: {self.status_code}"


class WebPushTransport:
    def __init__(self, vapid: VapidCredentials, ttl: int = DEFAULT_TTL_S, timeout: float = 10.0) -> None:
        self._vapid = vapid
        self._ttl = ttl
        self._timeout = timeout

    @property
    def public_key(self) -> str:
        return self._vapid.public_key

    async def send(self, subscription: PushSubscription, payload: BaseModel) -> None:
        """Deliver *payload* as JSON; raises PushSendError on any failure."""
        data = payload.model_dump_json(exclude_none=True)
        await asyncio.to_thread(self._send_blocking, subscription, data)

    def _send_blocking(self, subscription: PushSubscription, data: str) -> None:
        try:
            webpush(
                subscription_info=subscription.to_subscription_info(),
                data=data,
                vapid_private_key=self._vapid.private_key,
                # pywebpush fills in aud/exp on the dict it is given
                vapid_claims={"sub": self._vapid.subject},
                ttl=self._ttl,
                timeout=self._timeout,
            )
        except WebPushException as exc:
            status = getattr(exc.response, "status_code", None)
            code = "push_rejected" if status is not None else "invalid_subscription"
            raise PushSendError(code, exc.message, status) from exc
        except VapidException as exc:
            raise PushSendError("invalid_vapid", str(exc)) from exc
        except requests.RequestException as exc:
            raise PushSendError(type(exc).__name__, str(exc)) from exc
