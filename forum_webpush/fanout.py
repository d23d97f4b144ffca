"""Isolated fan-out — one independent send per (user, subscription), outcomes collected, never raised."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Iterable, Protocol

from instrukt_ai_logging import get_logger
from pydantic import BaseModel

from forum_webpush.models import PushSubscription
from forum_webpush.transport import PushSendError

logger = get_logger(__name__)


class PushSender(Protocol):
    async def send(self, subscription: PushSubscription, payload: BaseModel) -> None: ...


@dataclass(frozen=True)
class PushJob:
    uid: int
    subscription: PushSubscription
    payload: BaseModel


@dataclass(frozen=True)
class SendOutcome:
    job: PushJob
    error: PushSendError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def send_isolated(sender: PushSender, jobs: Iterable[PushJob]) -> list[SendOutcome]:
    """Run every job concurrently; a failing job never affects its siblings or the caller."""
    jobs = list(jobs)
    if not jobs:
        return []
    outcomes = await asyncio.gather(*(_send_one(sender, job) for job in jobs))

    failed = sum(1 for o in outcomes if not o.ok)
    logger.debug("push fan-out finished", total=len(outcomes), failed=failed)
    return list(outcomes)


async def _send_one(sender: PushSender, job: PushJob) -> SendOutcome:
    try:
        await sender.send(job.subscription, job.payload)
    except PushSendError as exc:
        # Dead subscriptions are kept; removal only happens through the ordinary API
        logger.info(
            "Push failed",
            uid=job.uid,
            code=exc.code,
            message=exc.message,
            status_code=exc.status_code,
        )
        return SendOutcome(job, exc)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.exception("Push send crashed", uid=job.uid)
        return SendOutcome(job, PushSendError(type(exc).__name__, str(exc)))
    return SendOutcome(job)
