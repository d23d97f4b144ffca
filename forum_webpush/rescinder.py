"""Clears previously pushed notifications by dedup tag."""

from __future__ import annotations

from typing import Iterable

from instrukt_ai_logging import get_logger

from forum_webpush.fanout import PushJob, PushSender, SendOutcome, send_isolated
from forum_webpush.host import NotificationStore
from forum_webpush.models import ClearPayload, dedup_tag
from forum_webpush.subscriptions import SubscriptionDirectory
from forum_webpush.tracker import RecipientTracker

logger = get_logger(__name__)


class Rescinder:
    def __init__(
        self,
        notifications: NotificationStore,
        tracker: RecipientTracker,
        directory: SubscriptionDirectory,
        sender: PushSender,
    ) -> None:
        self._notifications = notifications
        self._tracker = tracker
        self._directory = directory
        self._sender = sender

    async def rescind(self, nids: Iterable[str]) -> list[SendOutcome]:
        nids = [str(nid) for nid in nids]
        if not nids:
            return []
        merge_ids = await self._notifications.get_merge_ids(nids)
        # Merged notifications collapse onto one tag
        tags = list(dict.fromkeys(dedup_tag(nid, merge_id) for nid, merge_id in zip(nids, merge_ids)))

        recipients = await self._tracker.resolve(tags)
        everyone = set().union(*recipients.values())
        if not everyone:
            logger.debug("nothing to rescind", tags=tags)
            return []

        subs = await self._directory.list(sorted(everyone))
        # Per tag, so a uid tracked under two tags gets one clear per tag
        jobs = [
            PushJob(uid, subscription, ClearPayload(tag=tag))
            for tag in tags
            for uid in sorted(recipients.get(tag, ()))
            for subscription in subs.get(uid, ())
        ]
        outcomes = await send_isolated(self._sender, jobs)
        logger.info("rescinded notifications", tags=tags, sends=len(outcomes))
        return outcomes
