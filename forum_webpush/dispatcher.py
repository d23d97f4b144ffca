"""Fans one forum notification out to every subscribed device of its recipients."""

from __future__ import annotations

import asyncio
from typing import Iterable

from instrukt_ai_logging import get_logger

from forum_webpush.fanout import PushJob, PushSender, SendOutcome, send_isolated
from forum_webpush.host import UserSettingsLookup
from forum_webpush.models import NotificationRecord
from forum_webpush.payload import PayloadBuilder
from forum_webpush.subscriptions import SubscriptionDirectory
from forum_webpush.tracker import RecipientTracker

logger = get_logger(__name__)


class Dispatcher:
    def __init__(
        self,
        directory: SubscriptionDirectory,
        user_settings: UserSettingsLookup,
        builder: PayloadBuilder,
        tracker: RecipientTracker,
        sender: PushSender,
    ) -> None:
        self._directory = directory
        self._user_settings = user_settings
        self._builder = builder
        self._tracker = tracker
        self._sender = sender

    async def dispatch(self, notification: NotificationRecord, uids: Iterable[int]) -> list[SendOutcome]:
        uids = list(dict.fromkeys(uids))
        subs = await self._directory.list(uids)
        # Users without devices get no settings lookup and no payload
        uids = [uid for uid in uids if subs.get(uid)]
        if not uids:
            logger.debug("no subscribed recipients", nid=notification.nid)
            return []

        settings = await self._user_settings.get_multiple_user_settings(uids)
        payloads = await asyncio.gather(
            *(self._builder.build(notification, s.user_lang) for s in settings)
        )
        by_uid = dict(zip(uids, payloads))

        # Tracks attempted sends, not confirmed deliveries
        await self._tracker.track(notification.tag, uids)

        jobs = [PushJob(uid, subscription, by_uid[uid]) for uid in uids for subscription in subs[uid]]
        outcomes = await send_isolated(self._sender, jobs)
        logger.info(
            "dispatched notification",
            nid=notification.nid,
            tag=notification.tag,
            recipients=len(uids),
            sends=len(outcomes),
            failed=sum(1 for o in outcomes if not o.ok),
        )
        return outcomes
