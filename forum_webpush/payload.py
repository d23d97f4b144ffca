"""Payload builder — turns a forum notification into a bounded, displayable push payload."""

from __future__ import annotations

import html
import re

from forum_webpush.config import DEFAULT_LANG, DEFAULT_TITLE, WebPushConfig
from forum_webpush.host import Translator
from forum_webpush.models import NotificationRecord, PushData, PushPayload
from forum_webpush.settings import WebPushSettingsStore

ELLIPSIS = "…"

_TAG_RE = re.compile(r"<(/)?[^\s>]+(\s+[^<>]*?)?\s*(/)?>", re.IGNORECASE)


def strip_html_tags(text: str) -> str:
    return _TAG_RE.sub("", text)


def clean_text(text: str) -> str:
    """Strip markup, then decode entities so the OS notification shows plain text."""
    return html.unescape(strip_html_tags(text))


def truncate(text: str, max_length: int) -> str:
    if len(text) > max_length:
        return f"{text[:max_length]}{ELLIPSIS}"
    return text


class PayloadBuilder:
    def __init__(self, config: WebPushConfig, translator: Translator, settings: WebPushSettingsStore) -> None:
        self._config = config
        self._translator = translator
        self._settings = settings

    async def build(self, notification: NotificationRecord, language: str | None = None) -> PushPayload:
        # maxLength is edited live from the admin page
        max_length = (await self._settings.get()).max_length
        language = language or self._config.default_lang or DEFAULT_LANG

        title, body = await self._translator.translate_keys(
            [notification.body_short, notification.body_long], language
        )
        title, body = clean_text(title), clean_text(body)

        if not notification.body_long:
            body = title
            title = self._config.title or DEFAULT_TITLE

        return PushPayload(
            title=title,
            body=truncate(body, max_length),
            tag=notification.tag,
            data=PushData(url=f"{self._config.url}{notification.path}"),
        )
