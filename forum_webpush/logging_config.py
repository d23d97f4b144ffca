"""Logging bootstrap.

forum_webpush logs through the shared InstruktAI logging standard
(`instrukt_ai_logging`); modules use `get_logger(__name__)` and pass
structured context as keyword arguments.
"""

from __future__ import annotations

import os
from typing import Optional

from instrukt_ai_logging import configure_logging


def setup_logging(level: Optional[str] = None) -> None:
    """Configure process logging.

    Args:
        level: Optional override for `FORUM_WEBPUSH_LOG_LEVEL`.
    """
    if level:
        os.environ["FORUM_WEBPUSH_LOG_LEVEL"] = level

    configure_logging("forum_webpush")
