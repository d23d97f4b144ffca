"""Static YAML config and live plugin settings."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from instrukt_ai_logging import get_logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = get_logger(__name__)

DEFAULT_TITLE = "NodeBB"
DEFAULT_LANG = "en-GB"
DEFAULT_MAX_LENGTH = 256
CONFIG_PATH_ENV = "FORUM_WEBPUSH_CONFIG"


class WebPushConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: str = "http://localhost:4567"  # host base URL, no trailing slash
    title: Optional[str] = DEFAULT_TITLE
    default_lang: Optional[str] = DEFAULT_LANG
    redis_url: str = "redis://localhost:6379/0"
    stream: str = "forum:notifications"
    consumer_group: str = "web-push"
    consumer_name: Optional[str] = None
    tracker_ttl_hours: int = Field(default=48, ge=1)
    vapid_subject: Optional[str] = None  # mailto: or https://host; derived from url when unset

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class WebPushSettings(BaseModel):
    """Live settings, edited by the host admin page and re-read on every use."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    max_length: int = Field(default=DEFAULT_MAX_LENGTH, alias="maxLength")
    public_key: str = Field(default="", alias="publicKey")
    private_key: str = Field(default="", alias="privateKey")

    @field_validator("max_length", mode="before")
    @classmethod
    def parse_max_length(cls, v: object) -> int:
        # Same leniency as parseInt(x, 10) || 256; non-positive also falls back
        if isinstance(v, bytes):
            v = v.decode()
        match = re.match(r"^\s*([+-]?\d+)", str(v)) if v is not None else None
        parsed = int(match.group(1)) if match else 0
        return parsed if parsed > 0 else DEFAULT_MAX_LENGTH


def expand_env_vars(config: object) -> object:
    """Recursively replace ${VAR} patterns with environment variable values."""
    if isinstance(config, dict):
        return {k: expand_env_vars(v) for k, v in config.items()}  # type: ignore[misc]
    if isinstance(config, list):
        return [expand_env_vars(item) for item in config]
    if isinstance(config, str):

        def replace_env_var(match: re.Match[str]) -> str:
            return os.getenv(match.group(1), match.group(0))

        return re.sub(r"\$\{([^}]+)\}", replace_env_var, config)
    return config


def load_config(path: Optional[Path] = None) -> WebPushConfig:
    """Load and validate configuration from a YAML file.

    A missing or unreadable file yields the defaults; invalid values raise
    ``pydantic.ValidationError``.
    """
    if path is None:
        path = Path(os.getenv(CONFIG_PATH_ENV, "~/.forum-webpush/config.yml")).expanduser()
    if not path.exists():
        return WebPushConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.warning("Failed to read config file %s: %s", path, e)
        return WebPushConfig()

    config = WebPushConfig.model_validate(expand_env_vars(raw))
    if config.model_extra:
        logger.warning("Unknown keys in %s: %s", path, list(config.model_extra.keys()))
    return config
