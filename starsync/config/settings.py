"""
Sync Settings — Parse credentials and database layout from the environment.

Minimal required config:
    GITHUB_TOKEN=ghp_xxxxx
    NOTION_TOKEN=secret_xxxxx
    NOTION_DATABASE_ID=0123456789abcdef0123456789abcdef

The older variable names GITHUB_API, NOTION_API and DATABASE are accepted
as aliases so existing .env files keep working.

Property names default to the schema of the existing stars database and
can be overridden one by one with NOTION_PROP_* variables.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
NOTION_API_BASE = "https://api.notion.com/v1"
DEFAULT_NOTION_VERSION = "2022-06-28"

# (canonical name, aliases)
TOKEN_VARS: List[Tuple[str, Tuple[str, ...]]] = [
    ("GITHUB_TOKEN", ("GITHUB_API",)),
    ("NOTION_TOKEN", ("NOTION_API",)),
    ("NOTION_DATABASE_ID", ("DATABASE",)),
]


def _env(name: str, aliases: Tuple[str, ...] = ()) -> Optional[str]:
    """Read an env var, falling back to its aliases. Blank counts as unset."""
    for key in (name, *aliases):
        value = os.environ.get(key, "").strip()
        if value:
            return value
    return None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class PropertyMap:
    """Names of the Notion database properties a mirror record uses."""

    title: str = "名称"
    url: str = "release"
    owner: str = "owner"
    release: str = "上次release"
    commit: str = "上次commit"

    @classmethod
    def from_env(cls) -> "PropertyMap":
        defaults = cls()
        return cls(
            title=_env("NOTION_PROP_TITLE") or defaults.title,
            url=_env("NOTION_PROP_URL") or defaults.url,
            owner=_env("NOTION_PROP_OWNER") or defaults.owner,
            release=_env("NOTION_PROP_RELEASE") or defaults.release,
            commit=_env("NOTION_PROP_COMMIT") or defaults.commit,
        )


@dataclass
class SyncSettings:
    """Everything a sync run needs from the outside world."""

    github_token: Optional[str] = None
    notion_token: Optional[str] = None
    database_id: Optional[str] = None
    notion_version: str = DEFAULT_NOTION_VERSION
    timeout_seconds: int = 30
    per_page: int = 100
    properties: PropertyMap = field(default_factory=PropertyMap)
    github_api_base: str = GITHUB_API_BASE
    notion_api_base: str = NOTION_API_BASE

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """Parse settings from environment variables."""
        settings = cls(
            github_token=_env("GITHUB_TOKEN", ("GITHUB_API",)),
            notion_token=_env("NOTION_TOKEN", ("NOTION_API",)),
            database_id=_env("NOTION_DATABASE_ID", ("DATABASE",)),
            notion_version=_env("NOTION_VERSION") or DEFAULT_NOTION_VERSION,
            timeout_seconds=_env_int("STARSYNC_TIMEOUT", 30),
            per_page=_env_int("STARSYNC_PER_PAGE", 100),
            properties=PropertyMap.from_env(),
        )
        logger.debug(
            f"Loaded settings: database={settings.database_id or '<unset>'}, "
            f"notion_version={settings.notion_version}"
        )
        return settings

    def missing(self) -> List[str]:
        """Canonical names of required variables that are not set."""
        values = {
            "GITHUB_TOKEN": self.github_token,
            "NOTION_TOKEN": self.notion_token,
            "NOTION_DATABASE_ID": self.database_id,
        }
        return [name for name, value in values.items() if not value]

    def validate(self) -> "SyncSettings":
        """Raise ConfigurationError unless every required value is present."""
        missing = self.missing()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                missing=missing,
            )
        if self.timeout_seconds <= 0:
            raise ConfigurationError("STARSYNC_TIMEOUT must be positive")
        if not 1 <= self.per_page <= 100:
            raise ConfigurationError("STARSYNC_PER_PAGE must be between 1 and 100")
        return self
