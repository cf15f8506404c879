"""
Configuration Validator — Check service credentials before a run.

## Usage

    from starsync.config.validator import check_settings

    for service, status in check_settings().items():
        if not status.configured:
            print(f"{service}: Missing {status.missing}")
            print(f"  → {status.guidance}")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ConfigStatus:
    """Status of a configuration check."""

    service: str
    configured: bool
    missing: List[str] = field(default_factory=list)
    present: List[str] = field(default_factory=list)
    guidance: Optional[str] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON output."""
        return {
            "service": self.service,
            "configured": self.configured,
            "missing": self.missing,
            "present": self.present,
            "guidance": self.guidance,
        }


# Each required entry is (canonical name, aliases)
SERVICE_REQUIREMENTS = {
    "github": {
        "required": [("GITHUB_TOKEN", ("GITHUB_API",))],
        "optional": ["STARSYNC_TIMEOUT", "STARSYNC_PER_PAGE"],
        "guidance": "Create a token with read access to your stars at https://github.com/settings/tokens",
    },
    "notion": {
        "required": [
            ("NOTION_TOKEN", ("NOTION_API",)),
            ("NOTION_DATABASE_ID", ("DATABASE",)),
        ],
        "optional": [
            "NOTION_VERSION",
            "NOTION_PROP_TITLE",
            "NOTION_PROP_URL",
            "NOTION_PROP_OWNER",
            "NOTION_PROP_RELEASE",
            "NOTION_PROP_COMMIT",
        ],
        "guidance": "Create an integration at https://www.notion.so/my-integrations and share the database with it",
    },
}


def _is_set(name: str) -> bool:
    return bool(os.environ.get(name, "").strip())


def check_service(service: str) -> ConfigStatus:
    """Check whether one service has the variables it needs."""
    if service not in SERVICE_REQUIREMENTS:
        return ConfigStatus(
            service=service,
            configured=False,
            guidance=f"Unknown service: {service}",
        )

    reqs = SERVICE_REQUIREMENTS[service]
    missing: List[str] = []
    present: List[str] = []

    for name, aliases in reqs["required"]:
        found = next((key for key in (name, *aliases) if _is_set(key)), None)
        if found:
            present.append(found)
        else:
            missing.append(name)

    for name in reqs["optional"]:
        if _is_set(name):
            present.append(name)

    return ConfigStatus(
        service=service,
        configured=not missing,
        missing=missing,
        present=present,
        guidance=None if not missing else reqs["guidance"],
    )


def check_settings() -> Dict[str, ConfigStatus]:
    """Check every service. Returns a mapping of service name to status."""
    results = {service: check_service(service) for service in SERVICE_REQUIREMENTS}
    for service, status in results.items():
        if status.configured:
            logger.debug(f"{service}: configured")
        else:
            logger.warning(f"{service}: missing {', '.join(status.missing)}")
    return results
