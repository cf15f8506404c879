"""
Clients — GitHub (source of truth) and Notion (mirror database).
"""

from .base import MirrorClient, SourceClient
from .github import GitHubClient
from .notion import NotionClient

__all__ = [
    "GitHubClient",
    "MirrorClient",
    "NotionClient",
    "SourceClient",
]
