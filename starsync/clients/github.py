"""
GitHub Client — Stars, latest releases and latest commits.

Uses the GitHub REST API through a single httpx.Client so connections are
reused across the hundreds of small lookups a run makes.

## Endpoints

- GET /user/starred?per_page=N&page=P        (paged until an empty page)
- GET /repos/{owner}/{name}/releases/latest  (published_at)
- GET /repos/{owner}/{name}/commits?per_page=1  (commit.committer.date)

Star listing failures are fatal. Release/commit lookups never raise: any
failure becomes a Signal so the run can carry on without that signal.
"""

from __future__ import annotations

import logging
from datetime import date, timezone
from typing import Any, Dict, List, Optional

import httpx
from dateutil import parser as date_parser

from ..config.settings import GITHUB_API_BASE, SyncSettings
from ..errors import SourceFetchError
from ..models.repo import Signal, StarredRepo
from .base import SourceClient

logger = logging.getLogger(__name__)


def _get_headers(token: str) -> Dict[str, str]:
    """Get GitHub API headers."""
    return {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {token}",
        "User-Agent": "starsync/0.1",
        "X-GitHub-Api-Version": "2022-11-28",
    }


def parse_github_date(value: Optional[str]) -> Optional[date]:
    """Turn an ISO 8601 timestamp into its UTC calendar date."""
    if not value:
        return None
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).date()


def repo_from_payload(item: Dict[str, Any]) -> StarredRepo:
    """Build a StarredRepo from one entry of the /user/starred response."""
    owner = (item.get("owner") or {}).get("login", "")
    return StarredRepo(
        name=item["name"],
        owner=owner,
        html_url=item.get("html_url") or f"https://github.com/{owner}/{item['name']}",
    )


class GitHubClient(SourceClient):
    """Source platform client backed by the GitHub REST API."""

    def __init__(
        self,
        token: str,
        per_page: int = 100,
        timeout: float = 30,
        api_base: str = GITHUB_API_BASE,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.per_page = per_page
        self._client = httpx.Client(
            base_url=api_base,
            headers=_get_headers(token),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> "GitHubClient":
        return cls(
            token=settings.github_token or "",
            per_page=settings.per_page,
            timeout=settings.timeout_seconds,
            api_base=settings.github_api_base,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ─── Stars ──────────────────────────────────────────────

    def _fetch_star_page(self, page: int) -> List[Dict[str, Any]]:
        try:
            resp = self._client.get(
                "/user/starred",
                params={"per_page": self.per_page, "page": page},
            )
        except httpx.HTTPError as e:
            raise SourceFetchError(f"Failed to fetch stars page {page}: {e}")

        if resp.status_code in (401, 403):
            raise SourceFetchError(
                f"GitHub rejected the token (HTTP {resp.status_code})",
                status_code=resp.status_code,
            )
        if resp.status_code != 200:
            raise SourceFetchError(
                f"Failed to fetch stars page {page}: HTTP {resp.status_code} {resp.text[:200]}",
                status_code=resp.status_code,
            )

        items = resp.json()
        if not isinstance(items, list):
            raise SourceFetchError(f"Unexpected stars payload on page {page}")
        return items

    def list_starred_repos(self) -> List[StarredRepo]:
        """Fetch every page of stars until an empty page comes back."""
        stars: List[StarredRepo] = []
        seen: set = set()
        page = 1

        while True:
            items = self._fetch_star_page(page)
            if not items:
                break
            for item in items:
                repo = repo_from_payload(item)
                # Pages can shift while we read them if stars change mid-run
                if repo.name in seen:
                    logger.debug(f"Skipping duplicate star {repo.owner}/{repo.name}")
                    continue
                seen.add(repo.name)
                stars.append(repo)
            logger.debug(f"Stars fetched so far: {len(stars)}")
            page += 1

        logger.info(f"Fetched {len(stars)} starred repositories")
        return stars

    # ─── Freshness signals ──────────────────────────────────

    def _lookup(self, path: str, params: Optional[Dict[str, Any]] = None):
        """GET a lookup endpoint. Returns (response, None) or (None, error)."""
        try:
            resp = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            return None, str(e)
        return resp, None

    def get_latest_release(self, owner: str, name: str) -> Signal:
        resp, error = self._lookup(f"/repos/{owner}/{name}/releases/latest")
        if error:
            logger.debug(f"Release lookup for {owner}/{name} failed: {error}")
            return Signal.failed(error)
        if resp.status_code == 404:
            return Signal.absent()
        if resp.status_code != 200:
            return Signal.failed(f"HTTP {resp.status_code}")

        try:
            published = parse_github_date(resp.json().get("published_at"))
        except ValueError as e:
            return Signal.failed(f"Unreadable release date: {e}")
        return Signal.found(published) if published else Signal.absent()

    def get_latest_commit(self, owner: str, name: str) -> Signal:
        resp, error = self._lookup(f"/repos/{owner}/{name}/commits", {"per_page": 1})
        if error:
            logger.debug(f"Commit lookup for {owner}/{name} failed: {error}")
            return Signal.failed(error)
        # 409 is what GitHub returns for an empty repository
        if resp.status_code in (404, 409):
            return Signal.absent()
        if resp.status_code != 200:
            return Signal.failed(f"HTTP {resp.status_code}")

        try:
            commits = resp.json()
            if not commits:
                return Signal.absent()
            committer = (commits[0].get("commit") or {}).get("committer") or {}
            committed = parse_github_date(committer.get("date"))
        except ValueError as e:
            return Signal.failed(f"Unreadable commit date: {e}")
        return Signal.found(committed) if committed else Signal.absent()
