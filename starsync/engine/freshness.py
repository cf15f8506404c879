"""
Freshness Checker — Decide which live records need their dates patched.

Two signals are tracked per repository, independently: the date of the
latest release and the date of the latest commit. A field is only written
when a signal was actually observed and differs from what is stored. A
lookup that fails or finds nothing yields no signal, so it can never clear
a stored date.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from ..clients.base import SourceClient
from ..models.receipt import Receipt
from ..models.repo import FreshnessPatch, MirrorRecord, Signal, StarredRepo
from .mutator import MirrorMutator

logger = logging.getLogger(__name__)


@dataclass
class FreshnessReport:
    """Outcome of one freshness pass."""

    checked: int = 0
    unchanged: int = 0
    unmatched: List[str] = field(default_factory=list)
    failed_lookups: List[str] = field(default_factory=list)
    receipts: List[Receipt] = field(default_factory=list)

    @property
    def patched(self) -> List[str]:
        return [r.title for r in self.receipts if r.succeeded]

    @property
    def failed(self) -> List[Receipt]:
        return [r for r in self.receipts if r.status == "failed"]


def _delta(observed: Optional[date], stored: Optional[date]) -> Optional[date]:
    return observed if observed != stored else None


def compute_patch(
    record: MirrorRecord,
    observed_release: Optional[date],
    observed_commit: Optional[date],
) -> Optional[FreshnessPatch]:
    """
    Compare observed signals with the stored ones.

    Returns None when neither field changed, otherwise a patch carrying
    only the changed fields.
    """
    release = _delta(observed_release, record.stored_release_date)
    commit = _delta(observed_commit, record.stored_commit_date)
    if release is None and commit is None:
        return None
    return FreshnessPatch(
        record_id=record.id,
        title=record.title,
        release=release,
        commit=commit,
    )


def observe(source: SourceClient, repo: StarredRepo) -> Tuple[Signal, Signal]:
    """Look up both freshness signals for a repository."""
    release = source.get_latest_release(repo.owner, repo.name)
    commit = source.get_latest_commit(repo.owner, repo.name)
    return release, commit


def with_observed_signals(source: SourceClient, repo: StarredRepo) -> StarredRepo:
    """Return a copy of ``repo`` carrying the currently observed dates."""
    release, commit = observe(source, repo)
    return repo.model_copy(update={
        "latest_release_date": release.observed,
        "latest_commit_date": commit.observed,
    })


def check_freshness(
    records: Iterable[MirrorRecord],
    stars_by_name: Dict[str, StarredRepo],
    source: SourceClient,
    mutator: MirrorMutator,
) -> FreshnessReport:
    """Re-check every record and patch the ones whose signals moved."""
    report = FreshnessReport()

    for record in records:
        repo = stars_by_name.get(record.title)
        if repo is None:
            logger.warning(f"No starred repo matches record {record.title!r}, skipping")
            report.unmatched.append(record.title)
            continue

        report.checked += 1
        release, commit = observe(source, repo)
        for kind, signal in (("release", release), ("commit", commit)):
            if signal.status == "failed":
                logger.debug(f"{kind} lookup for {repo.owner}/{repo.name} failed: {signal.error}")
                report.failed_lookups.append(f"{repo.name}:{kind}")

        patch = compute_patch(record, release.observed, commit.observed)
        if patch is None:
            report.unchanged += 1
            continue

        logger.info(
            f"{record.title}: release {record.stored_release_date} -> {patch.release or '='}, "
            f"commit {record.stored_commit_date} -> {patch.commit or '='}"
        )
        report.receipts.append(mutator.patch(patch))

    logger.info(
        f"Freshness: {report.checked} checked, {report.unchanged} unchanged, "
        f"{len(report.patched)} patched, {len(report.failed)} failed"
    )
    return report
