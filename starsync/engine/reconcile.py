"""
Reconciler — Diff the starred repositories against the mirror records.

The join key is the repository name, compared byte for byte: no case
folding, no owner comparison. A renamed repository, or two starred repos
from different owners that share a name, therefore show up as "new" rather
than being matched to an existing record.

## Usage

    from starsync.engine.reconcile import compute_plan

    plan = compute_plan(stars, records)
    plan.to_create   # starred, never mirrored
    plan.to_archive  # mirrored, no longer starred
    plan.to_check    # live records to re-check for freshness
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from ..models.repo import MirrorRecord, ReconcilePlan, StarredRepo

logger = logging.getLogger(__name__)


def index_stars(stars: Iterable[StarredRepo]) -> Dict[str, StarredRepo]:
    """Map name to repo. The first repo seen for a name wins."""
    index: Dict[str, StarredRepo] = {}
    for repo in stars:
        index.setdefault(repo.name, repo)
    return index


def compute_plan(
    stars: Iterable[StarredRepo],
    records: Iterable[MirrorRecord],
) -> ReconcilePlan:
    """
    Compute the three work lists for one run.

    Archived records are ignored: they can neither satisfy a star nor be
    archived again. Output lists keep the order of their inputs.
    """
    stars = list(stars)
    live: List[MirrorRecord] = [r for r in records if not r.archived]

    star_names = {s.name for s in stars}
    mirror_titles = {r.title for r in live}

    to_create: List[StarredRepo] = []
    queued: set = set()
    for repo in stars:
        if repo.name in mirror_titles or repo.name in queued:
            continue
        queued.add(repo.name)
        to_create.append(repo)

    to_archive = [r for r in live if r.title not in star_names]
    archived_ids = {r.id for r in to_archive}
    to_check = [r for r in live if r.id not in archived_ids]

    plan = ReconcilePlan(to_create=to_create, to_archive=to_archive, to_check=to_check)
    logger.info(
        f"Plan: {len(to_create)} to create, {len(to_archive)} to archive, "
        f"{len(to_check)} to check"
    )
    if to_create:
        logger.debug(f"To create: {[r.name for r in to_create]}")
    if to_archive:
        logger.debug(f"To archive: {[r.title for r in to_archive]}")
    return plan
