"""
Sync Run — One complete reconciliation pass.

Each run:
1. Fetches every starred repository (fatal on failure)
2. Fetches every live mirror record (fatal on failure)
3. Computes the plan (create / archive / check)
4. Creates records for new stars, born with their current signals
5. Archives records whose star disappeared
6. Re-checks every surviving record and patches changed dates
7. Records audit entries and returns a SyncResult

All calls are sequential. Per-record failures are contained; only the two
collection fetches can abort a run.

## Run ID Format

    R-{YYYYMMDD}T{HHMMSS}-{RANDOM}
    Example: R-20260204T221903-92929A

## Usage

    from starsync.engine.run import run_sync

    result = run_sync(source, mirror, dry_run=False)
    print(result.created, result.archived, result.patched)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import uuid4

from ..clients.base import MirrorClient, SourceClient
from ..models.repo import MirrorRecord, ReconcilePlan, StarredRepo
from ..persistence.audit import AuditWriter
from .freshness import check_freshness, with_observed_signals
from .mutator import MirrorMutator
from .reconcile import compute_plan, index_stars

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Result of a sync run."""

    run_id: str
    started_at: str
    ended_at: Optional[str] = None
    duration_ms: int = 0
    dry_run: bool = False

    # Collections
    stars_fetched: int = 0
    records_fetched: int = 0

    # Plan
    planned_create: List[str] = field(default_factory=list)
    planned_archive: List[str] = field(default_factory=list)
    checked: int = 0

    # Writes
    created: List[str] = field(default_factory=list)
    archived: List[str] = field(default_factory=list)
    patched: List[str] = field(default_factory=list)

    # Errors
    errors: List[str] = field(default_factory=list)

    @property
    def writes(self) -> int:
        return len(self.created) + len(self.archived) + len(self.patched)

    @property
    def success(self) -> bool:
        return not self.errors


def generate_run_id() -> str:
    """Generate a unique run ID."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    suffix = uuid4().hex[:6].upper()
    return f"R-{ts}-{suffix}"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def fetch_plan(
    source: SourceClient,
    mirror: MirrorClient,
) -> Tuple[List[StarredRepo], List[MirrorRecord], ReconcilePlan]:
    """Fetch both collections and diff them. Fetch errors propagate."""
    stars = source.list_starred_repos()
    records = mirror.query_all_records()
    return stars, records, compute_plan(stars, records)


def run_sync(
    source: SourceClient,
    mirror: MirrorClient,
    audit_writer: Optional[AuditWriter] = None,
    dry_run: bool = False,
) -> SyncResult:
    """
    Execute a single sync run.

    Args:
        source: Client for the starred repositories
        mirror: Client for the mirror database
        audit_writer: Audit ledger writer (optional)
        dry_run: If True, compute everything but write nothing

    Returns:
        SyncResult with execution details

    Raises:
        FetchError: If either full collection cannot be fetched
    """
    start_time = time.time()
    run_id = generate_run_id()
    result = SyncResult(run_id=run_id, started_at=_now_iso(), dry_run=dry_run)

    logger.info(
        f"{'═' * 50}\n"
        f"  Starting Sync {run_id}\n"
        f"  └─ Mode: {'DRY RUN' if dry_run else 'LIVE'}\n"
        f"{'─' * 50}",
        extra={"run_id": run_id},
    )
    if audit_writer:
        audit_writer.emit("run_start", run_id=run_id, details={"dry_run": dry_run})

    # --- Phase 1: Fetch and diff ---
    stars, records, plan = fetch_plan(source, mirror)
    result.stars_fetched = len(stars)
    result.records_fetched = len(records)
    result.planned_create = [r.name for r in plan.to_create]
    result.planned_archive = [r.title for r in plan.to_archive]

    if audit_writer:
        audit_writer.emit("plan_computed", run_id=run_id, details=plan.summary())

    mutator = MirrorMutator(mirror, run_id=run_id, audit_writer=audit_writer, dry_run=dry_run)

    # --- Phase 2: Creations ---
    for repo in plan.to_create:
        mutator.create(with_observed_signals(source, repo))

    # --- Phase 3: Archivals ---
    for record in plan.to_archive:
        mutator.archive(record)

    # --- Phase 4: Freshness ---
    report = check_freshness(plan.to_check, index_stars(stars), source, mutator)
    result.checked = report.checked

    # --- Phase 5: Finalize ---
    result.created = mutator.titles("create")
    result.archived = mutator.titles("archive")
    result.patched = mutator.titles("patch")
    result.errors = [r.describe() for r in mutator.failures]

    result.ended_at = _now_iso()
    result.duration_ms = int((time.time() - start_time) * 1000)

    if audit_writer:
        audit_writer.emit(
            "run_end",
            run_id=run_id,
            level="info" if result.success else "warning",
            details={
                "created": len(result.created),
                "archived": len(result.archived),
                "patched": len(result.patched),
                "failed": len(result.errors),
                "duration_ms": result.duration_ms,
            },
        )

    logger.info(
        f"Sync {run_id} complete: {len(result.created)} created, "
        f"{len(result.archived)} archived, {len(result.patched)} patched, "
        f"{len(result.errors)} failed ({result.duration_ms}ms)",
        extra={"run_id": run_id},
    )
    return result
