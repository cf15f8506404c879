"""
Engine — Reconciliation, freshness checks and the run lifecycle.
"""

from .freshness import FreshnessReport, check_freshness, compute_patch
from .mutator import MirrorMutator
from .reconcile import compute_plan
from .run import SyncResult, fetch_plan, run_sync

__all__ = [
    "FreshnessReport",
    "MirrorMutator",
    "SyncResult",
    "check_freshness",
    "compute_patch",
    "compute_plan",
    "fetch_plan",
    "run_sync",
]
