"""
Models — Repository, record and receipt schemas.
"""

from .receipt import ErrorDetails, Receipt
from .repo import (
    FreshnessPatch,
    MirrorRecord,
    ReconcilePlan,
    RecordFields,
    Signal,
    StarredRepo,
)

__all__ = [
    "ErrorDetails",
    "FreshnessPatch",
    "MirrorRecord",
    "Receipt",
    "ReconcilePlan",
    "RecordFields",
    "Signal",
    "StarredRepo",
]
