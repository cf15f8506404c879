"""
Errors — Exception hierarchy for a sync run.

Fatal errors (configuration, full-collection fetches) propagate out of
``run_sync`` and stop the program. ``MirrorWriteError`` is contained by the
mutator and recorded against the single record that produced it.

## Usage

    from starsync.errors import FetchError

    try:
        result = run_sync(source, mirror)
    except FetchError as e:
        print(f"Sync aborted: {e}")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class StarSyncError(Exception):
    """Base class for all starsync errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(StarSyncError):
    """Raised when configuration is missing or invalid."""

    def __init__(self, message: str, missing: Optional[list] = None):
        self.missing = list(missing or [])
        super().__init__(message, details={"missing": self.missing})


class FetchError(StarSyncError):
    """Raised when a full collection cannot be fetched."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details=details)


class SourceFetchError(FetchError):
    """The starred-repository collection could not be fetched."""


class MirrorFetchError(FetchError):
    """The mirror database could not be queried to completion."""


class MirrorWriteError(StarSyncError):
    """A single create, archive or patch call against the mirror failed."""

    def __init__(
        self,
        message: str,
        operation: str,
        record_id: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.operation = operation
        self.record_id = record_id
        self.status_code = status_code
        super().__init__(
            message,
            details={
                "operation": operation,
                "record_id": record_id,
                "status_code": status_code,
            },
        )

    @property
    def code(self) -> str:
        if self.status_code is not None:
            return f"http_{self.status_code}"
        return "exception"
