"""
Client Base Classes — The two interfaces the sync engine talks through.

The engine never sees HTTP. It only calls these methods, which keeps the
reconciliation logic testable with in-memory fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..models.repo import MirrorRecord, RecordFields, Signal, StarredRepo


class SourceClient(ABC):
    """Read-only access to the user's starred repositories."""

    @abstractmethod
    def list_starred_repos(self) -> List[StarredRepo]:
        """
        Return every starred repository, deduplicated by name.

        Raises SourceFetchError if any page cannot be fetched.
        """

    @abstractmethod
    def get_latest_release(self, owner: str, name: str) -> Signal:
        """Date of the latest published release. Never raises."""

    @abstractmethod
    def get_latest_commit(self, owner: str, name: str) -> Signal:
        """Date of the most recent commit on the default branch. Never raises."""


class MirrorClient(ABC):
    """Read/write access to the mirror database."""

    @abstractmethod
    def query_all_records(self) -> List[MirrorRecord]:
        """
        Return every non-archived record, following pagination to the end.

        Raises MirrorFetchError if any page cannot be fetched.
        """

    @abstractmethod
    def create_record(self, fields: RecordFields) -> MirrorRecord:
        """Insert a record. Raises MirrorWriteError on failure."""

    @abstractmethod
    def archive_record(self, record_id: str) -> None:
        """Soft-delete a record. Raises MirrorWriteError on failure."""

    @abstractmethod
    def patch_record(self, record_id: str, fields: RecordFields) -> None:
        """Update only the provided fields. Raises MirrorWriteError on failure."""
