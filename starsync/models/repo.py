"""
Repository Models — Pydantic schemas for both sides of the sync.

StarredRepo is the source of truth (read-only, re-fetched every run).
MirrorRecord is one page in the Notion database that tracks a star.
"""

from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class StarredRepo(BaseModel):
    """A repository the authenticated user has starred."""

    name: str
    owner: str
    html_url: str
    latest_release_date: Optional[date] = None
    latest_commit_date: Optional[date] = None


class MirrorRecord(BaseModel):
    """A page in the mirror database representing one tracked repository."""

    id: str
    title: str
    owner: Optional[str] = None
    url: Optional[str] = None
    stored_release_date: Optional[date] = None
    stored_commit_date: Optional[date] = None
    archived: bool = False


class RecordFields(BaseModel):
    """
    Property values to write to a mirror record.

    Unset fields are left out of the request entirely, so a partial
    update never touches properties it was not given.
    """

    title: Optional[str] = None
    owner: Optional[str] = None
    url: Optional[str] = None
    release: Optional[date] = None
    commit: Optional[date] = None

    def provided(self) -> List[str]:
        """Names of the fields that carry a value."""
        return [name for name, value in self if value is not None]


class Signal(BaseModel):
    """
    Result of a single freshness lookup on the source platform.

    ``absent`` means the platform answered and there is nothing to report
    (no releases, empty history). ``failed`` means the lookup itself went
    wrong. Both count as "no signal" when compared against stored dates.
    """

    status: Literal["found", "absent", "failed"]
    value: Optional[date] = None
    error: Optional[str] = None

    @classmethod
    def found(cls, value: date) -> "Signal":
        return cls(status="found", value=value)

    @classmethod
    def absent(cls) -> "Signal":
        return cls(status="absent")

    @classmethod
    def failed(cls, error: str) -> "Signal":
        return cls(status="failed", error=error)

    @property
    def observed(self) -> Optional[date]:
        return self.value if self.status == "found" else None


class FreshnessPatch(BaseModel):
    """A partial update of the two freshness fields of one record."""

    record_id: str
    title: str
    release: Optional[date] = None
    commit: Optional[date] = None

    @model_validator(mode="after")
    def _not_empty(self) -> "FreshnessPatch":
        if self.release is None and self.commit is None:
            raise ValueError("a freshness patch needs a release or a commit date")
        return self

    def to_fields(self) -> RecordFields:
        return RecordFields(release=self.release, commit=self.commit)


class ReconcilePlan(BaseModel):
    """The three work lists produced by diffing stars against the mirror."""

    to_create: List[StarredRepo] = Field(default_factory=list)
    to_archive: List[MirrorRecord] = Field(default_factory=list)
    to_check: List[MirrorRecord] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_archive or self.to_check)

    def summary(self) -> dict:
        return {
            "create": [repo.name for repo in self.to_create],
            "archive": [record.title for record in self.to_archive],
            "check": [record.title for record in self.to_check],
        }
