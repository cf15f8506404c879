"""
Receipt Model — Mirror mutation results.

Every create, archive or patch produces a receipt, regardless of success
or failure. Failed receipts carry enough context (record, operation,
attempted fields) for an operator to retry by hand.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

Operation = Literal["create", "archive", "patch"]


class ErrorDetails(BaseModel):
    """Details about a mutation error."""

    code: str
    message: str


class Receipt(BaseModel):
    """Result of one mirror mutation."""

    status: Literal["ok", "skipped", "failed"]
    operation: Operation
    title: str
    record_id: Optional[str] = None
    ts_iso: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    details: Optional[Dict[str, Any]] = None
    error: Optional[ErrorDetails] = None

    @classmethod
    def ok(
        cls,
        operation: Operation,
        title: str,
        record_id: Optional[str],
        details: Optional[Dict[str, Any]] = None,
    ) -> "Receipt":
        """Create a successful receipt."""
        return cls(
            status="ok",
            operation=operation,
            title=title,
            record_id=record_id,
            details=details,
        )

    @classmethod
    def skipped(
        cls,
        operation: Operation,
        title: str,
        record_id: Optional[str],
        reason: str,
    ) -> "Receipt":
        """Create a skipped receipt."""
        return cls(
            status="skipped",
            operation=operation,
            title=title,
            record_id=record_id,
            details={"skip_reason": reason},
        )

    @classmethod
    def failed(
        cls,
        operation: Operation,
        title: str,
        record_id: Optional[str],
        error_code: str,
        error_message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> "Receipt":
        """Create a failed receipt."""
        return cls(
            status="failed",
            operation=operation,
            title=title,
            record_id=record_id,
            details=details,
            error=ErrorDetails(code=error_code, message=error_message),
        )

    @property
    def succeeded(self) -> bool:
        return self.status == "ok"

    def describe(self) -> str:
        """One-line description for logs and summaries."""
        target = f"{self.title} ({self.record_id})" if self.record_id else self.title
        if self.error:
            return f"{self.operation} {target}: {self.error.code} {self.error.message}"
        return f"{self.operation} {target}: {self.status}"
