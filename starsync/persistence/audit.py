"""
Audit Ledger — Append-only NDJSON record of what a sync run changed.

Each line is one JSON object (newline-delimited JSON).
Events are never edited, only appended. Failed mutations are written with
the record id, title and attempted fields so they can be retried by hand.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from ..models.receipt import Receipt

RECEIPT_EVENTS = {
    ("create", "ok"): "record_created",
    ("archive", "ok"): "record_archived",
    ("patch", "ok"): "record_patched",
}


class AuditWriter:
    """
    Append-only NDJSON audit ledger writer.

    Usage:
        audit = AuditWriter(Path("audit/sync.ndjson"))
        audit.emit("run_start", run_id="R-123")
    """

    def __init__(self, path: Path):
        self.path = path
        self._ensure_exists()

    def _ensure_exists(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.touch()

    def emit(
        self,
        event_type: str,
        run_id: str,
        level: str = "info",
        details: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Emit an audit event.

        Args:
            event_type: Type of event (run_start, record_created, mutation_failed, ...)
            run_id: Identifier of the sync run
            level: Log level (info, warning, error)
            details: Additional event details

        Returns:
            Generated event_id
        """
        event_id = f"E-{uuid4().hex[:8].upper()}"
        now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

        entry: Dict[str, Any] = {
            "ts_iso": now,
            "event_id": event_id,
            "run_id": run_id,
            "level": level,
            "type": event_type,
        }
        if details is not None:
            entry["details"] = details

        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

        return event_id

    def emit_receipt(self, run_id: str, receipt: Receipt) -> Optional[str]:
        """Record a mutation receipt. Skipped receipts are not written."""
        if receipt.status == "skipped":
            return None
        if receipt.status == "failed":
            return self.emit(
                event_type="mutation_failed",
                run_id=run_id,
                level="error",
                details=receipt.model_dump(mode="json"),
            )
        return self.emit(
            event_type=RECEIPT_EVENTS[(receipt.operation, receipt.status)],
            run_id=run_id,
            details=receipt.model_dump(mode="json", exclude_none=True),
        )
