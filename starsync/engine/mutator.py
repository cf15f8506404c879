"""
Mirror Mutator — Apply create / archive / patch operations to the mirror.

Every call returns a Receipt and none of them raise: a failure on one
record is logged, audited and recorded, and the batch moves on to the
next record.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from ..clients.base import MirrorClient
from ..errors import MirrorWriteError
from ..models.receipt import Receipt
from ..models.repo import FreshnessPatch, MirrorRecord, RecordFields, StarredRepo
from ..persistence.audit import AuditWriter

logger = logging.getLogger(__name__)


class MirrorMutator:
    """
    Writes to the mirror database on behalf of a sync run.

    In dry-run mode nothing is sent; each operation returns a skipped
    receipt describing what would have been written.
    """

    def __init__(
        self,
        client: MirrorClient,
        run_id: str = "",
        audit_writer: Optional[AuditWriter] = None,
        dry_run: bool = False,
    ):
        self.client = client
        self.run_id = run_id
        self.audit_writer = audit_writer
        self.dry_run = dry_run
        self.receipts: List[Receipt] = []
        self.created: List[MirrorRecord] = []
        self._archived_ids: Set[str] = set()

    def _record(self, receipt: Receipt) -> Receipt:
        self.receipts.append(receipt)
        if self.audit_writer is not None:
            self.audit_writer.emit_receipt(self.run_id, receipt)
        if receipt.status == "failed":
            logger.error(
                f"Failed to {receipt.describe()}",
                extra={
                    "run_id": self.run_id,
                    "record_id": receipt.record_id,
                    "title": receipt.title,
                    "operation": receipt.operation,
                },
            )
        return receipt

    def _failed(self, error: MirrorWriteError, title: str,
                record_id: Optional[str], fields: Optional[RecordFields]) -> Receipt:
        details = None
        if fields is not None:
            details = {"fields": fields.model_dump(mode="json", exclude_none=True)}
        return Receipt.failed(
            operation=error.operation,
            title=title,
            record_id=record_id,
            error_code=error.code,
            error_message=error.message,
            details=details,
        )

    # ─── Operations ─────────────────────────────────────────

    def create(self, repo: StarredRepo) -> Receipt:
        """Insert a record for a newly starred repository."""
        fields = RecordFields(
            title=repo.name,
            owner=repo.owner,
            url=repo.html_url,
            release=repo.latest_release_date,
            commit=repo.latest_commit_date,
        )
        if self.dry_run:
            logger.info(f"[dry-run] would create {repo.name}")
            return self._record(Receipt.skipped("create", repo.name, None, "dry_run"))

        try:
            record = self.client.create_record(fields)
        except MirrorWriteError as e:
            return self._record(self._failed(e, repo.name, None, fields))

        self.created.append(record)
        logger.info(f"Created {repo.name}", extra={"run_id": self.run_id, "record_id": record.id})
        return self._record(Receipt.ok(
            "create", repo.name, record.id,
            details={"fields": fields.model_dump(mode="json", exclude_none=True)},
        ))

    def archive(self, record: MirrorRecord) -> Receipt:
        """Soft-delete a record. A no-op for records already archived."""
        if record.archived or record.id in self._archived_ids:
            return self._record(Receipt.skipped("archive", record.title, record.id, "already_archived"))
        if self.dry_run:
            logger.info(f"[dry-run] would archive {record.title}")
            return self._record(Receipt.skipped("archive", record.title, record.id, "dry_run"))

        try:
            self.client.archive_record(record.id)
        except MirrorWriteError as e:
            return self._record(self._failed(e, record.title, record.id, None))

        self._archived_ids.add(record.id)
        record.archived = True
        logger.info(f"Archived {record.title}", extra={"run_id": self.run_id, "record_id": record.id})
        return self._record(Receipt.ok("archive", record.title, record.id))

    def patch(self, patch: FreshnessPatch) -> Receipt:
        """Update only the freshness fields the patch carries."""
        fields = patch.to_fields()
        if self.dry_run:
            logger.info(f"[dry-run] would patch {patch.title}: {fields.provided()}")
            return self._record(Receipt.skipped("patch", patch.title, patch.record_id, "dry_run"))

        try:
            self.client.patch_record(patch.record_id, fields)
        except MirrorWriteError as e:
            return self._record(self._failed(e, patch.title, patch.record_id, fields))

        return self._record(Receipt.ok(
            "patch", patch.title, patch.record_id,
            details={"fields": fields.model_dump(mode="json", exclude_none=True)},
        ))

    # ─── Summary ────────────────────────────────────────────

    def titles(self, operation: str, status: str = "ok") -> List[str]:
        return [r.title for r in self.receipts if r.operation == operation and r.status == status]

    @property
    def failures(self) -> List[Receipt]:
        return [r for r in self.receipts if r.status == "failed"]
