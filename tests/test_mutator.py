"""
Tests for the Mirror Mutator.
"""

import json
from datetime import date

from tests.fakes import FakeMirror, make_record, make_star

from starsync.engine.mutator import MirrorMutator
from starsync.models.repo import FreshnessPatch
from starsync.persistence.audit import AuditWriter


class TestCreate:
    """Tests for MirrorMutator.create."""

    def test_create_populates_fields(self):
        """Title, owner, URL and observed dates are sent."""
        mirror = FakeMirror()
        repo = make_star("tool", owner="octo").model_copy(
            update={"latest_release_date": date(2024, 5, 1)}
        )

        receipt = MirrorMutator(mirror).create(repo)

        assert receipt.status == "ok"
        _, _, fields = mirror.writes("create")[0]
        assert fields.title == "tool"
        assert fields.owner == "octo"
        assert fields.url == "https://github.com/octo/tool"
        assert fields.release == date(2024, 5, 1)
        assert fields.commit is None

    def test_create_failure_returns_failed_receipt(self):
        """A failing create is captured, never raised."""
        mirror = FakeMirror()
        mirror.fail_on.add(("create", "tool"))
        mutator = MirrorMutator(mirror)

        receipt = mutator.create(make_star("tool"))

        assert receipt.status == "failed"
        assert receipt.error.code == "http_500"
        assert receipt.details["fields"]["title"] == "tool"
        assert mutator.failures == [receipt]
        assert mutator.created == []


class TestArchive:
    """Tests for MirrorMutator.archive."""

    def test_archive_marks_record(self):
        """Archiving calls the client once and flags the record."""
        record = make_record("old")
        mirror = FakeMirror([record])

        receipt = MirrorMutator(mirror).archive(record)

        assert receipt.status == "ok"
        assert mirror.records[record.id].archived is True
        assert record.archived is True

    def test_archive_twice_is_noop(self):
        """A second archive of the same record sends nothing."""
        record = make_record("old")
        mirror = FakeMirror([record])
        mutator = MirrorMutator(mirror)

        mutator.archive(record)
        second = mutator.archive(record)

        assert second.status == "skipped"
        assert second.details["skip_reason"] == "already_archived"
        assert len(mirror.writes("archive")) == 1

    def test_archive_already_archived_record(self):
        """A record that arrives archived is skipped without a call."""
        record = make_record("old", archived=True)
        mirror = FakeMirror([record])

        receipt = MirrorMutator(mirror).archive(record)

        assert receipt.status == "skipped"
        assert mirror.writes() == []

    def test_archive_failure_leaves_record_live(self):
        """A failed archive can be retried later."""
        record = make_record("old")
        mirror = FakeMirror([record])
        mirror.fail_on.add(("archive", "old"))
        mutator = MirrorMutator(mirror)

        receipt = mutator.archive(record)

        assert receipt.status == "failed"
        assert record.archived is False
        assert mutator.archive(record).status == "failed"


class TestPatch:
    """Tests for MirrorMutator.patch."""

    def test_patch_leaves_other_field_untouched(self):
        """A release-only patch keeps the stored commit date."""
        record = make_record("B", release=date(2023, 1, 1), commit=date(2023, 2, 1))
        mirror = FakeMirror([record])

        MirrorMutator(mirror).patch(
            FreshnessPatch(record_id=record.id, title="B", release=date(2023, 6, 1))
        )

        stored = mirror.records[record.id]
        assert stored.stored_release_date == date(2023, 6, 1)
        assert stored.stored_commit_date == date(2023, 2, 1)


class TestDryRun:
    """Dry-run mode writes nothing."""

    def test_dry_run_skips_all_writes(self):
        record = make_record("old")
        mirror = FakeMirror([record])
        mutator = MirrorMutator(mirror, dry_run=True)

        results = [
            mutator.create(make_star("new")),
            mutator.archive(record),
            mutator.patch(FreshnessPatch(record_id=record.id, title="old", commit=date(2024, 1, 1))),
        ]

        assert [r.status for r in results] == ["skipped"] * 3
        assert mirror.writes() == []


class TestAudit:
    """Receipts are written to the audit ledger."""

    def test_failures_are_audited_with_context(self, tmp_path):
        """Failed mutations carry the record and attempted fields."""
        audit_path = tmp_path / "audit.ndjson"
        record = make_record("B")
        mirror = FakeMirror([record])
        mirror.fail_on.add(("patch", "B"))
        mutator = MirrorMutator(mirror, run_id="R-1", audit_writer=AuditWriter(audit_path))

        mutator.patch(FreshnessPatch(record_id=record.id, title="B", commit=date(2024, 1, 2)))
        mutator.archive(record)

        events = [json.loads(line) for line in audit_path.read_text().splitlines()]
        assert [e["type"] for e in events] == ["mutation_failed", "record_archived"]
        failed = events[0]
        assert failed["level"] == "error"
        assert failed["run_id"] == "R-1"
        assert failed["details"]["record_id"] == record.id
        assert failed["details"]["operation"] == "patch"
        assert failed["details"]["details"]["fields"] == {"commit": "2024-01-02"}
