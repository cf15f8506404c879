"""
Integration tests for the sync run lifecycle.

These tests drive run_sync end to end against in-memory clients and check
the properties a run must hold: idempotence, join coverage, no clobbering
and containment of per-record failures.
"""

import json
from datetime import date

import pytest

from tests.fakes import FakeMirror, FakeSource, make_record, make_star

from starsync.engine.run import SyncResult, generate_run_id, run_sync
from starsync.errors import MirrorFetchError, SourceFetchError
from starsync.persistence.audit import AuditWriter

JAN_1 = date(2023, 1, 1)
FEB_1 = date(2023, 2, 1)
MAR_1 = date(2023, 3, 1)


@pytest.fixture
def populated():
    """Mirror holds {A, B}; stars are {B, C}."""
    source = FakeSource([make_star("B"), make_star("C")])
    source.set_signals("B", release=JAN_1, commit=FEB_1)
    source.set_signals("C", release=MAR_1, commit=MAR_1)
    mirror = FakeMirror([
        make_record("A"),
        make_record("B", release=JAN_1, commit=FEB_1),
    ])
    return source, mirror


class TestRunSync:
    """Tests for run_sync."""

    def test_create_archive_and_check(self, populated):
        """create(C), archive(A), and a freshness check on B only."""
        source, mirror = populated

        result = run_sync(source, mirror)

        assert result.created == ["C"]
        assert result.archived == ["A"]
        assert result.patched == []
        assert result.checked == 1
        checked = {name for kind, name in source.lookups}
        # C is looked up once, to be created with its current dates
        assert checked == {"B", "C"}
        assert source.lookups.count(("release", "B")) == 1

    def test_operations_are_ordered(self, populated):
        """All creates, then all archives, then patches."""
        source, mirror = populated
        source.set_signals("B", release=JAN_1, commit=MAR_1)

        run_sync(source, mirror)

        assert [op for op, _, _ in mirror.calls] == ["create", "archive", "patch"]

    def test_join_coverage(self, populated):
        """Live titles equal starred names after the run."""
        source, mirror = populated

        run_sync(source, mirror)

        assert mirror.live_titles() == {"B", "C"}

    def test_second_run_is_idempotent(self, populated):
        """Nothing is written when the sources have not moved."""
        source, mirror = populated
        run_sync(source, mirror)
        writes_after_first = len(mirror.calls)

        second = run_sync(source, mirror)

        assert len(mirror.calls) == writes_after_first
        assert second.writes == 0
        assert second.checked == 2

    def test_new_records_are_born_fresh(self, populated):
        """A created record already holds the observed dates."""
        source, mirror = populated

        run_sync(source, mirror)

        created = next(r for r in mirror.records.values() if r.title == "C")
        assert created.stored_release_date == MAR_1
        assert created.stored_commit_date == MAR_1

    def test_commit_change_patches_commit_only(self, populated):
        """Release unchanged, commit moved: one patch without the release."""
        source, mirror = populated
        source.set_signals("B", release=JAN_1, commit=MAR_1)

        result = run_sync(source, mirror)

        patches = mirror.writes("patch")
        assert len(patches) == 1
        assert patches[0][2].provided() == ["commit"]
        assert result.patched == ["B"]

    def test_patch_never_empty(self, populated):
        """Every patch sent carries at least one field."""
        source, mirror = populated
        source.set_signals("B", release=MAR_1, commit=MAR_1)

        run_sync(source, mirror)

        for _, _, fields in mirror.writes("patch"):
            assert fields.provided()

    def test_per_record_failures_do_not_abort(self, populated):
        """A failed create is reported; archives and checks still run."""
        source, mirror = populated
        mirror.fail_on.add(("create", "C"))
        source.set_signals("B", release=JAN_1, commit=MAR_1)

        result = run_sync(source, mirror)

        assert result.created == []
        assert result.archived == ["A"]
        assert result.patched == ["B"]
        assert len(result.errors) == 1
        assert "create C" in result.errors[0]
        assert result.success is False

    def test_failed_create_is_retried_next_run(self, populated):
        """Stars whose creation failed are picked up again."""
        source, mirror = populated
        mirror.fail_on.add(("create", "C"))
        run_sync(source, mirror)
        mirror.fail_on.clear()

        result = run_sync(source, mirror)

        assert result.created == ["C"]

    def test_source_fetch_failure_is_fatal(self, populated):
        """No writes happen when stars cannot be listed."""
        source, mirror = populated
        source.fail_listing = True

        with pytest.raises(SourceFetchError):
            run_sync(source, mirror)
        assert mirror.calls == []

    def test_mirror_fetch_failure_is_fatal(self, populated):
        """No writes happen when the database cannot be queried."""
        source, mirror = populated
        mirror.fail_query = True

        with pytest.raises(MirrorFetchError):
            run_sync(source, mirror)
        assert mirror.calls == []

    def test_dry_run_writes_nothing(self, populated):
        """Dry run reports the plan and leaves the mirror alone."""
        source, mirror = populated

        result = run_sync(source, mirror, dry_run=True)

        assert mirror.calls == []
        assert result.dry_run is True
        assert result.planned_create == ["C"]
        assert result.planned_archive == ["A"]
        assert result.writes == 0

    def test_audit_trail(self, populated, tmp_path):
        """A run writes start, plan, mutations and end events."""
        source, mirror = populated
        audit_path = tmp_path / "audit" / "sync.ndjson"

        result = run_sync(source, mirror, audit_writer=AuditWriter(audit_path))

        events = [json.loads(line) for line in audit_path.read_text().splitlines()]
        assert [e["type"] for e in events] == [
            "run_start",
            "plan_computed",
            "record_created",
            "record_archived",
            "run_end",
        ]
        assert {e["run_id"] for e in events} == {result.run_id}
        assert events[1]["details"] == {"create": ["C"], "archive": ["A"], "check": ["B"]}


class TestRunId:
    """Tests for run id generation."""

    def test_format(self):
        run_id = generate_run_id()
        assert run_id.startswith("R-")
        assert len(run_id.split("-")) == 3

    def test_unique(self):
        assert generate_run_id() != generate_run_id()


class TestSyncResult:
    """Tests for SyncResult helpers."""

    def test_writes_and_success(self):
        result = SyncResult(run_id="R", started_at="now", created=["a"], patched=["b", "c"])
        assert result.writes == 3
        assert result.success is True
