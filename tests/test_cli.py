"""
Tests for the starsync CLI — sync, plan and check-config.

Uses Click's CliRunner; the GitHub and Notion clients are replaced with the
in-memory fakes so no network is touched.
"""

from __future__ import annotations

import json
from datetime import date
from unittest import mock

import pytest
from click.testing import CliRunner

from tests.fakes import FakeMirror, FakeSource, make_record, make_star

from starsync.main import cli


# -- Fixtures -----------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def clients():
    """Patch both client classes; yields (source, mirror)."""
    source = FakeSource([make_star("B"), make_star("C")])
    source.set_signals("B", release=date(2023, 1, 1))
    mirror = FakeMirror([make_record("A"), make_record("B", release=date(2023, 1, 1))])

    with mock.patch("starsync.main.GitHubClient") as github_cls, \
            mock.patch("starsync.main.NotionClient") as notion_cls:
        github_cls.from_settings.return_value = source
        notion_cls.from_settings.return_value = mirror
        yield source, mirror


# -- sync ---------------------------------------------------------------------

class TestSyncCommand:
    """Tests for `starsync sync`."""

    def test_missing_config_exits_1(self, runner, clean_env):
        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 1
        assert "GITHUB_TOKEN" in result.output

    def test_successful_run(self, runner, sync_env, clients):
        source, mirror = clients

        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 0, result.output
        assert "Created:   1" in result.output
        assert "Archived:  1" in result.output
        assert mirror.live_titles() == {"B", "C"}

    def test_record_failures_still_exit_0(self, runner, sync_env, clients):
        """Per-record failures are reported, not fatal."""
        source, mirror = clients
        mirror.fail_on.add(("archive", "A"))

        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 0
        assert "1 record(s) failed" in result.output
        assert "archive A" in result.output

    def test_fetch_failure_exits_1(self, runner, sync_env, clients):
        source, mirror = clients
        mirror.fail_query = True

        result = runner.invoke(cli, ["sync"])

        assert result.exit_code == 1
        assert "Sync aborted" in result.output
        assert mirror.calls == []

    def test_dry_run(self, runner, sync_env, clients):
        source, mirror = clients

        result = runner.invoke(cli, ["sync", "--dry-run"])

        assert result.exit_code == 0
        assert mirror.calls == []
        assert "Dry run" in result.output

    def test_audit_file(self, runner, sync_env, clients, tmp_path):
        audit_path = tmp_path / "audit.ndjson"

        result = runner.invoke(cli, ["sync", "--audit-file", str(audit_path)])

        assert result.exit_code == 0
        types = [json.loads(line)["type"] for line in audit_path.read_text().splitlines()]
        assert types[0] == "run_start"
        assert types[-1] == "run_end"


# -- plan ---------------------------------------------------------------------

class TestPlanCommand:
    """Tests for `starsync plan`."""

    def test_plan_json(self, runner, sync_env, clients):
        source, mirror = clients

        result = runner.invoke(cli, ["--log-level", "ERROR", "plan", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {"create": ["C"], "archive": ["A"], "check": ["B"]}
        assert mirror.calls == []

    def test_plan_text(self, runner, sync_env, clients):
        result = runner.invoke(cli, ["plan"])

        assert result.exit_code == 0
        assert "Create (1)" in result.output
        assert "• A" in result.output


# -- check-config -------------------------------------------------------------

class TestCheckConfigCommand:
    """Tests for `starsync check-config`."""

    def test_ready(self, runner, sync_env):
        result = runner.invoke(cli, ["check-config"])

        assert result.exit_code == 0
        assert "Ready to sync" in result.output

    def test_incomplete_shows_guidance(self, runner, clean_env):
        result = runner.invoke(cli, ["check-config"])

        assert result.exit_code == 1
        assert "Setup Guide" in result.output
        assert "NOTION_DATABASE_ID" in result.output

    def test_json_output(self, runner, clean_env):
        result = runner.invoke(cli, ["--log-level", "ERROR", "check-config", "--json"])

        data = json.loads(result.output)
        assert result.exit_code == 1
        assert data["github"]["configured"] is False
