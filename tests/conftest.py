"""
Shared fixtures for sync tests.

Provides fake source/mirror clients and a clean environment so settings
never pick up credentials from the developer's shell.
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from tests.fakes import FakeMirror, FakeSource

SYNC_ENV = {
    "GITHUB_TOKEN": "ghp_test",
    "NOTION_TOKEN": "secret_test",
    "NOTION_DATABASE_ID": "db-123",
}


@pytest.fixture
def source():
    """Empty fake source; tests fill in stars and signals."""
    return FakeSource()


@pytest.fixture
def mirror():
    """Empty fake mirror database."""
    return FakeMirror()


@pytest.fixture
def clean_env():
    """Run with no environment variables at all."""
    with patch.dict(os.environ, {}, clear=True):
        yield


@pytest.fixture
def sync_env():
    """Run with a complete, minimal configuration."""
    with patch.dict(os.environ, SYNC_ENV, clear=True):
        yield
