"""Shared test configuration and fixtures."""

import os
import tempfile
from datetime import datetime, timezone

import pytest

# Configure the environment before application modules are imported
os.environ.setdefault("GITHUB_TOKEN", "test-token")
os.environ.setdefault("GITHUB_ORG", "test-org")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="orgsync-logs-"))

from clients.models import Page, Repository  # noqa: E402


def make_repository(name: str, repo_id: int, org: str = "test-org") -> Repository:
    """Build a repository model for tests."""
    return Repository(id=repo_id, name=name, owner=org, full_name=f"{org}/{name}")


def make_page(items, last=None, next_page=None, per_page=2) -> Page:
    """Build a page with optional last/next cursors."""
    return Page(
        items=items,
        last={"page": last, "per_page": per_page} if last else None,
        next={"page": next_page, "per_page": per_page} if next_page else None,
    )


@pytest.fixture
def repositories():
    """Three repositories of one organization."""
    return [
        make_repository("repo-a", 1),
        make_repository("repo-b", 2),
        make_repository("repo-c", 3),
    ]


@pytest.fixture
def now():
    """Fixed timestamp for issue payloads."""
    return datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
