"""Shared test fixtures."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from netscore.models.schemas import RepoDetails

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def make_details():
    """Factory for RepoDetails with sensible defaults."""

    def _make(**overrides) -> RepoDetails:
        values = {
            "owner": "octo",
            "repo": "widgets",
            "created_at": NOW - timedelta(days=1000),
            "license": "MIT",
        }
        values.update(overrides)
        return RepoDetails(**values)

    return _make


@pytest.fixture()
def make_tree(tmp_path: Path):
    """Create files under tmp_path from a {relative_path: content} mapping.

    A value of None creates an empty directory.
    """

    def _make(files: dict[str, str | None]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            if content is None:
                path.mkdir(parents=True, exist_ok=True)
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content)
        return tmp_path

    return _make


@pytest.fixture(autouse=True)
def _reset_netscore_logger():
    """Leave the package logger without handlers between tests."""
    yield
    logger = logging.getLogger("netscore")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
