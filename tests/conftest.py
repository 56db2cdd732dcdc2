"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
import tempfile
import shutil

from brb.notifications.events import build_event


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test artifacts."""
    dirpath = tempfile.mkdtemp()
    yield Path(dirpath)
    shutil.rmtree(dirpath, ignore_errors=True)


@pytest.fixture
def config_file(temp_dir, monkeypatch):
    """Write a config document and point BRB_CONFIG at it."""

    def _write(text: str) -> Path:
        path = temp_dir / "config.yml"
        path.write_text(text)
        monkeypatch.setenv("BRB_CONFIG", str(path))
        return path

    return _write


@pytest.fixture
def sample_event():
    """A finished `make test` run that failed with exit code 2."""
    started = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
    return build_event(
        ["make", "test"],
        cwd="/home/dev/project",
        started_at=started,
        finished_at=started + timedelta(seconds=4, milliseconds=250),
        exit_code=2,
        host="devbox",
    )
