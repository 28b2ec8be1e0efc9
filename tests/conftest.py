"""
Pytest configuration og shared fixtures.
"""

import os
import time
from pathlib import Path

import pytest

from rotator.dependencies import reset_singletons


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before hver test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def log_root(tmp_path) -> Path:
    """Empty log root laid out as <root>/<namespace>/<pod>/."""
    root = tmp_path / "logs"
    root.mkdir()
    return root


@pytest.fixture
def make_file():
    """Create a file with given content (or sparse size) and optional age in seconds."""

    def _make_file(path: Path, content: bytes = b"", size: int = None, age_seconds: float = None):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(content)
            if size is not None:
                f.truncate(size)
        if age_seconds is not None:
            mtime = time.time() - age_seconds
            os.utime(path, (mtime, mtime))
        return path

    return _make_file
