"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def memory_backend() -> Iterator[object]:
    """Opened in-process backend, torn down after the test."""
    from store.backend import backend_session
    from store.memory_backend import MemoryBackend

    with backend_session(MemoryBackend()) as backend:
        yield backend
