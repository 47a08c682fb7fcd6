"""Version tag generation."""

from __future__ import annotations

import time
import uuid


def make_timestamp_tag() -> str:
    """Return a decimal nanosecond timestamp tag."""
    return str(time.time_ns())


def make_version_id() -> str:
    """Return a random uuid4 version identifier."""
    return str(uuid.uuid4())
