"""Core constants used across tskv modules.

This module centralizes key-space literals and configuration defaults.
Keeping values here avoids magic strings in the versioning engine.
"""

from __future__ import annotations

TSKV_VERSION = "0.0.1"
PATH_SEPARATOR = "/"
UNKNOWN_SEGMENT = "unknown"
ARCHIVE_NAMESPACE = "archive"
LATEST_TAG = "latest"
LOCK_PREFIX = "lock"
DEFAULT_CONSUL_ADDR = "127.0.0.1:8500"
DEFAULT_CONSUL_SCHEME = "http"
DEFAULT_SESSION_TTL = "15s"
MIN_SESSION_TTL_SECONDS = 10
MAX_SESSION_TTL_SECONDS = 86400
DEFAULT_SESSION_NAME = "tskv"
DEFAULT_REQUEST_TIMEOUT = 5.0
DEFAULT_REQUEST_RETRIES = 3
ROLLBACK_POLICY_MIRROR = "mirror"
ROLLBACK_POLICY_ARCHIVE = "archive"
SUPPORTED_ROLLBACK_POLICIES = (ROLLBACK_POLICY_MIRROR, ROLLBACK_POLICY_ARCHIVE)
DEFAULT_ROLLBACK_POLICY = ROLLBACK_POLICY_MIRROR
