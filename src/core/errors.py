"""tskv exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class TskvError(Exception):
    """Base exception for all tskv failures."""


class TskvConfigError(TskvError):
    """Raised for invalid runtime configuration."""


class TskvStoreError(TskvError):
    """Raised for versioning engine and record failures."""


class TskvNotFoundError(TskvStoreError):
    """Raised when an explicitly tagged version was never written."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(
            f"No version stored at '{address}'. "
            "Use list to discover the tags written for this key."
        )


class TskvMalformedError(TskvStoreError):
    """Raised when a record cannot interpret a stored payload."""


class TskvPartialSaveError(TskvStoreError):
    """Raised when the archive write succeeded but the live write failed."""

    def __init__(self, archived_path: str, tag: str) -> None:
        self.archived_path = archived_path
        self.tag = tag
        super().__init__(
            f"Archived '{archived_path}' under tag '{tag}' but the live pointer "
            "was not updated. Re-run the save or roll back to reconcile."
        )


class TskvBackendError(TskvError):
    """Raised for coordination store I/O failures."""


class TskvBackendUnavailableError(TskvBackendError):
    """Raised when the coordination store cannot be reached."""


class TskvLockContentionError(TskvError):
    """Raised when a lock is already held."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Lock '{name}' is already held. "
            "Wait for the holder to release it or for its session to expire."
        )
