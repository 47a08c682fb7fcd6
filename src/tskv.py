"""Public SDK surface for tskv.

This module provides a stable import path for library users.
It re-exports the engine, records, backends and error types.
"""

from __future__ import annotations

from core.config import TskvConfig
from core.errors import (
    TskvBackendError,
    TskvBackendUnavailableError,
    TskvConfigError,
    TskvError,
    TskvLockContentionError,
    TskvMalformedError,
    TskvNotFoundError,
    TskvPartialSaveError,
    TskvStoreError,
)
from core.tags import make_timestamp_tag, make_version_id
from core.tree import Tree, join_path, make_tree
from store.backend import KeyValueBackend, backend_session
from store.consul_backend import ConsulBackend
from store.locking import held_lock
from store.memory_backend import MemoryBackend
from store.records import BlobRecord, JsonRecord, VersionedRecord
from store.versioned_store import VersionedStore

__all__ = [
    "BlobRecord",
    "ConsulBackend",
    "JsonRecord",
    "KeyValueBackend",
    "MemoryBackend",
    "Tree",
    "TskvBackendError",
    "TskvBackendUnavailableError",
    "TskvConfig",
    "TskvConfigError",
    "TskvError",
    "TskvLockContentionError",
    "TskvMalformedError",
    "TskvNotFoundError",
    "TskvPartialSaveError",
    "TskvStoreError",
    "VersionedRecord",
    "VersionedStore",
    "backend_session",
    "held_lock",
    "join_path",
    "make_timestamp_tag",
    "make_tree",
    "make_version_id",
]
