"""In-process coordination store.

This backend keeps keys and locks in dictionaries guarded by a mutex.
It is used for tests and local runs without a Consul agent.
"""

from __future__ import annotations

import threading

from core.errors import TskvBackendUnavailableError, TskvLockContentionError
from core.logging_config import get_logger
from store.backend import list_children

_LOGGER = get_logger(__name__)


class MemoryBackend:
    """Dictionary-backed implementation of ``KeyValueBackend``."""

    def __init__(self) -> None:
        self._entries: dict[str, bytes] = {}
        self._locks: dict[str, str] = {}
        self._mutex = threading.Lock()
        self._open = False

    def setup(self) -> None:
        with self._mutex:
            self._open = True

    def teardown(self) -> None:
        """Close the session and release every held lock."""
        with self._mutex:
            released = len(self._locks)
            self._locks.clear()
            self._open = False
        if released:
            _LOGGER.info("session_locks_released", count=released)

    def get_key(self, address: str) -> bytes | None:
        with self._mutex:
            self._require_open()
            return self._entries.get(address)

    def save_key(self, address: str, payload: bytes) -> None:
        with self._mutex:
            self._require_open()
            self._entries[address] = bytes(payload)

    def get_keys(self, prefix: str, separator: str) -> list[str]:
        with self._mutex:
            self._require_open()
            return list_children(list(self._entries), prefix, separator)

    def delete_keys(self, prefix: str) -> None:
        with self._mutex:
            self._require_open()
            for address in [item for item in self._entries if item.startswith(prefix)]:
                del self._entries[address]

    def lock(self, name: str, token: str) -> None:
        """Acquire a lock; any existing holder, same token included, is contention."""
        with self._mutex:
            self._require_open()
            if name in self._locks:
                raise TskvLockContentionError(name)
            self._locks[name] = token

    def unlock(self, name: str) -> None:
        with self._mutex:
            self._require_open()
            self._locks.pop(name, None)

    def holder(self, name: str) -> str | None:
        """Return the token currently holding a lock, if any."""
        with self._mutex:
            return self._locks.get(name)

    def _require_open(self) -> None:
        if not self._open:
            raise TskvBackendUnavailableError(
                "Memory backend session is not open. "
                "Call setup() or use backend_session() before issuing operations."
            )
