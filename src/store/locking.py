"""Advisory lock helpers for callers guarding writes."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from store.versioned_store import VersionedStore


@contextmanager
def held_lock(store: VersionedStore, name: str, holder_token: str) -> Iterator[None]:
    """Hold an advisory lock for the duration of a block.

    Args:
        store: Versioning engine whose backend owns the lock.
        name: Lock name.
        holder_token: Token identifying the holder.

    Raises:
        TskvLockContentionError: If the lock is already held.
    """
    store.lock(name, holder_token)
    try:
        yield
    finally:
        store.unlock(name)
