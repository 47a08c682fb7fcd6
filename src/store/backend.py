"""Coordination store adapter contract.

The versioning engine only talks to a backend through these primitives.
A real store (Consul) or an in-process double plugs in at this seam.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Protocol, TypeVar

from core.errors import TskvBackendError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)


class KeyValueBackend(Protocol):
    """Primitive operations required from a coordination store."""

    def setup(self) -> None: ...

    def teardown(self) -> None: ...

    def get_key(self, address: str) -> bytes | None: ...

    def save_key(self, address: str, payload: bytes) -> None: ...

    def get_keys(self, prefix: str, separator: str) -> list[str]: ...

    def delete_keys(self, prefix: str) -> None: ...

    def lock(self, name: str, token: str) -> None: ...

    def unlock(self, name: str) -> None: ...


BackendT = TypeVar("BackendT", bound=KeyValueBackend)


@contextmanager
def backend_session(backend: BackendT) -> Iterator[BackendT]:
    """Bracket a backend session with setup and teardown.

    Args:
        backend: Backend to open.

    Yields:
        The opened backend.

    Raises:
        TskvBackendUnavailableError: If setup cannot reach the store.
        TskvBackendError: If teardown fails after the body completed. When
            the body raised, a teardown failure is logged and the body's
            error propagates.
    """
    backend.setup()
    _LOGGER.debug("backend_session_opened", backend=type(backend).__name__)
    try:
        yield backend
    except BaseException:
        _teardown_after_failure(backend)
        raise
    backend.teardown()
    _LOGGER.debug("backend_session_closed", backend=type(backend).__name__)


def _teardown_after_failure(backend: KeyValueBackend) -> None:
    """Tear down after a failed body without masking the body's error."""
    try:
        backend.teardown()
    except TskvBackendError as error:
        _LOGGER.error(
            "backend_teardown_failed",
            backend=type(backend).__name__,
            error=str(error),
        )


def list_children(keys: list[str], prefix: str, separator: str) -> list[str]:
    """Apply Consul ``keys`` listing semantics to a key collection.

    Each key under ``prefix`` is truncated just after the first separator
    past the prefix, so nested keys collapse into one folder entry.

    Args:
        keys: Candidate keys in any order.
        prefix: Listing prefix.
        separator: Hierarchy separator; empty lists keys unchanged.

    Returns:
        Sorted, de-duplicated listing.
    """
    listing: set[str] = set()
    for key in keys:
        if not key.startswith(prefix):
            continue
        if separator:
            remainder = key[len(prefix):]
            cut = remainder.find(separator)
            if cut >= 0:
                key = prefix + remainder[: cut + len(separator)]
        listing.add(key)
    return sorted(listing)
