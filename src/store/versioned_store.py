"""Versioning engine over a coordination store.

This module translates save, get, history and rollback operations into
backend primitives. Key space layout:

    <namespace>/<key>/<tag>      archived versions
    <namespace>/<key>/latest     latest archived content
    <key>/<tag>, <key>/latest    namespace-free live mirror

The engine holds no state beyond its backend handle. Save performs two
sequential writes that are not atomic; callers needing mutual exclusion
wrap saves in ``held_lock``.
"""

from __future__ import annotations

from core.constants import (
    DEFAULT_ROLLBACK_POLICY,
    LATEST_TAG,
    PATH_SEPARATOR,
    ROLLBACK_POLICY_ARCHIVE,
    SUPPORTED_ROLLBACK_POLICIES,
)
from core.errors import TskvConfigError, TskvNotFoundError, TskvPartialSaveError
from core.logging_config import get_logger
from core.tags import make_timestamp_tag, make_version_id
from core.tree import Tree, join_path
from store.backend import KeyValueBackend
from store.records import VersionedRecord

_LOGGER = get_logger(__name__)


class VersionedStore:
    """Tagged, append-only versioning engine."""

    def __init__(
        self,
        backend: KeyValueBackend,
        rollback_policy: str = DEFAULT_ROLLBACK_POLICY,
    ) -> None:
        """Bind the engine to an opened backend.

        Args:
            backend: Backend whose session the caller manages.
            rollback_policy: ``mirror`` to refresh the live pointer on
                rollback, ``archive`` to re-save under the namespace only.

        Raises:
            TskvConfigError: If the rollback policy is unknown.
        """
        if rollback_policy not in SUPPORTED_ROLLBACK_POLICIES:
            raise TskvConfigError(
                f"Unsupported rollback policy '{rollback_policy}'. "
                f"Supported: {', '.join(SUPPORTED_ROLLBACK_POLICIES)}."
            )
        self._backend = backend
        self._rollback_policy = rollback_policy

    @property
    def rollback_policy(self) -> str:
        return self._rollback_policy

    def save(self, record: VersionedRecord, tree: Tree, tag: str | None = None) -> str:
        """Save a new version to the archive and the live mirror.

        Args:
            record: Record whose marshalled content is written.
            tree: Namespace holding the archived history.
            tag: Version label; a nanosecond timestamp when omitted.

        Returns:
            Tag the version was saved under.

        Raises:
            TskvBackendError: If the archive write fails.
            TskvPartialSaveError: If the archive write succeeded but the
                live mirror write failed.
        """
        version_tag = tag or make_timestamp_tag()
        self._save_tag(record, tree, version_tag)
        try:
            self._save_tag(record, None, version_tag)
        except Exception as error:
            _LOGGER.error(
                "live_pointer_write_failed",
                key=record.key(),
                tag=version_tag,
                error=str(error),
            )
            raise TskvPartialSaveError(record.make_path(tree), version_tag) from error
        return version_tag

    def save_version(self, record: VersionedRecord, tree: Tree) -> str:
        """Save a new version under a random uuid tag."""
        return self.save(record, tree, make_version_id())

    def get(self, record: VersionedRecord, tree: Tree | None = None) -> bytes:
        """Load the latest content of a key into the record.

        A key that was never written is not an error: the record receives
        empty content.

        Args:
            record: Record to populate.
            tree: Namespace to read from; None reads the live mirror.

        Returns:
            Marshalled content after loading.
        """
        address = join_path(record.make_path(tree), LATEST_TAG)
        payload = self._backend.get_key(address)
        record.unmarshal(payload if payload is not None else b"")
        _LOGGER.debug("latest_read", address=address, found=payload is not None)
        return record.marshal()

    def get_version(self, record: VersionedRecord, tree: Tree | None, tag: str) -> bytes:
        """Load one tagged version of a key into the record.

        Args:
            record: Record to populate.
            tree: Namespace to read from; None reads the live mirror.
            tag: Exact tag previously written, or ``latest``.

        Returns:
            Marshalled content after loading.

        Raises:
            TskvNotFoundError: If the tag was never written for this key.
        """
        address = join_path(record.make_path(tree), tag)
        payload = self._backend.get_key(address)
        if payload is None:
            raise TskvNotFoundError(address)
        record.unmarshal(payload)
        record.save_id(tag)
        _LOGGER.debug("version_read", address=address, tag=tag)
        return record.marshal()

    def get_versions(self, record: VersionedRecord, tree: Tree | None) -> list[str]:
        """List every tag written for a key, ``latest`` included.

        Args:
            record: Record identifying the key.
            tree: Namespace to list; None lists the live mirror.

        Returns:
            Tags in backend listing order; empty for an unknown key.
        """
        prefix = record.make_path(tree) + PATH_SEPARATOR
        tags: list[str] = []
        for address in self._backend.get_keys(prefix, PATH_SEPARATOR):
            label = address[len(prefix):]
            if not label or label.endswith(PATH_SEPARATOR):
                continue
            tags.append(label)
        return tags

    def rollback(self, record: VersionedRecord, tree: Tree, tag: str) -> str:
        """Re-save an earlier version as a brand-new timestamped version.

        Later versions are never deleted. Under the ``mirror`` policy the
        live pointer is refreshed like a normal save; under ``archive`` only
        the namespace copy is written.

        Args:
            record: Record identifying the key; receives the restored content.
            tree: Namespace holding the history.
            tag: Tag to restore.

        Returns:
            Tag of the newly written version.

        Raises:
            TskvNotFoundError: If the tag was never written.
        """
        self.get_version(record, tree, tag)
        new_tag = make_timestamp_tag()
        if self._rollback_policy == ROLLBACK_POLICY_ARCHIVE:
            self._save_tag(record, tree, new_tag)
        else:
            self.save(record, tree, new_tag)
        _LOGGER.info(
            "rollback_completed",
            key=record.key(),
            restored_tag=tag,
            new_tag=new_tag,
            policy=self._rollback_policy,
        )
        return new_tag

    def delete(self, record: VersionedRecord, tree: Tree | None = None) -> None:
        """Delete every version of a key below a namespace."""
        prefix = record.make_path(tree) + PATH_SEPARATOR
        self._backend.delete_keys(prefix)
        _LOGGER.info("versions_deleted", prefix=prefix)

    def lock(self, name: str, holder_token: str) -> None:
        """Acquire an advisory lock.

        Raises:
            TskvLockContentionError: If the lock is already held.
        """
        self._backend.lock(name, holder_token)
        _LOGGER.info("lock_acquired", name=name, holder=holder_token)

    def unlock(self, name: str) -> None:
        """Release an advisory lock; unheld locks release silently."""
        self._backend.unlock(name)
        _LOGGER.info("lock_released", name=name)

    def _save_tag(self, record: VersionedRecord, tree: Tree | None, tag: str) -> None:
        """Write content under the tag and under ``latest`` for one location."""
        base_path = record.make_path(tree)
        payload = record.marshal()
        self._backend.save_key(join_path(base_path, tag), payload)
        if tag != LATEST_TAG:
            self._backend.save_key(join_path(base_path, LATEST_TAG), payload)
        record.save_id(tag)
        _LOGGER.info(
            "version_saved",
            path=base_path,
            tag=tag,
            size_bytes=len(payload),
            compressed=record.is_compressed(),
        )
