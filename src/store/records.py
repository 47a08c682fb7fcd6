"""Versioned record contract and built-in record types.

Every value the versioning engine stores implements ``VersionedRecord``.
The contract is a capability set, so content types implement it
independently instead of sharing a base class.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Protocol

from core.errors import TskvMalformedError, TskvStoreError
from core.tree import Tree, join_path


class VersionedRecord(Protocol):
    """Capabilities required from any storable value."""

    def key(self) -> str: ...

    def make_path(self, tree: Tree | None) -> str: ...

    def marshal(self) -> bytes: ...

    def unmarshal(self, payload: bytes | None) -> None: ...

    def save_id(self, identifier: str) -> None: ...

    def is_compressed(self) -> bool: ...


def record_path(key: str, tree: Tree | None) -> str:
    """Return the address of a key below an optional tree.

    Args:
        key: Record key, possibly containing separators.
        tree: Namespace tree, or None for the namespace-free location.

    Returns:
        Joined address.
    """
    if tree is None:
        return join_path(key)
    return join_path(tree.make_path(), key)


def _validate_key(key: str) -> str:
    if not key or not key.strip("/"):
        raise TskvStoreError(
            f"Invalid record key '{key}': expected a non-empty key. "
            "Pass a key such as 'service/config'."
        )
    return key


class BlobRecord:
    """Opaque byte content stored as-is.

    Absent content is kept as an empty byte string, never None.
    """

    def __init__(self, key: str, content: bytes | None = None) -> None:
        self._key = _validate_key(key)
        self.content = content if content is not None else b""
        self.saved_as: str | None = None

    def key(self) -> str:
        return self._key

    def make_path(self, tree: Tree | None) -> str:
        return record_path(self._key, tree)

    def marshal(self) -> bytes:
        return self.content

    def unmarshal(self, payload: bytes | None) -> None:
        self.content = payload if payload is not None else b""

    def save_id(self, identifier: str) -> None:
        self.saved_as = identifier

    def is_compressed(self) -> bool:
        return False


class JsonRecord:
    """JSON object content encoded as UTF-8 with sorted keys."""

    def __init__(self, key: str, document: Mapping[str, Any] | None = None) -> None:
        self._key = _validate_key(key)
        self.document: dict[str, Any] = dict(document or {})
        self.saved_as: str | None = None

    def key(self) -> str:
        return self._key

    def make_path(self, tree: Tree | None) -> str:
        return record_path(self._key, tree)

    def marshal(self) -> bytes:
        return json.dumps(self.document, sort_keys=True).encode("utf-8")

    def unmarshal(self, payload: bytes | None) -> None:
        """Decode a JSON object payload.

        Args:
            payload: Stored bytes; empty or None decodes to an empty object.

        Raises:
            TskvMalformedError: If payload is not a UTF-8 JSON object.
        """
        if not payload:
            self.document = {}
            return
        try:
            decoded = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as error:
            raise TskvMalformedError(
                f"Failed to decode JSON content for key '{self._key}': {error}. "
                "Re-save the key with a valid JSON object."
            ) from error
        if not isinstance(decoded, dict):
            raise TskvMalformedError(
                f"Failed to decode JSON content for key '{self._key}': "
                "expected JSON object at top level."
            )
        self.document = decoded

    def save_id(self, identifier: str) -> None:
        self.saved_as = identifier

    def is_compressed(self) -> bool:
        return False
