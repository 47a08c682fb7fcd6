"""Consul coordination store adapter.

This module maps backend primitives onto the Consul HTTP API using httpx.
Locks are Consul KV acquisitions bound to a session created at setup.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from core.config import TskvConfig
from core.constants import DEFAULT_SESSION_NAME, LOCK_PREFIX
from core.errors import (
    TskvBackendError,
    TskvBackendUnavailableError,
    TskvLockContentionError,
)
from core.logging_config import get_logger
from core.tree import join_path

_LOGGER = get_logger(__name__)


class ConsulBackend:
    """Consul-backed implementation of ``KeyValueBackend``.

    One instance owns one httpx client and one Consul session for the
    lifetime between ``setup`` and ``teardown``.
    """

    def __init__(
        self,
        config: TskvConfig,
        transport: httpx.BaseTransport | None = None,
        session_name: str = DEFAULT_SESSION_NAME,
    ) -> None:
        """Create an unopened Consul adapter.

        Args:
            config: Runtime configuration with address, token and timeouts.
            transport: Optional httpx transport, used by tests.
            session_name: Name given to the Consul session.
        """
        self._config = config
        self._transport = transport
        self._session_name = session_name
        self._client: httpx.Client | None = None
        self._session_id: str | None = None

    @property
    def session_id(self) -> str | None:
        return self._session_id

    def setup(self) -> None:
        """Open the HTTP client, check reachability and create a session.

        Raises:
            TskvBackendUnavailableError: If Consul has no leader or cannot be reached.
        """
        self._client = self._build_client()
        try:
            leader = self._request("GET", "/v1/status/leader").json()
            if not leader:
                raise TskvBackendUnavailableError(
                    f"Consul at {self._config.consul_addr} reports no cluster leader. "
                    "Wait for the cluster to elect a leader and retry."
                )
            payload = {
                "Name": self._session_name,
                "TTL": self._config.session_ttl,
                "Behavior": "release",
            }
            session = self._request("PUT", "/v1/session/create", json=payload).json()
            self._session_id = str(session["ID"])
        except Exception:
            self._close_client()
            raise
        _LOGGER.info(
            "consul_session_created",
            consul_addr=self._config.consul_addr,
            session_id=self._session_id,
            leader=leader,
        )

    def teardown(self) -> None:
        """Destroy the session, releasing its locks, and close the client."""
        if self._client is None:
            return
        try:
            if self._session_id is not None:
                self._request("PUT", f"/v1/session/destroy/{self._session_id}")
                _LOGGER.info("consul_session_destroyed", session_id=self._session_id)
        finally:
            self._session_id = None
            self._close_client()

    def get_key(self, address: str) -> bytes | None:
        response = self._request("GET", _kv_path(address), params={"raw": ""}, allow_missing=True)
        if response is None:
            return None
        return response.content

    def save_key(self, address: str, payload: bytes) -> None:
        response = self._request("PUT", _kv_path(address), content=payload)
        if response.json() is not True:
            raise TskvBackendError(
                f"Consul rejected write to '{address}'. Check the key and ACL token permissions."
            )

    def get_keys(self, prefix: str, separator: str) -> list[str]:
        """List keys under a prefix, folded at the separator.

        Args:
            prefix: Key prefix.
            separator: Hierarchy separator; empty lists every key.

        Returns:
            Keys in Consul's listing order; empty when nothing matches.
        """
        params = {"keys": ""}
        if separator:
            params["separator"] = separator
        response = self._request("GET", _kv_path(prefix), params=params, allow_missing=True)
        if response is None:
            return []
        return [str(item) for item in response.json()]

    def delete_keys(self, prefix: str) -> None:
        self._request("DELETE", _kv_path(prefix), params={"recurse": ""})

    def lock(self, name: str, token: str) -> None:
        """Acquire a session lock on ``lock/<name>`` with the token as value.

        Raises:
            TskvLockContentionError: If any session already holds the lock.
        """
        address = join_path(LOCK_PREFIX, name)
        existing = self._request("GET", _kv_path(address), allow_missing=True)
        if existing is not None and _held_by_session(existing.json()):
            raise TskvLockContentionError(name)
        response = self._request(
            "PUT",
            _kv_path(address),
            params={"acquire": self._require_session()},
            content=token.encode("utf-8"),
        )
        if response.json() is not True:
            raise TskvLockContentionError(name)

    def unlock(self, name: str) -> None:
        """Release a lock; releasing an unheld or missing lock succeeds.

        Consul refuses to release a lock held by another session. That case
        still returns, but is logged as ``lock_release_ignored`` since the
        lock stays held.
        """
        address = join_path(LOCK_PREFIX, name)
        response = self._request(
            "PUT",
            _kv_path(address),
            params={"release": self._require_session()},
            allow_missing=True,
        )
        if response is None or response.json() is True:
            return
        existing = self._request("GET", _kv_path(address), allow_missing=True)
        holder_session = _holder_session(existing.json()) if existing is not None else None
        if holder_session:
            _LOGGER.warning(
                "lock_release_ignored",
                name=name,
                holder_session=holder_session,
                session_id=self._session_id,
            )

    def _build_client(self) -> httpx.Client:
        headers: dict[str, str] = {}
        if self._config.consul_token:
            headers["X-Consul-Token"] = self._config.consul_token
        transport = self._transport or httpx.HTTPTransport(retries=self._config.request_retries)
        return httpx.Client(
            base_url=self._config.consul_addr,
            headers=headers,
            timeout=self._config.request_timeout,
            transport=transport,
        )

    def _close_client(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _require_session(self) -> str:
        if self._session_id is None:
            raise TskvBackendUnavailableError(
                "Consul session is not open. Call setup() before acquiring locks."
            )
        return self._session_id

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        content: bytes | None = None,
        json: Any = None,
        allow_missing: bool = False,
    ) -> httpx.Response | None:
        """Issue a Consul API request and map failures onto tskv errors.

        Args:
            method: HTTP method.
            path: API path below the Consul address.
            params: Query parameters.
            content: Raw request body.
            json: JSON request body.
            allow_missing: Return None instead of failing on 404.

        Returns:
            Response, or None for an allowed 404.

        Raises:
            TskvBackendUnavailableError: If Consul cannot be reached.
            TskvBackendError: If Consul answers with an error status.
        """
        if self._client is None:
            raise TskvBackendUnavailableError(
                "Consul client is not open. Call setup() or use backend_session() first."
            )
        try:
            response = self._client.request(method, path, params=params, content=content, json=json)
        except httpx.TransportError as error:
            raise TskvBackendUnavailableError(
                f"Failed to reach Consul at {self._config.consul_addr}: {error}. "
                "Check TSKV_CONSUL_ADDR and that the agent is running."
            ) from error
        if allow_missing and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise TskvBackendError(
                f"Consul {method} {path} failed with status {response.status_code}: "
                f"{response.text.strip()}"
            )
        return response


def _kv_path(address: str) -> str:
    return "/v1/kv/" + quote(address, safe="/")


def _held_by_session(entries: Any) -> bool:
    return _holder_session(entries) is not None


def _holder_session(entries: Any) -> str | None:
    if not isinstance(entries, list) or not entries:
        return None
    session = entries[0].get("Session")
    return str(session) if session else None
