"""Runtime configuration model for tskv.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    ARCHIVE_NAMESPACE,
    DEFAULT_CONSUL_ADDR,
    DEFAULT_CONSUL_SCHEME,
    DEFAULT_REQUEST_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_ROLLBACK_POLICY,
    DEFAULT_SESSION_TTL,
    MAX_SESSION_TTL_SECONDS,
    MIN_SESSION_TTL_SECONDS,
    SUPPORTED_ROLLBACK_POLICIES,
)
from core.errors import TskvConfigError


@dataclass(frozen=True)
class TskvConfig:
    """Validated runtime configuration.

    Attributes:
        consul_addr: Consul HTTP address including scheme.
        consul_token: Optional ACL token sent with every request.
        session_ttl: Consul session TTL, e.g. ``15s``.
        request_timeout: Per-request timeout in seconds.
        request_retries: Connection retries performed by the transport.
        rollback_policy: ``mirror`` refreshes the live pointer on rollback,
            ``archive`` only re-saves under the namespace.
        namespace: Namespace holding archived versions.
    """

    consul_addr: str
    consul_token: str | None
    session_ttl: str
    request_timeout: float
    request_retries: int
    rollback_policy: str
    namespace: str

    @classmethod
    def from_env(cls) -> "TskvConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            TskvConfigError: If environment values are invalid.
        """
        return cls(
            consul_addr=normalize_consul_addr(os.getenv("TSKV_CONSUL_ADDR", DEFAULT_CONSUL_ADDR)),
            consul_token=os.getenv("TSKV_CONSUL_TOKEN") or None,
            session_ttl=_parse_session_ttl(os.getenv("TSKV_SESSION_TTL", DEFAULT_SESSION_TTL)),
            request_timeout=_parse_request_timeout(
                os.getenv("TSKV_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))
            ),
            request_retries=_parse_request_retries(
                os.getenv("TSKV_REQUEST_RETRIES", str(DEFAULT_REQUEST_RETRIES))
            ),
            rollback_policy=_parse_rollback_policy(
                os.getenv("TSKV_ROLLBACK_POLICY", DEFAULT_ROLLBACK_POLICY)
            ),
            namespace=_parse_namespace(os.getenv("TSKV_NAMESPACE", ARCHIVE_NAMESPACE)),
        )


def normalize_consul_addr(raw_value: str) -> str:
    """Return a Consul address with an explicit scheme.

    Args:
        raw_value: Address such as ``127.0.0.1:8500`` or ``https://consul:8501``.

    Returns:
        Address with scheme and without trailing slash.

    Raises:
        TskvConfigError: If the address is empty.
    """
    value = raw_value.strip().rstrip("/")
    if not value:
        raise TskvConfigError(
            "Invalid TSKV_CONSUL_ADDR value: expected host:port, got an empty string. "
            "Set TSKV_CONSUL_ADDR or pass --consul."
        )
    if "://" not in value:
        value = f"{DEFAULT_CONSUL_SCHEME}://{value}"
    return value


def _parse_session_ttl(raw_value: str) -> str:
    """Validate a Consul session TTL such as ``15s``."""
    value = raw_value.strip()
    seconds_text = value[:-1] if value.endswith("s") else ""
    if not seconds_text.isdigit():
        raise TskvConfigError(
            f"Invalid TSKV_SESSION_TTL value: expected '<seconds>s', got '{raw_value}'. "
            "Set TSKV_SESSION_TTL to a value like 15s."
        )
    seconds = int(seconds_text)
    if not MIN_SESSION_TTL_SECONDS <= seconds <= MAX_SESSION_TTL_SECONDS:
        raise TskvConfigError(
            f"Invalid TSKV_SESSION_TTL value: {seconds}s is outside "
            f"{MIN_SESSION_TTL_SECONDS}s..{MAX_SESSION_TTL_SECONDS}s."
        )
    return f"{seconds}s"


def _parse_request_timeout(raw_value: str) -> float:
    """Parse the request timeout environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive timeout in seconds.

    Raises:
        TskvConfigError: If value is not a positive number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise TskvConfigError(
            "Invalid TSKV_REQUEST_TIMEOUT value: "
            f"expected number, got '{raw_value}'. "
            "Set TSKV_REQUEST_TIMEOUT to a positive number of seconds."
        ) from error
    if timeout <= 0:
        raise TskvConfigError(
            f"Invalid TSKV_REQUEST_TIMEOUT value: expected > 0, got {timeout}."
        )
    return timeout


def _parse_request_retries(raw_value: str) -> int:
    try:
        retries = int(raw_value)
    except ValueError as error:
        raise TskvConfigError(
            "Invalid TSKV_REQUEST_RETRIES value: "
            f"expected integer, got '{raw_value}'. "
            "Set TSKV_REQUEST_RETRIES to a non-negative integer."
        ) from error
    if retries < 0:
        raise TskvConfigError(
            f"Invalid TSKV_REQUEST_RETRIES value: expected >= 0, got {retries}."
        )
    return retries


def _parse_rollback_policy(raw_value: str) -> str:
    value = raw_value.strip().lower()
    if value not in SUPPORTED_ROLLBACK_POLICIES:
        supported = ", ".join(SUPPORTED_ROLLBACK_POLICIES)
        raise TskvConfigError(
            f"Invalid TSKV_ROLLBACK_POLICY value: '{raw_value}'. Supported: {supported}."
        )
    return value


def _parse_namespace(raw_value: str) -> str:
    value = raw_value.strip().strip("/")
    if not value:
        raise TskvConfigError(
            "Invalid TSKV_NAMESPACE value: expected a non-empty path segment."
        )
    return value
