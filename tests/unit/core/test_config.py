"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import TskvConfig, normalize_consul_addr
from core.errors import TskvConfigError


def test_from_env_reads_consul_addr(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve the Consul address from environment."""
    monkeypatch.setenv("TSKV_CONSUL_ADDR", "consul.internal:8500")

    config = TskvConfig.from_env()

    assert config.consul_addr == "http://consul.internal:8500"


def test_from_env_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset variables should fall back to documented defaults."""
    for name in (
        "TSKV_CONSUL_ADDR",
        "TSKV_CONSUL_TOKEN",
        "TSKV_SESSION_TTL",
        "TSKV_ROLLBACK_POLICY",
        "TSKV_NAMESPACE",
    ):
        monkeypatch.delenv(name, raising=False)

    config = TskvConfig.from_env()

    assert (config.consul_addr, config.session_ttl, config.rollback_policy, config.namespace) == (
        "http://127.0.0.1:8500",
        "15s",
        "mirror",
        "archive",
    )


def test_from_env_raises_for_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a non-numeric request timeout."""
    monkeypatch.setenv("TSKV_REQUEST_TIMEOUT", "soon")

    with pytest.raises(TskvConfigError):
        TskvConfig.from_env()


def test_from_env_raises_for_unknown_rollback_policy(monkeypatch: pytest.MonkeyPatch) -> None:
    """Only mirror and archive rollback policies are accepted."""
    monkeypatch.setenv("TSKV_ROLLBACK_POLICY", "rewrite")

    with pytest.raises(TskvConfigError):
        TskvConfig.from_env()


@pytest.mark.parametrize("ttl", ["15", "5s", "abc", "90000s"])
def test_from_env_rejects_bad_session_ttl(monkeypatch: pytest.MonkeyPatch, ttl: str) -> None:
    """Session TTL must be seconds within Consul's accepted range."""
    monkeypatch.setenv("TSKV_SESSION_TTL", ttl)

    with pytest.raises(TskvConfigError):
        TskvConfig.from_env()


def test_normalize_consul_addr_keeps_scheme() -> None:
    """Explicit schemes are preserved and trailing slashes dropped."""
    assert normalize_consul_addr("https://consul:8501/") == "https://consul:8501"


def test_normalize_consul_addr_rejects_empty() -> None:
    """An empty address is a configuration error."""
    with pytest.raises(TskvConfigError):
        normalize_consul_addr("  ")
