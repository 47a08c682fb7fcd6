"""Unit tests for CLI command handling."""

from __future__ import annotations

from pathlib import Path

import pytest

from cli.main import main
from core.config import TskvConfig
from store.memory_backend import MemoryBackend


class _RecordingBackend(MemoryBackend):
    """Memory backend that records lock state seen by each write."""

    def __init__(self) -> None:
        super().__init__()
        self.holders_during_save: list[str | None] = []
        self.events: list[str] = []

    def save_key(self, address: str, payload: bytes) -> None:
        self.holders_during_save.append(self.holder("alpha"))
        super().save_key(address, payload)

    def unlock(self, name: str) -> None:
        self.events.append(f"unlock:{name}")
        super().unlock(name)

    def teardown(self) -> None:
        self.events.append("teardown")
        super().teardown()


@pytest.fixture
def shared_backend() -> MemoryBackend:
    """Backend reused across CLI invocations, like a long-lived Consul agent."""
    return MemoryBackend()


def _run(backend: MemoryBackend, args: list[str]) -> int:
    return main(args, backend_factory=lambda config: backend)


def _value_file(tmp_path: Path, content: str) -> str:
    value_path = tmp_path / "value.txt"
    value_path.write_text(content, encoding="utf-8")
    return str(value_path)


def test_cli_set_then_get_trims_newline(tmp_path, capsys, shared_backend) -> None:
    """Set should trim trailing newlines and get should print latest value."""
    _run(shared_backend, ["set", "alpha", _value_file(tmp_path, "v1\n\n"), "--tag", "t1"])
    set_output = capsys.readouterr().out.strip()

    exit_code = _run(shared_backend, ["get", "alpha"])
    get_output = capsys.readouterr().out

    assert (set_output, exit_code, get_output) == ("t1", 0, "v1\n")


def test_cli_get_absent_key_prints_empty(capsys, shared_backend) -> None:
    exit_code = _run(shared_backend, ["get", "ghost"])

    assert exit_code == 0 and capsys.readouterr().out == "\n"


def test_cli_list_prints_tags(tmp_path, capsys, shared_backend) -> None:
    _run(shared_backend, ["set", "alpha", _value_file(tmp_path, "v1"), "--tag", "t1"])
    _run(shared_backend, ["set", "alpha", _value_file(tmp_path, "v2"), "--tag", "t2"])
    capsys.readouterr()

    exit_code = _run(shared_backend, ["list", "alpha"])
    tags = capsys.readouterr().out.split()

    assert exit_code == 0 and sorted(tags) == ["latest", "t1", "t2"]


def test_cli_rollback_restores_value(tmp_path, capsys, shared_backend) -> None:
    _run(shared_backend, ["set", "beta", _value_file(tmp_path, "old"), "--tag", "t1"])
    _run(shared_backend, ["set", "beta", _value_file(tmp_path, "new"), "--tag", "t2"])
    capsys.readouterr()

    exit_code = _run(shared_backend, ["rollback", "beta", "--tag", "t1"])
    new_tag = capsys.readouterr().out.strip()
    _run(shared_backend, ["get", "beta"])

    assert exit_code == 0 and new_tag.isdigit()
    assert capsys.readouterr().out == "old\n"


def test_cli_rollback_unknown_tag_fails(capsys, shared_backend) -> None:
    """Engine errors abort with a non-zero exit code and a message."""
    exit_code = _run(shared_backend, ["rollback", "beta", "--tag", "nope"])

    assert exit_code == 1 and "No version stored" in capsys.readouterr().err


def test_cli_set_with_holder_fails_when_key_locked(tmp_path, capsys, shared_backend) -> None:
    """A locked key makes a holder-guarded set fail without writing."""
    shared_backend.setup()
    shared_backend.lock("alpha", "other-writer")

    exit_code = _run(
        shared_backend,
        ["set", "alpha", _value_file(tmp_path, "v1"), "--tag", "t1", "--holder", "ci-1"],
    )

    shared_backend.setup()
    assert exit_code == 1 and "already held" in capsys.readouterr().err
    assert shared_backend.get_keys("", "") == []


def test_cli_set_with_holder_holds_lock_during_save(tmp_path) -> None:
    """The lock is held while writing and released before the session closes."""
    backend = _RecordingBackend()
    args = ["set", "alpha", _value_file(tmp_path, "v1"), "--tag", "t1", "--holder", "ci-1"]

    exit_code = _run(backend, args)

    assert exit_code == 0
    assert set(backend.holders_during_save) == {"ci-1"}
    assert backend.events[-2:] == ["unlock:alpha", "teardown"]


def test_cli_has_no_standalone_lock_command(capsys) -> None:
    """Locks only live inside one run, so no command acquires one on its own."""
    with pytest.raises(SystemExit):
        main(["lock", "deploy", "c1"])

    assert "invalid choice" in capsys.readouterr().err


def test_cli_missing_value_file_fails(tmp_path, capsys, shared_backend) -> None:
    exit_code = _run(shared_backend, ["set", "alpha", str(tmp_path / "missing.txt")])

    assert exit_code == 1 and "Failed to read value file" in capsys.readouterr().err


def test_cli_consul_flag_overrides_env(monkeypatch, shared_backend) -> None:
    monkeypatch.setenv("TSKV_CONSUL_ADDR", "env-host:8500")
    seen: list[str] = []

    def factory(config: TskvConfig) -> MemoryBackend:
        seen.append(config.consul_addr)
        return shared_backend

    main(["--consul", "flag-host:8500", "get", "alpha"], backend_factory=factory)

    assert seen == ["http://flag-host:8500"]


def test_cli_version_flag(capsys) -> None:
    with pytest.raises(SystemExit):
        main(["--version"])

    assert capsys.readouterr().out.strip() == "0.0.1"


def test_cli_unreachable_consul_fails(capsys, monkeypatch) -> None:
    """Without a reachable agent the CLI fails fast with exit status 1."""
    monkeypatch.setenv("TSKV_REQUEST_RETRIES", "0")
    monkeypatch.setenv("TSKV_REQUEST_TIMEOUT", "0.2")

    exit_code = main(["--consul", "127.0.0.1:1", "get", "alpha"])

    assert exit_code == 1 and "tskv: error" in capsys.readouterr().err
