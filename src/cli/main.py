"""tskv CLI entry points.

This module exposes get, set, rollback and list commands over a Consul
backed versioned store. It maps argparse commands onto engine calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Sequence

from core.config import TskvConfig, normalize_consul_addr
from core.constants import TSKV_VERSION
from core.errors import TskvConfigError, TskvError
from core.logging_config import configure_verbose_logging, get_logger
from core.tree import make_tree
from store.backend import KeyValueBackend, backend_session
from store.consul_backend import ConsulBackend
from store.locking import held_lock
from store.records import BlobRecord
from store.versioned_store import VersionedStore

_LOGGER = get_logger(__name__)

BackendFactory = Callable[[TskvConfig], KeyValueBackend]


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="tskv", description="Versioned key-value store on Consul")
    parser.add_argument("--version", action="version", version=TSKV_VERSION)
    parser.add_argument("--consul", help="Consul address, overrides TSKV_CONSUL_ADDR")
    parser.add_argument("--verbose", action="store_true", help="Log engine events to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_get_command(subparsers)
    _add_set_command(subparsers)
    _add_rollback_command(subparsers)
    _add_list_command(subparsers)
    return parser


def main(
    argv: Sequence[str] | None = None,
    backend_factory: BackendFactory | None = None,
) -> int:
    """Run the tskv CLI.

    Args:
        argv: Optional argument vector.
        backend_factory: Optional backend builder; Consul when omitted.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        configure_verbose_logging()
    try:
        config = _build_config(args.consul)
        backend = (backend_factory or ConsulBackend)(config)
        with backend_session(backend):
            store = VersionedStore(backend, rollback_policy=config.rollback_policy)
            return _dispatch(parser, store, config, args)
    except TskvError as error:
        _LOGGER.error("command_failed", command=args.command, error=str(error))
        print(f"tskv: error: {error}", file=sys.stderr)
        return 1


def _dispatch(
    parser: argparse.ArgumentParser,
    store: VersionedStore,
    config: TskvConfig,
    args: argparse.Namespace,
) -> int:
    if args.command == "get":
        return _run_get_command(store, config, args)
    if args.command == "set":
        return _run_set_command(store, config, args)
    if args.command == "rollback":
        return _run_rollback_command(store, config, args)
    if args.command == "list":
        return _run_list_command(store, config, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(consul_addr: str | None) -> TskvConfig:
    """Build config with optional Consul address override.

    Args:
        consul_addr: Optional override address.

    Returns:
        Validated config.
    """
    config = TskvConfig.from_env()
    if consul_addr:
        config = replace(config, consul_addr=normalize_consul_addr(consul_addr))
    return config


def _run_get_command(store: VersionedStore, config: TskvConfig, args: argparse.Namespace) -> int:
    """Print the latest value of a key."""
    record = BlobRecord(args.key)
    content = store.get(record, make_tree(config.namespace))
    print(content.decode("utf-8", errors="replace"))
    return 0


def _run_set_command(store: VersionedStore, config: TskvConfig, args: argparse.Namespace) -> int:
    """Save the contents of a file as a new version and print its tag.

    With ``--holder`` the save runs while holding the key's advisory lock.
    """
    record = BlobRecord(args.key, _read_value_file(args.value_file))
    tree = make_tree(config.namespace)
    if args.holder:
        with held_lock(store, args.key, args.holder):
            tag = store.save(record, tree, args.tag)
    else:
        tag = store.save(record, tree, args.tag)
    print(tag)
    return 0


def _run_rollback_command(
    store: VersionedStore, config: TskvConfig, args: argparse.Namespace
) -> int:
    """Restore a tagged version and print the new tag."""
    record = BlobRecord(args.key)
    new_tag = store.rollback(record, make_tree(config.namespace), args.tag)
    print(new_tag)
    return 0


def _run_list_command(store: VersionedStore, config: TskvConfig, args: argparse.Namespace) -> int:
    """Print one tag per line."""
    record = BlobRecord(args.key)
    for tag in store.get_versions(record, make_tree(config.namespace)):
        print(tag)
    return 0


def _read_value_file(value_file: str) -> bytes:
    """Read a value file with trailing newlines trimmed.

    Raises:
        TskvConfigError: If the file cannot be read.
    """
    try:
        payload = Path(value_file).read_bytes()
    except OSError as error:
        raise TskvConfigError(
            f"Failed to read value file {value_file}: {error.strerror}. "
            "Pass a readable file path."
        ) from error
    return payload.rstrip(b"\n")


def _add_get_command(subparsers: Any) -> None:
    """Register get subcommand."""
    parser = subparsers.add_parser("get", help="Get last set value of a key")
    parser.add_argument("key", help="Key to get")


def _add_set_command(subparsers: Any) -> None:
    """Register set subcommand."""
    parser = subparsers.add_parser("set", help="Set a key")
    parser.add_argument("key", help="Key")
    parser.add_argument("value_file", help="File holding the value")
    parser.add_argument("--tag", help="Tag, defaults to a nanosecond timestamp")
    parser.add_argument("--holder", help="Lock holder token for the save")


def _add_rollback_command(subparsers: Any) -> None:
    """Register rollback subcommand."""
    parser = subparsers.add_parser("rollback", help="Rollback value of key to a specified tag")
    parser.add_argument("key", help="Key")
    parser.add_argument("--tag", required=True, help="Tag to restore")


def _add_list_command(subparsers: Any) -> None:
    """Register list subcommand."""
    parser = subparsers.add_parser("list", help="List tags")
    parser.add_argument("key", help="Key")

