"""Command-line maintenance for saved window state.

Usage:
    python -m windowsession key /path/to/project [/another/folder ...]
    python -m windowsession keys
    python -m windowsession show KEY
    python -m windowsession clear
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

import yaml

from windowsession import __version__
from windowsession.config import get_default_state_dir, load_config
from windowsession.logging import get_logger, setup_logging
from windowsession.state import StateStore, derive_key

log = get_logger("cli")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="windowsession",
        description="Inspect and maintain saved editor window state",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--state-dir",
        type=Path,
        help="State store directory (default: from config)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase verbosity (can be repeated)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")

    key_parser = subparsers.add_parser("key", help="Print the state key for project folders")
    key_parser.add_argument("paths", nargs="+", help="Project folders, in window order")
    key_parser.add_argument(
        "--sorted",
        action="store_true",
        default=None,
        help="Ignore folder order when deriving the key",
    )

    subparsers.add_parser("keys", help="List stored state keys")

    show_parser = subparsers.add_parser("show", help="Dump saved state as YAML")
    show_parser.add_argument("key", help="State key")

    subparsers.add_parser("clear", help="Delete all saved state")

    return parser


async def _with_store(directory: Path, command: str, key: str | None) -> int:
    store = StateStore(directory)
    if not await store.connect():
        print(f"State store {directory} is in use by another instance", file=sys.stderr)
        return 1
    try:
        if command == "keys":
            for stored_key in await store.keys():
                print(stored_key)
        elif command == "show":
            state = await store.load(key or "")
            if state is None:
                print(f"No saved state for {key}", file=sys.stderr)
                return 1
            print(yaml.safe_dump(state, default_flow_style=False, sort_keys=False), end="")
        elif command == "clear":
            count = await store.count()
            await store.clear()
            print(f"Removed {count} saved state(s)")
    finally:
        store.disconnect()
    return 0


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return 1

    config = load_config()
    if parsed.verbose is not None:
        config.logging.verbose = min(parsed.verbose + 1, 4)
    setup_logging(config.logging)

    if parsed.command == "key":
        order_independent = parsed.sorted if parsed.sorted is not None else config.state.order_independent_keys
        print(derive_key(parsed.paths, order_independent=order_independent))
        return 0

    directory = parsed.state_dir or Path(config.state.directory or get_default_state_dir())
    log.debug("Using state store %s", directory)
    return asyncio.run(_with_store(directory, parsed.command, getattr(parsed, "key", None)))


def main() -> None:
    sys.exit(run_cli(sys.argv[1:]))


if __name__ == "__main__":
    main()
