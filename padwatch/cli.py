# padwatch/cli.py
# Defines the command-line interface using argparse.

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import IO, Sequence
from urllib.parse import urlparse

from padwatch import __version__
from padwatch.api import crawl_once, watch
from padwatch.config import DEFAULT_CONFIG_PATH, load_config
from padwatch.errors import PadwatchError
from padwatch.models import Link
from padwatch.store import SnapshotStore, StoreConfig
from padwatch.ui import human_bytes, render_cycle_report, render_links

log = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _link_from_url(url: str) -> Link | None:
    """Resolve a pad URL without knowing the configured servers."""
    host = urlparse(url).netloc
    if not host:
        return None
    return Link.from_url({host}, url)


def _install_stop_handlers(stop: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers
            log.debug("Cannot install handler for %s", sig)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Monitor a cloud of markdown pads for changes.",
        prog="padwatch",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging output to stderr.",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILEPATH",
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the TOML config file (default: {DEFAULT_CONFIG_PATH}).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- watch ---
    subparsers.add_parser(
        "watch", help="Crawl the pads forever and notify about settled changes."
    )

    # --- crawl ---
    crawl_parser = subparsers.add_parser(
        "crawl", help="Run a single crawl cycle and print what was found."
    )
    crawl_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log notifications instead of sending them.",
    )

    # --- store ---
    store_parser = subparsers.add_parser(
        "store", help="Inspect or manage the snapshot store."
    )
    store_parser.add_argument(
        "--dir",
        dest="store_dir",
        metavar="PATH",
        default=None,
        help="Store directory to operate on (defaults to the configured one).",
    )
    store_sub = store_parser.add_subparsers(dest="store_cmd", required=True)
    store_sub.add_parser("list", help="List every stored pad URL.")
    store_sub.add_parser("stats", help="Show total items and size on disk.")
    store_sub.add_parser("clear", help="Wipe the entire snapshot store.")
    store_show = store_sub.add_parser(
        "show", help="Print the stored snapshot of a pad."
    )
    store_show.add_argument("url", help="The pad URL to look up.")

    return parser


def _run_store_command(args: argparse.Namespace, stdout: IO[str]) -> int:
    directory = args.store_dir or load_config(args.config)["store"]["directory"]

    with SnapshotStore(StoreConfig(directory=directory)) as store:
        if args.store_cmd == "list":
            render_links(store.entries(), file=stdout)
            return 0

        if args.store_cmd == "stats":
            st = store.stats()
            bytes_on_disk = int(st.get("bytes", 0))
            out = {
                "directory": st.get("directory", ""),
                "items": int(st.get("items", 0)),
                "bytes": bytes_on_disk,
                "human_bytes": human_bytes(bytes_on_disk),
            }
            print(json.dumps(out, indent=2), file=stdout)
            return 0

        if args.store_cmd == "clear":
            store.clear_all()
            print(f"Store cleared at: {store.directory}", file=stdout)
            return 0

        if args.store_cmd == "show":
            link = _link_from_url(args.url)
            content = store.read(link) if link is not None else None
            if content is None:
                print("Not stored", file=stdout)
                return 2
            stdout.write(content)
            if not content.endswith("\n"):
                stdout.write("\n")
            return 0

    # Should not reach
    print("Unknown store subcommand", file=stdout)
    return 2


async def async_main(
    argv: Sequence[str] | None = None, stdout: IO[str] | None = None
) -> int:
    """Async entry point for the command-line interface."""
    stdout = stdout or sys.stdout

    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.command == "store":
            return _run_store_command(args, stdout)

        config = load_config(args.config)

        if args.command == "crawl":
            report = await crawl_once(config=config, dry_run=args.dry_run)
            render_cycle_report(report, file=stdout)
            return 1 if report.errors and not report.visited else 0

        # args.command == "watch"
        stop = asyncio.Event()
        _install_stop_handlers(stop)
        await watch(config=config, stop=stop)
        return 0
    except PadwatchError as e:
        log.error("%s", e)
        return 1


def main(argv: Sequence[str] | None = None) -> int:
    """Synchronous wrapper for the CLI entry point."""
    return asyncio.run(async_main(argv))


if __name__ == "__main__":
    sys.exit(main())
