# padwatch/api.py
# The primary, programmer-facing API for the library.

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Any, AsyncIterator, Dict

from padwatch.config import load_config
from padwatch.crawler import Frontier
from padwatch.fetcher import PadFetcher
from padwatch.models import CycleReport
from padwatch.notify import LogNotifier, MatrixNotifier
from padwatch.store import SnapshotStore, StoreConfig

log = logging.getLogger(__name__)


def make_notifier(config: Dict[str, Any], dry_run: bool = False) -> LogNotifier | MatrixNotifier:
    """Pick the notifier backend named in the config ("log" when dry_run)."""
    notify_cfg = config["notify"]
    if dry_run or notify_cfg["backend"] == "log":
        return LogNotifier()
    return MatrixNotifier(notify_cfg)


@contextlib.asynccontextmanager
async def open_frontier(
    config: Dict[str, Any], *, dry_run: bool = False
) -> AsyncIterator[Frontier]:
    """
    Bring up every collaborator and a seeded Frontier.

    Startup failures (notifier login, unresolvable seed, unopenable store)
    propagate to the caller: padwatch cannot run without them.
    """
    async with contextlib.AsyncExitStack() as stack:
        notifier = await stack.enter_async_context(make_notifier(config, dry_run))
        log.info("Step 1: Connecting notifier.")
        await notifier.connect()

        log.info("Step 2: Opening snapshot store.")
        store = stack.enter_context(
            SnapshotStore(
                StoreConfig(directory=config["store"]["directory"], read_only=dry_run)
            )
        )

        fetcher = await stack.enter_async_context(PadFetcher(config["crawl"]))

        frontier = Frontier(config, fetcher=fetcher, store=store, notifier=notifier)
        log.info("Step 3: Seeding frontier.")
        frontier.seed()
        yield frontier


async def watch(
    config_path: Path | str | None = None,
    *,
    config: Dict[str, Any] | None = None,
    stop: asyncio.Event | None = None,
) -> None:
    """
    Watch the configured pads until `stop` is set (forever without one).

    Args:
        config_path: TOML config file; defaults to ./config.toml.
        config: An already loaded config; takes precedence over config_path.
        stop: Event checked between links and between cycles.
    """
    if config is None:
        config = load_config(config_path)
    async with open_frontier(config) as frontier:
        log.info(
            "Watching %d links every %.0fs (cool-down %.0fs).",
            len(frontier.known),
            config["crawl"]["interval"],
            config["notify"]["cool_down"],
        )
        await frontier.run(stop)


async def crawl_once(
    config_path: Path | str | None = None,
    *,
    config: Dict[str, Any] | None = None,
    dry_run: bool = False,
) -> CycleReport:
    """
    Run exactly one crawl cycle and return its report.

    Trackers start fresh, so with a non-zero cool-down a single cycle
    discovers and observes pads but does not settle them. With dry_run the
    snapshot store is opened read-only and notifications only go to the log.
    """
    if config is None:
        config = load_config(config_path)
    async with open_frontier(config, dry_run=dry_run) as frontier:
        return await frontier.crawl_cycle()
