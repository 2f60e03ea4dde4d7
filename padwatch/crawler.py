# padwatch/crawler.py
"""
Crawl frontier and polling loop.

Responsibilities:
- Own the set of known links (monotonically growing) and the per-cycle
  BFS queue rebuilt from it.
- For every dequeued link: fetch the pad, merge its outbound links into the
  frontier, feed the content to the link's Tracker, and on a settle event
  persist the snapshot and send a notification.
- Isolate failures per link: one broken pad never aborts a cycle.

Processing is strictly sequential on a single asyncio task, so the known
set, the tracker map and the store need no locking.

Collaborators (duck-typed):
- fetcher:  async fetch(link) -> Pad
- store:    read(link) -> str | None, store(link, content), entries() -> list[Link]
- notifier: async notify(pad, prior) -> None
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterable, Set

from padwatch.errors import ConfigError, PadwatchError
from padwatch.link_logic import extract_links, resolve_links
from padwatch.models import CycleReport, Link
from padwatch.tracker import Clock, Tracker

log = logging.getLogger(__name__)


@dataclass
class Frontier:
    """
    Watch every pad reachable from the seeds.

    Config keys consumed:
      - crawl.servers: set[str]
      - crawl.seeds: list[str]
      - crawl.interval: float (seconds)
      - notify.cool_down: float (seconds)
    """

    config: Dict[str, Any]
    fetcher: Any
    store: Any
    notifier: Any
    clock: Clock = time.monotonic

    # Internal state
    known: Set[Link] = field(default_factory=set)
    trackers: Dict[Link, Tracker] = field(default_factory=dict)

    @property
    def servers(self) -> Set[str]:
        return self.config["crawl"]["servers"]

    def seed(self, seed_urls: Iterable[str] | None = None) -> None:
        """
        Populate the frontier from the seed URLs and the snapshot store.

        A seed that does not resolve to a pad on a watched server is a
        configuration error.
        """
        if seed_urls is None:
            seed_urls = self.config["crawl"]["seeds"]
        for url in seed_urls:
            link = Link.from_url(self.servers, url)
            if link is None:
                raise ConfigError(f"Seed link not valid: {url}")
            self.known.add(link)

        stored = self.store.entries()
        self.known.update(stored)
        log.info(
            "Frontier seeded with %d links (%d from the snapshot store).",
            len(self.known),
            len(stored),
        )

    def _enqueue_new(
        self, urls: Iterable[str], queue: Deque[Link], report: CycleReport
    ) -> None:
        for link in resolve_links(urls, self.servers):
            if link in self.known:
                continue
            self.known.add(link)
            queue.append(link)
            report.discovered.append(link)
            log.debug("Discovered %s", link)

    def _tracker_for(self, link: Link, content: str) -> Tracker:
        tracker = self.trackers.get(link)
        if tracker is not None:
            return tracker.update(content)

        existing = self.store.read(link)
        if existing is None:
            tracker = Tracker.from_new(content, clock=self.clock)
        else:
            tracker = Tracker.from_existing(existing, content, clock=self.clock)
        self.trackers[link] = tracker
        return tracker

    async def _process_link(
        self, link: Link, queue: Deque[Link], report: CycleReport
    ) -> None:
        pad = await self.fetcher.fetch(link)
        report.visited.append(link)

        self._enqueue_new(extract_links(pad), queue, report)

        tracker = self._tracker_for(link, pad.content)
        if not tracker.quiesce(self.config["notify"]["cool_down"]):
            return

        prior = self.store.read(link)
        self.store.store(link, pad.content)
        await self.notifier.notify(pad, prior)
        report.settled.append(link)
        log.info("Pad settled: %s", link)

    async def crawl_cycle(self, stop: asyncio.Event | None = None) -> CycleReport:
        """
        Visit every known link once, plus every link discovered on the way.

        Terminates on cyclic graphs: a link is only enqueued when it was not
        yet known.
        """
        report = CycleReport()
        queue: Deque[Link] = deque(self.known)

        while queue:
            if stop is not None and stop.is_set():
                log.info("Stop requested; %d links left in this cycle.", len(queue))
                break
            link = queue.popleft()
            try:
                await self._process_link(link, queue, report)
            except PadwatchError as e:
                log.error("Error processing link %s: %s", link, e)
                report.errors.append(f"Error processing link {link}: {e}")

        log.info(
            "Cycle complete: %d visited, %d discovered, %d settled, %d errors.",
            len(report.visited),
            len(report.discovered),
            len(report.settled),
            len(report.errors),
        )
        return report

    async def _sleep(self, stop: asyncio.Event | None) -> None:
        interval = self.config["crawl"]["interval"]
        if stop is None:
            await asyncio.sleep(interval)
            return
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Crawl, sleep, repeat. Returns only once `stop` is set."""
        while stop is None or not stop.is_set():
            await self.crawl_cycle(stop)
            await self._sleep(stop)
        log.info("Frontier stopped.")
