# Defines the data structures used throughout the application.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional


@dataclass(frozen=True)
class Link:
    """
    Canonical identity of a pad: the server hostname plus the pad name.

    Equality and hashing are structural, so a Link can live in sets and
    be used as a dict key.
    """

    server: str
    name: str

    @classmethod
    def from_url(cls, servers: Iterable[str], url: str) -> Optional["Link"]:
        """
        Return the Link for `url`, or None if it does not point at a pad on
        one of the allowed `servers`.

        Servers are tried in sorted order so that overlapping hostnames
        always resolve the same way.
        """
        for server in sorted(servers):
            prefix = f"https://{server}/"
            if url.startswith(prefix):
                name = url[len(prefix):]
                if not name:
                    return None  # server root, not a pad
                return cls(server=server, name=name)
        return None

    def to_url(self) -> str:
        return f"https://{self.server}/{self.name}"

    def __str__(self) -> str:
        return self.to_url()


@dataclass(frozen=True)
class Pad:
    """Immutable snapshot of one fetch of a pad."""

    link: Link
    title: str
    content: str
    create_time: datetime | None = None
    update_time: datetime | None = None
    description: str = ""
    view_count: int = 0


@dataclass
class CycleReport:
    """Summary of one crawl cycle over the frontier."""

    visited: list[Link] = field(default_factory=list)
    discovered: list[Link] = field(default_factory=list)
    settled: list[Link] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
