# padwatch/store.py
"""
Persistent pad snapshots.

- Storage: diskcache.Cache (robust, fast, cross-platform), no expiry.
- Location: default is a visible folder in CWD; optionally an OS-specific app
  data dir via platformdirs.
- Keys: (server, name) tuples. Values: the raw markdown of the last settled
  version of each pad.

The set of keys doubles as the list of pads seen by earlier runs, which is
how the crawler re-seeds its frontier after a restart.
"""
from __future__ import annotations

import dataclasses
import logging
import os
import sqlite3
from pathlib import Path
from typing import Optional

import diskcache
from platformdirs import user_data_dir as _user_data_dir

from padwatch.errors import StoreError
from padwatch.models import Link

log = logging.getLogger(__name__)

_STORE_ERRORS = (OSError, sqlite3.Error, diskcache.Timeout)


@dataclasses.dataclass
class StoreConfig:
    # Either a concrete directory path, or special marker "os-default"
    # for an OS-specific per-user data location.
    directory: str = ".padwatch_store"
    # Dry runs read snapshots but never write them.
    read_only: bool = False


class SnapshotStore:
    """
    Thin wrapper over diskcache with a tiny, explicit key/value contract.
    Every failure of the underlying cache surfaces as StoreError.
    """

    def __init__(self, cfg: StoreConfig, app_name: str = "padwatch"):
        self.cfg = cfg
        self.app_name = app_name
        self._cache: diskcache.Cache | None = None
        self.create_cache_object()

    def create_cache_object(self) -> None:
        if self._cache is not None and self._cache.directory:
            return
        directory = self.cfg.directory
        if directory == "os-default":
            directory = _user_data_dir(self.app_name, appauthor=False)

        log.info("Snapshot store at %s", directory)
        try:
            self._cache = diskcache.Cache(directory)
        except _STORE_ERRORS as e:
            raise StoreError(f"Cannot open snapshot store at {directory}: {e}") from e

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()

    def __enter__(self) -> "SnapshotStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ---- Introspection helpers ---------------------------------------------

    @property
    def directory(self) -> Optional[str]:
        """Returns the absolute store directory path if available."""
        if self._cache is None or not self._cache.directory:
            return None
        return str(self._cache.directory)

    def _dir_size_bytes(self) -> int:
        d = self.directory
        if not d:
            return 0
        total = 0
        path = Path(d)
        if not path.exists():
            return 0
        for p in path.rglob("*"):
            try:
                if p.is_file():
                    total += p.stat().st_size
            except OSError:
                continue
        return total

    def stats(self) -> dict[str, int | str]:
        """
        Returns a simple stats dict:
            - items: number of stored pads
            - bytes: on-disk size in bytes (recursive directory walk)
            - directory: absolute directory path
        """
        if self._cache is None:
            return {"items": 0, "bytes": 0, "directory": ""}
        return {
            "items": len(self._cache),
            "bytes": self._dir_size_bytes(),
            "directory": os.path.abspath(self.directory or ""),
        }

    def clear_all(self) -> None:
        """Clears all stored snapshots."""
        self._require().clear()

    # ---- Public API ---------------------------------------------------------

    def _require(self) -> diskcache.Cache:
        if self._cache is None:
            raise StoreError("Snapshot store is not open")
        return self._cache

    def read(self, link: Link) -> Optional[str]:
        """Return the stored content for `link`, or None if never stored."""
        try:
            return self._require().get((link.server, link.name))
        except _STORE_ERRORS as e:
            raise StoreError(f"Cannot read snapshot of {link}: {e}") from e

    def store(self, link: Link, content: str) -> None:
        if self.cfg.read_only:
            log.info("Read-only store, not storing snapshot of %s", link)
            return
        try:
            self._require().set((link.server, link.name), content)
        except _STORE_ERRORS as e:
            raise StoreError(f"Cannot store snapshot of {link}: {e}") from e

    def entries(self) -> list[Link]:
        """Every link with a stored snapshot."""
        links = []
        try:
            for key in self._require().iterkeys():
                if not (isinstance(key, tuple) and len(key) == 2):
                    log.warning("Ignoring unexpected key in snapshot store: %r", key)
                    continue
                server, name = key
                links.append(Link(server=server, name=name))
        except _STORE_ERRORS as e:
            raise StoreError(f"Cannot list snapshot store: {e}") from e
        return links
