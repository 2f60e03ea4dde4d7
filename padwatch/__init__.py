# Entrypoint for the padwatch package.
# This file makes the public API available to programmers.

from __future__ import annotations

from padwatch.api import crawl_once, watch
from padwatch.models import CycleReport, Link, Pad
from padwatch.tracker import Tracker
from padwatch.__about__ import __version__

# The __all__ variable defines the public API of the package.
# When a user writes `from padwatch import *`, only these names will be imported.
__all__ = [
    "crawl_once",
    "watch",
    "CycleReport",
    "Link",
    "Pad",
    "Tracker",
    "__version__",
]
