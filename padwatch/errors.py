# padwatch/errors.py
"""
Exception hierarchy.

Collaborators translate library exceptions (httpx, diskcache, OS errors)
into these at their boundary. The crawl loop catches PadwatchError per link;
anything else is a bug and propagates.
"""
from __future__ import annotations


class PadwatchError(Exception):
    """Base class for every error padwatch raises on purpose."""


class FetchError(PadwatchError):
    """Network/transport failure or malformed response from a pad server."""


class ExtractionError(PadwatchError):
    """A link target in pad content could not be resolved to a URL."""


class StoreError(PadwatchError):
    """Reading or writing the snapshot store failed."""


class NotifyError(PadwatchError):
    """Delivering (or logging in for) a notification failed."""


class ConfigError(PadwatchError):
    """The configuration is missing, unreadable or invalid."""
