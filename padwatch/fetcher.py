# padwatch/fetcher.py
"""
HTTPX-based pad fetcher.

Every pad server exposes two endpoints per pad:
- GET https://{server}/{name}/info      JSON metadata (title, times, ...)
- GET https://{server}/{name}/download  raw markdown

Network failures, non-2xx responses and malformed metadata all surface as
FetchError so the crawler can skip the pad and move on.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

import httpx

from padwatch.errors import FetchError
from padwatch.models import Link, Pad

log = logging.getLogger(__name__)


def _parse_time(value: Any) -> datetime | None:
    if not value:
        return None
    if not isinstance(value, str):
        raise ValueError(f"not a timestamp: {value!r}")
    # fromisoformat() only accepts a trailing "Z" from 3.11 on
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def pad_from_info(link: Link, info: Dict[str, Any], content: str) -> Pad:
    """Build a Pad from the info endpoint's JSON and the downloaded markdown."""
    if not isinstance(info, dict):
        raise FetchError(f"Malformed info for {link}: expected an object")
    try:
        return Pad(
            link=link,
            title=str(info.get("title") or link.name),
            content=content,
            create_time=_parse_time(info.get("createtime")),
            update_time=_parse_time(info.get("updatetime")),
            description=str(info.get("description") or ""),
            view_count=int(info.get("viewcount") or 0),
        )
    except (TypeError, ValueError) as e:
        raise FetchError(f"Malformed info for {link}: {e}") from e


@dataclass
class PadFetcher:
    """
    Fetch pads with a shared httpx.AsyncClient.

    Config keys consumed (from the [crawl] section):
      - user_agent: str
      - timeout: float (seconds)
    """

    config: Dict[str, Any]
    transport: httpx.AsyncBaseTransport | None = None

    _client: httpx.AsyncClient = field(init=False, repr=False)

    async def __aenter__(self) -> "PadFetcher":
        headers = {"User-Agent": self.config.get("user_agent", "padwatch")}
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.config.get("timeout", 10.0),
            headers=headers,
            transport=self.transport,
        )
        log.info("httpx session initialized.")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self._client.aclose()
        log.info("httpx session closed.")

    async def _get(self, url: str) -> httpx.Response:
        try:
            resp = await self._client.get(url)
            if resp.status_code != 200:
                log.warning("Non-200 response for %s: %d", url, resp.status_code)
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            raise FetchError(f"HTTP error for {url}: {e}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Network error fetching {url}: {e}") from e

    async def fetch(self, link: Link) -> Pad:
        base = link.to_url()

        info_resp = await self._get(f"{base}/info")
        try:
            info = info_resp.json()
        except ValueError as e:
            raise FetchError(f"Malformed info for {link}: {e}") from e

        content_resp = await self._get(f"{base}/download")
        return pad_from_info(link, info, content_resp.text)
