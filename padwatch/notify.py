# padwatch/notify.py
"""
Chat notifications for settled pad changes.

MatrixNotifier talks to a Matrix homeserver's client-server API over httpx:
password login (asking for a refresh token), then one m.room.message per
settled pad. The message carries a plain-text summary and an HTML body with
the unified diff folded into a <details> block.

LogNotifier renders the same message and only logs it; it backs dry runs
and the "log" backend.
"""
from __future__ import annotations

import difflib
import html
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict
from urllib.parse import quote

import httpx

from padwatch.errors import NotifyError
from padwatch.models import Pad

log = logging.getLogger(__name__)

CLIENT_API = "/_matrix/client/v3"


def render_diff(prior: str, current: str) -> str:
    """Unified diff hunks between two versions of a pad, without file headers."""
    lines = difflib.unified_diff(
        prior.splitlines(), current.splitlines(), lineterm=""
    )
    # drop the ---/+++ header pair, keep the @@ hunks
    hunks = [line for i, line in enumerate(lines) if i >= 2]
    return "\n".join(hunks)


def render_message(pad: Pad, prior: str | None) -> tuple[str, str]:
    """Return (plain, html) bodies announcing a created or updated pad."""
    verb = "Pad updated" if prior is not None else "Pad created"
    url = pad.link.to_url()

    plain = f"{verb}: {pad.title} \n  ⮡ {url}"

    diff = render_diff(prior or "", pad.content)
    body = (
        f"<b>{verb}: </b>"
        f'<a href="{html.escape(url, quote=True)}">{html.escape(pad.title)}</a>'
        "<details><summary>Content:</summary><pre><code>"
        f"{html.escape(diff)}\n"
        "</code></pre></details>"
    )
    return plain, body


@dataclass
class LogNotifier:
    """Notifier that writes the plain-text message to the log."""

    async def __aenter__(self) -> "LogNotifier":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    async def connect(self) -> None:
        log.info("Notifications go to the log only.")

    async def notify(self, pad: Pad, prior: str | None) -> None:
        plain, _ = render_message(pad, prior)
        log.warning("%s", plain)


@dataclass
class MatrixNotifier:
    """
    Post notifications into a Matrix room.

    Config keys consumed (from the [notify] section):
      - homeserver: str (base URL)
      - username: str (full Matrix user id)
      - password: str
      - room: str (room id)
      - device_name: str
      - timeout: float (seconds, optional)
    """

    config: Dict[str, Any]
    transport: httpx.AsyncBaseTransport | None = None

    access_token: str | None = field(default=None, init=False, repr=False)
    refresh_token: str | None = field(default=None, init=False, repr=False)
    _client: httpx.AsyncClient = field(init=False, repr=False)

    async def __aenter__(self) -> "MatrixNotifier":
        self._client = httpx.AsyncClient(
            base_url=self.config["homeserver"],
            timeout=self.config.get("timeout", 30.0),
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self._client.aclose()

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = await self._client.post(CLIENT_API + path, json=payload)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            raise NotifyError(f"Matrix request {path} failed: {e}") from e
        except ValueError as e:
            raise NotifyError(f"Matrix request {path} returned malformed JSON: {e}") from e

    async def connect(self) -> None:
        """Log in with username and password. Failure here is fatal at startup."""
        payload = {
            "type": "m.login.password",
            "identifier": {"type": "m.id.user", "user": self.config["username"]},
            "password": self.config["password"],
            "initial_device_display_name": self.config.get("device_name", "PadWatch Bot"),
            "refresh_token": True,
        }
        data = await self._post("/login", payload)
        if "access_token" not in data:
            raise NotifyError("Matrix login response carried no access token")
        self.access_token = data["access_token"]
        self.refresh_token = data.get("refresh_token")
        log.info("Logged in to %s as %s", self.config["homeserver"], data.get("user_id"))

    async def _refresh(self) -> None:
        data = await self._post("/refresh", {"refresh_token": self.refresh_token})
        if "access_token" not in data:
            raise NotifyError("Matrix refresh response carried no access token")
        self.access_token = data["access_token"]
        self.refresh_token = data.get("refresh_token", self.refresh_token)
        log.info("Refreshed Matrix access token.")

    async def _send(self, content: Dict[str, Any]) -> httpx.Response:
        room = quote(self.config["room"], safe="")
        txn = uuid.uuid4().hex
        path = f"{CLIENT_API}/rooms/{room}/send/m.room.message/{txn}"
        return await self._client.put(
            path,
            json=content,
            headers={"Authorization": f"Bearer {self.access_token}"},
        )

    async def notify(self, pad: Pad, prior: str | None) -> None:
        if self.access_token is None:
            raise NotifyError("Not logged in; call connect() first")

        plain, body = render_message(pad, prior)
        content = {
            "msgtype": "m.text",
            "body": plain,
            "format": "org.matrix.custom.html",
            "formatted_body": body,
        }

        try:
            resp = await self._send(content)
            if resp.status_code == 401 and self.refresh_token:
                await self._refresh()
                resp = await self._send(content)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise NotifyError(f"Failed to notify about {pad.link}: {e}") from e

        log.info("Notified room %s about %s", self.config["room"], pad.link)
