from __future__ import annotations

import json

import httpx
import pytest

from padwatch.errors import NotifyError
from padwatch.models import Link, Pad
from padwatch.notify import LogNotifier, MatrixNotifier, render_diff, render_message

PAD = Pad(
    link=Link("pad.example", "doc1"),
    title="Plans <draft>",
    content="line one\nline two changed\nline three\n",
)

MATRIX_CFG = {
    "homeserver": "https://matrix.example",
    "username": "@bot:matrix.example",
    "password": "secret",
    "room": "!room:matrix.example",
    "device_name": "PadWatch Bot",
}


# ---------- rendering ----------

def test_render_diff_has_hunks_but_no_file_headers():
    diff = render_diff("a\nb\nc\n", "a\nB\nc\n")
    lines = diff.splitlines()
    assert lines[0].startswith("@@")
    assert "-b" in lines
    assert "+B" in lines
    assert not any(line.startswith(("---", "+++")) for line in lines)


def test_render_diff_identical_is_empty():
    assert render_diff("same\n", "same\n") == ""


def test_render_message_updated():
    plain, body = render_message(PAD, "line one\nline two\nline three\n")
    assert plain == "Pad updated: Plans <draft> \n  ⮡ https://pad.example/doc1"
    assert body.startswith("<b>Pad updated: </b>")
    assert '<a href="https://pad.example/doc1">Plans &lt;draft&gt;</a>' in body
    assert "-line two" in body
    assert "+line two changed" in body
    assert "<details><summary>Content:</summary><pre><code>" in body


def test_render_message_created_diffs_against_empty():
    plain, body = render_message(PAD, None)
    assert plain.startswith("Pad created: ")
    assert body.startswith("<b>Pad created: </b>")
    assert "+line one" in body
    assert "+line three" in body


# ---------- matrix ----------

class FakeHomeserver:
    def __init__(self, expire_first_send: bool = False, login_status: int = 200):
        self.requests: list[httpx.Request] = []
        self.expire_first_send = expire_first_send
        self.login_status = login_status
        self.sends = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/_matrix/client/v3/login":
            if self.login_status != 200:
                return httpx.Response(self.login_status, json={"errcode": "M_FORBIDDEN"})
            return httpx.Response(
                200,
                json={
                    "user_id": "@bot:matrix.example",
                    "access_token": "token-1",
                    "refresh_token": "refresh-1",
                    "device_id": "DEV",
                },
            )
        if path == "/_matrix/client/v3/refresh":
            return httpx.Response(200, json={"access_token": "token-2", "refresh_token": "refresh-2"})
        if "/send/m.room.message/" in path:
            self.sends += 1
            if self.expire_first_send and self.sends == 1:
                return httpx.Response(401, json={"errcode": "M_UNKNOWN_TOKEN", "soft_logout": True})
            return httpx.Response(200, json={"event_id": f"$event{self.sends}"})
        return httpx.Response(404)


@pytest.mark.asyncio
async def test_matrix_login_and_send():
    server = FakeHomeserver()
    async with MatrixNotifier(MATRIX_CFG, transport=httpx.MockTransport(server)) as notifier:
        await notifier.connect()
        await notifier.notify(PAD, None)

    login, send = server.requests
    login_body = json.loads(login.content)
    assert login_body["type"] == "m.login.password"
    assert login_body["identifier"] == {"type": "m.id.user", "user": "@bot:matrix.example"}
    assert login_body["refresh_token"] is True

    assert send.method == "PUT"
    assert send.headers["authorization"] == "Bearer token-1"
    content = json.loads(send.content)
    assert content["msgtype"] == "m.text"
    assert content["format"] == "org.matrix.custom.html"
    assert content["body"].startswith("Pad created: Plans <draft>")
    assert "Pad created" in content["formatted_body"]


@pytest.mark.asyncio
async def test_matrix_uses_fresh_transaction_ids():
    server = FakeHomeserver()
    async with MatrixNotifier(MATRIX_CFG, transport=httpx.MockTransport(server)) as notifier:
        await notifier.connect()
        await notifier.notify(PAD, None)
        await notifier.notify(PAD, "old")

    sends = [r.url.path for r in server.requests if r.method == "PUT"]
    assert len(sends) == 2
    assert sends[0] != sends[1]


@pytest.mark.asyncio
async def test_matrix_refreshes_expired_token_once():
    server = FakeHomeserver(expire_first_send=True)
    async with MatrixNotifier(MATRIX_CFG, transport=httpx.MockTransport(server)) as notifier:
        await notifier.connect()
        await notifier.notify(PAD, None)
        assert notifier.access_token == "token-2"
        assert notifier.refresh_token == "refresh-2"

    puts = [r for r in server.requests if r.method == "PUT"]
    assert [r.headers["authorization"] for r in puts] == ["Bearer token-1", "Bearer token-2"]


@pytest.mark.asyncio
async def test_matrix_login_failure_is_notify_error():
    server = FakeHomeserver(login_status=403)
    async with MatrixNotifier(MATRIX_CFG, transport=httpx.MockTransport(server)) as notifier:
        with pytest.raises(NotifyError):
            await notifier.connect()


@pytest.mark.asyncio
async def test_matrix_notify_before_connect_is_notify_error():
    async with MatrixNotifier(MATRIX_CFG, transport=httpx.MockTransport(FakeHomeserver())) as notifier:
        with pytest.raises(NotifyError):
            await notifier.notify(PAD, None)


@pytest.mark.asyncio
async def test_log_notifier_logs_plain_message(caplog):
    async with LogNotifier() as notifier:
        await notifier.connect()
        await notifier.notify(PAD, "old")
    assert "Pad updated: Plans <draft>" in caplog.text
