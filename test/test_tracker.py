# Unit tests for the change tracker and content fingerprints.

from __future__ import annotations

from padwatch.fingerprint import fingerprint
from padwatch.tracker import Quiescent, Tracker, Vivacious

COOL_DOWN = 60.0


class ManualClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------- fingerprint ----------

def test_fingerprint_is_deterministic_and_fixed_size():
    assert fingerprint("hello") == fingerprint("hello")
    assert len(fingerprint("")) == 32
    assert len(fingerprint("x" * 100_000)) == 32


def test_fingerprint_distinguishes_content():
    assert fingerprint("hello") != fingerprint("hello ")
    assert fingerprint("a\nb") != fingerprint("a\r\nb")


# ---------- construction ----------

def test_from_new_is_always_vivacious():
    clock = ManualClock()
    t = Tracker.from_new("content", clock=clock)
    assert t.is_vivacious
    assert t.state == Vivacious(last_updated=clock.now, last_hash=fingerprint("content"))


def test_from_existing_same_content_is_quiescent():
    t = Tracker.from_existing("same", "same", clock=ManualClock())
    assert t.is_quiescent
    assert t.state == Quiescent(hash=fingerprint("same"))


def test_from_existing_changed_content_is_vivacious():
    clock = ManualClock()
    t = Tracker.from_existing("old", "new", clock=clock)
    assert t.is_vivacious
    assert t.state == Vivacious(last_updated=clock.now, last_hash=fingerprint("new"))


# ---------- update ----------

def test_update_quiescent_same_content_is_noop():
    t = Tracker.from_existing("a", "a", clock=ManualClock())
    before = t.state
    assert t.update("a") is t
    assert t.state == before


def test_update_quiescent_changed_content_becomes_vivacious():
    clock = ManualClock()
    t = Tracker.from_existing("a", "a", clock=clock)
    clock.advance(5)
    t.update("b")
    assert t.state == Vivacious(last_updated=clock.now, last_hash=fingerprint("b"))


def test_update_vivacious_changed_content_restarts_window():
    clock = ManualClock()
    t = Tracker.from_new("a", clock=clock)
    clock.advance(30)
    t.update("b")
    assert t.state == Vivacious(last_updated=clock.now, last_hash=fingerprint("b"))


def test_update_vivacious_same_content_does_not_restart_window():
    clock = ManualClock()
    t = Tracker.from_new("a", clock=clock)
    started = clock.now
    clock.advance(30)
    t.update("a")
    assert t.state == Vivacious(last_updated=started, last_hash=fingerprint("a"))


def test_update_is_idempotent():
    clock = ManualClock()
    once = Tracker.from_existing("a", "a", clock=clock)
    twice = Tracker.from_existing("a", "a", clock=clock)
    once.update("b")
    twice.update("b")
    twice.update("b")
    assert once.state == twice.state


def test_hash_tracks_latest_content():
    t = Tracker.from_existing("a", "a", clock=ManualClock())
    assert t.hash == fingerprint("a")
    t.update("b")
    assert t.hash == fingerprint("b")


# ---------- quiesce ----------

def test_quiesce_is_edge_triggered():
    clock = ManualClock()
    t = Tracker.from_new("draft", clock=clock)
    before = t.state

    clock.advance(COOL_DOWN - 0.001)
    assert t.quiesce(COOL_DOWN) is False
    assert t.state == before

    clock.advance(0.002)
    assert t.quiesce(COOL_DOWN) is True
    assert t.state == Quiescent(hash=fingerprint("draft"))

    assert t.quiesce(COOL_DOWN) is False
    assert t.is_quiescent


def test_quiesce_requires_strictly_more_than_cool_down():
    clock = ManualClock()
    t = Tracker.from_new("draft", clock=clock)
    clock.advance(COOL_DOWN)
    assert t.quiesce(COOL_DOWN) is False


def test_quiesce_on_quiescent_is_noop():
    clock = ManualClock()
    t = Tracker.from_existing("a", "a", clock=clock)
    clock.advance(COOL_DOWN * 10)
    assert t.quiesce(COOL_DOWN) is False
    assert t.state == Quiescent(hash=fingerprint("a"))


def test_further_edits_postpone_settling():
    clock = ManualClock()
    t = Tracker.from_new("v1", clock=clock)
    clock.advance(COOL_DOWN - 1)
    t.update("v2")
    clock.advance(COOL_DOWN - 1)
    assert t.quiesce(COOL_DOWN) is False
    clock.advance(2)
    assert t.quiesce(COOL_DOWN) is True
    assert t.hash == fingerprint("v2")
