# padwatch/tracker.py
"""
Per-link change tracking.

A Tracker is in exactly one of two states:

- Quiescent: content has settled; `hash` is the fingerprint of the last
  settled content.
- Vivacious: content changed since it last settled; `last_updated` is the
  clock reading of the most recent observed change and `last_hash` the
  fingerprint of the most recently observed content.

Moving from Vivacious to Quiescent only happens through `quiesce()`, and
`quiesce()` reports True exactly once per settle event. That edge is what the
crawler turns into a stored snapshot and a notification.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Union

from padwatch.fingerprint import fingerprint

Clock = Callable[[], float]


@dataclass(frozen=True)
class Quiescent:
    hash: bytes


@dataclass(frozen=True)
class Vivacious:
    last_updated: float
    last_hash: bytes


State = Union[Quiescent, Vivacious]


class Tracker:
    """Debounce state machine for the content of a single pad."""

    def __init__(self, state: State, clock: Clock = time.monotonic):
        self.state = state
        self._clock = clock

    def __repr__(self) -> str:
        return f"Tracker({self.state!r})"

    @classmethod
    def from_new(cls, content: str, clock: Clock = time.monotonic) -> "Tracker":
        """
        Tracker for a pad with no stored snapshot.

        A pad seen for the first time counts as just changed, so it gets
        reported once it has been stable for the cool-down.
        """
        return cls(Vivacious(last_updated=clock(), last_hash=fingerprint(content)), clock)

    @classmethod
    def from_existing(
        cls, prior: str, current: str, clock: Clock = time.monotonic
    ) -> "Tracker":
        """Tracker for a pad whose last settled content was stored as `prior`."""
        prior_hash = fingerprint(prior)
        current_hash = fingerprint(current)
        if prior_hash == current_hash:
            return cls(Quiescent(hash=prior_hash), clock)
        return cls(Vivacious(last_updated=clock(), last_hash=current_hash), clock)

    @property
    def is_quiescent(self) -> bool:
        return isinstance(self.state, Quiescent)

    @property
    def is_vivacious(self) -> bool:
        return isinstance(self.state, Vivacious)

    @property
    def hash(self) -> bytes:
        """Fingerprint of the content most recently fed to this tracker."""
        if isinstance(self.state, Quiescent):
            return self.state.hash
        return self.state.last_hash

    def update(self, content: str) -> "Tracker":
        """Feed freshly fetched content. Mutates in place and returns self."""
        new_hash = fingerprint(content)
        state = self.state

        if isinstance(state, Quiescent):
            if new_hash != state.hash:
                self.state = Vivacious(last_updated=self._clock(), last_hash=new_hash)
        elif new_hash != state.last_hash:
            # every further edit restarts the cool-down window
            self.state = Vivacious(last_updated=self._clock(), last_hash=new_hash)

        return self

    def quiesce(self, cool_down: float) -> bool:
        """
        Settle the tracker if nothing changed for more than `cool_down` seconds.

        Returns True only on the Vivacious -> Quiescent transition.
        """
        state = self.state
        if not isinstance(state, Vivacious):
            return False
        if self._clock() - state.last_updated > cool_down:
            self.state = Quiescent(hash=state.last_hash)
            return True
        return False
