"""Clock abstractions for the metering runtime.

Two kinds of time are in play:

- *meter time*: seconds of billable playback, used by interval tick sources
  to decide when a second has elapsed. It never runs backwards and it stands
  still while playback is paused.
- *wall time*: timezone-aware UTC timestamps stamped on ledger events.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Optional, Protocol, runtime_checkable

MonotonicFn = Callable[[], float]


@runtime_checkable
class MeterClock(Protocol):
    """Anything that reports meter time in seconds."""

    def now(self) -> float:
        ...


class RealTimeMeterClock:
    """Meter time derived from a monotonic timer, with pause support.

    ``playback_rate`` scales elapsed time the way a player's speed control
    does: at ``2.0`` one real second bills two meter seconds. Time spent
    paused is excluded.
    """

    def __init__(
        self,
        playback_rate: float = 1.0,
        *,
        start: float = 0.0,
        monotonic_fn: MonotonicFn = time.monotonic,
    ) -> None:
        if playback_rate <= 0.0:
            raise ValueError("playback_rate must be greater than zero")
        self._playback_rate = playback_rate
        self._monotonic = monotonic_fn
        self._lock = Lock()
        self._banked = start
        self._running_since: Optional[float] = monotonic_fn()

    @property
    def playback_rate(self) -> float:
        return self._playback_rate

    @property
    def is_paused(self) -> bool:
        return self._running_since is None

    def _running_elapsed(self) -> float:
        if self._running_since is None:
            return 0.0
        return max(0.0, self._monotonic() - self._running_since) * self._playback_rate

    def now(self) -> float:
        with self._lock:
            return self._banked + self._running_elapsed()

    def pause(self) -> None:
        """Freeze meter time. Pausing twice is harmless."""
        with self._lock:
            self._banked += self._running_elapsed()
            self._running_since = None

    def resume(self) -> None:
        with self._lock:
            if self._running_since is None:
                self._running_since = self._monotonic()

    def set_playback_rate(self, playback_rate: float) -> None:
        """Change speed without rewriting the meter time already elapsed."""
        if playback_rate <= 0.0:
            raise ValueError("playback_rate must be greater than zero")
        with self._lock:
            if self._running_since is not None:
                self._banked += self._running_elapsed()
                self._running_since = self._monotonic()
            self._playback_rate = playback_rate


class SteppedMeterClock:
    """Meter clock moved by hand, for deterministic simulations."""

    def __init__(self, start: float = 0.0) -> None:
        self._current = start
        self._lock = Lock()

    def now(self) -> float:
        with self._lock:
            return self._current

    def advance(self, seconds: float) -> float:
        if seconds < 0.0:
            raise ValueError("meter time cannot run backwards")
        with self._lock:
            self._current += seconds
            return self._current

    def advance_to(self, target: float) -> float:
        """Jump forward to ``target``; earlier targets are rejected."""
        with self._lock:
            if target < self._current:
                raise ValueError("meter time cannot run backwards")
            self._current = target
            return self._current


class WallClock:
    """UTC timestamps for ledger events."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)
