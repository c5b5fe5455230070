"""Tick sources for the metering runtime.

A tick says "whole second N is eligible for billing". Two sources produce
them, both delivering to registered :class:`TickParticipant` objects through
the same ``on_tick(second)`` call:

- :class:`PlaybackTickSource` follows the player's reported position. It
  floors the position and emits whenever the whole second changes, including
  after a backward seek.
- :class:`IntervalTickSource` follows a :class:`MeterClock` and emits one
  tick per elapsed interval. When it falls behind it catches up at most
  ``max_catch_up`` ticks in one iteration.

Participants decide what a tick costs; sources never know about balances.
"""

from __future__ import annotations

import math
import time
from threading import Event, Lock
from typing import Callable, Protocol, runtime_checkable

import structlog

from streammeter.infra.settings import Settings, settings

from .clock import MeterClock

SleepFn = Callable[[float], None]

_log = structlog.get_logger(__name__)


@runtime_checkable
class TickParticipant(Protocol):
    """Participant contract for billing ticks."""

    def on_tick(self, second: int) -> None:
        """Handle a tick for ``second``."""


class TickSource:
    """Fan-out of ticks to registered participants."""

    def __init__(self) -> None:
        self._participants: list[TickParticipant] = []
        self._lock = Lock()

    # Participant management -------------------------------------------------
    def add_participant(self, participant: TickParticipant) -> None:
        with self._lock:
            if participant not in self._participants:
                self._participants.append(participant)

    def remove_participant(self, participant: TickParticipant) -> None:
        with self._lock:
            if participant in self._participants:
                self._participants.remove(participant)

    def _emit(self, second: int) -> bool:
        with self._lock:
            participants_snapshot = list(self._participants)
        for participant in participants_snapshot:
            participant.on_tick(second)
        return bool(participants_snapshot)


class PlaybackTickSource(TickSource):
    """Turns playback-position reports into whole-second ticks."""

    def __init__(self) -> None:
        super().__init__()
        self._last_second: int | None = None

    @property
    def last_second(self) -> int | None:
        return self._last_second

    def report_position(self, current_time: float) -> int | None:
        """Report the player's current time in seconds.

        Returns the second that was emitted, or ``None`` when the report did
        not cross into a new whole second (or was not a usable time).
        """
        if not math.isfinite(current_time) or current_time < 0:
            _log.debug("playback_position_ignored", current_time=current_time)
            return None
        second = math.floor(current_time)
        if second == self._last_second:
            return None
        self._last_second = second
        self._emit(second)
        return second

    def reset(self) -> None:
        self._last_second = None


class IntervalTickSource(TickSource):
    """Emits ticks at a fixed cadence of meter time.

    Parameters
    ----------
    clock:
        Meter clock providing monotonically increasing time.
    tick_interval:
        Seconds of meter time per tick. Must be positive.
    sleep_fn:
        Optional sleep function used by :meth:`run_forever`. When ``None``
        the loop never sleeps; tests advance the clock and call
        :meth:`run_once` instead.
    max_catch_up:
        Most ticks emitted by a single :meth:`run_once` after a stall.
    """

    def __init__(
        self,
        clock: MeterClock,
        tick_interval: float = 1.0,
        *,
        sleep_fn: SleepFn | None = time.sleep,
        max_catch_up: int = 3,
    ) -> None:
        super().__init__()
        if tick_interval <= 0.0:
            raise ValueError("tick_interval must be greater than zero")
        if max_catch_up <= 0:
            raise ValueError("max_catch_up must be greater than zero")
        self.clock = clock
        self.tick_interval = tick_interval
        self.sleep_fn = sleep_fn
        self.max_catch_up = max_catch_up
        self._origin: float | None = None
        self._last_index: int | None = None
        self._stop_event = Event()

    @classmethod
    def from_settings(cls, clock: MeterClock, config: Settings | None = None, **kwargs) -> "IntervalTickSource":
        """Build a source using the configured tick period and catch-up limit."""
        config = config or settings
        return cls(
            clock,
            config.tick_interval,
            max_catch_up=config.max_catch_up_ticks,
            **kwargs,
        )

    def reset(self) -> None:
        """Restart counting from the next :meth:`run_once`."""
        self._origin = None
        self._last_index = None

    def run_once(self) -> int:
        """Execute a single iteration. Returns the number of ticks emitted."""
        now = self.clock.now()
        if self._origin is None:
            self._origin = now
            self._last_index = 0
            self._emit(0)
            return 1

        index = int((now - self._origin) // self.tick_interval)
        last_index = self._last_index if self._last_index is not None else -1
        if index <= last_index:
            return 0

        first = max(last_index + 1, index - self.max_catch_up + 1)
        if first > last_index + 1:
            _log.warning("interval_ticks_dropped", dropped=first - last_index - 1)
        for second in range(first, index + 1):
            self._emit(second)
        self._last_index = index
        return index - first + 1

    def run_forever(self) -> None:
        """Drive the tick loop until :meth:`stop` is called."""
        self._stop_event.clear()
        while not self._stop_event.is_set():
            self.run_once()
            if self.sleep_fn is None:
                continue
            self.sleep_fn(self.tick_interval / 4.0)

    def stop(self) -> None:
        """Signal the loop to stop."""
        self._stop_event.set()
