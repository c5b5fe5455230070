"""Bounded audit log of ledger events.

Events are immutable. The log keeps the newest ``capacity`` entries, newest
first; older entries fall off the end as new ones arrive and can never be
removed or edited any other way.
"""

from __future__ import annotations

import itertools
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Callable

DEFAULT_CAPACITY = 50

NowFn = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EventKind(str, Enum):
    INIT = "init"
    CHARGE = "charge"
    TOP_UP = "top_up"
    RESET = "reset"
    SEASON_PASS_GRANT = "season_pass_grant"


@dataclass(frozen=True)
class LedgerEvent:
    """Immutable record of a balance-affecting action."""

    id: str
    timestamp: datetime
    kind: EventKind
    amount: Decimal
    note: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "kind": self.kind.value,
            "amount": str(self.amount),
            "note": self.note,
        }


class EventIdGenerator:
    """Deterministic, monotonically increasing event identifiers.

    Ids carry no cryptographic meaning; they only order and label entries.
    """

    def __init__(self, prefix: str = "evt", start: int = 1) -> None:
        self._prefix = prefix
        self._counter = itertools.count(start)

    def __call__(self) -> str:
        return f"{self._prefix}-{next(self._counter):06d}"


class EventLog:
    """Newest-first, capacity-bounded event sequence."""

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        *,
        id_generator: Callable[[], str] | None = None,
        now_fn: NowFn | None = None,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be greater than zero")
        self._events: deque[LedgerEvent] = deque(maxlen=capacity)
        self._next_id = id_generator or EventIdGenerator()
        self._now = now_fn or _utc_now

    @property
    def capacity(self) -> int:
        return self._events.maxlen or 0

    def append(self, event: LedgerEvent) -> LedgerEvent:
        self._events.appendleft(event)
        return event

    def record(self, kind: EventKind, amount: Decimal, note: str = "") -> LedgerEvent:
        """Build an event stamped with the next id and current time, then append it."""
        event = LedgerEvent(
            id=self._next_id(),
            timestamp=self._now(),
            kind=kind,
            amount=amount,
            note=note,
        )
        return self.append(event)

    def snapshot(self) -> tuple[LedgerEvent, ...]:
        return tuple(self._events)

    def latest(self) -> LedgerEvent | None:
        return self._events[0] if self._events else None

    def __len__(self) -> int:
        return len(self._events)
