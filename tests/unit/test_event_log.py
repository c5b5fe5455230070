"""Unit tests for the bounded event log.

Run with: pytest tests/unit/test_event_log.py -v
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from streammeter.domain.event_log import (
    EventIdGenerator,
    EventKind,
    EventLog,
    LedgerEvent,
)

FIXED_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _log(capacity: int = 50) -> EventLog:
    return EventLog(capacity, now_fn=lambda: FIXED_TIME)


def test_id_generator_is_deterministic_and_monotonic():
    generator = EventIdGenerator()
    assert [generator() for _ in range(3)] == ["evt-000001", "evt-000002", "evt-000003"]


def test_newest_first():
    log = _log()
    log.record(EventKind.INIT, Decimal("1"))
    log.record(EventKind.CHARGE, Decimal("0.1"))

    kinds = [event.kind for event in log.snapshot()]
    assert kinds == [EventKind.CHARGE, EventKind.INIT]
    assert log.latest().kind is EventKind.CHARGE


def test_capacity_evicts_oldest():
    log = _log(capacity=3)
    for index in range(5):
        log.record(EventKind.CHARGE, Decimal(index))

    snapshot = log.snapshot()
    assert len(snapshot) == 3
    assert [event.amount for event in snapshot] == [Decimal(4), Decimal(3), Decimal(2)]
    assert [event.id for event in snapshot] == ["evt-000005", "evt-000004", "evt-000003"]


def test_default_capacity_is_fifty():
    log = EventLog()
    for _ in range(60):
        log.record(EventKind.CHARGE, Decimal("0.0001"))
    assert log.capacity == 50
    assert len(log) == 50


def test_snapshot_is_detached_from_later_appends():
    log = _log()
    log.record(EventKind.INIT, Decimal("1"))
    snapshot = log.snapshot()
    log.record(EventKind.CHARGE, Decimal("0.1"))

    assert isinstance(snapshot, tuple)
    assert len(snapshot) == 1


def test_events_are_immutable():
    log = _log()
    event = log.record(EventKind.TOP_UP, Decimal("2"), "deposit")
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.amount = Decimal("3")  # type: ignore[misc]


def test_append_prebuilt_event():
    log = _log()
    event = LedgerEvent(
        id="external-1",
        timestamp=FIXED_TIME,
        kind=EventKind.SEASON_PASS_GRANT,
        amount=Decimal(0),
    )
    log.append(event)
    assert log.latest() is event


def test_to_dict():
    log = _log()
    event = log.record(EventKind.RESET, Decimal("0"), "session reset")
    assert event.to_dict() == {
        "id": "evt-000001",
        "timestamp": "2025-01-01T00:00:00+00:00",
        "kind": "reset",
        "amount": "0",
        "note": "session reset",
    }


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        EventLog(0)
