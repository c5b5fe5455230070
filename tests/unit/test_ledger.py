"""Unit tests for BalanceLedger and amount coercion.

These test the zero floor, charge conservation and boundary rejection.
Run with: pytest tests/unit/test_ledger.py -v
"""

from __future__ import annotations

import random
from decimal import Decimal

import pytest

from streammeter.domain.event_log import EventKind, EventLog
from streammeter.domain.ledger import BalanceLedger
from streammeter.domain.money import to_amount
from streammeter.infra.exceptions import InvalidAmountError


@pytest.fixture
def event_log() -> EventLog:
    return EventLog()


@pytest.fixture
def ledger(event_log: EventLog) -> BalanceLedger:
    return BalanceLedger(event_log)


class TestToAmount:
    def test_float_goes_through_str(self):
        assert to_amount(0.0001) == Decimal("0.0001")

    def test_accepts_int_str_decimal(self):
        assert to_amount(2) == Decimal(2)
        assert to_amount("1.5") == Decimal("1.5")
        assert to_amount(Decimal("0.3")) == Decimal("0.3")

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "nan", "x", None, True, [1]])
    def test_rejects_non_finite_and_non_numeric(self, bad):
        with pytest.raises(InvalidAmountError):
            to_amount(bad)

    def test_negative_only_when_allowed(self):
        with pytest.raises(InvalidAmountError):
            to_amount(-1)
        assert to_amount(-1, allow_negative=True) == Decimal(-1)


class TestInit:
    def test_init_sets_balance_and_clears_totals(self, ledger: BalanceLedger, event_log: EventLog):
        ledger.init(1.0)
        ledger.charge("0.1")
        ledger.init(2.0)

        assert ledger.balance == Decimal("2.0")
        assert ledger.total_paid == Decimal(0)
        assert ledger.total_collected == Decimal(0)
        assert event_log.latest().kind is EventKind.INIT

    def test_init_rejects_negative(self, ledger: BalanceLedger, event_log: EventLog):
        with pytest.raises(InvalidAmountError):
            ledger.init(-1)
        assert ledger.balance == Decimal(0)
        assert len(event_log) == 0

    def test_seed_keeps_totals(self, ledger: BalanceLedger, event_log: EventLog):
        ledger.init("0.0003")
        ledger.charge("0.0004")

        assert ledger.seed(5.0) == Decimal("5.0")
        assert ledger.total_paid == Decimal("0.0004")
        assert ledger.total_collected == Decimal("0.0003")
        assert event_log.latest().kind is EventKind.INIT

    def test_seed_rejects_invalid_amount(self, ledger: BalanceLedger, event_log: EventLog):
        ledger.init(1.0)
        with pytest.raises(InvalidAmountError):
            ledger.seed(float("nan"))
        assert ledger.balance == Decimal("1.0")
        assert len(event_log) == 1


class TestCharge:
    def test_charge_deducts_and_records(self, ledger: BalanceLedger, event_log: EventLog):
        ledger.init(1.0)
        receipt = ledger.charge(0.0001, note="second 0")

        assert receipt.balance == Decimal("0.9999")
        assert receipt.collected == Decimal("0.0001")
        assert not receipt.depleted
        assert ledger.total_paid == Decimal("0.0001")
        latest = event_log.latest()
        assert latest.kind is EventKind.CHARGE
        assert latest.amount == Decimal("0.0001")
        assert latest.note == "second 0"

    def test_charge_floors_at_zero_and_signals_depletion(self, event_log: EventLog):
        depleted: list[bool] = []
        ledger = BalanceLedger(event_log, on_depleted=lambda: depleted.append(True))
        ledger.init("0.0003")

        receipt = ledger.charge("0.0004")

        assert ledger.balance == Decimal(0)
        assert receipt.depleted
        assert receipt.collected == Decimal("0.0003")
        assert ledger.total_paid == Decimal("0.0004")
        assert ledger.total_collected == Decimal("0.0003")
        assert depleted == [True]

    def test_negative_charge_rejected_state_unchanged(self, ledger: BalanceLedger, event_log: EventLog):
        ledger.init(1.0)
        events_before = len(event_log)
        with pytest.raises(InvalidAmountError):
            ledger.charge(-0.1)
        with pytest.raises(InvalidAmountError):
            ledger.charge(float("nan"))
        assert ledger.balance == Decimal("1.0")
        assert ledger.total_paid == Decimal(0)
        assert len(event_log) == events_before

    @pytest.mark.parametrize("seed", [3, 11, 99])
    def test_conservation_and_non_negative(self, seed: int):
        rng = random.Random(seed)
        ledger = BalanceLedger(EventLog(capacity=5))
        ledger.init("0.5")
        expected_paid = Decimal(0)
        for _ in range(200):
            if rng.random() < 0.8:
                amount = Decimal(rng.randint(0, 100)) / Decimal(10000)
                ledger.charge(amount)
                expected_paid += amount
            else:
                ledger.top_up(Decimal(rng.randint(0, 50)) / Decimal(1000))
            assert ledger.balance >= 0
        assert ledger.total_paid == expected_paid
        assert ledger.total_collected <= ledger.total_paid


class TestTopUpAndReset:
    def test_top_up_credits(self, ledger: BalanceLedger, event_log: EventLog):
        ledger.init(0)
        assert ledger.top_up(2.5) == Decimal("2.5")
        assert event_log.latest().kind is EventKind.TOP_UP

    def test_negative_top_up_requires_administrative(self, ledger: BalanceLedger):
        ledger.init(1.0)
        with pytest.raises(InvalidAmountError):
            ledger.top_up(-0.5)
        assert ledger.balance == Decimal("1.0")

        assert ledger.top_up(-5, administrative=True) == Decimal(0)

    def test_reset_zeroes_balance_keeps_totals(self, ledger: BalanceLedger, event_log: EventLog):
        ledger.init(1.0)
        ledger.charge("0.25")
        ledger.reset_balance()

        assert ledger.balance == Decimal(0)
        assert ledger.is_depleted
        assert ledger.total_paid == Decimal("0.25")
        assert event_log.latest().kind is EventKind.RESET
