"""Prepaid balance ledger.

The balance never goes below zero: a charge larger than the balance floors
it at zero. ``total_paid`` accumulates the full computed charge regardless
of the floor, while ``total_collected`` counts only what was actually
deducted. Reaching exactly zero through a charge fires ``on_depleted``.

All amounts are validated before any state changes; an invalid amount
raises :class:`~streammeter.infra.exceptions.InvalidAmountError` and the
ledger is left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Optional

import structlog

from streammeter.domain.event_log import EventKind, EventLog
from streammeter.domain.money import ZERO, AmountLike, format_amount, to_amount

_log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChargeReceipt:
    """Outcome of a single charge."""

    requested: Decimal
    collected: Decimal
    balance: Decimal
    depleted: bool


class BalanceLedger:
    """Holds the balance and running totals for one session."""

    def __init__(
        self,
        event_log: EventLog,
        on_depleted: Optional[Callable[[], None]] = None,
    ) -> None:
        self._event_log = event_log
        self.on_depleted = on_depleted
        self._balance = ZERO
        self._total_paid = ZERO
        self._total_collected = ZERO

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def total_paid(self) -> Decimal:
        return self._total_paid

    @property
    def total_collected(self) -> Decimal:
        return self._total_collected

    @property
    def is_depleted(self) -> bool:
        return self._balance == ZERO

    def init(self, initial_balance: AmountLike, note: str = "session funded") -> Decimal:
        """Set the balance and clear the running totals."""
        amount = to_amount(initial_balance)
        self._balance = amount
        self._total_paid = ZERO
        self._total_collected = ZERO
        self._event_log.record(EventKind.INIT, amount, note)
        _log.info("ledger_initialized", balance=format_amount(amount))
        return self._balance

    def seed(self, amount: AmountLike, note: str = "balance seeded") -> Decimal:
        """Set the balance without touching the running totals."""
        balance = to_amount(amount)
        self._balance = balance
        self._event_log.record(EventKind.INIT, balance, note)
        _log.info(
            "ledger_seeded",
            balance=format_amount(balance),
            total_paid=format_amount(self._total_paid),
        )
        return self._balance

    def charge(self, amount: AmountLike, note: str = "") -> ChargeReceipt:
        """Deduct ``amount``, flooring the balance at zero."""
        requested = to_amount(amount)
        collected = min(requested, self._balance)
        self._balance = max(ZERO, self._balance - requested)
        self._total_paid += requested
        self._total_collected += collected
        self._event_log.record(EventKind.CHARGE, requested, note)

        depleted = self._balance == ZERO
        if collected < requested:
            _log.info(
                "charge_clamped",
                requested=format_amount(requested),
                collected=format_amount(collected),
            )
        if depleted:
            _log.info("balance_depleted", total_paid=format_amount(self._total_paid))
            if self.on_depleted is not None:
                self.on_depleted()
        return ChargeReceipt(
            requested=requested,
            collected=collected,
            balance=self._balance,
            depleted=depleted,
        )

    def top_up(
        self,
        amount: AmountLike,
        note: str = "top-up",
        *,
        administrative: bool = False,
    ) -> Decimal:
        """Credit ``amount``. Negative credits are reserved for administrative use."""
        credit = to_amount(amount, allow_negative=administrative)
        self._balance = max(ZERO, self._balance + credit)
        self._event_log.record(EventKind.TOP_UP, credit, note)
        _log.info(
            "ledger_topped_up",
            amount=format_amount(credit),
            balance=format_amount(self._balance),
        )
        return self._balance

    def reset_balance(self, note: str = "session reset") -> Decimal:
        """Zero the balance. The owning session must stop afterwards."""
        self._balance = ZERO
        self._event_log.record(EventKind.RESET, ZERO, note)
        _log.info("ledger_reset")
        return self._balance
