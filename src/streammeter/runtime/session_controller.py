"""
Component: SessionController - per-viewer metering orchestration
Purpose: Wires billing ticks into the rate resolver, ledger, segment tracker,
season pass validator, event log and autopilot guard.

Usage:
    controller = SessionController(session_id="viewer-1")
    controller.start_session()
    controller.on_tick(12.4)          # bills second 12 once
    controller.report_top_up(2.5)     # funding collaborator completed a deposit
    controller.stop_session()

Each controller owns its state exclusively. Meter concurrent viewers with one
controller each; nothing is shared between instances.

Errors raised by the domain (invalid amounts, invalid rates, charging while
stopped) are caught at this boundary, logged, and turned into no-ops: the
caller observes an unchanged state and a ``None``/``False`` return value.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Optional

from streammeter.domain.autopilot import AutopilotGuard, AutopilotState
from streammeter.domain.event_log import EventKind, EventLog, LedgerEvent
from streammeter.domain.ledger import BalanceLedger, ChargeReceipt
from streammeter.domain.money import ZERO, AmountLike, format_amount
from streammeter.domain.rates import CreatorTerms, Quality, RateResolver
from streammeter.domain.season_pass import SeasonPassValidator
from streammeter.domain.segments import Segment, WatchedSegmentTracker
from streammeter.infra.exceptions import MeterError, NoActiveSessionError, ValidationError
from streammeter.infra.logging import get_logger
from streammeter.infra.settings import Settings, settings

from .clock import WallClock
from .ticks import TickSource

logger = get_logger(__name__)


@dataclass
class SessionState:
    """Mutable session context owned by one controller."""

    is_playing: bool = False
    quality: Quality = Quality.STANDARD
    last_charged_second: Optional[int] = None
    seconds_billed: int = 0
    viewer_identity: Optional[str] = None
    pass_domain: Optional[str] = None
    discount_code: Optional[str] = None


@dataclass(frozen=True)
class MeterSnapshot:
    """Read-only view handed to collaborators (progress bar, meter, audit log)."""

    session_id: str
    is_playing: bool
    balance: Decimal
    total_paid: Decimal
    total_collected: Decimal
    has_season_pass: bool
    quality: Quality
    base_rate: Decimal
    effective_rate: Decimal
    autopilot_state: AutopilotState
    watched_segments: tuple[Segment, ...]
    total_watched_seconds: int
    seconds_billed: int = 0
    discount_code: Optional[str] = None
    events: tuple[LedgerEvent, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "is_playing": self.is_playing,
            "balance": str(self.balance),
            "total_paid": str(self.total_paid),
            "total_collected": str(self.total_collected),
            "has_season_pass": self.has_season_pass,
            "quality": self.quality.value,
            "base_rate": str(self.base_rate),
            "effective_rate": str(self.effective_rate),
            "autopilot_state": self.autopilot_state.value,
            "watched_segments": [list(segment) for segment in self.watched_segments],
            "total_watched_seconds": self.total_watched_seconds,
            "seconds_billed": self.seconds_billed,
            "discount_code": self.discount_code,
            "events": [event.to_dict() for event in self.events],
        }


class SessionController:
    """
    Orchestrates one viewer's metering session.

    States: Stopped -> Playing -> Stopped. A charge that empties the balance
    stops the session automatically.
    """

    def __init__(
        self,
        config: Settings | None = None,
        *,
        session_id: str = "default",
        initial_balance: AmountLike | None = None,
        wall_clock: WallClock | None = None,
        on_refill_prompt: Optional[Callable[[Decimal], None]] = None,
    ) -> None:
        """
        Initialize SessionController.

        Args:
            config: Settings to read defaults from (global settings if None)
            session_id: Label bound to every log line of this session
            initial_balance: Opening balance (config.initial_balance if None)
            wall_clock: Source of event timestamps
            on_refill_prompt: Callback opening the top-up UI; receives the balance
        """
        self._config = config or settings
        self.session_id = session_id
        self._log = logger.bind(session_id=session_id)
        self._wall_clock = wall_clock or WallClock()

        self.event_log = EventLog(
            self._config.event_log_capacity,
            now_fn=self._wall_clock.now_utc,
        )
        self.ledger = BalanceLedger(self.event_log, on_depleted=self._on_depleted)
        self.tracker = WatchedSegmentTracker()
        self.rates = RateResolver(self._config.default_rate)
        self.season_pass = SeasonPassValidator()
        self.autopilot = AutopilotGuard(
            self._config.min_balance,
            enabled=self._config.autopilot_enabled,
            on_prompt=on_refill_prompt,
        )
        self._state = SessionState(quality=Quality.parse(self._config.default_quality))

        opening = self._config.initial_balance if initial_balance is None else initial_balance
        self.ledger.init(opening, note="opening balance")

    # Read-only surface ------------------------------------------------------
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def balance(self) -> Decimal:
        return self.ledger.balance

    @property
    def total_paid(self) -> Decimal:
        return self.ledger.total_paid

    @property
    def is_playing(self) -> bool:
        return self._state.is_playing

    @property
    def has_season_pass(self) -> bool:
        return self.season_pass.is_active

    @property
    def quality(self) -> Quality:
        return self._state.quality

    @property
    def watched_segments(self) -> tuple[Segment, ...]:
        return self.tracker.segments

    @property
    def events(self) -> tuple[LedgerEvent, ...]:
        return self.event_log.snapshot()

    @property
    def effective_rate(self) -> Decimal:
        return self.rates.effective_rate(quality=self._state.quality)

    def is_second_watched(self, second: int) -> bool:
        return self.tracker.is_watched(second)

    def snapshot(self) -> MeterSnapshot:
        return MeterSnapshot(
            session_id=self.session_id,
            is_playing=self._state.is_playing,
            balance=self.ledger.balance,
            total_paid=self.ledger.total_paid,
            total_collected=self.ledger.total_collected,
            has_season_pass=self.season_pass.is_active,
            quality=self._state.quality,
            base_rate=self.rates.base_rate,
            effective_rate=self.effective_rate,
            autopilot_state=self.autopilot.state,
            watched_segments=self.tracker.segments,
            total_watched_seconds=self.tracker.total_watched_seconds(),
            seconds_billed=self._state.seconds_billed,
            discount_code=self._state.discount_code,
            events=self.event_log.snapshot(),
        )

    # Lifecycle --------------------------------------------------------------
    def attach(self, source: TickSource) -> None:
        """Register this controller with a tick source."""
        source.add_participant(self)

    def detach(self, source: TickSource) -> None:
        source.remove_participant(self)

    def init_balance(self, amount: AmountLike) -> Optional[Decimal]:
        """Fund the session with a fresh balance, clearing running totals."""
        try:
            return self.ledger.init(amount)
        except MeterError as exc:
            self._log.warning("amount_rejected", operation="init_balance", error=str(exc))
            return None

    def start_session(self) -> bool:
        """Stopped -> Playing. Seeds the demo balance when the balance is empty."""
        if self._state.is_playing:
            return False

        if self.ledger.balance == ZERO:
            self.ledger.seed(self._config.demo_balance, note="demo balance seeded")
        else:
            self.event_log.record(EventKind.INIT, self.ledger.balance, "session started")

        self._state.is_playing = True
        self._state.last_charged_second = None
        self._log.info("session_started", balance=format_amount(self.ledger.balance))
        return True

    def stop_session(self, reason: str = "viewer_stopped") -> bool:
        """Playing -> Stopped. Balance, segments and totals are kept."""
        if not self._state.is_playing:
            return False
        self._state.is_playing = False
        self._log.info("session_stopped", reason=reason)
        return True

    # Ticks ------------------------------------------------------------------
    def on_tick(self, current_second: float) -> Optional[ChargeReceipt]:
        """Bill the whole second containing ``current_second`` if it is new.

        Returns the charge receipt, or ``None`` when nothing was charged.
        """
        if isinstance(current_second, bool) or not math.isfinite(current_second) or current_second < 0:
            self._log.debug("tick_ignored", current_second=current_second)
            return None

        second = math.floor(current_second)
        if second == self._state.last_charged_second:
            return None
        if self.season_pass.is_active:
            return None

        try:
            return self.charge_second(second)
        except NoActiveSessionError:
            self._log.debug("tick_while_stopped", second=second)
            return None
        except MeterError as exc:
            self._log.warning("charge_rejected", second=second, error=str(exc))
            return None

    def charge_second(self, second: int) -> Optional[ChargeReceipt]:
        """Charge one whole second unless it was already paid for.

        Unlike :meth:`on_tick` this raises: :class:`NoActiveSessionError`
        while stopped, and the ledger's errors for an unusable rate.
        """
        if not self._state.is_playing:
            raise NoActiveSessionError(second)
        if second < 0:
            raise ValidationError(f"negative second: {second}")
        if self.tracker.is_watched(second):
            return None

        rate = self.rates.effective_rate(quality=self._state.quality)
        receipt = self.ledger.charge(rate, note=f"second {second}")
        self.tracker.mark_watched(second)
        self._state.last_charged_second = second
        self._state.seconds_billed += 1
        self._log.debug(
            "charge_applied",
            second=second,
            amount=format_amount(receipt.requested),
            balance=format_amount(receipt.balance),
        )

        self.autopilot.evaluate(
            is_playing=self._state.is_playing,
            balance=self.ledger.balance,
            season_pass_active=self.season_pass.is_active,
        )
        return receipt

    def _on_depleted(self) -> None:
        if not self.season_pass.is_active:
            self.stop_session(reason="balance_depleted")

    # Funding ----------------------------------------------------------------
    def top_up(self, amount: AmountLike, note: str = "top-up") -> Optional[Decimal]:
        """Credit the balance. Returns the new balance, or ``None`` if rejected."""
        try:
            return self.ledger.top_up(amount, note=note)
        except MeterError as exc:
            self._log.warning("amount_rejected", operation="top_up", error=str(exc))
            return None

    def report_top_up(self, amount: AmountLike) -> Optional[Decimal]:
        """An external deposit completed: credit it and settle the autopilot."""
        balance = self.top_up(amount, note="external deposit")
        if balance is None:
            return None
        if self.autopilot.mark_credited():
            self.autopilot.settle()
        return balance

    def reset_balance(self) -> Decimal:
        """Zero the balance and stop the session."""
        balance = self.ledger.reset_balance()
        self.stop_session(reason="balance_reset")
        self._state.last_charged_second = None
        return balance

    # Rate inputs ------------------------------------------------------------
    def set_base_rate(self, rate: AmountLike | None) -> Optional[Decimal]:
        """Install the creator's base rate (``None`` restores the default)."""
        try:
            base = self.rates.set_base_rate(rate)
        except MeterError as exc:
            self._log.warning("rate_rejected", error=str(exc))
            return None
        self._log.info("base_rate_set", base_rate=str(base))
        return base

    def set_quality(self, quality: Quality | str) -> Optional[Quality]:
        try:
            parsed = Quality.parse(quality)
        except ValueError as exc:
            self._log.warning("quality_rejected", error=str(exc))
            return None
        self._state.quality = parsed
        return parsed

    def apply_creator_terms(self, terms: CreatorTerms) -> None:
        """Apply creator-published terms: base rate, discount code and pass domain."""
        self.set_base_rate(terms.base_rate)
        self._state.discount_code = terms.discount_code
        self.validate_season_pass(self._state.viewer_identity, terms.season_pass_domain)

    # Season pass ------------------------------------------------------------
    def validate_season_pass(
        self,
        viewer_identity: Optional[str],
        pass_domain: Optional[str],
    ) -> bool:
        """Re-evaluate the season pass for new identity/domain inputs."""
        was_active = self.season_pass.is_active
        self._state.viewer_identity = viewer_identity
        self._state.pass_domain = pass_domain
        active = self.season_pass.validate(viewer_identity, pass_domain)
        if active and not was_active:
            self.event_log.record(
                EventKind.SEASON_PASS_GRANT,
                ZERO,
                f"season pass {pass_domain}",
            )
            self._log.info("season_pass_granted", viewer=viewer_identity, pass_domain=pass_domain)
        elif was_active and not active:
            self._log.info("season_pass_revoked", pass_domain=pass_domain)
        return active

    def revoke_season_pass(self) -> None:
        if self.season_pass.is_active:
            self._log.info("season_pass_revoked", pass_domain=self._state.pass_domain)
        self.season_pass.revoke()
        self._state.pass_domain = None

    # Autopilot --------------------------------------------------------------
    def configure_autopilot(
        self,
        *,
        enabled: Optional[bool] = None,
        min_balance: AmountLike | None = None,
    ) -> None:
        if enabled is not None:
            self.autopilot.enabled = enabled
        if min_balance is not None:
            try:
                self.autopilot.min_balance = min_balance
            except MeterError as exc:
                self._log.warning("amount_rejected", operation="min_balance", error=str(exc))

    def dismiss_refill_prompt(self) -> bool:
        return self.autopilot.dismiss()

    def begin_bridging(self) -> bool:
        return self.autopilot.begin_bridging()

    def fail_bridging(self, reason: str = "") -> bool:
        return self.autopilot.fail(reason)
