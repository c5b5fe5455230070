"""Low-balance autopilot.

State machine::

    IDLE -> PROMPTING -> CREDITED -> IDLE
                      -> BRIDGING -> CREDITED -> IDLE
                                  -> FAILED -> IDLE
                      -> IDLE            (prompt dismissed)

The guard opens the refill prompt once per low-balance episode. While it is
anywhere other than IDLE, :meth:`AutopilotGuard.evaluate` does nothing, so a
balance that stays below the threshold does not spawn a prompt per tick.
Failures land back in IDLE without retrying; the next evaluation that still
sees a low balance opens a fresh prompt.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Callable, Optional

import structlog

from streammeter.domain.money import ZERO, AmountLike, format_amount, to_amount

_log = structlog.get_logger(__name__)

PromptFn = Callable[[Decimal], None]


class AutopilotState(str, Enum):
    IDLE = "idle"
    PROMPTING = "prompting"
    BRIDGING = "bridging"
    CREDITED = "credited"
    FAILED = "failed"


class AutopilotGuard:
    """Watches the balance during playback and asks for a refill when low."""

    def __init__(
        self,
        min_balance: AmountLike,
        *,
        enabled: bool = False,
        on_prompt: Optional[PromptFn] = None,
    ) -> None:
        self._min_balance = to_amount(min_balance)
        self.enabled = enabled
        self.on_prompt = on_prompt
        self._state = AutopilotState.IDLE
        self._prompts_opened = 0

    @property
    def state(self) -> AutopilotState:
        return self._state

    @property
    def min_balance(self) -> Decimal:
        return self._min_balance

    @min_balance.setter
    def min_balance(self, value: AmountLike) -> None:
        self._min_balance = to_amount(value)

    @property
    def prompts_opened(self) -> int:
        return self._prompts_opened

    def evaluate(self, *, is_playing: bool, balance: Decimal, season_pass_active: bool) -> bool:
        """Open the refill prompt if the guard condition holds.

        Returns ``True`` only on the evaluation that moved IDLE -> PROMPTING.
        """
        if self._state is not AutopilotState.IDLE:
            return False
        if not (self.enabled and is_playing) or season_pass_active:
            return False
        if not (ZERO < balance < self._min_balance):
            return False

        self._state = AutopilotState.PROMPTING
        self._prompts_opened += 1
        _log.info(
            "refill_prompt_opened",
            balance=format_amount(balance),
            min_balance=format_amount(self._min_balance),
        )
        if self.on_prompt is not None:
            self.on_prompt(balance)
        return True

    def begin_bridging(self) -> bool:
        """PROMPTING -> BRIDGING when an external funding flow starts."""
        if self._state is not AutopilotState.PROMPTING:
            return False
        self._state = AutopilotState.BRIDGING
        _log.info("refill_bridging")
        return True

    def mark_credited(self) -> bool:
        """PROMPTING/BRIDGING -> CREDITED when the deposit lands."""
        if self._state not in (AutopilotState.PROMPTING, AutopilotState.BRIDGING):
            return False
        self._state = AutopilotState.CREDITED
        _log.info("refill_credited")
        return True

    def settle(self) -> None:
        """CREDITED -> IDLE once the credited balance has been applied."""
        if self._state is AutopilotState.CREDITED:
            self._state = AutopilotState.IDLE

    def dismiss(self) -> bool:
        """PROMPTING -> IDLE without crediting."""
        if self._state is not AutopilotState.PROMPTING:
            return False
        self._state = AutopilotState.IDLE
        _log.info("refill_prompt_dismissed")
        return True

    def fail(self, reason: str = "") -> bool:
        """BRIDGING -> FAILED -> IDLE. No automatic retry."""
        if self._state is not AutopilotState.BRIDGING:
            return False
        self._state = AutopilotState.FAILED
        _log.warning("refill_failed", reason=reason)
        self._state = AutopilotState.IDLE
        return True

    def reset(self) -> None:
        self._state = AutopilotState.IDLE
