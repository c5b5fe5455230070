"""Unit tests for the AutopilotGuard state machine.

Run with: pytest tests/unit/test_autopilot.py -v
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from streammeter.domain.autopilot import AutopilotGuard, AutopilotState
from streammeter.infra.exceptions import InvalidAmountError


@pytest.fixture
def prompts() -> list[Decimal]:
    return []


@pytest.fixture
def guard(prompts: list[Decimal]) -> AutopilotGuard:
    return AutopilotGuard("0.5", enabled=True, on_prompt=prompts.append)


def _low(guard: AutopilotGuard, balance: str = "0.4", **overrides) -> bool:
    kwargs = {"is_playing": True, "balance": Decimal(balance), "season_pass_active": False}
    kwargs.update(overrides)
    return guard.evaluate(**kwargs)


class TestEvaluate:
    def test_prompts_once_per_episode(self, guard: AutopilotGuard, prompts: list[Decimal]):
        assert _low(guard, "0.6") is False
        assert _low(guard, "0.4") is True
        assert _low(guard, "0.3") is False
        assert _low(guard, "0.2") is False

        assert guard.state is AutopilotState.PROMPTING
        assert prompts == [Decimal("0.4")]
        assert guard.prompts_opened == 1

    @pytest.mark.parametrize(
        "overrides",
        [
            {"is_playing": False},
            {"season_pass_active": True},
            {"balance": Decimal("0")},
            {"balance": Decimal("0.5")},
        ],
    )
    def test_guard_conditions(self, guard: AutopilotGuard, overrides):
        assert _low(guard, **overrides) is False
        assert guard.state is AutopilotState.IDLE

    def test_disabled_guard_never_prompts(self, prompts: list[Decimal]):
        guard = AutopilotGuard("0.5", enabled=False, on_prompt=prompts.append)
        assert _low(guard) is False
        assert prompts == []


class TestTransitions:
    def test_credit_returns_to_idle(self, guard: AutopilotGuard):
        _low(guard)
        assert guard.mark_credited()
        assert guard.state is AutopilotState.CREDITED
        guard.settle()
        assert guard.state is AutopilotState.IDLE

    def test_dismiss_rearms(self, guard: AutopilotGuard, prompts: list[Decimal]):
        _low(guard)
        assert guard.dismiss()
        assert guard.state is AutopilotState.IDLE

        assert _low(guard, "0.3") is True
        assert len(prompts) == 2

    def test_bridging_then_credit(self, guard: AutopilotGuard):
        _low(guard)
        assert guard.begin_bridging()
        assert guard.state is AutopilotState.BRIDGING
        assert not guard.dismiss()
        assert _low(guard) is False

        assert guard.mark_credited()
        guard.settle()
        assert guard.state is AutopilotState.IDLE

    def test_bridging_failure_returns_to_idle_without_retry(
        self, guard: AutopilotGuard, prompts: list[Decimal]
    ):
        _low(guard)
        guard.begin_bridging()
        assert guard.fail("bridge timeout")
        assert guard.state is AutopilotState.IDLE
        assert len(prompts) == 1

    def test_out_of_order_events_are_ignored(self, guard: AutopilotGuard):
        assert not guard.mark_credited()
        assert not guard.begin_bridging()
        assert not guard.fail()
        assert not guard.dismiss()
        guard.settle()
        assert guard.state is AutopilotState.IDLE

    def test_min_balance_is_validated(self, guard: AutopilotGuard):
        guard.min_balance = "1.5"
        assert guard.min_balance == Decimal("1.5")
        with pytest.raises(InvalidAmountError):
            guard.min_balance = -1
