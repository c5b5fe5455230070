"""
Global test configuration for StreamMeter.

This module provides global pytest configuration and fixtures.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure the project src directory is importable without relying on external environment.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from streammeter.infra.settings import Settings
from streammeter.runtime.clock import SteppedMeterClock
from streammeter.runtime.session_controller import SessionController


class FrozenWallClock:
    """Wall clock that advances one second per reading."""

    def __init__(self) -> None:
        self._now = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now_utc(self) -> datetime:
        current = self._now
        self._now += timedelta(seconds=1)
        return current


@pytest.fixture
def meter_settings() -> Settings:
    return Settings(
        default_rate=0.0001,
        initial_balance=1.0,
        demo_balance=5.0,
        default_quality="720p",
        min_balance=2.0,
        autopilot_enabled=False,
        event_log_capacity=50,
        tick_ms=1000,
        max_catch_up_ticks=3,
    )


@pytest.fixture
def stepped_clock() -> SteppedMeterClock:
    return SteppedMeterClock()


@pytest.fixture
def wall_clock() -> FrozenWallClock:
    return FrozenWallClock()


@pytest.fixture
def controller(meter_settings: Settings, wall_clock: FrozenWallClock) -> SessionController:
    return SessionController(meter_settings, session_id="test", wall_clock=wall_clock)
