from .clock import MeterClock, RealTimeMeterClock, SteppedMeterClock, WallClock
from .session_controller import MeterSnapshot, SessionController, SessionState
from .ticks import IntervalTickSource, PlaybackTickSource, TickParticipant, TickSource

__all__ = [
    "IntervalTickSource",
    "MeterClock",
    "MeterSnapshot",
    "PlaybackTickSource",
    "RealTimeMeterClock",
    "SessionController",
    "SessionState",
    "SteppedMeterClock",
    "TickParticipant",
    "TickSource",
    "WallClock",
]
