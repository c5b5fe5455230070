from streammeter.domain.autopilot import AutopilotGuard, AutopilotState
from streammeter.domain.event_log import (
    EventIdGenerator,
    EventKind,
    EventLog,
    LedgerEvent,
)
from streammeter.domain.ledger import BalanceLedger, ChargeReceipt
from streammeter.domain.money import to_amount
from streammeter.domain.rates import CreatorTerms, Quality, RateResolver
from streammeter.domain.season_pass import SeasonPassValidator, matches_pass_domain
from streammeter.domain.segments import Segment, WatchedSegmentTracker

__all__ = [
    "AutopilotGuard",
    "AutopilotState",
    "BalanceLedger",
    "ChargeReceipt",
    "CreatorTerms",
    "EventIdGenerator",
    "EventKind",
    "EventLog",
    "LedgerEvent",
    "Quality",
    "RateResolver",
    "SeasonPassValidator",
    "Segment",
    "WatchedSegmentTracker",
    "matches_pass_domain",
    "to_amount",
]
