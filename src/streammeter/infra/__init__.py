"""Infrastructure: settings, logging and the exception hierarchy."""

from .exceptions import (
    BusinessRuleError,
    InvalidAmountError,
    InvalidRateError,
    MeterError,
    NoActiveSessionError,
    ValidationError,
)
from .settings import Settings, settings

__all__ = [
    "BusinessRuleError",
    "InvalidAmountError",
    "InvalidRateError",
    "MeterError",
    "NoActiveSessionError",
    "Settings",
    "ValidationError",
    "settings",
]
