"""
Custom exceptions for StreamMeter operations.

Domain components raise these; the session controller catches them at its
public boundary and turns them into no-ops.
"""


class MeterError(Exception):
    """Base exception for all StreamMeter errors."""

    pass


class ValidationError(MeterError):
    """Raised when validation fails."""

    pass


class BusinessRuleError(MeterError):
    """Raised when business rule violation occurs."""

    pass


class InvalidAmountError(ValidationError):
    """Raised for negative, non-finite or non-numeric currency amounts."""

    def __init__(self, value: object, reason: str = "invalid amount") -> None:
        super().__init__(f"{reason}: {value!r}")
        self.value = value
        self.reason = reason


class InvalidRateError(ValidationError):
    """Raised for a negative or non-finite base rate."""

    def __init__(self, value: object) -> None:
        super().__init__(f"invalid base rate: {value!r}")
        self.value = value


class NoActiveSessionError(BusinessRuleError):
    """Raised when a charge is attempted while the session is stopped."""

    def __init__(self, second: int | None = None) -> None:
        super().__init__("no active session")
        self.second = second
