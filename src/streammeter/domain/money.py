"""Currency amount coercion.

Every amount entering the engine passes through :func:`to_amount` so the
ledger only ever stores finite :class:`~decimal.Decimal` values. Floats are
converted through ``str`` so ``0.0001`` stays ``Decimal("0.0001")``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

from streammeter.infra.exceptions import InvalidAmountError

AmountLike = Union[Decimal, int, float, str]

ZERO = Decimal("0")


def to_amount(value: AmountLike, *, allow_negative: bool = False) -> Decimal:
    """Convert ``value`` to a finite Decimal.

    Raises
    ------
    InvalidAmountError
        If the value is not numeric, is NaN/infinite, or is negative while
        ``allow_negative`` is false.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value, "not a number")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, str)):
            amount = Decimal(value)
        elif isinstance(value, float):
            amount = Decimal(str(value))
        else:
            raise InvalidAmountError(value, "not a number")
    except InvalidOperation:
        raise InvalidAmountError(value, "not a number") from None

    if not amount.is_finite():
        raise InvalidAmountError(value, "not finite")
    if amount < 0 and not allow_negative:
        raise InvalidAmountError(value, "negative")
    return amount


def format_amount(amount: Decimal, places: int = 6) -> str:
    """Render an amount with a fixed number of decimal places."""
    return f"{amount:.{places}f}"
