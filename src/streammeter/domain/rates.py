"""Billing rate resolution.

The effective per-second rate is the creator's base rate scaled by the
multiplier of the selected playback quality. Creators publish their base
rate as a text record; when none is published (or it is unusable) the
configured default rate applies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

import structlog

from streammeter.domain.money import AmountLike, to_amount
from streammeter.infra.exceptions import InvalidAmountError, InvalidRateError

_log = structlog.get_logger(__name__)

SALE_RATE_KEY = "nitro.sale_rate"
PRICE_KEY = "nitro.price"
SEASON_PASS_KEY = "nitro.season_pass_domain"
DISCOUNT_CODE_KEY = "nitro.discount_code"

SECONDS_PER_MINUTE = Decimal(60)


class Quality(str, Enum):
    """Playback quality tiers, valued by their display label."""

    LOW = "480p"
    STANDARD = "720p"
    HIGH = "1080p"
    ULTRA = "4k"

    @property
    def multiplier(self) -> Decimal:
        return QUALITY_MULTIPLIERS[self]

    @classmethod
    def parse(cls, value: "Quality | str") -> "Quality":
        """Accept a member, its label ("1080p") or its name ("high")."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text.lower() in (member.value.lower(), member.name.lower()):
                return member
        raise ValueError(f"unknown quality: {value!r}")


QUALITY_MULTIPLIERS: dict[Quality, Decimal] = {
    Quality.LOW: Decimal("0.5"),
    Quality.STANDARD: Decimal("1"),
    Quality.HIGH: Decimal("2"),
    Quality.ULTRA: Decimal("4"),
}


def to_rate(value: AmountLike) -> Decimal:
    """Validate a base rate; raises :class:`InvalidRateError`."""
    try:
        return to_amount(value)
    except InvalidAmountError:
        raise InvalidRateError(value) from None


def rate_from_price_per_minute(price_per_minute: AmountLike) -> Decimal:
    """Convert a catalog per-minute price into a per-second rate."""
    return to_rate(price_per_minute) / SECONDS_PER_MINUTE


class RateResolver:
    """Combine a base rate with a quality multiplier.

    The base rate is the creator override when one is set, otherwise the
    default rate supplied at construction.
    """

    def __init__(self, default_rate: AmountLike) -> None:
        self._default_rate = to_rate(default_rate)
        self._override: Decimal | None = None

    @property
    def default_rate(self) -> Decimal:
        return self._default_rate

    @property
    def base_rate(self) -> Decimal:
        return self._default_rate if self._override is None else self._override

    @property
    def has_override(self) -> bool:
        return self._override is not None

    def set_base_rate(self, rate: AmountLike | None) -> Decimal:
        """Install a creator override, or clear it with ``None``.

        An invalid rate raises :class:`InvalidRateError` and leaves the
        current override in place.
        """
        if rate is None:
            self._override = None
        else:
            self._override = to_rate(rate)
        return self.base_rate

    def effective_rate(
        self,
        base_rate: AmountLike | None = None,
        quality: Quality | str = Quality.STANDARD,
    ) -> Decimal:
        """Return ``base_rate * multiplier(quality)``.

        ``base_rate`` defaults to :attr:`base_rate`. A non-finite or negative
        explicit rate is clamped to the default rate.
        """
        if base_rate is None:
            rate = self.base_rate
        else:
            try:
                rate = to_rate(base_rate)
            except InvalidRateError:
                _log.warning("base_rate_clamped_to_default", rejected=str(base_rate))
                rate = self._default_rate
        return rate * Quality.parse(quality).multiplier


@dataclass(frozen=True)
class CreatorTerms:
    """Commercial terms a creator publishes as text records."""

    base_rate: Decimal | None = None
    season_pass_domain: str | None = None
    discount_code: str | None = None

    @classmethod
    def from_text_records(cls, records: Mapping[str, str | None]) -> "CreatorTerms":
        """Parse creator text records.

        ``nitro.sale_rate`` wins over ``nitro.price``. Rates that do not parse
        to a finite, non-negative number are dropped so the default applies.
        """
        base_rate = None
        for key in (SALE_RATE_KEY, PRICE_KEY):
            raw = records.get(key)
            if raw is None or not str(raw).strip():
                continue
            try:
                base_rate = to_rate(str(raw).strip())
                break
            except InvalidRateError:
                _log.info("creator_rate_ignored", key=key, raw=str(raw))

        domain = (records.get(SEASON_PASS_KEY) or "").strip() or None
        code = (records.get(DISCOUNT_CODE_KEY) or "").strip() or None
        return cls(base_rate=base_rate, season_pass_domain=domain, discount_code=code)
