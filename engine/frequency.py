"""
Frequency normalization — every cadence conversion goes through the annual basis.

    annual  = amount × periods_per_year(frequency)
    monthly = annual / 12

Chained approximate multipliers (e.g. weekly × 4.33) are never used.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Union

from core.schema import PERIODS_PER_YEAR, PaymentFrequency
from core.utils import TWELVE, decimal_context

FrequencyLike = Union[PaymentFrequency, str]


def as_frequency(frequency: FrequencyLike) -> PaymentFrequency:
    """Resolve a frequency value; anything outside the enumeration is a programming error."""
    if isinstance(frequency, PaymentFrequency):
        return frequency
    try:
        return PaymentFrequency(frequency)
    except ValueError:
        raise ValueError(f"Unknown payment frequency: {frequency!r}") from None


def periods_per_year(frequency: FrequencyLike) -> int:
    return PERIODS_PER_YEAR[as_frequency(frequency)]


def to_annual(amount: Decimal, frequency: FrequencyLike) -> Decimal:
    """Amount paid at `frequency`, expressed per year."""
    with decimal_context():
        return amount * periods_per_year(frequency)


def to_monthly(amount: Decimal, frequency: FrequencyLike) -> Decimal:
    """Amount paid at `frequency`, expressed per calendar month."""
    with decimal_context():
        return to_annual(amount, frequency) / TWELVE


def convert(amount: Decimal, from_frequency: FrequencyLike, to_frequency: FrequencyLike) -> Decimal:
    """Re-express an amount paid at one cadence as the equivalent amount at another."""
    with decimal_context():
        return to_annual(amount, from_frequency) / periods_per_year(to_frequency)
