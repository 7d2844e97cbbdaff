"""
Time-value helpers shared by the projector and the reports.

All functions take and return Decimal at full working precision.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from core.errors import InvalidHorizonError, InvalidRateError, MalformedInputError
from core.utils import ONE, ZERO, decimal_context, to_decimal


def growth_factor(annual_rate: Any, years: Any) -> Decimal:
    """(1 + annual_rate) ** years, with fractional years allowed."""
    rate = to_decimal(annual_rate, "annual_rate")
    t = to_decimal(years, "years")
    if rate <= -1:
        raise InvalidRateError(f"annual rate must be greater than -100%, got {rate}.")
    with decimal_context():
        if t == 0:
            return ONE
        return (ONE + rate) ** t


def future_value(present_value: Any, annual_rate: Any, years: Any, compounding_per_year: int = 1) -> Decimal:
    """FV = PV × (1 + r/m)^(years·m)"""
    pv = to_decimal(present_value, "present_value")
    rate = to_decimal(annual_rate, "annual_rate")
    t = to_decimal(years, "years")
    with decimal_context():
        return pv * growth_factor(rate / compounding_per_year, t * compounding_per_year)


def present_value(future_amount: Any, annual_rate: Any, years: Any, compounding_per_year: int = 1) -> Decimal:
    """PV = FV / (1 + r/m)^(years·m)"""
    fv = to_decimal(future_amount, "future_value")
    rate = to_decimal(annual_rate, "annual_rate")
    t = to_decimal(years, "years")
    with decimal_context():
        return fv / growth_factor(rate / compounding_per_year, t * compounding_per_year)


def inflation_adjusted_value(amount: Any, inflation_rate: Any, years: Any) -> Decimal:
    """Express a future nominal amount in today's money."""
    return present_value(amount, inflation_rate, years)


def cagr(initial_value: Any, final_value: Any, years: Any) -> Decimal:
    """Compound annual growth rate: (final / initial)^(1/years) − 1."""
    start = to_decimal(initial_value, "initial_value")
    end = to_decimal(final_value, "final_value")
    t = to_decimal(years, "years")
    if start <= 0:
        raise MalformedInputError("initial_value must be positive.")
    if t <= 0:
        raise InvalidHorizonError("years must be positive.")
    if end < 0:
        raise MalformedInputError("final_value must not be negative.")
    with decimal_context():
        if end == 0:
            return -ONE
        return (end / start) ** (ONE / t) - ONE


def required_savings(
    future_goal: Any,
    current_savings: Any,
    years_to_goal: Any,
    expected_return: Any,
    contributions_per_year: int = 12,
) -> Decimal:
    """
    Periodic contribution needed to reach `future_goal`, given what
    `current_savings` will grow to on its own. Zero when the goal is already met.
    """
    goal = to_decimal(future_goal, "future_goal")
    savings = to_decimal(current_savings, "current_savings")
    t = to_decimal(years_to_goal, "years_to_goal")
    rate = to_decimal(expected_return, "expected_return")
    if t <= 0:
        raise InvalidHorizonError("years_to_goal must be positive.")

    with decimal_context():
        periods = t * contributions_per_year
        if rate == 0:
            return max((goal - savings) / periods, ZERO)

        periodic_rate = rate / contributions_per_year
        shortfall = goal - future_value(savings, rate, t, contributions_per_year)
        if shortfall <= 0:
            return ZERO
        annuity_factor = (growth_factor(periodic_rate, periods) - ONE) / periodic_rate
        return shortfall / annuity_factor
