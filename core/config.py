"""
Projection configuration.
Passed explicitly into every engine call; the engine never reads ambient state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

MAX_HORIZON_YEARS: int = 100
CURRENCY_PLACES: int = 2


@dataclass(frozen=True)
class ProjectionConfig:
    as_of_date: date = field(default_factory=date.today)
    max_horizon_years: int = MAX_HORIZON_YEARS
    currency_places: int = CURRENCY_PLACES

    # expense escalation / real-terms output
    inflation_rate: Decimal = Decimal("0")
    adjust_for_inflation: bool = False

    # cashflow switches
    include_income: bool = True
    include_expenses: bool = True
    exclude_liabilities: bool = False
    reinvest_income: bool = False     # income compounds into the asset that earned it
