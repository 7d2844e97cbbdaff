"""
Canonical enumerations and the JSON wire schema of the projection engine.

The pydantic models describe the request/response payloads exchanged with the
web layer (camelCase on the wire, snake_case in Python). The engine itself works
on the frozen dataclasses in engine/; these models only exist at the boundary.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PaymentFrequency(str, Enum):
    WEEKLY = "weekly"
    FORTNIGHTLY = "fortnightly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"


PERIODS_PER_YEAR: Dict[PaymentFrequency, int] = {
    PaymentFrequency.WEEKLY: 52,
    PaymentFrequency.FORTNIGHTLY: 26,
    PaymentFrequency.MONTHLY: 12,
    PaymentFrequency.QUARTERLY: 4,
    PaymentFrequency.ANNUALLY: 1,
}


class Granularity(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"

    @property
    def periods_per_year(self) -> int:
        return 12 if self is Granularity.MONTHLY else 1

    @property
    def months_per_period(self) -> int:
        return 12 // self.periods_per_year


class InterestRateType(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"  # rate held constant for the life of the schedule


class RepaymentType(str, Enum):
    PRINCIPAL_AND_INTEREST = "principal_and_interest"
    INTEREST_ONLY = "interest_only"


# ---------------------------------------------------------------------------
# Wire schema
# ---------------------------------------------------------------------------

class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class AssetPayload(_WireModel):
    current_value: Decimal
    annual_growth_rate: Decimal
    annual_income_yield: Decimal = Decimal("0")
    asset_class_label: str = "Unclassified"
    holding_type_label: Optional[str] = None


class LoanPayload(_WireModel):
    principal: Decimal
    annual_interest_rate: Decimal
    term_months: int
    start_date: date
    interest_rate_type: InterestRateType = InterestRateType.FIXED
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    repayment_type: RepaymentType = RepaymentType.PRINCIPAL_AND_INTEREST
    label: Optional[str] = None


class BalanceLiabilityPayload(_WireModel):
    balance: Decimal
    annual_growth_rate: Decimal = Decimal("0")
    label: Optional[str] = None


class ProjectionRequest(_WireModel):
    assets: List[AssetPayload] = Field(default_factory=list)
    liabilities: List[LoanPayload] = Field(default_factory=list)
    balance_liabilities: List[BalanceLiabilityPayload] = Field(default_factory=list)
    horizon_years: Decimal  # whole years; checked by the projector
    granularity: Granularity = Granularity.MONTHLY
    as_of_date: Optional[date] = None


class CashflowPayload(_WireModel):
    total_income: List[float]
    total_expenses: List[float]
    net_cashflow: List[float]


class AssetClassSeries(_WireModel):
    asset_class: str
    values: List[float]


class HoldingTypeSeries(_WireModel):
    holding_type: str
    values: List[float]


class ProjectionResponse(_WireModel):
    dates: List[str]
    total_asset_value: List[float]
    total_liability_value: List[float]
    net_worth: List[float]
    cashflow: CashflowPayload
    asset_breakdown: List[AssetClassSeries]
    holding_type_breakdown: List[HoldingTypeSeries] = Field(default_factory=list)
    inflation_adjusted: bool = False
