"""
Income models — convert an asset's projected value into the income it produces.

  YieldIncome      : value × yield (cash interest, share dividends, generic assets)
  RentalIncome     : rent at a payment frequency, less vacancy, growing with rents
  EmploymentIncome : salary at a payment frequency plus expected bonus, growing with wages

Every cadence conversion goes through the annual basis (frequency.to_annual).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from core.errors import InvalidRateError, MalformedInputError
from core.schema import PaymentFrequency
from core.utils import ONE, ZERO, decimal_context

from .compounding import growth_factor
from .frequency import to_annual


class IncomeModel:
    """Interface for per-asset-type income formulas."""

    def annual_income(self, value: Decimal, years_elapsed: Decimal) -> Decimal:
        """
        Annual income rate at a projection point.

        value         : projected asset value at that point
        years_elapsed : time since the snapshot, in (fractional) years
        """
        raise NotImplementedError


@dataclass(frozen=True)
class YieldIncome(IncomeModel):
    """Income proportional to the asset's current value."""

    annual_yield: Decimal = ZERO

    def annual_income(self, value: Decimal, years_elapsed: Decimal) -> Decimal:
        with decimal_context():
            return value * self.annual_yield


@dataclass(frozen=True)
class RentalIncome(IncomeModel):
    """
    Rent received at `frequency`, reduced by the expected vacancy rate.

    Rent is assumed to track the property's value, so it escalates at
    `rent_growth_rate` (usually the property's growth rate).
    """

    rent: Decimal
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    vacancy_rate: Decimal = ZERO
    rent_growth_rate: Decimal = ZERO

    def __post_init__(self) -> None:
        if not ZERO <= self.vacancy_rate <= ONE:
            raise MalformedInputError(f"vacancy_rate must be within [0, 1], got {self.vacancy_rate}.")
        if self.rent_growth_rate <= -1:
            raise InvalidRateError(f"rent_growth_rate must be greater than -100%, got {self.rent_growth_rate}.")

    def base_annual_rent(self) -> Decimal:
        with decimal_context():
            return to_annual(self.rent, self.frequency) * (ONE - self.vacancy_rate)

    def annual_income(self, value: Decimal, years_elapsed: Decimal) -> Decimal:
        with decimal_context():
            return self.base_annual_rent() * growth_factor(self.rent_growth_rate, years_elapsed)


@dataclass(frozen=True)
class EmploymentIncome(IncomeModel):
    """
    Salary paid at `frequency` plus an expected bonus.

    The bonus is a fixed amount, a percentage of annual salary, or both,
    weighted by `bonus_likelihood` (probability in [0, 1]).
    """

    base_salary: Decimal
    frequency: PaymentFrequency = PaymentFrequency.ANNUALLY
    bonus_fixed_amount: Decimal = ZERO
    bonus_percentage: Decimal = ZERO
    bonus_likelihood: Decimal = ONE
    salary_growth_rate: Decimal = ZERO

    def __post_init__(self) -> None:
        if not ZERO <= self.bonus_likelihood <= ONE:
            raise MalformedInputError(f"bonus_likelihood must be within [0, 1], got {self.bonus_likelihood}.")
        if self.salary_growth_rate <= -1:
            raise InvalidRateError(f"salary_growth_rate must be greater than -100%, got {self.salary_growth_rate}.")

    def base_annual_income(self) -> Decimal:
        with decimal_context():
            salary = to_annual(self.base_salary, self.frequency)
            bonus = self.bonus_fixed_amount + salary * self.bonus_percentage
            return salary + bonus * self.bonus_likelihood

    def annual_income(self, value: Decimal, years_elapsed: Decimal) -> Decimal:
        with decimal_context():
            return self.base_annual_income() * growth_factor(self.salary_growth_rate, years_elapsed)
