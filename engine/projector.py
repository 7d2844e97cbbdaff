"""
Net worth / cashflow projector.

Per period t = 0 .. horizon_years × periods_per_year (t = 0 is the snapshot):
  - each asset grows as  value_t = current_value × (1 + g)^(t / ppy)
  - each asset earns     income_t = annual_income(value_t) / ppy
  - each recurring expense costs  annual amount / ppy, escalated by inflation
  - each amortizing liability's balance is read off its own amortization schedule
    `elapsed_0 + t × months_per_period` months after its start; the payments
    falling inside period t are that period's loan expense (interest only for
    interest-only loans)
  - each non-amortizing liability holds its balance, grown as
    balance_t = balance × (1 + g)^(t / ppy); it adds no loan expense

With reinvest_income, the income earned in each period is added to the
asset's value from the next period on and compounds at the asset's rate.

Cashflow at index t covers the period running from t to t + 1.

Sums are kept at full precision; each output value is rounded once, and
net worth / net cashflow are derived from the rounded totals so that
net_worth[t] == total_asset_value[t] − total_liability_value[t] exactly.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from core.config import ProjectionConfig
from core.errors import InvalidHorizonError, InvalidRateError, MalformedInputError
from core.schema import Granularity, PaymentFrequency
from core.utils import ZERO, datedif_months, decimal_context, excel_round, period_labels, to_decimal

from .amortization import AmortizationSchedule, LoanTerms, balance_after, schedule_for
from .compounding import growth_factor
from .frequency import as_frequency, to_annual
from .income import IncomeModel, YieldIncome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpenseCategory:
    """Canonical expense category; raw inputs are normalized to this at the boundary."""
    id: str
    name: str
    description: Optional[str] = None
    default_frequency: PaymentFrequency = PaymentFrequency.MONTHLY


@dataclass(frozen=True)
class RecurringExpense:
    """A running cost attached to an asset (rates, insurance, management fees, ...)."""
    category: ExpenseCategory
    amount: Decimal
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY


@dataclass(frozen=True)
class AssetProjectionInput:
    current_value: Decimal
    annual_growth_rate: Decimal
    annual_income_yield: Decimal = ZERO
    asset_class_label: str = "Unclassified"
    holding_type_label: Optional[str] = None
    income_model: Optional[IncomeModel] = None  # defaults to YieldIncome(annual_income_yield)
    recurring_expenses: Tuple[RecurringExpense, ...] = ()


@dataclass(frozen=True)
class BalanceLiability:
    """A debt with no repayment schedule (credit card, margin loan, tax owed)."""
    balance: Decimal
    annual_growth_rate: Decimal = ZERO
    label: Optional[str] = None


Liability = Union[LoanTerms, BalanceLiability]


@dataclass(frozen=True)
class CashflowSeries:
    total_income: Tuple[Decimal, ...]
    total_expenses: Tuple[Decimal, ...]
    net_cashflow: Tuple[Decimal, ...]


@dataclass(frozen=True)
class BreakdownSeries:
    label: str
    values: Tuple[Decimal, ...]


@dataclass(frozen=True)
class ProjectionResult:
    dates: Tuple[str, ...]
    total_asset_value: Tuple[Decimal, ...]
    total_liability_value: Tuple[Decimal, ...]
    net_worth: Tuple[Decimal, ...]
    cashflow: CashflowSeries
    asset_breakdown: Tuple[BreakdownSeries, ...]
    holding_type_breakdown: Tuple[BreakdownSeries, ...] = ()
    inflation_adjusted: bool = False

    @property
    def n_periods(self) -> int:
        return len(self.dates)


@dataclass(frozen=True)
class _PreparedAsset:
    value: Decimal
    growth_rate: Decimal
    income_model: IncomeModel
    class_label: str
    holding_label: Optional[str]
    expenses: Tuple[Tuple[Decimal, PaymentFrequency], ...]


def _as_granularity(granularity: Union[Granularity, str]) -> Granularity:
    if isinstance(granularity, Granularity):
        return granularity
    try:
        return Granularity(granularity)
    except ValueError:
        raise ValueError(f"Unknown period granularity: {granularity!r}") from None


def _validate_horizon(horizon_years: object, config: ProjectionConfig) -> int:
    whole = isinstance(horizon_years, (numbers.Real, Decimal)) and not isinstance(horizon_years, bool)
    try:
        whole = whole and horizon_years == int(horizon_years)
    except (ValueError, OverflowError):
        whole = False
    if not whole:
        raise InvalidHorizonError(f"horizon_years must be a whole number of years, got {horizon_years!r}.")
    years = int(horizon_years)
    if years <= 0:
        raise InvalidHorizonError(f"horizon_years must be > 0, got {years}.")
    if years > config.max_horizon_years:
        raise InvalidHorizonError(
            f"horizon_years must be <= {config.max_horizon_years}, got {years}."
        )
    return years


def _prepare_asset(asset: AssetProjectionInput) -> _PreparedAsset:
    value = to_decimal(asset.current_value, "current_value")
    growth = to_decimal(asset.annual_growth_rate, "annual_growth_rate")
    if growth <= -1:
        raise InvalidRateError(f"annual_growth_rate must be greater than -100%, got {growth}.")
    model = asset.income_model
    if model is None:
        model = YieldIncome(to_decimal(asset.annual_income_yield, "annual_income_yield"))
    expenses = tuple(
        (to_decimal(e.amount, f"expense {e.category.name!r} amount"), as_frequency(e.frequency))
        for e in asset.recurring_expenses
    )
    return _PreparedAsset(
        value=value,
        growth_rate=growth,
        income_model=model,
        class_label=asset.asset_class_label or "Unclassified",
        holding_label=asset.holding_type_label,
        expenses=expenses,
    )


def _prepare_liability(terms: LoanTerms, config: ProjectionConfig) -> AmortizationSchedule:
    if terms.start_date is None:
        raise MalformedInputError("start_date is required for every amortizing liability.")
    return schedule_for(terms, places=config.currency_places)


def _prepare_balance(liability: BalanceLiability) -> Tuple[Decimal, Decimal]:
    balance = to_decimal(liability.balance, "balance")
    growth = to_decimal(liability.annual_growth_rate, "annual_growth_rate")
    if growth <= -1:
        raise InvalidRateError(f"annual_growth_rate must be greater than -100%, got {growth}.")
    return balance, growth


def _period_loan_expense(schedule: AmortizationSchedule, elapsed: int, months: int) -> Decimal:
    """Payments falling in months elapsed+1 .. elapsed+months of the loan's life."""
    lo = max(elapsed, 0)
    hi = min(elapsed + months, len(schedule))
    if hi <= lo:
        return ZERO
    rows = schedule[lo:hi]
    if schedule.interest_only:
        return sum((e.interest_portion for e in rows), ZERO)
    return sum((e.payment for e in rows), ZERO)


def _growth_path(rate: Decimal, n: int, ppy: int, cache: Dict[Decimal, List[Decimal]]) -> List[Decimal]:
    path = cache.get(rate)
    if path is None:
        path = [growth_factor(rate, Decimal(t) / ppy) for t in range(n + 1)]
        cache[rate] = path
    return path


def project(
    assets: Iterable[AssetProjectionInput],
    liabilities: Iterable[Liability],
    horizon_years: int,
    granularity: Union[Granularity, str] = Granularity.MONTHLY,
    *,
    config: Optional[ProjectionConfig] = None,
) -> ProjectionResult:
    """
    Project asset value, liability balance, net worth and cashflow.

    Parameters
    ----------
    assets : iterable of AssetProjectionInput
        Processed in the order given
    liabilities : iterable of LoanTerms or BalanceLiability
        LoanTerms are advanced along their own amortization schedule;
        BalanceLiability balances are held or grown at their own rate
    horizon_years : int
        1 .. config.max_horizon_years
    granularity : Granularity or str
        "monthly" or "annual" periods
    config : ProjectionConfig, optional
        As-of date, inflation and cashflow switches

    Returns
    -------
    ProjectionResult with horizon_years × periods_per_year + 1 points per series.

    Raises
    ------
    InvalidHorizonError, InvalidTermError, InvalidRateError, MalformedInputError
        All raised before any output is built.
    """
    cfg = config or ProjectionConfig()
    gran = _as_granularity(granularity)
    years = _validate_horizon(horizon_years, cfg)

    inflation = to_decimal(cfg.inflation_rate, "inflation_rate")
    if inflation <= -1:
        raise InvalidRateError(f"inflation_rate must be greater than -100%, got {inflation}.")

    # Validate everything up front; no partial results
    prepared = [_prepare_asset(a) for a in assets]
    loans: List[Tuple[LoanTerms, AmortizationSchedule]] = []
    balances: List[Tuple[Decimal, Decimal]] = []
    if not cfg.exclude_liabilities:
        for liability in liabilities:
            if isinstance(liability, BalanceLiability):
                balances.append(_prepare_balance(liability))
            else:
                loans.append((liability, _prepare_liability(liability, cfg)))

    ppy = gran.periods_per_year
    mpp = gran.months_per_period
    n = years * ppy
    places = cfg.currency_places

    logger.debug(
        "Projecting %d assets and %d liabilities over %d %s periods",
        len(prepared), len(loans) + len(balances), n, gran.value,
    )

    asset_totals = [ZERO] * (n + 1)
    liability_totals = [ZERO] * (n + 1)
    income = [ZERO] * (n + 1)
    expenses = [ZERO] * (n + 1)
    by_class: Dict[str, List[Decimal]] = {}
    by_holding: Dict[str, List[Decimal]] = {}
    factors: Dict[Decimal, List[Decimal]] = {}

    with decimal_context():
        inflation_path = _growth_path(inflation, n, ppy, factors)

        # ========= ASSETS =========
        for a in prepared:
            growth = _growth_path(a.growth_rate, n, ppy, factors)
            class_row = by_class.setdefault(a.class_label, [ZERO] * (n + 1))
            holding_row = (
                by_holding.setdefault(a.holding_label, [ZERO] * (n + 1))
                if a.holding_label else None
            )
            annual_expense = sum((to_annual(amt, freq) for amt, freq in a.expenses), ZERO)
            step = growth[1]
            reinvested = ZERO

            for t in range(n + 1):
                value = a.value * growth[t] + reinvested
                asset_totals[t] += value
                class_row[t] += value
                if holding_row is not None:
                    holding_row[t] += value
                earned = a.income_model.annual_income(value, Decimal(t) / ppy) / ppy
                if cfg.include_income:
                    income[t] += earned
                if cfg.reinvest_income:
                    reinvested = reinvested * step + earned
                if cfg.include_expenses and annual_expense:
                    expenses[t] += annual_expense * inflation_path[t] / ppy

        # ========= LIABILITIES =========
        for terms, schedule in loans:
            elapsed_0 = datedif_months(terms.start_date, cfg.as_of_date)
            for t in range(n + 1):
                elapsed = elapsed_0 + t * mpp
                liability_totals[t] += balance_after(schedule, elapsed)
                if cfg.include_expenses:
                    expenses[t] += _period_loan_expense(schedule, elapsed, mpp)

        for balance, rate in balances:
            growth = _growth_path(rate, n, ppy, factors)
            for t in range(n + 1):
                liability_totals[t] += balance * growth[t]

        adjust = cfg.adjust_for_inflation and inflation != 0

        def finish(raw: Sequence[Decimal]) -> Tuple[Decimal, ...]:
            if adjust:
                raw = [v / inflation_path[t] for t, v in enumerate(raw)]
            return tuple(excel_round(v, places) for v in raw)

        total_assets = finish(asset_totals)
        total_liabilities = finish(liability_totals)
        total_income = finish(income)
        total_expenses = finish(expenses)
        net_worth = tuple(a - l for a, l in zip(total_assets, total_liabilities))
        net_cashflow = tuple(i - e for i, e in zip(total_income, total_expenses))

        asset_breakdown = tuple(BreakdownSeries(label, finish(row)) for label, row in by_class.items())
        holding_breakdown = tuple(BreakdownSeries(label, finish(row)) for label, row in by_holding.items())

    return ProjectionResult(
        dates=tuple(period_labels(cfg.as_of_date, n, gran)),
        total_asset_value=total_assets,
        total_liability_value=total_liabilities,
        net_worth=net_worth,
        cashflow=CashflowSeries(
            total_income=total_income,
            total_expenses=total_expenses,
            net_cashflow=net_cashflow,
        ),
        asset_breakdown=asset_breakdown,
        holding_type_breakdown=holding_breakdown,
        inflation_adjusted=adjust,
    )
