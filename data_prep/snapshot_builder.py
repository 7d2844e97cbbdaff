"""
Build the engine snapshot (assets + liabilities) from raw application records.

Raw records are the application's asset rows: percentages are stored as
percent (5 == 5%), expense categories may be strings or objects, optional
fields may be missing or null. All of that is resolved here so the engine
only ever sees complete, typed value objects.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from core.errors import MalformedInputError
from core.schema import InterestRateType, PaymentFrequency, RepaymentType
from core.utils import ZERO, decimal_context, require_fields, to_decimal
from engine.amortization import LoanTerms
from engine.income import EmploymentIncome, IncomeModel, RentalIncome, YieldIncome
from engine.projector import AssetProjectionInput, BalanceLiability, RecurringExpense

from .categories import normalize_expense_category, parse_frequency

HUNDRED = Decimal("100")
DEFAULT_MORTGAGE_TERM_MONTHS = 360

# Default growth rates (percent) when neither the asset nor its class defines one
_SCENARIO_DEFAULTS: Dict[str, Tuple[str, Decimal]] = {
    "low": ("defaultLowGrowthRate", Decimal("2")),
    "medium": ("defaultMediumGrowthRate", Decimal("5")),
    "high": ("defaultHighGrowthRate", Decimal("8")),
}
_FALLBACK_GROWTH = Decimal("0.05")

_FIELD_ALIASES: Dict[str, str] = {
    # identifiers / classification
    "asset_class_id": "assetClassId",
    "asset_holding_type_id": "assetHoldingTypeId",
    "holding_type_id": "assetHoldingTypeId",
    # value / rates
    "current_value": "value",
    "growth_rate": "growthRate",
    "income_yield": "incomeYield",
    "interest_rate": "interestRate",
    "dividend_yield": "dividendYield",
    # flags
    "is_hidden": "isHidden",
    "is_liability": "isLiability",
    "is_rental": "isRental",
    # rental
    "rental_income": "rentalIncome",
    "rental_frequency": "rentalFrequency",
    "vacancy_rate": "vacancyRate",
    # employment
    "base_salary": "baseSalary",
    "payment_frequency": "paymentFrequency",
    "bonus_type": "bonusType",
    "bonus_fixed_amount": "bonusFixedAmount",
    "bonus_percentage": "bonusPercentage",
    "bonus_likelihood": "bonusLikelihood",
    "salary_growth_rate": "salaryGrowthRate",
    # loans
    "loan_term": "loanTerm",
    "start_date": "startDate",
    "original_loan_amount": "originalLoanAmount",
    "repayment_type": "repaymentType",
    "interest_rate_type": "interestRateType",
    # attached mortgage
    "has_mortgage": "hasMortgage",
    "mortgage_amount": "mortgageAmount",
    "mortgage_interest_rate": "mortgageInterestRate",
    "mortgage_term": "mortgageTerm",
    "mortgage_start_date": "mortgageStartDate",
    "mortgage_type": "mortgageType",
    # expenses
    "property_expenses": "propertyExpenses",
    "investment_expenses": "investmentExpenses",
}


@dataclass(frozen=True)
class Snapshot:
    """Everything the projector needs, in input order."""
    assets: Tuple[AssetProjectionInput, ...]
    liabilities: Tuple[Union[LoanTerms, BalanceLiability], ...]


def canonicalize_record(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy with snake_case aliases mapped to the canonical camelCase keys."""
    out: Dict[str, Any] = {}
    for key, value in record.items():
        canon = _FIELD_ALIASES.get(key, key)
        # canonical key wins if both spellings are present
        if canon in out and key != canon:
            continue
        out[canon] = value
    return out


def percent(value: Any, field_name: str) -> Decimal:
    """Percent field (5 == 5%) → decimal fraction."""
    with decimal_context():
        return to_decimal(value, field_name) / HUNDRED


def parse_date(value: Any, field_name: str) -> date:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        raise MalformedInputError(f"{field_name} is not a valid date: {value!r}")
    return ts.date()


def whole_months(value: Any, field_name: str) -> int:
    months = to_decimal(value, field_name)
    if months != months.to_integral_value():
        raise MalformedInputError(f"{field_name} must be a whole number of months, got {value!r}")
    return int(months)


def _class_name(asset_class: Optional[Mapping[str, Any]]) -> str:
    return str((asset_class or {}).get("name") or "")


def get_asset_growth_rate(
    record: Mapping[str, Any],
    asset_class: Optional[Mapping[str, Any]],
    scenario: str = "medium",
) -> Decimal:
    """
    The asset's own growth rate if set; otherwise its class default for the
    chosen scenario (low / medium / high); otherwise 5%.
    """
    if record.get("growthRate") is not None:
        return percent(record["growthRate"], "growthRate")
    if asset_class:
        key, default = _SCENARIO_DEFAULTS.get(scenario, _SCENARIO_DEFAULTS["medium"])
        raw = asset_class.get(key)
        return percent(raw if raw is not None else default, key)
    return _FALLBACK_GROWTH


def get_asset_income_yield(record: Mapping[str, Any], asset_class: Optional[Mapping[str, Any]]) -> Decimal:
    if record.get("incomeYield") is not None:
        return percent(record["incomeYield"], "incomeYield")
    if asset_class and asset_class.get("defaultIncomeYield") is not None:
        return percent(asset_class["defaultIncomeYield"], "defaultIncomeYield")
    return ZERO


def build_income_model(
    record: Mapping[str, Any],
    asset_class: Optional[Mapping[str, Any]],
    growth_rate: Decimal,
) -> IncomeModel:
    """Pick the income formula for the asset's type (decided by its class name)."""
    name = _class_name(asset_class).lower()

    if "property" in name and record.get("isRental"):
        if not record.get("rentalIncome"):
            return YieldIncome(ZERO)
        return RentalIncome(
            rent=to_decimal(record["rentalIncome"], "rentalIncome"),
            frequency=parse_frequency(record.get("rentalFrequency") or "monthly", "rentalFrequency"),
            vacancy_rate=percent(record.get("vacancyRate") or 0, "vacancyRate"),
            rent_growth_rate=growth_rate,
        )

    if "cash" in name or "bank" in name:
        return YieldIncome(percent(record.get("interestRate") or 0, "interestRate"))

    if ("share" in name or "stock" in name) and record.get("dividendYield"):
        return YieldIncome(percent(record["dividendYield"], "dividendYield"))

    if "employment" in name or "income" in name:
        if not record.get("baseSalary"):
            return YieldIncome(ZERO)
        bonus_type = record.get("bonusType")
        fixed = ZERO
        pct = ZERO
        if bonus_type in ("fixed", "mixed") and record.get("bonusFixedAmount"):
            fixed = to_decimal(record["bonusFixedAmount"], "bonusFixedAmount")
        if bonus_type in ("percentage", "mixed") and record.get("bonusPercentage"):
            pct = percent(record["bonusPercentage"], "bonusPercentage")
        likelihood = record.get("bonusLikelihood")
        return EmploymentIncome(
            base_salary=to_decimal(record["baseSalary"], "baseSalary"),
            frequency=parse_frequency(record.get("paymentFrequency") or "annually", "paymentFrequency"),
            bonus_fixed_amount=fixed,
            bonus_percentage=pct,
            bonus_likelihood=percent(likelihood, "bonusLikelihood") if likelihood is not None else Decimal(1),
            salary_growth_rate=percent(record.get("salaryGrowthRate") or 0, "salaryGrowthRate"),
        )

    return YieldIncome(get_asset_income_yield(record, asset_class))


def build_recurring_expenses(record: Mapping[str, Any]) -> Tuple[RecurringExpense, ...]:
    """
    Property and investment expenses, keyed by id in the raw record:
    {"<id>": {"category": ..., "amount": ..., "frequency": ..., "annualTotal": ...}}.
    An entry with only an annualTotal is treated as an annual amount.
    """
    out: List[RecurringExpense] = []
    for group in ("propertyExpenses", "investmentExpenses"):
        entries = record.get(group)
        if not isinstance(entries, Mapping):
            continue
        for key, entry in entries.items():
            if not isinstance(entry, Mapping):
                raise MalformedInputError(f"{group}[{key!r}] must be an object.")
            category = normalize_expense_category(entry.get("category") or entry.get("name") or str(key))
            if entry.get("amount") is not None:
                amount = to_decimal(entry["amount"], f"{group}[{key!r}].amount")
                freq = parse_frequency(
                    entry.get("frequency") or category.default_frequency, f"{group}[{key!r}].frequency"
                )
            elif entry.get("annualTotal") is not None:
                amount = to_decimal(entry["annualTotal"], f"{group}[{key!r}].annualTotal")
                freq = PaymentFrequency.ANNUALLY
            else:
                raise MalformedInputError(f"{group}[{key!r}] has neither amount nor annualTotal.")
            out.append(RecurringExpense(category=category, amount=amount, frequency=freq))
    return tuple(out)


def _rate_type(value: Any) -> InterestRateType:
    try:
        return InterestRateType(str(value or "fixed").lower())
    except ValueError:
        raise MalformedInputError(f"Unknown interest rate type: {value!r}") from None


def _repayment_type(value: Any) -> RepaymentType:
    raw = str(value or RepaymentType.PRINCIPAL_AND_INTEREST.value).lower().replace("-", "_").replace(" ", "_")
    try:
        return RepaymentType(raw)
    except ValueError:
        raise MalformedInputError(f"Unknown repayment type: {value!r}") from None


def build_liability(record: Mapping[str, Any]) -> Union[LoanTerms, BalanceLiability]:
    """
    A liability record → LoanTerms when it carries a loan term and start date,
    otherwise a BalanceLiability held at its value (grown by growthRate if set).
    """
    if not (record.get("loanTerm") and record.get("startDate")):
        require_fields(record, ["value"])
        growth = record.get("growthRate")
        return BalanceLiability(
            balance=to_decimal(record["value"], "value"),
            annual_growth_rate=percent(growth, "growthRate") if growth is not None else ZERO,
            label=record.get("name"),
        )

    require_fields(record, ["interestRate"])
    principal = record.get("originalLoanAmount")
    if principal is None:
        principal = record.get("value")
    return LoanTerms(
        principal=to_decimal(principal, "originalLoanAmount"),
        annual_interest_rate=percent(record["interestRate"], "interestRate"),
        term_months=whole_months(record["loanTerm"], "loanTerm"),
        start_date=parse_date(record["startDate"], "startDate"),
        interest_rate_type=_rate_type(record.get("interestRateType")),
        payment_frequency=parse_frequency(record.get("paymentFrequency") or "monthly", "paymentFrequency"),
        repayment_type=_repayment_type(record.get("repaymentType")),
        label=record.get("name"),
    )


def build_attached_mortgage(record: Mapping[str, Any], default_start: date) -> Optional[LoanTerms]:
    """Mortgage stored on a property record, if any."""
    if not record.get("hasMortgage") or not record.get("mortgageAmount"):
        return None
    require_fields(record, ["mortgageInterestRate"])
    start = record.get("mortgageStartDate")
    name = record.get("name")
    return LoanTerms(
        principal=to_decimal(record["mortgageAmount"], "mortgageAmount"),
        annual_interest_rate=percent(record["mortgageInterestRate"], "mortgageInterestRate"),
        term_months=whole_months(record.get("mortgageTerm") or DEFAULT_MORTGAGE_TERM_MONTHS, "mortgageTerm"),
        start_date=parse_date(start, "mortgageStartDate") if start else default_start,
        interest_rate_type=_rate_type(record.get("mortgageType")),
        label=f"{name} mortgage" if name else "Mortgage",
    )


def build_snapshot(
    records: Iterable[Mapping[str, Any]],
    asset_classes: Optional[Mapping[Any, Mapping[str, Any]]] = None,
    holding_types: Optional[Mapping[Any, Mapping[str, Any]]] = None,
    *,
    scenario: str = "medium",
    enabled_asset_classes: Sequence[Any] = (),
    enabled_holding_types: Sequence[Any] = (),
    include_hidden: bool = False,
    exclude_liabilities: bool = False,
    as_of_date: Optional[date] = None,
) -> Snapshot:
    """
    Convert raw asset rows into an engine Snapshot.

    Parameters
    ----------
    records : iterable of mappings
        Raw asset rows (camelCase or snake_case keys)
    asset_classes, holding_types : mappings keyed by id
        Class rows supply labels and default growth/yield rates
    scenario : str
        "low" | "medium" | "high" growth scenario for class defaults
    enabled_asset_classes, enabled_holding_types : sequences of ids
        Empty means all
    include_hidden, exclude_liabilities : bool
        Record filters
    as_of_date : date, optional
        Start date assumed for attached mortgages without one (default today)
    """
    classes = asset_classes or {}
    holdings = holding_types or {}
    default_start = as_of_date or date.today()

    assets: List[AssetProjectionInput] = []
    liabilities: List[Union[LoanTerms, BalanceLiability]] = []

    for raw in records:
        record = canonicalize_record(raw)

        # --- Filters ---
        if not include_hidden and record.get("isHidden"):
            continue
        if exclude_liabilities and record.get("isLiability"):
            continue
        class_id = record.get("assetClassId")
        holding_id = record.get("assetHoldingTypeId")
        if enabled_asset_classes and class_id not in enabled_asset_classes:
            continue
        if enabled_holding_types and holding_id not in enabled_holding_types:
            continue

        if record.get("isLiability"):
            liabilities.append(build_liability(record))
            continue

        # --- Assets ---
        require_fields(record, ["value"])
        asset_class = classes.get(class_id)
        growth = get_asset_growth_rate(record, asset_class, scenario)
        holding = holdings.get(holding_id)
        assets.append(
            AssetProjectionInput(
                current_value=to_decimal(record["value"], "value"),
                annual_growth_rate=growth,
                annual_income_yield=get_asset_income_yield(record, asset_class),
                asset_class_label=_class_name(asset_class) or "Unknown",
                holding_type_label=str(holding["name"]) if holding and holding.get("name") else None,
                income_model=build_income_model(record, asset_class, growth),
                recurring_expenses=build_recurring_expenses(record),
            )
        )

        if not exclude_liabilities:
            mortgage = build_attached_mortgage(record, default_start)
            if mortgage is not None:
                liabilities.append(mortgage)

    return Snapshot(assets=tuple(assets), liabilities=tuple(liabilities))


def map_period_to_years(
    period: str,
    retirement_age: Optional[int] = None,
    current_age: Optional[int] = None,
) -> int:
    """Projection period label → number of years to project."""
    fixed = {"annually": 1, "5-years": 5, "10-years": 10, "20-years": 20, "30-years": 30}
    if period in fixed:
        return fixed[period]
    if period == "retirement":
        if retirement_age and current_age and retirement_age > current_age:
            return retirement_age - current_age
        return 30
    return 10
