"""Tests for raw record → snapshot preparation"""

from datetime import date
from decimal import Decimal

import pytest

from core.config import ProjectionConfig
from core.errors import MalformedInputError
from core.schema import Granularity, InterestRateType, PaymentFrequency, RepaymentType
from data_prep.categories import normalize_expense_category, parse_frequency
from data_prep.snapshot_builder import (
    build_snapshot,
    canonicalize_record,
    get_asset_growth_rate,
    map_period_to_years,
)
from engine.income import EmploymentIncome, RentalIncome, YieldIncome
from engine.projector import BalanceLiability, ExpenseCategory, project

ASSET_CLASSES = {
    1: {"name": "Property", "defaultMediumGrowthRate": 6, "defaultHighGrowthRate": 9},
    2: {"name": "Shares", "defaultMediumGrowthRate": 7},
    3: {"name": "Cash", "defaultIncomeYield": 1},
    4: {"name": "Employment Income"},
    5: {"name": "Loans"},
}
HOLDING_TYPES = {10: {"name": "Personal"}, 11: {"name": "Super"}}


@pytest.fixture
def records() -> list:
    return [
        {
            "name": "Home",
            "assetClassId": 1,
            "assetHoldingTypeId": 10,
            "value": 500000,
            "growthRate": 4,
            "isRental": True,
            "rentalIncome": 2000,
            "rentalFrequency": "monthly",
            "vacancyRate": 5,
            "hasMortgage": True,
            "mortgageAmount": 400000,
            "mortgageInterestRate": 6,
            "mortgageTerm": 360,
            "mortgageStartDate": "2020-01-01",
            "propertyExpenses": {
                "rates": {
                    "category": {"id": "rates", "name": "Council Rates"},
                    "amount": 500,
                    "frequency": "quarterly",
                },
                "insurance": {"category": "Insurance", "annualTotal": 1800},
            },
        },
        {
            "name": "Broker account",
            "asset_class_id": 2,
            "holding_type_id": 11,
            "current_value": "25000",
            "dividend_yield": 3.5,
        },
        {"name": "Old savings", "assetClassId": 3, "value": 100, "isHidden": True},
        {
            "name": "Car loan",
            "assetClassId": 5,
            "isLiability": True,
            "value": 20000,
            "interestRate": 7.5,
            "loanTerm": "60",
            "startDate": "2024-06-01",
            "repaymentType": "Interest Only",
            "interestRateType": "variable",
        },
    ]


def test_build_snapshot_assets(records):
    snap = build_snapshot(records, ASSET_CLASSES, HOLDING_TYPES, as_of_date=date(2025, 1, 1))

    assert len(snap.assets) == 2
    home, broker = snap.assets

    assert home.current_value == Decimal("500000")
    assert home.annual_growth_rate == Decimal("0.04")
    assert home.asset_class_label == "Property"
    assert home.holding_type_label == "Personal"
    assert isinstance(home.income_model, RentalIncome)
    assert home.income_model.vacancy_rate == Decimal("0.05")
    assert home.income_model.rent_growth_rate == Decimal("0.04")

    # snake_case record, growth from class default
    assert broker.current_value == Decimal("25000")
    assert broker.annual_growth_rate == Decimal("0.07")
    assert broker.holding_type_label == "Super"
    assert broker.income_model == YieldIncome(Decimal("0.035"))


def test_build_snapshot_expenses(records):
    home = build_snapshot(records, ASSET_CLASSES, HOLDING_TYPES).assets[0]

    rates, insurance = home.recurring_expenses
    assert rates.category == ExpenseCategory(id="rates", name="Council Rates")
    assert rates.amount == Decimal("500")
    assert rates.frequency is PaymentFrequency.QUARTERLY
    assert insurance.category.id == "insurance"
    assert insurance.amount == Decimal("1800")
    assert insurance.frequency is PaymentFrequency.ANNUALLY


def test_build_snapshot_liabilities(records):
    snap = build_snapshot(records, ASSET_CLASSES, HOLDING_TYPES, as_of_date=date(2025, 1, 1))

    assert len(snap.liabilities) == 2
    # attached mortgages follow their property record
    mortgage, car = snap.liabilities

    assert car.label == "Car loan"
    assert car.principal == Decimal("20000")
    assert car.annual_interest_rate == Decimal("0.075")
    assert car.term_months == 60
    assert car.start_date == date(2024, 6, 1)
    assert car.repayment_type is RepaymentType.INTEREST_ONLY
    assert car.interest_rate_type is InterestRateType.VARIABLE

    assert mortgage.label == "Home mortgage"
    assert mortgage.principal == Decimal("400000")
    assert mortgage.annual_interest_rate == Decimal("0.06")
    assert mortgage.start_date == date(2020, 1, 1)


def test_build_snapshot_filters(records):
    snap = build_snapshot(records, ASSET_CLASSES, HOLDING_TYPES, include_hidden=True, exclude_liabilities=True)
    assert len(snap.assets) == 3
    assert snap.liabilities == ()

    snap = build_snapshot(records, ASSET_CLASSES, HOLDING_TYPES, enabled_asset_classes=[2])
    assert [a.asset_class_label for a in snap.assets] == ["Shares"]
    assert snap.liabilities == ()


def test_attached_mortgage_defaults(records):
    home = dict(records[0])
    del home["mortgageStartDate"]
    del home["mortgageTerm"]
    snap = build_snapshot([home], ASSET_CLASSES, as_of_date=date(2025, 3, 1))

    assert snap.liabilities[0].start_date == date(2025, 3, 1)
    assert snap.liabilities[0].term_months == 360


def test_liability_without_loan_terms_keeps_its_balance():
    card = {"name": "Credit card", "value": 5000, "isLiability": True, "assetClassId": 5}
    snap = build_snapshot([card], ASSET_CLASSES)

    assert snap.liabilities == (BalanceLiability(balance=Decimal("5000"), label="Credit card"),)
    assert snap.assets == ()


def test_liability_without_start_date_grows_at_its_rate(records):
    car = dict(records[3])
    del car["startDate"]
    car["growthRate"] = 3
    liability = build_snapshot([car], ASSET_CLASSES).liabilities[0]

    assert isinstance(liability, BalanceLiability)
    assert liability.balance == Decimal("20000")
    assert liability.annual_growth_rate == Decimal("0.03")


def test_balance_liability_needs_a_value():
    with pytest.raises(MalformedInputError, match="value"):
        build_snapshot([{"name": "Tax bill", "isLiability": True}], ASSET_CLASSES)


def test_amortizing_liability_without_rate_is_malformed(records):
    car = dict(records[3])
    del car["interestRate"]
    with pytest.raises(MalformedInputError, match="interestRate"):
        build_snapshot([car], ASSET_CLASSES)


def test_balance_liability_projects_alongside_loans(records):
    card = {"name": "Credit card", "value": 5000, "isLiability": True, "growthRate": 10}
    snap = build_snapshot([records[3], card], ASSET_CLASSES, as_of_date=date(2025, 1, 1))
    cfg = ProjectionConfig(as_of_date=date(2025, 1, 1))

    both = project(snap.assets, snap.liabilities, 1, Granularity.ANNUAL, config=cfg)
    loan_only = project(snap.assets, snap.liabilities[:1], 1, Granularity.ANNUAL, config=cfg)

    assert both.total_liability_value[0] == loan_only.total_liability_value[0] + Decimal("5000.00")
    assert both.total_liability_value[1] == loan_only.total_liability_value[1] + Decimal("5500.00")


def test_bad_start_date_is_malformed(records):
    car = dict(records[3], startDate="not a date")
    with pytest.raises(MalformedInputError, match="startDate"):
        build_snapshot([car], ASSET_CLASSES)


def test_employment_income_record():
    record = {
        "assetClassId": 4,
        "value": 0,
        "baseSalary": 3000,
        "paymentFrequency": "fortnightly",
        "bonusType": "mixed",
        "bonusFixedAmount": 2000,
        "bonusPercentage": 10,
        "bonusLikelihood": 50,
        "salaryGrowthRate": 3,
    }
    model = build_snapshot([record], ASSET_CLASSES).assets[0].income_model

    assert isinstance(model, EmploymentIncome)
    assert model.frequency is PaymentFrequency.FORTNIGHTLY
    # 78,000 + (2,000 + 7,800) × 0.5
    assert model.base_annual_income() == Decimal("82900")


def test_cash_income_uses_interest_rate():
    record = {"assetClassId": 3, "value": 10000, "interestRate": 4.5}
    model = build_snapshot([record], ASSET_CLASSES).assets[0].income_model
    assert model == YieldIncome(Decimal("0.045"))


def test_growth_rate_fallbacks():
    assert get_asset_growth_rate({}, ASSET_CLASSES[1], "high") == Decimal("0.09")
    assert get_asset_growth_rate({}, ASSET_CLASSES[1], "low") == Decimal("0.02")
    assert get_asset_growth_rate({}, None) == Decimal("0.05")
    assert get_asset_growth_rate({"growthRate": 0}, ASSET_CLASSES[1]) == 0


def test_canonicalize_prefers_camel_case():
    out = canonicalize_record({"value": 1, "current_value": 2, "growth_rate": 3})
    assert out == {"value": 1, "growthRate": 3}


@pytest.mark.parametrize(
    "period, expected",
    [("annually", 1), ("5-years", 5), ("30-years", 30), ("unknown", 10)],
)
def test_map_period_to_years(period, expected):
    assert map_period_to_years(period) == expected


def test_map_retirement_period():
    assert map_period_to_years("retirement", retirement_age=67, current_age=40) == 27
    assert map_period_to_years("retirement", retirement_age=60, current_age=65) == 30
    assert map_period_to_years("retirement") == 30


# --- Expense categories ---

def test_category_from_string():
    category = normalize_expense_category("  Strata Fees ")
    assert category == ExpenseCategory(id="strata-fees", name="Strata Fees")


def test_category_from_mapping():
    category = normalize_expense_category(
        {"id": 7, "name": "Land Tax", "description": "State land tax", "defaultFrequency": "Annually"}
    )
    assert category.id == "7"
    assert category.description == "State land tax"
    assert category.default_frequency is PaymentFrequency.ANNUALLY


def test_category_passthrough():
    category = ExpenseCategory(id="x", name="X")
    assert normalize_expense_category(category) is category


@pytest.mark.parametrize("bad", ["", "   ", "[object Object]", "undefined", {"id": 1}, {"name": "null"}, 42])
def test_unusable_categories(bad):
    with pytest.raises(MalformedInputError):
        normalize_expense_category(bad)


def test_parse_frequency():
    assert parse_frequency(" Weekly ") is PaymentFrequency.WEEKLY
    assert parse_frequency(PaymentFrequency.MONTHLY) is PaymentFrequency.MONTHLY
    with pytest.raises(MalformedInputError):
        parse_frequency("daily")
