"""Tests for report tables and summaries"""

from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from core.schema import Granularity
from engine.amortization import LoanTerms, generate_schedule
from engine.projector import project
from reports.summary import loan_summary, projection_summary
from reports.tables import (
    SCHEDULE_COLUMNS,
    annual_schedule_summary,
    breakdown_to_frame,
    projection_to_frame,
    schedule_to_frame,
)


@pytest.fixture
def schedule():
    return generate_schedule(Decimal("300000"), Decimal("0.06"), 360)


def test_schedule_to_frame(schedule):
    df = schedule_to_frame(schedule)

    assert list(df.columns) == SCHEDULE_COLUMNS
    assert len(df) == 360
    assert df.loc[0, "interest"] == 1500.0
    assert df.loc[0, "principal"] == 298.65
    assert df["balance"].iloc[-1] == 0.0


def test_schedule_to_frame_with_dates(schedule):
    df = schedule_to_frame(schedule, start_date=date(2025, 1, 31))

    assert df.columns[1] == "payment_date"
    assert df.loc[0, "payment_date"] == pd.Timestamp("2025-02-28")
    assert df.loc[11, "payment_date"] == pd.Timestamp("2026-01-31")


def test_annual_summary_by_loan_year(schedule):
    out = annual_schedule_summary(schedule)

    assert len(out) == 30
    assert out["year"].tolist() == list(range(1, 31))
    assert (out["payments"] == 12).all()
    assert out["closing_balance"].iloc[-1] == 0.0
    assert out["principal"].sum() == pytest.approx(300000.0, abs=0.01)


def test_annual_summary_by_calendar_year(schedule):
    out = annual_schedule_summary(schedule, start_date=date(2025, 1, 1))

    # first payment falls in February 2025, last in January 2055
    assert len(out) == 31
    assert out["year"].iloc[0] == 2025
    assert out["payments"].iloc[0] == 11
    assert out["payments"].iloc[-1] == 1
    assert out["payments"].sum() == 360


def test_projection_frames(home, shares, mortgage, config):
    result = project([home, shares], [mortgage], 1, config=config)

    df = projection_to_frame(result)
    assert df.shape == (13, 6)
    assert df.index[0] == "2025-01"
    assert df.loc["2026-01", "total_asset_value"] == float(result.total_asset_value[12])

    by_class = breakdown_to_frame(result)
    assert list(by_class.columns) == ["Property", "Shares"]
    by_holding = breakdown_to_frame(result, by="holding_type")
    assert list(by_holding.columns) == ["Personal", "Super"]

    with pytest.raises(ValueError):
        breakdown_to_frame(result, by="owner")


def test_loan_summary_at_start(mortgage, as_of):
    summary = loan_summary(mortgage, as_of)

    assert summary.label == "Home loan"
    assert summary.payment == Decimal("1798.65")
    assert summary.periodic_payment == Decimal("1798.65")
    assert summary.months_elapsed == 0
    assert summary.months_remaining == 360
    assert summary.current_balance == Decimal("300000")
    assert summary.repaid_pct == 0.0
    assert summary.next_interest == Decimal("1500.00")
    assert summary.next_principal == Decimal("298.65")
    assert summary.total_paid - summary.total_interest == Decimal("300000")
    assert 15 < summary.wal_years < 30


def test_loan_summary_after_maturity(mortgage):
    summary = loan_summary(mortgage, date(2060, 1, 1))

    assert summary.current_balance == 0
    assert summary.months_remaining == 0
    assert summary.repaid_pct == 1.0
    assert summary.next_principal == 0
    assert summary.next_interest == 0

    table = summary.to_dataframe()
    assert table.loc[table["Metric"] == "Repaid", "Value"].item() == "100.0%"


def test_projection_summary(home, config):
    summary = projection_summary(project([home], [], 1, config=config))

    assert summary.opening_net_worth == Decimal("100000.00")
    assert summary.closing_net_worth == Decimal("105000.00")
    assert summary.net_worth_change == Decimal("5000.00")
    assert summary.net_worth_cagr == pytest.approx(0.05)
    assert summary.peak_period == "2026-01"
    assert summary.debt_free_period is None
    assert summary.flags == []


def test_projection_summary_debt_free_and_flags(config):
    loan = LoanTerms(
        principal=Decimal("1200"),
        annual_interest_rate=Decimal("0"),
        term_months=12,
        start_date=config.as_of_date,
    )
    summary = projection_summary(project([], [loan], 2, config=config))

    assert summary.debt_free_period == "2026-01"
    assert summary.net_worth_cagr is None
    assert summary.negative_cashflow_periods == 12
    assert summary.cumulative_net_cashflow == Decimal("-1200.00")
    assert summary.flags == []
    assert summary.closing_net_worth == 0


def test_projection_summary_annual(home, config):
    summary = projection_summary(project([home], [], 2, Granularity.ANNUAL, config=config), Granularity.ANNUAL)
    assert summary.net_worth_cagr == pytest.approx(0.05)
    assert "Net Worth CAGR" in summary.to_dataframe()["Metric"].tolist()
