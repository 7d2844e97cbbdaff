"""
Tabular views of engine outputs for display and export.

Engine values are Decimal; tables carry plain floats so they plot and
export cleanly. Totals should be taken from the engine objects, not
re-summed from these frames.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

import pandas as pd

from core.utils import add_months
from engine.amortization import AmortizationSchedule
from engine.projector import ProjectionResult

SCHEDULE_COLUMNS = ["period", "payment", "principal", "interest", "balance"]


def schedule_to_frame(schedule: AmortizationSchedule, start_date: Optional[date] = None) -> pd.DataFrame:
    """
    One row per payment.

    Parameters
    ----------
    schedule : AmortizationSchedule
    start_date : date, optional
        Loan start; when given, a payment_date column is added
        (payment k falls k months after the start)
    """
    df = pd.DataFrame(
        [
            {
                "period": e.index,
                "payment": float(e.payment),
                "principal": float(e.principal_portion),
                "interest": float(e.interest_portion),
                "balance": float(e.remaining_balance),
            }
            for e in schedule
        ],
        columns=SCHEDULE_COLUMNS,
    )
    if start_date is not None:
        df.insert(1, "payment_date", pd.to_datetime([add_months(start_date, int(k)) for k in df["period"]]))
    return df


def annual_schedule_summary(schedule: AmortizationSchedule, start_date: Optional[date] = None) -> pd.DataFrame:
    """
    Roll the schedule up by year: loan years (1, 2, ...) without a start date,
    calendar years with one.
    """
    df = schedule_to_frame(schedule, start_date)
    if start_date is not None:
        df["year"] = df["payment_date"].dt.year
    else:
        df["year"] = (df["period"] - 1) // 12 + 1

    out = df.groupby("year", sort=True).agg(
        payments=("period", "count"),
        payment=("payment", "sum"),
        principal=("principal", "sum"),
        interest=("interest", "sum"),
        closing_balance=("balance", "last"),
    )
    return out.round(2).reset_index()


def projection_to_frame(result: ProjectionResult) -> pd.DataFrame:
    """Headline series indexed by period label."""
    df = pd.DataFrame(
        {
            "total_asset_value": [float(v) for v in result.total_asset_value],
            "total_liability_value": [float(v) for v in result.total_liability_value],
            "net_worth": [float(v) for v in result.net_worth],
            "total_income": [float(v) for v in result.cashflow.total_income],
            "total_expenses": [float(v) for v in result.cashflow.total_expenses],
            "net_cashflow": [float(v) for v in result.cashflow.net_cashflow],
        },
        index=pd.Index(result.dates, name="period"),
    )
    return df


def breakdown_to_frame(result: ProjectionResult, by: str = "asset_class") -> pd.DataFrame:
    """One column per asset class (or holding type), indexed by period label."""
    if by == "asset_class":
        series = result.asset_breakdown
    elif by == "holding_type":
        series = result.holding_type_breakdown
    else:
        raise ValueError(f"Unknown breakdown {by!r}; expected 'asset_class' or 'holding_type'.")
    return pd.DataFrame(
        {s.label: [float(v) for v in s.values] for s in series},
        index=pd.Index(result.dates, name="period"),
    )
