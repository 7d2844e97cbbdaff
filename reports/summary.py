"""
Loan and projection summaries — the numbers a planner reads first.

  Loan:       "How much have I repaid? What does the next payment buy? How long is the money out?"
  Projection: "Where does net worth end up? How fast does it grow? When is cashflow negative?"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

import numpy as np
import pandas as pd

from core.errors import ProjectionError
from core.schema import Granularity
from core.utils import ZERO, datedif_months, decimal_context, excel_round
from engine.amortization import (
    LoanTerms,
    balance_after,
    current_payment_split,
    periodic_payment,
    schedule_for,
)
from engine.compounding import cagr
from engine.projector import ProjectionResult


@dataclass
class LoanSummary:
    """Where a single liability stands on the as-of date."""
    label: str
    as_of_date: date
    payment: Decimal                # monthly schedule payment
    periodic_payment: Decimal       # at the loan's own payment frequency
    months_elapsed: int
    months_remaining: int
    current_balance: Decimal
    repaid_pct: float
    next_principal: Decimal
    next_interest: Decimal
    total_paid: Decimal
    total_interest: Decimal
    wal_years: float                # weighted average life of the principal repayments

    def to_dataframe(self) -> pd.DataFrame:
        rows = [
            {"Metric": "Loan", "Value": self.label, "Unit": ""},
            {"Metric": "As Of", "Value": self.as_of_date.isoformat(), "Unit": ""},
            {"Metric": "Monthly Payment", "Value": f"{self.payment:,.2f}", "Unit": ""},
            {"Metric": "Payment (own frequency)", "Value": f"{self.periodic_payment:,.2f}", "Unit": ""},
            {"Metric": "Months Elapsed", "Value": str(self.months_elapsed), "Unit": "months"},
            {"Metric": "Months Remaining", "Value": str(self.months_remaining), "Unit": "months"},
            {"Metric": "Current Balance", "Value": f"{self.current_balance:,.2f}", "Unit": ""},
            {"Metric": "Repaid", "Value": f"{self.repaid_pct:.1%}", "Unit": ""},
            {"Metric": "Next Payment: Principal", "Value": f"{self.next_principal:,.2f}", "Unit": ""},
            {"Metric": "Next Payment: Interest", "Value": f"{self.next_interest:,.2f}", "Unit": ""},
            {"Metric": "Total Paid (life of loan)", "Value": f"{self.total_paid:,.2f}", "Unit": ""},
            {"Metric": "Total Interest (life of loan)", "Value": f"{self.total_interest:,.2f}", "Unit": ""},
            {"Metric": "WAL", "Value": f"{self.wal_years:.2f}", "Unit": "years"},
        ]
        return pd.DataFrame(rows)


@dataclass
class ProjectionSummary:
    opening_net_worth: Decimal
    closing_net_worth: Decimal
    net_worth_change: Decimal
    net_worth_cagr: Optional[float]     # None when the opening net worth is not positive
    peak_net_worth: Decimal
    peak_period: str
    cumulative_net_cashflow: Decimal
    negative_cashflow_periods: int
    debt_free_period: Optional[str]     # first period with no liability balance left
    flags: List[str] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        rows = [
            {"Metric": "Opening Net Worth", "Value": f"{self.opening_net_worth:,.2f}"},
            {"Metric": "Closing Net Worth", "Value": f"{self.closing_net_worth:,.2f}"},
            {"Metric": "Change", "Value": f"{self.net_worth_change:,.2f}"},
            {
                "Metric": "Net Worth CAGR",
                "Value": f"{self.net_worth_cagr:.2%}" if self.net_worth_cagr is not None else "N/A",
            },
            {"Metric": "Peak Net Worth", "Value": f"{self.peak_net_worth:,.2f} ({self.peak_period})"},
            {"Metric": "Cumulative Net Cashflow", "Value": f"{self.cumulative_net_cashflow:,.2f}"},
            {"Metric": "Negative Cashflow Periods", "Value": str(self.negative_cashflow_periods)},
            {"Metric": "Debt Free From", "Value": self.debt_free_period or "N/A"},
        ]
        if self.flags:
            rows.append({"Metric": "FLAGS", "Value": " | ".join(self.flags)})
        return pd.DataFrame(rows)


def loan_summary(terms: LoanTerms, as_of_date: date) -> LoanSummary:
    """
    Summarize a liability on `as_of_date`.

    Balance is read off the fixed schedule by whole months elapsed; the next
    payment's split is computed on that balance.
    """
    schedule = schedule_for(terms)
    n = len(schedule)
    elapsed = datedif_months(terms.start_date, as_of_date)
    balance = balance_after(schedule, elapsed)
    split = current_payment_split(balance, schedule.annual_rate, schedule.payment)

    # WAL = Σ(principal_k × k/12) / Σ(principal_k)
    principal = np.array([float(e.principal_portion) for e in schedule])
    t_years = np.arange(1, n + 1) / 12.0
    total_principal = principal.sum()
    wal = float((principal * t_years).sum() / total_principal) if total_principal > 0 else 0.0

    with decimal_context():
        repaid = float((schedule.principal - balance) / schedule.principal) if schedule.principal > 0 else 1.0

    return LoanSummary(
        label=terms.label or "Loan",
        as_of_date=as_of_date,
        payment=schedule.payment,
        periodic_payment=periodic_payment(terms),
        months_elapsed=max(elapsed, 0),
        months_remaining=min(max(n - elapsed, 0), n),
        current_balance=balance,
        repaid_pct=repaid,
        next_principal=split.principal,
        next_interest=split.interest,
        total_paid=schedule.total_paid,
        total_interest=schedule.total_interest,
        wal_years=wal,
    )


def projection_summary(
    result: ProjectionResult,
    granularity: Union[Granularity, str] = Granularity.MONTHLY,
) -> ProjectionSummary:
    """
    Headline figures for a projection.

    Parameters
    ----------
    result : ProjectionResult
    granularity : Granularity or str
        The granularity the projection was run at (converts periods to years for CAGR)
    """
    gran = granularity if isinstance(granularity, Granularity) else Granularity(granularity)
    if result.n_periods < 2:
        raise ValueError("Projection has no periods to summarize.")

    net_worth = result.net_worth
    opening, closing = net_worth[0], net_worth[-1]
    years = Decimal(result.n_periods - 1) / gran.periods_per_year

    try:
        growth: Optional[float] = float(excel_round(cagr(opening, closing, years), 6))
    except ProjectionError:
        growth = None

    peak_idx = int(np.argmax([float(v) for v in net_worth]))
    net_cashflow = result.cashflow.net_cashflow
    negative_periods = sum(1 for v in net_cashflow if v < 0)

    debt_free: Optional[str] = None
    if any(v > 0 for v in result.total_liability_value):
        for label, balance in zip(result.dates, result.total_liability_value):
            if balance <= 0:
                debt_free = label
                break

    flags = []
    if closing < opening:
        flags.append("NET_WORTH_DECLINE: closing net worth below opening")
    if negative_periods > len(net_cashflow) / 2:
        flags.append(f"CASHFLOW_STRAIN: net cashflow negative in {negative_periods} of {len(net_cashflow)} periods")
    if closing < 0:
        flags.append("NEGATIVE_NET_WORTH: liabilities exceed assets at horizon")

    return ProjectionSummary(
        opening_net_worth=opening,
        closing_net_worth=closing,
        net_worth_change=closing - opening,
        net_worth_cagr=growth,
        peak_net_worth=net_worth[peak_idx],
        peak_period=result.dates[peak_idx],
        cumulative_net_cashflow=sum(net_cashflow, ZERO),
        negative_cashflow_periods=negative_periods,
        debt_free_period=debt_free,
        flags=flags,
    )
