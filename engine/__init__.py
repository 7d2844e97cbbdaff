"""
Projection engine — frequency normalization, loan amortization, and the
net worth / cashflow projector.
"""

from .amortization import (
    AmortizationEntry,
    AmortizationSchedule,
    LoanTerms,
    PaymentSplit,
    compute_payment,
    current_balance,
    current_payment_split,
    generate_schedule,
    iter_schedule,
)
from .frequency import convert, to_annual, to_monthly
from .income import EmploymentIncome, IncomeModel, RentalIncome, YieldIncome
from .projector import (
    AssetProjectionInput,
    BalanceLiability,
    ExpenseCategory,
    ProjectionResult,
    RecurringExpense,
    project,
)
from .runner import run_projection

__all__ = [
    "AmortizationEntry",
    "AmortizationSchedule",
    "LoanTerms",
    "PaymentSplit",
    "compute_payment",
    "current_balance",
    "current_payment_split",
    "generate_schedule",
    "iter_schedule",
    "convert",
    "to_annual",
    "to_monthly",
    "IncomeModel",
    "YieldIncome",
    "RentalIncome",
    "EmploymentIncome",
    "AssetProjectionInput",
    "BalanceLiability",
    "ExpenseCategory",
    "ProjectionResult",
    "RecurringExpense",
    "project",
    "run_projection",
]
