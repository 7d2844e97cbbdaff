"""
Data quality validation for snapshots before they enter the engine.

Catches problems early:
- Missing or non-numeric values
- Negative balances
- Rates outside plausible bounds (percent vs decimal mix-ups)
- Loans that start in the future or have already matured
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Union

from core.errors import MalformedInputError, ProjectionError
from core.utils import datedif_months, to_decimal
from engine.amortization import LoanTerms
from engine.projector import AssetProjectionInput, BalanceLiability

_ONE = Decimal("1")


@dataclass
class ValidationResult:
    """Collects all validation warnings/errors for a snapshot."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = []
        if self.errors:
            lines.append(f"ERRORS ({len(self.errors)}):")
            for e in self.errors:
                lines.append(f"  ✗ {e}")
        if self.warnings:
            lines.append(f"WARNINGS ({len(self.warnings)}):")
            for w in self.warnings:
                lines.append(f"  ⚠ {w}")
        if not lines:
            lines.append("✓ All checks passed.")
        return "\n".join(lines)

    def raise_for_errors(self) -> None:
        if self.errors:
            raise MalformedInputError(self.summary())


def _checked(value, name: str, result: ValidationResult) -> Optional[Decimal]:
    try:
        return to_decimal(value, name)
    except ProjectionError as exc:
        result.errors.append(str(exc))
        return None


def validate_snapshot(
    assets: Iterable[AssetProjectionInput],
    liabilities: Iterable[Union[LoanTerms, BalanceLiability]],
    *,
    as_of_date: Optional[date] = None,
) -> ValidationResult:
    """
    Run all validation checks on a snapshot.
    Returns a ValidationResult with errors (blocking) and warnings (informational).
    """
    result = ValidationResult()
    as_of = as_of_date or date.today()

    # --- Assets ---
    for i, asset in enumerate(assets):
        tag = f"asset[{i}] ({asset.asset_class_label})"
        value = _checked(asset.current_value, f"{tag} current_value", result)
        growth = _checked(asset.annual_growth_rate, f"{tag} annual_growth_rate", result)
        yld = _checked(asset.annual_income_yield, f"{tag} annual_income_yield", result)

        if value is not None and value < 0:
            result.errors.append(f"{tag} has negative current_value.")
        if growth is not None:
            if growth <= -_ONE:
                result.errors.append(f"{tag} growth rate is -100% or lower.")
            elif growth > _ONE:
                result.warnings.append(
                    f"{tag} growth rate > 1.0; check if rates are in percent vs decimal form."
                )
        if yld is not None:
            if yld < 0:
                result.errors.append(f"{tag} has negative income yield.")
            elif yld > _ONE:
                result.warnings.append(
                    f"{tag} income yield > 1.0; check if rates are in percent vs decimal form."
                )
        for e in asset.recurring_expenses:
            amount = _checked(e.amount, f"{tag} expense {e.category.name!r}", result)
            if amount is not None and amount < 0:
                result.errors.append(f"{tag} expense {e.category.name!r} is negative.")

    # --- Liabilities ---
    for i, loan in enumerate(liabilities):
        tag = f"liability[{i}] ({loan.label or 'unlabelled'})"
        if isinstance(loan, BalanceLiability):
            balance = _checked(loan.balance, f"{tag} balance", result)
            growth = _checked(loan.annual_growth_rate, f"{tag} annual_growth_rate", result)
            if balance is not None and balance < 0:
                result.errors.append(f"{tag} has negative balance.")
            if growth is not None and growth <= -_ONE:
                result.errors.append(f"{tag} growth rate is -100% or lower.")
            continue

        principal = _checked(loan.principal, f"{tag} principal", result)
        rate = _checked(loan.annual_interest_rate, f"{tag} annual_interest_rate", result)

        if principal is not None and principal < 0:
            result.errors.append(f"{tag} has negative principal.")
        if rate is not None:
            if rate < 0:
                result.errors.append(f"{tag} has negative interest rate.")
            elif rate > _ONE:
                result.warnings.append(
                    f"{tag} interest rate > 1.0; check if rates are in percent vs decimal form."
                )

        if loan.term_months is None or loan.term_months <= 0:
            result.errors.append(f"{tag} has zero or negative term.")
            continue

        if loan.start_date is None:
            result.errors.append(f"{tag} has no start date.")
            continue

        elapsed = datedif_months(loan.start_date, as_of)
        if elapsed < 0:
            result.warnings.append(f"{tag} starts after the as-of date.")
        elif elapsed >= loan.term_months:
            result.warnings.append(f"{tag} is already fully repaid at the as-of date.")

    return result
