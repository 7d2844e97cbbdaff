"""
Loan amortization — level-payment annuity math and payment-by-payment schedules.

Key rules:
  1. Payment = P·r / (1 − (1+r)^−n), r = annual_rate / 12, n = term in months
  2. Zero rate: payment = P / n
  3. Schedule rows are in whole cents: interest rounded per row,
     principal = payment − interest
  4. The final row repays the remaining balance exactly, so every schedule
     ends at 0 regardless of accumulated rounding
  5. Variable-rate loans keep their current rate for the whole schedule
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterator, Optional, Tuple, overload

from core.config import CURRENCY_PLACES
from core.errors import InvalidRateError, InvalidTermError, MalformedInputError
from core.schema import InterestRateType, PaymentFrequency, RepaymentType
from core.utils import (
    ONE,
    TWELVE,
    ZERO,
    datedif_months,
    decimal_context,
    excel_round,
    to_decimal,
)

from .frequency import convert

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoanTerms:
    """A liability as seen by the engine. Immutable for the duration of a run."""

    principal: Decimal
    annual_interest_rate: Decimal  # decimal fraction, 0.055 == 5.5%
    term_months: int
    start_date: date
    interest_rate_type: InterestRateType = InterestRateType.FIXED
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    repayment_type: RepaymentType = RepaymentType.PRINCIPAL_AND_INTEREST
    label: Optional[str] = None

    @property
    def is_interest_only(self) -> bool:
        return self.repayment_type is RepaymentType.INTEREST_ONLY


@dataclass(frozen=True)
class AmortizationEntry:
    """One payment period. principal_portion + interest_portion == payment."""
    index: int
    payment: Decimal
    principal_portion: Decimal
    interest_portion: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class PaymentSplit:
    principal: Decimal
    interest: Decimal


@dataclass(frozen=True)
class AmortizationSchedule:
    """
    Fully materialized schedule. Behaves as a read-only sequence of
    AmortizationEntry rows (len, iteration, indexing) and can be re-iterated freely.
    """

    principal: Decimal
    annual_rate: Decimal
    term_months: int
    payment: Decimal
    entries: Tuple[AmortizationEntry, ...]
    interest_only: bool = False

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[AmortizationEntry]:
        return iter(self.entries)

    @overload
    def __getitem__(self, i: int) -> AmortizationEntry: ...

    @overload
    def __getitem__(self, i: slice) -> Tuple[AmortizationEntry, ...]: ...

    def __getitem__(self, i):
        return self.entries[i]

    @property
    def total_interest(self) -> Decimal:
        return sum((e.interest_portion for e in self.entries), ZERO)

    @property
    def total_paid(self) -> Decimal:
        return sum((e.payment for e in self.entries), ZERO)


def _validate_loan_inputs(principal: Any, annual_rate: Any, term_months: Any) -> Tuple[Decimal, Decimal, int]:
    p = to_decimal(principal, "principal")
    rate = to_decimal(annual_rate, "annual_interest_rate")
    if term_months is None or isinstance(term_months, bool):
        raise MalformedInputError("term_months is required.")
    try:
        n = int(term_months)
    except (TypeError, ValueError):
        raise MalformedInputError(f"term_months must be an integer, got {term_months!r}.") from None
    if n != term_months:
        raise MalformedInputError(f"term_months must be a whole number of months, got {term_months!r}.")
    if n <= 0:
        raise InvalidTermError(f"term_months must be > 0, got {n}.")
    if rate < 0:
        raise InvalidRateError(f"annual_interest_rate must not be negative, got {rate}.")
    if p < 0:
        raise MalformedInputError(f"principal must not be negative, got {p}.")
    return p, rate, n


def compute_payment(principal: Any, annual_rate: Any, term_months: Any) -> Decimal:
    """
    Level monthly payment that fully amortizes `principal` over `term_months`.

    Returned at full working precision; schedules round it to cents.
    """
    p, rate, n = _validate_loan_inputs(principal, annual_rate, term_months)
    with decimal_context():
        if rate == 0:
            return p / n
        r = rate / TWELVE
        return p * r / (ONE - (ONE + r) ** -n)


def interest_only_payment(principal: Any, annual_rate: Any, *, places: int = CURRENCY_PLACES) -> Decimal:
    """Monthly interest on an interest-only balance, in cents."""
    p = to_decimal(principal, "principal")
    rate = to_decimal(annual_rate, "annual_interest_rate")
    if rate < 0:
        raise InvalidRateError(f"annual_interest_rate must not be negative, got {rate}.")
    with decimal_context():
        return excel_round(p * rate / TWELVE, places)


def _scheduled_payment(balance: Decimal, rate: Decimal, n: int, interest_only: bool, places: int) -> Decimal:
    if interest_only:
        return interest_only_payment(balance, rate, places=places)
    return excel_round(compute_payment(balance, rate, n), places)


def _next_entry(
    index: int,
    is_final: bool,
    balance: Decimal,
    monthly_rate: Decimal,
    payment: Decimal,
    interest_only: bool,
    places: int,
) -> AmortizationEntry:
    with decimal_context():
        interest = excel_round(balance * monthly_rate, places)
        if is_final:
            principal_part = balance
        elif interest_only:
            principal_part = ZERO
        else:
            principal_part = min(max(payment - interest, ZERO), balance)
        return AmortizationEntry(
            index=index,
            payment=principal_part + interest,
            principal_portion=principal_part,
            interest_portion=interest,
            remaining_balance=balance - principal_part,
        )


def iter_schedule(
    principal: Any,
    annual_rate: Any,
    term_months: Any,
    *,
    interest_only: bool = False,
    places: int = CURRENCY_PLACES,
) -> Iterator[AmortizationEntry]:
    """
    Lazily yield the schedule rows, period 1 .. term_months.

    Interest-only loans pay interest each month and repay the balance in a
    single final (balloon) row.
    """
    p, rate, n = _validate_loan_inputs(principal, annual_rate, term_months)
    balance = excel_round(p, places)
    payment = _scheduled_payment(balance, rate, n, interest_only, places)
    with decimal_context():
        monthly_rate = rate / TWELVE
    return _rows(balance, monthly_rate, payment, n, interest_only, places)


def _rows(
    balance: Decimal,
    monthly_rate: Decimal,
    payment: Decimal,
    n: int,
    interest_only: bool,
    places: int,
) -> Iterator[AmortizationEntry]:
    for k in range(1, n + 1):
        entry = _next_entry(k, k == n, balance, monthly_rate, payment, interest_only, places)
        balance = entry.remaining_balance
        yield entry


def generate_schedule(
    principal: Any,
    annual_rate: Any,
    term_months: Any,
    *,
    interest_only: bool = False,
    places: int = CURRENCY_PLACES,
) -> AmortizationSchedule:
    """
    Materialize the full schedule (exactly `term_months` rows, last balance 0).

    Parameters
    ----------
    principal : Decimal-like
        Opening loan balance
    annual_rate : Decimal-like
        Annual interest rate as a decimal fraction
    term_months : int
        Number of monthly payments, > 0
    interest_only : bool
        Pay interest only and repay the principal in the final row
    places : int
        Currency decimal places for every row

    Raises
    ------
    InvalidTermError, InvalidRateError, MalformedInputError
    """
    p, rate, n = _validate_loan_inputs(principal, annual_rate, term_months)
    p = excel_round(p, places)
    payment = _scheduled_payment(p, rate, n, interest_only, places)
    entries = tuple(iter_schedule(p, rate, n, interest_only=interest_only, places=places))
    return AmortizationSchedule(
        principal=p,
        annual_rate=rate,
        term_months=n,
        payment=payment,
        entries=entries,
        interest_only=interest_only,
    )


def schedule_for(terms: LoanTerms, *, places: int = CURRENCY_PLACES) -> AmortizationSchedule:
    """Build the schedule for a liability record."""
    if terms.interest_rate_type is InterestRateType.VARIABLE:
        logger.debug(
            "Variable-rate loan %s scheduled at its current rate %s",
            terms.label or "<unlabelled>",
            terms.annual_interest_rate,
        )
    return generate_schedule(
        terms.principal,
        terms.annual_interest_rate,
        terms.term_months,
        interest_only=terms.is_interest_only,
        places=places,
    )


def periodic_payment(terms: LoanTerms, *, places: int = CURRENCY_PLACES) -> Decimal:
    """The loan's repayment expressed at its own payment frequency (weekly, fortnightly, ...)."""
    if terms.is_interest_only:
        monthly = interest_only_payment(terms.principal, terms.annual_interest_rate, places=places)
    else:
        monthly = compute_payment(terms.principal, terms.annual_interest_rate, terms.term_months)
    return excel_round(convert(monthly, PaymentFrequency.MONTHLY, terms.payment_frequency), places)


def balance_after(schedule: AmortizationSchedule, elapsed_months: int) -> Decimal:
    """Remaining balance once `elapsed_months` payments have been made."""
    if elapsed_months <= 0:
        return schedule.principal
    if elapsed_months >= len(schedule):
        return ZERO
    return schedule[elapsed_months - 1].remaining_balance


def current_balance(schedule: AmortizationSchedule, as_of_date: date, loan_start_date: date) -> Decimal:
    """
    Balance on `as_of_date`, read off the fixed schedule by counting whole
    months elapsed since `loan_start_date`.
    """
    return balance_after(schedule, datedif_months(loan_start_date, as_of_date))


def current_payment_split(
    current_balance: Any,
    annual_rate: Any,
    payment: Any,
    *,
    places: int = CURRENCY_PLACES,
) -> PaymentSplit:
    """Split the next payment on `current_balance` into principal and interest."""
    balance = to_decimal(current_balance, "current_balance")
    rate = to_decimal(annual_rate, "annual_interest_rate")
    pay = to_decimal(payment, "payment")
    if rate < 0:
        raise InvalidRateError(f"annual_interest_rate must not be negative, got {rate}.")
    if balance <= 0:
        return PaymentSplit(principal=ZERO, interest=ZERO)
    with decimal_context():
        interest = balance * rate / TWELVE
        principal = min(max(pay - interest, ZERO), balance)
        return PaymentSplit(
            principal=excel_round(principal, places),
            interest=excel_round(interest, places),
        )
