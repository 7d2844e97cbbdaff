from __future__ import annotations

import math
from datetime import date
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from typing import Any, Iterable, List, Mapping

import pandas as pd
from dateutil.relativedelta import relativedelta

from .errors import MalformedInputError
from .schema import Granularity

# Working precision for all engine arithmetic. Rounding to cents happens only
# on output values, never on intermediate sums.
DECIMAL_CONTEXT = Context(prec=34)

ZERO = Decimal("0")
ONE = Decimal("1")
TWELVE = Decimal("12")


def decimal_context():
    """Local copy of the engine's decimal context (callers' contexts are ignored)."""
    return localcontext(DECIMAL_CONTEXT)


def require_fields(record: Mapping[str, Any], fields: Iterable[str]) -> None:
    missing = [f for f in fields if record.get(f) is None]
    if missing:
        raise MalformedInputError(f"Missing required fields: {missing}")


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """Coerce a numeric input to Decimal; floats go through their repr to avoid binary noise."""
    if value is None:
        raise MalformedInputError(f"{field_name} is required.")
    if isinstance(value, bool):
        raise MalformedInputError(f"{field_name} must be numeric, got {value!r}.")
    if isinstance(value, Decimal):
        out = value
    elif isinstance(value, int):
        out = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise MalformedInputError(f"{field_name} must be finite, got {value!r}.")
        out = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            out = Decimal(value.strip())
        except InvalidOperation:
            raise MalformedInputError(f"{field_name} is not a number: {value!r}.") from None
    else:
        raise MalformedInputError(f"{field_name} must be numeric, got {type(value).__name__}.")
    if not out.is_finite():
        raise MalformedInputError(f"{field_name} must be finite, got {value!r}.")
    return out


def excel_round(x: Decimal, decimals: int = 2) -> Decimal:
    """Excel ROUND: half away from zero."""
    return x.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def datedif_months(start: date, end: date) -> int:
    """Excel DATEDIF(start, end, "m"): complete months between two dates (negative if end < start)."""
    s = pd.Timestamp(start)
    e = pd.Timestamp(end)
    if e < s:
        return -datedif_months(e, s)
    months = (e.year - s.year) * 12 + (e.month - s.month)
    if e.day < s.day:
        months -= 1
    return int(months)


def add_months(d: date, months: int) -> date:
    return d + relativedelta(months=months)


def period_labels(as_of_date: date, n_periods: int, granularity: Granularity) -> List[str]:
    """
    Labels for projection periods 0..n_periods inclusive.
    Monthly periods render as "YYYY-MM", annual periods as "YYYY".
    """
    freq = "M" if granularity is Granularity.MONTHLY else "Y"
    start = pd.Period(pd.Timestamp(as_of_date), freq=freq)
    return [str(p) for p in pd.period_range(start=start, periods=n_periods + 1, freq=freq)]
