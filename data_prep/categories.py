"""
Expense-category normalization.

Expense categories arrive as plain strings, as {id, name, ...} objects, or
occasionally as stringified objects ("[object Object]"). Everything is turned
into a single ExpenseCategory here, before any record reaches the engine.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from core.errors import MalformedInputError
from core.schema import PaymentFrequency
from engine.frequency import as_frequency
from engine.projector import ExpenseCategory

_NON_WORD = re.compile(r"[^a-z0-9]+")
_PLACEHOLDER_NAMES = {"[object object]", "undefined", "null"}


def parse_frequency(value: Any, field_name: str = "frequency") -> PaymentFrequency:
    """Frequency from raw record data; unknown values are input errors, not programming errors."""
    if isinstance(value, PaymentFrequency):
        return value
    try:
        return as_frequency(str(value).strip().lower())
    except ValueError:
        raise MalformedInputError(f"{field_name} is not a known payment frequency: {value!r}") from None


def category_slug(name: str) -> str:
    return _NON_WORD.sub("-", name.strip().lower()).strip("-")


def normalize_expense_category(
    value: Any,
    *,
    default_frequency: PaymentFrequency = PaymentFrequency.MONTHLY,
) -> ExpenseCategory:
    """Coerce a string / mapping / ExpenseCategory into an ExpenseCategory."""
    if isinstance(value, ExpenseCategory):
        return value

    if isinstance(value, str):
        name = value.strip()
        if not name or name.lower() in _PLACEHOLDER_NAMES:
            raise MalformedInputError(f"Unusable expense category: {value!r}")
        return ExpenseCategory(id=category_slug(name), name=name, default_frequency=default_frequency)

    if isinstance(value, Mapping):
        name = str(value.get("name") or "").strip()
        if not name or name.lower() in _PLACEHOLDER_NAMES:
            raise MalformedInputError(f"Expense category has no usable name: {dict(value)!r}")
        raw_id = value.get("id")
        freq = value.get("defaultFrequency") or value.get("default_frequency")
        return ExpenseCategory(
            id=str(raw_id) if raw_id not in (None, "") else category_slug(name),
            name=name,
            description=value.get("description") or None,
            default_frequency=parse_frequency(freq, "defaultFrequency") if freq else default_frequency,
        )

    raise MalformedInputError(f"Unsupported expense category type: {type(value).__name__}")
