"""
Data preparation — raw application records to engine snapshots, expense-category
normalization, validation.
"""

from .categories import normalize_expense_category, parse_frequency
from .snapshot_builder import (
    Snapshot,
    build_snapshot,
    canonicalize_record,
    get_asset_growth_rate,
    get_asset_income_yield,
    map_period_to_years,
)
from .validators import ValidationResult, validate_snapshot

__all__ = [
    "normalize_expense_category",
    "parse_frequency",
    "Snapshot",
    "build_snapshot",
    "canonicalize_record",
    "get_asset_growth_rate",
    "get_asset_income_yield",
    "map_period_to_years",
    "ValidationResult",
    "validate_snapshot",
]
