"""
Core package — enumerations, wire schema, configuration, errors and shared utilities.
No business logic lives here.
"""

from .config import ProjectionConfig
from .errors import (
    InvalidHorizonError,
    InvalidRateError,
    InvalidTermError,
    MalformedInputError,
    ProjectionError,
)
from .schema import (
    PERIODS_PER_YEAR,
    Granularity,
    InterestRateType,
    PaymentFrequency,
    RepaymentType,
)
from .utils import excel_round, datedif_months, to_decimal

__all__ = [
    "ProjectionConfig",
    "ProjectionError",
    "InvalidTermError",
    "InvalidHorizonError",
    "InvalidRateError",
    "MalformedInputError",
    "PERIODS_PER_YEAR",
    "Granularity",
    "InterestRateType",
    "PaymentFrequency",
    "RepaymentType",
    "excel_round",
    "datedif_months",
    "to_decimal",
]
