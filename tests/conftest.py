"""Pytest fixtures for testing"""

from datetime import date
from decimal import Decimal

import pytest

from core.config import ProjectionConfig
from engine.amortization import LoanTerms
from engine.projector import AssetProjectionInput


AS_OF = date(2025, 1, 1)


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def config() -> ProjectionConfig:
    """Config pinned to a fixed as-of date so period labels are stable"""
    return ProjectionConfig(as_of_date=AS_OF)


@pytest.fixture
def mortgage() -> LoanTerms:
    """$300k, 6%, 30 years, starting on the as-of date"""
    return LoanTerms(
        principal=Decimal("300000"),
        annual_interest_rate=Decimal("0.06"),
        term_months=360,
        start_date=AS_OF,
        label="Home loan",
    )


@pytest.fixture
def home() -> AssetProjectionInput:
    return AssetProjectionInput(
        current_value=Decimal("100000"),
        annual_growth_rate=Decimal("0.05"),
        asset_class_label="Property",
        holding_type_label="Personal",
    )


@pytest.fixture
def shares() -> AssetProjectionInput:
    return AssetProjectionInput(
        current_value=Decimal("50000"),
        annual_growth_rate=Decimal("0.07"),
        annual_income_yield=Decimal("0.04"),
        asset_class_label="Shares",
        holding_type_label="Super",
    )
