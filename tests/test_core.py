"""Unit tests for shared utilities, config and logging"""

import io
import json
import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from core.config import MAX_HORIZON_YEARS, ProjectionConfig
from core.errors import MalformedInputError, ProjectionError
from core.logging import LOG_FORMAT, ProjectionJsonFormatter, setup_logging
from core.schema import Granularity
from core.utils import datedif_months, excel_round, period_labels, require_fields, to_decimal


def test_excel_round_half_away_from_zero():
    assert excel_round(Decimal("2.675")) == Decimal("2.68")
    assert excel_round(Decimal("-2.675")) == Decimal("-2.68")
    assert excel_round(Decimal("2.5"), 0) == Decimal("3")
    assert excel_round(Decimal("1798.651575")) == Decimal("1798.65")


def test_to_decimal_float_uses_repr():
    """0.1 becomes Decimal('0.1'), not its binary expansion"""
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("  250.50 ") == Decimal("250.50")
    assert to_decimal(7) == Decimal(7)


@pytest.mark.parametrize("bad", [None, True, "abc", float("nan"), float("inf"), [1]])
def test_to_decimal_rejects_non_numeric(bad):
    with pytest.raises(MalformedInputError):
        to_decimal(bad, "amount")


def test_errors_are_value_errors():
    assert issubclass(MalformedInputError, ProjectionError)
    assert issubclass(ProjectionError, ValueError)


def test_require_fields_lists_missing():
    require_fields({"a": 1, "b": 0}, ["a", "b"])
    with pytest.raises(MalformedInputError, match="loanTerm"):
        require_fields({"startDate": "2020-01-01", "loanTerm": None}, ["startDate", "loanTerm"])


def test_datedif_months_whole_months_only():
    assert datedif_months(date(2020, 1, 15), date(2020, 3, 15)) == 2
    assert datedif_months(date(2020, 1, 15), date(2020, 3, 14)) == 1
    assert datedif_months(date(2020, 1, 31), date(2020, 2, 29)) == 0
    assert datedif_months(date(2020, 1, 1), date(2025, 1, 1)) == 60


def test_datedif_months_negative_when_reversed():
    assert datedif_months(date(2020, 3, 15), date(2020, 1, 15)) == -2


def test_period_labels_monthly_and_annual():
    monthly = period_labels(date(2025, 11, 20), 3, Granularity.MONTHLY)
    assert monthly == ["2025-11", "2025-12", "2026-01", "2026-02"]

    annual = period_labels(date(2025, 6, 30), 2, Granularity.ANNUAL)
    assert annual == ["2025", "2026", "2027"]


def test_config_defaults():
    cfg = ProjectionConfig()
    assert cfg.as_of_date == date.today()
    assert cfg.max_horizon_years == MAX_HORIZON_YEARS == 100
    assert cfg.include_income and cfg.include_expenses
    assert not cfg.exclude_liabilities
    assert cfg.inflation_rate == 0


def test_json_formatter_adds_service_metadata():
    formatter = ProjectionJsonFormatter(LOG_FORMAT, service="planner-api")
    record = logging.LogRecord(
        name="engine.runner",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Projection completed",
        args=(),
        exc_info=None,
    )
    record.n_assets = 3

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "Projection completed"
    assert payload["level"] == "INFO"
    assert payload["service"] == "planner-api"
    assert payload["n_assets"] == 3
    assert datetime.fromisoformat(payload["timestamp"]).timestamp() == pytest.approx(record.created)


def test_formatter_defaults_to_project_service():
    formatter = ProjectionJsonFormatter(LOG_FORMAT)
    record = logging.LogRecord("engine", logging.DEBUG, __file__, 1, "x", (), None)
    assert json.loads(formatter.format(record))["service"] == "asset-projections"


def test_setup_logging_replaces_only_its_own_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    host_handler = logging.NullHandler()
    root.addHandler(host_handler)
    stream = io.StringIO()
    try:
        setup_logging("DEBUG", service="planner-api")
        handler = setup_logging("DEBUG", service="planner-api", stream=stream)

        ours = [h for h in root.handlers if isinstance(h.formatter, ProjectionJsonFormatter)]
        assert ours == [handler]
        assert host_handler in root.handlers
        assert root.level == logging.DEBUG

        logging.getLogger("engine.projector").debug("Projecting %d assets", 2)
        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["message"] == "Projecting 2 assets"
        assert line["name"] == "engine.projector"
        assert line["service"] == "planner-api"
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
