"""
Projection runner — the in-process entry point used by the web layer.

Takes a JSON-shaped ProjectionRequest, validates it against the wire schema,
builds the engine's value objects, runs the projector and returns a
JSON-shaped ProjectionResult (camelCase keys, plain floats).

    payload (dict / ProjectionRequest)
        → core.schema.ProjectionRequest        (pydantic validation)
        → AssetProjectionInput / LoanTerms / BalanceLiability  (engine value objects)
        → engine.projector.project()
        → core.schema.ProjectionResponse        (serialization)
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from core.config import ProjectionConfig
from core.errors import MalformedInputError
from core.schema import (
    AssetClassSeries,
    AssetPayload,
    BalanceLiabilityPayload,
    CashflowPayload,
    HoldingTypeSeries,
    LoanPayload,
    ProjectionRequest,
    ProjectionResponse,
)

from .amortization import LoanTerms
from .projector import AssetProjectionInput, BalanceLiability, ProjectionResult, project

logger = logging.getLogger(__name__)


def parse_request(payload: Union[ProjectionRequest, Mapping[str, Any]]) -> ProjectionRequest:
    """Validate a raw payload; schema failures surface as MalformedInputError."""
    if isinstance(payload, ProjectionRequest):
        return payload
    try:
        return ProjectionRequest.model_validate(payload)
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise MalformedInputError(f"Invalid projection request fields: {fields}") from exc


def asset_from_payload(item: AssetPayload) -> AssetProjectionInput:
    return AssetProjectionInput(
        current_value=item.current_value,
        annual_growth_rate=item.annual_growth_rate,
        annual_income_yield=item.annual_income_yield,
        asset_class_label=item.asset_class_label,
        holding_type_label=item.holding_type_label,
    )


def loan_from_payload(item: LoanPayload) -> LoanTerms:
    return LoanTerms(
        principal=item.principal,
        annual_interest_rate=item.annual_interest_rate,
        term_months=item.term_months,
        start_date=item.start_date,
        interest_rate_type=item.interest_rate_type,
        payment_frequency=item.payment_frequency,
        repayment_type=item.repayment_type,
        label=item.label,
    )


def balance_from_payload(item: BalanceLiabilityPayload) -> BalanceLiability:
    return BalanceLiability(
        balance=item.balance,
        annual_growth_rate=item.annual_growth_rate,
        label=item.label,
    )


def result_to_response(result: ProjectionResult) -> ProjectionResponse:
    def floats(values):
        return [float(v) for v in values]

    return ProjectionResponse(
        dates=list(result.dates),
        total_asset_value=floats(result.total_asset_value),
        total_liability_value=floats(result.total_liability_value),
        net_worth=floats(result.net_worth),
        cashflow=CashflowPayload(
            total_income=floats(result.cashflow.total_income),
            total_expenses=floats(result.cashflow.total_expenses),
            net_cashflow=floats(result.cashflow.net_cashflow),
        ),
        asset_breakdown=[
            AssetClassSeries(asset_class=b.label, values=floats(b.values))
            for b in result.asset_breakdown
        ],
        holding_type_breakdown=[
            HoldingTypeSeries(holding_type=b.label, values=floats(b.values))
            for b in result.holding_type_breakdown
        ],
        inflation_adjusted=result.inflation_adjusted,
    )


def run_projection(
    payload: Union[ProjectionRequest, Mapping[str, Any]],
    config: Optional[ProjectionConfig] = None,
) -> Dict[str, Any]:
    """
    Run a projection request end to end.

    Parameters
    ----------
    payload : dict or ProjectionRequest
        {assets, liabilities, balanceLiabilities?, horizonYears, granularity, asOfDate?}
    config : ProjectionConfig, optional
        Engine settings; a request's asOfDate overrides config.as_of_date

    Returns
    -------
    dict shaped like the ProjectionResult wire schema (camelCase keys).
    """
    request = parse_request(payload)
    cfg = config or ProjectionConfig()
    if request.as_of_date is not None:
        cfg = replace(cfg, as_of_date=request.as_of_date)

    started = time.perf_counter()
    result = project(
        [asset_from_payload(a) for a in request.assets],
        [loan_from_payload(l) for l in request.liabilities]
        + [balance_from_payload(b) for b in request.balance_liabilities],
        request.horizon_years,
        request.granularity,
        config=cfg,
    )
    duration_ms = (time.perf_counter() - started) * 1000

    logger.info(
        "Projection completed",
        extra={
            "step": "projection_complete",
            "n_assets": len(request.assets),
            "n_liabilities": len(request.liabilities) + len(request.balance_liabilities),
            "horizon_years": int(request.horizon_years),
            "granularity": request.granularity.value,
            "n_periods": result.n_periods,
            "duration_ms": round(duration_ms, 2),
        },
    )
    return result_to_response(result).model_dump(by_alias=True)
