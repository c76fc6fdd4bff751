# tnb_bill/core/bill_engine.py
from __future__ import annotations

import dataclasses
import logging
import math
from typing import Optional

from tnb_bill.config import settings
from tnb_bill.core.bill_models import (
    REGIMES,
    BillRequest,
    BillResult,
    EngineResult,
    TouComparison,
)
from tnb_bill.core.current_tariff import calculate_current_bill
from tnb_bill.core.errors import InvalidInputError
from tnb_bill.core.legacy_tariff import calculate_legacy_bill
from tnb_bill.core.rate_tables import RateTables, load_rate_tables
from tnb_bill.core.result_assembler import assemble_breakdown, render_trace

logger = logging.getLogger(__name__)


def validate_request(request: BillRequest) -> None:
    """Raise InvalidInputError if the request cannot be billed."""
    if request.regime not in REGIMES:
        raise InvalidInputError(
            f"Unknown tariff regime {request.regime!r}; expected one of {REGIMES}"
        )
    if not math.isfinite(request.usage_kwh) or request.usage_kwh < 0:
        raise InvalidInputError(
            f"Usage must be a finite number ≥ 0 kWh, got {request.usage_kwh}"
        )
    if not math.isfinite(request.solar_excess_kwh) or request.solar_excess_kwh < 0:
        raise InvalidInputError(
            f"Solar excess must be a finite number ≥ 0 kWh, got {request.solar_excess_kwh}"
        )
    if not math.isfinite(request.tou_peak_pct) or not 0 <= request.tou_peak_pct <= 100:
        raise InvalidInputError(
            f"Peak usage share must be between 0 and 100%, got {request.tou_peak_pct}"
        )
    if not math.isfinite(request.fuel_adjustment_sen_per_kwh):
        raise InvalidInputError("Fuel adjustment rate must be a finite number")


def _run_engine(
    request: BillRequest,
    tables: RateTables,
    icpt_basis: Optional[str] = None,
) -> EngineResult:
    if request.regime == "legacy":
        return calculate_legacy_bill(
            request.usage_kwh,
            request.effective_solar_kwh,
            tables.legacy,
            icpt_basis=icpt_basis,
        )
    return calculate_current_bill(
        request.usage_kwh,
        request.effective_solar_kwh,
        request.tou_enabled,
        request.tou_peak_pct,
        request.fuel_adjustment_sen_per_kwh,
        tables.current,
    )


def compare_tou(
    request: BillRequest,
    tables: Optional[RateTables] = None,
) -> TouComparison:
    """
    Price the same month under ToU and under the general tariff.

    Both runs share every non-ToU input; the general run forces ToU off and
    the peak share to 50%.
    """
    validate_request(request)
    tables = tables or load_rate_tables()
    tou_request = dataclasses.replace(request, regime="current", tou_enabled=True)
    general_request = dataclasses.replace(
        tou_request, tou_enabled=False, tou_peak_pct=settings.GENERAL_TARIFF_PEAK_PCT
    )

    tou_amount = _run_engine(tou_request, tables).amount
    general_amount = _run_engine(general_request, tables).amount
    savings = general_amount - tou_amount
    savings_pct = savings / general_amount * 100 if general_amount != 0 else 0.0

    return TouComparison(
        general_tariff_amount=general_amount,
        tou_amount=tou_amount,
        savings=savings,
        savings_pct=savings_pct,
    )


def calculate_bill(
    request: BillRequest,
    tables: Optional[RateTables] = None,
    icpt_basis: Optional[str] = None,
) -> Optional[BillResult]:
    """
    Validate, dispatch to the regime's engine and assemble the result.

    Returns None for zero usage: there is nothing to bill, and callers show
    an empty state rather than an error.
    """
    validate_request(request)
    if request.usage_kwh == 0:
        logger.debug("Zero usage requested; no bill computed")
        return None

    tables = tables or load_rate_tables()
    engine_result = _run_engine(request, tables, icpt_basis=icpt_basis)

    comparison = None
    if request.regime == "current" and request.tou_enabled:
        comparison = compare_tou(request, tables)

    return BillResult(
        request=request,
        breakdown=assemble_breakdown(engine_result),
        trace=render_trace(engine_result.line_items),
        line_items=engine_result.line_items,
        solar_savings=engine_result.solar_savings,
        tou_comparison=comparison,
        warnings=engine_result.warnings,
    )
