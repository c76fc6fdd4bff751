# tnb_bill/ui/url_state.py
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping

from tnb_bill.config import settings
from tnb_bill.core.bill_models import REGIMES, BillRequest

logger = logging.getLogger(__name__)

# Query-string keys for each BillRequest field
PARAM_USAGE = "usage"
PARAM_REGIME = "tariff"
PARAM_TOU = "tou"
PARAM_PEAK_PCT = "peak"
PARAM_SOLAR = "solar"
PARAM_SOLAR_KWH = "export"
PARAM_AFA = "afa"

# Short names used by older shared links
_REGIME_ALIASES = {"old": "legacy", "new": "current"}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def default_request() -> BillRequest:
    return BillRequest(
        usage_kwh=settings.DEFAULT_USAGE_KWH,
        regime=settings.DEFAULT_REGIME,
        tou_enabled=settings.DEFAULT_TOU_ENABLED,
        tou_peak_pct=settings.DEFAULT_TOU_PEAK_PCT,
        solar_enabled=settings.DEFAULT_SOLAR_ENABLED,
        solar_excess_kwh=settings.DEFAULT_SOLAR_EXCESS_KWH,
        fuel_adjustment_sen_per_kwh=settings.DEFAULT_AFA_SEN_PER_KWH,
    )


def _first(value: Any) -> Any:
    # st.query_params gives the last value; plain dicts from urllib give lists
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def _as_float(params: Mapping[str, Any], key: str, default: float) -> float:
    raw = _first(params.get(key))
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric query param %s=%r", key, raw)
        return default
    if not math.isfinite(value):
        logger.debug("Ignoring non-finite query param %s=%r", key, raw)
        return default
    return value


def _as_bool(params: Mapping[str, Any], key: str, default: bool) -> bool:
    raw = _first(params.get(key))
    if raw is None:
        return default
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    logger.debug("Ignoring non-boolean query param %s=%r", key, raw)
    return default


def request_from_query_params(params: Mapping[str, Any]) -> BillRequest:
    """
    Rebuild a BillRequest from URL query parameters.

    Missing or unparseable values fall back to the calculator defaults.
    Range checks are left to the engine so a bad link surfaces as an input
    error instead of being silently changed.
    """
    defaults = default_request()

    regime_raw = _first(params.get(PARAM_REGIME))
    regime = defaults.regime
    if regime_raw:
        candidate = _REGIME_ALIASES.get(str(regime_raw).lower(), str(regime_raw).lower())
        if candidate in REGIMES:
            regime = candidate
        else:
            logger.debug("Ignoring unknown tariff regime %r in query params", regime_raw)

    return BillRequest(
        usage_kwh=_as_float(params, PARAM_USAGE, defaults.usage_kwh),
        regime=regime,
        tou_enabled=_as_bool(params, PARAM_TOU, defaults.tou_enabled),
        tou_peak_pct=_as_float(params, PARAM_PEAK_PCT, defaults.tou_peak_pct),
        solar_enabled=_as_bool(params, PARAM_SOLAR, defaults.solar_enabled),
        solar_excess_kwh=_as_float(params, PARAM_SOLAR_KWH, defaults.solar_excess_kwh),
        fuel_adjustment_sen_per_kwh=_as_float(
            params, PARAM_AFA, defaults.fuel_adjustment_sen_per_kwh
        ),
    )


def _fmt(value: float) -> str:
    # plain decimal text that reads back to the same float
    text = f"{value:.15g}"
    return text if float(text) == value else repr(float(value))


def request_to_query_params(request: BillRequest) -> Dict[str, str]:
    """Query parameters for `request`, leaving out anything at its default."""
    defaults = default_request()
    params: Dict[str, str] = {}

    if request.usage_kwh != defaults.usage_kwh:
        params[PARAM_USAGE] = _fmt(request.usage_kwh)
    if request.regime != defaults.regime:
        params[PARAM_REGIME] = request.regime
    if request.tou_enabled != defaults.tou_enabled:
        params[PARAM_TOU] = str(request.tou_enabled).lower()
    if request.tou_peak_pct != defaults.tou_peak_pct:
        params[PARAM_PEAK_PCT] = _fmt(request.tou_peak_pct)
    if request.solar_enabled != defaults.solar_enabled:
        params[PARAM_SOLAR] = str(request.solar_enabled).lower()
    if request.solar_excess_kwh != defaults.solar_excess_kwh:
        params[PARAM_SOLAR_KWH] = _fmt(request.solar_excess_kwh)
    if request.fuel_adjustment_sen_per_kwh != defaults.fuel_adjustment_sen_per_kwh:
        params[PARAM_AFA] = _fmt(request.fuel_adjustment_sen_per_kwh)

    return params
