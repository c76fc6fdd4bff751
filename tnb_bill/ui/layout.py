# tnb_bill/ui/layout.py
from __future__ import annotations

import logging
from typing import Optional

import streamlit as st

from tnb_bill.config import settings
from tnb_bill.core.bill_engine import calculate_bill
from tnb_bill.core.bill_models import BillRequest
from tnb_bill.core.errors import InvalidInputError, MalformedRateTableError
from tnb_bill.core.live_rates import AfaRate, LiveRateError, fetch_afa_rate
from tnb_bill.core.rate_tables import RateTables, load_rate_tables
from tnb_bill.core.tou_analysis import breakeven_peak_pct, build_tou_sweep
from tnb_bill.ui.bill_breakdown import breakdown_rows, render_bill_breakdown
from tnb_bill.ui.calculator_inputs import render_calculator_inputs
from tnb_bill.ui.charts import render_breakdown_chart, render_tou_sweep_chart
from tnb_bill.ui.tariff_reference import render_tariff_reference
from tnb_bill.ui.url_state import request_from_query_params, request_to_query_params

logger = logging.getLogger(__name__)


@st.cache_resource(show_spinner=False)
def get_rate_tables() -> RateTables:
    return load_rate_tables()


# ---------------------------------------------------------
# Load live AFA rate (if an endpoint is configured)
# ---------------------------------------------------------
@st.cache_data(
    ttl=settings.AFA_CACHE_TTL_S,
    show_spinner="Loading published AFA rate...",
)
def load_afa_rate(url: str) -> Optional[AfaRate]:
    """
    Returns the published AFA rate, or None if it could not be fetched.
    The manual slider stays usable either way.
    """
    try:
        return fetch_afa_rate(url)
    except LiveRateError as exc:
        logger.warning("Live AFA rate unavailable: %s", exc)
        return None


def _sync_query_params(params: dict) -> None:
    if st.query_params.to_dict() != params:
        st.query_params.from_dict(params)


def render_calculator() -> None:
    st.title("TNB electricity bill estimator")
    st.caption(
        "Estimate your monthly bill under the old block tariff or the new "
        "component tariff, with solar export and Time of Use."
    )

    try:
        tables = get_rate_tables()
    except (OSError, MalformedRateTableError) as exc:
        logger.error("Could not load tariff rate tables: %s", exc)
        st.error(f"Tariff rates could not be loaded: {exc}")
        return

    live_afa = None
    if settings.AFA_API_URL:
        use_live = st.sidebar.toggle("Use published AFA rate", value=True)
        if use_live:
            live_afa = load_afa_rate(settings.AFA_API_URL)
            if live_afa is None:
                st.sidebar.info("Published AFA rate unavailable; set it manually.")
            else:
                st.sidebar.success(f"AFA: {live_afa.sen_per_kwh:+.2f} sen/kWh")

    initial = request_from_query_params(st.query_params)

    tab_calc, tab_rates = st.tabs(["🧮 Calculator", "📋 Tariff rates"])

    with tab_calc:
        request = render_calculator_inputs(initial, live_afa=live_afa)
        _sync_query_params(request_to_query_params(request))
        _render_estimate(request, tables)

    with tab_rates:
        render_tariff_reference(tables, request.regime)


def _render_estimate(request: BillRequest, tables: RateTables) -> None:
    try:
        result = calculate_bill(request, tables)
    except InvalidInputError as exc:
        st.error(str(exc))
        return

    if result is None:
        st.info("Enter your monthly usage to see an estimate.")
        return

    st.markdown("## Your estimate")
    render_bill_breakdown(result)
    render_breakdown_chart(breakdown_rows(result.breakdown, request.regime))

    if result.tou_comparison is None:
        return

    st.markdown("## Is Time of Use worth it?")
    sweep = build_tou_sweep(request, tables)
    render_tou_sweep_chart(sweep, current_peak_pct=request.tou_peak_pct)
    breakeven = breakeven_peak_pct(sweep)
    if breakeven is None:
        st.caption("ToU costs more than the general tariff at every peak share.")
    else:
        st.caption(
            f"ToU is cheaper or equal while peak-hour usage stays at or "
            f"below about {breakeven:.0f}% of the month."
        )
