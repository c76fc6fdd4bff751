# tnb_bill/ui/calculator_inputs.py
from __future__ import annotations

from typing import Optional

import streamlit as st

from tnb_bill.config import settings
from tnb_bill.core.bill_models import BillRequest
from tnb_bill.core.live_rates import AfaRate

_REGIME_LABELS = {
    "current": "New tariff (from 1 July 2025)",
    "legacy": "Old tariff (before July 2025)",
}


def _dev_prefill(initial: BillRequest) -> BillRequest:
    """In dev, start from the sample 778 kWh bill unless the URL says otherwise."""
    if settings.APP_ENV != settings.ENV_DEV or initial.usage_kwh:
        return initial
    return BillRequest(
        usage_kwh=settings.DEV_DEFAULT_USAGE_KWH,
        regime=initial.regime,
        tou_enabled=initial.tou_enabled,
        tou_peak_pct=initial.tou_peak_pct,
        solar_enabled=True,
        solar_excess_kwh=settings.DEV_DEFAULT_SOLAR_EXCESS_KWH,
        fuel_adjustment_sen_per_kwh=initial.fuel_adjustment_sen_per_kwh,
    )


def render_calculator_inputs(
    initial: BillRequest,
    live_afa: Optional[AfaRate] = None,
) -> BillRequest:
    """Render the calculator form.

    Parameters
    ----------
    initial
        Values to pre-fill, normally rebuilt from the URL.
    live_afa
        Published AFA rate, if it could be fetched. Only used as the slider
        default; the user can still override it.

    Returns
    -------
    BillRequest
        A fresh request built from the widgets' current values.
    """

    st.markdown(
        "Enter your monthly usage from your TNB bill. The estimate updates as "
        "soon as you change a value."
    )

    initial = _dev_prefill(initial)

    col_usage, col_regime = st.columns(2)
    with col_usage:
        usage_kwh = st.number_input(
            "Monthly usage (kWh)",
            min_value=0.0,
            max_value=settings.MAX_USAGE_KWH,
            value=min(float(initial.usage_kwh), settings.MAX_USAGE_KWH),
            step=1.0,
            format="%.0f",
            help="Total energy imported from the grid this month (the kWh on your bill).",
        )

    with col_regime:
        regimes = list(_REGIME_LABELS)
        regime = st.radio(
            "Tariff",
            options=regimes,
            index=regimes.index(initial.regime),
            format_func=_REGIME_LABELS.get,
            help=(
                "The old tariff uses five consumption blocks. The new tariff "
                "bills generation, capacity, network and retail separately."
            ),
        )

    tou_enabled = initial.tou_enabled
    tou_peak_pct = initial.tou_peak_pct
    fuel_sen_per_kwh = initial.fuel_adjustment_sen_per_kwh

    if regime == "current":
        tou_enabled = st.toggle(
            "Time of Use (ToU) tariff",
            value=initial.tou_enabled,
            help="Peak hours are billed higher and off-peak hours lower than the general tariff.",
        )
        if tou_enabled:
            tou_peak_pct = st.slider(
                "Share of usage during peak hours (%)",
                min_value=0,
                max_value=100,
                value=int(round(min(max(initial.tou_peak_pct, 0.0), 100.0))),
                step=1,
                help="Weekdays 2pm to 10pm. Weekends and public holidays are off-peak all day.",
            )

        afa_default = initial.fuel_adjustment_sen_per_kwh
        if live_afa is not None and not afa_default:
            afa_default = live_afa.sen_per_kwh
        fuel_sen_per_kwh = st.slider(
            "Automatic Fuel Adjustment, AFA (sen/kWh)",
            min_value=settings.AFA_SLIDER_MIN_SEN,
            max_value=settings.AFA_SLIDER_MAX_SEN,
            value=min(
                max(float(afa_default), settings.AFA_SLIDER_MIN_SEN),
                settings.AFA_SLIDER_MAX_SEN,
            ),
            step=settings.AFA_SLIDER_STEP_SEN,
            format="%.2f",
            help="Negative values are a rebate. Applied to net consumption.",
        )
        if live_afa is not None:
            effective = (
                f" effective {live_afa.effective_date:%d %b %Y}"
                if live_afa.effective_date
                else ""
            )
            st.caption(f"Published AFA: {live_afa.sen_per_kwh:+.2f} sen/kWh{effective}")

    solar_enabled = st.toggle(
        "I export solar energy (NEM)",
        value=initial.solar_enabled,
    )
    solar_excess_kwh = initial.solar_excess_kwh
    if solar_enabled:
        solar_excess_kwh = st.number_input(
            "Excess solar exported (kWh)",
            min_value=0.0,
            max_value=settings.MAX_USAGE_KWH,
            value=min(float(initial.solar_excess_kwh), settings.MAX_USAGE_KWH),
            step=1.0,
            format="%.0f",
            help="The 'Lebihan Tenaga yang Dijana' figure on your bill.",
        )

    return BillRequest(
        usage_kwh=float(usage_kwh),
        regime=regime,
        tou_enabled=bool(tou_enabled),
        tou_peak_pct=float(tou_peak_pct),
        solar_enabled=bool(solar_enabled),
        solar_excess_kwh=float(solar_excess_kwh),
        fuel_adjustment_sen_per_kwh=float(fuel_sen_per_kwh),
    )
