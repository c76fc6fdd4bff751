# tnb_bill/ui/tariff_reference.py
from __future__ import annotations

import pandas as pd
import streamlit as st

from tnb_bill.core.bill_trace import fmt_number, fmt_pct
from tnb_bill.core.rate_tables import RateTables


def legacy_rate_frame(tables: RateTables) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"Block": block.label, "Rate (sen/kWh)": block.rate_sen_per_kwh}
            for block in tables.legacy.blocks
        ]
    )


def current_rate_frame(tables: RateTables) -> pd.DataFrame:
    cur = tables.current
    boundary = fmt_number(cur.tier_boundary_kwh)
    rows = [
        ("Generation", f"≤ {boundary} kWh", cur.generation_tier1_sen_per_kwh),
        ("Generation", f"> {boundary} kWh", cur.generation_tier2_sen_per_kwh),
        ("Generation (ToU peak)", f"≤ {boundary} kWh", cur.tou_tier1.peak_sen_per_kwh),
        (
            "Generation (ToU off-peak)",
            f"≤ {boundary} kWh",
            cur.tou_tier1.off_peak_sen_per_kwh,
        ),
        ("Generation (ToU peak)", f"> {boundary} kWh", cur.tou_tier2.peak_sen_per_kwh),
        (
            "Generation (ToU off-peak)",
            f"> {boundary} kWh",
            cur.tou_tier2.off_peak_sen_per_kwh,
        ),
        ("Capacity", "all usage", cur.capacity_sen_per_kwh),
        ("Network", "all usage", cur.network_sen_per_kwh),
    ]
    return pd.DataFrame(rows, columns=["Component", "Applies to", "Rate (sen/kWh)"])


def rebate_tier_frame(tables: RateTables) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"Net usage (kWh)": tier.usage_range, "Rebate (sen/kWh)": tier.rate_sen_per_kwh}
            for tier in tables.current.rebate_tiers
        ]
    )


def render_tariff_reference(tables: RateTables, regime: str) -> None:
    st.caption(f"Rates effective {tables.effective_date or 'n/a'}.")

    if regime == "legacy":
        legacy = tables.legacy
        st.dataframe(legacy_rate_frame(tables), hide_index=True, width="stretch")
        icpt = legacy.cost_pass_through
        st.markdown(
            f"- Renewable Energy Fund: {fmt_pct(legacy.levy_rate)} of the energy charge\n"
            f"- ICPT: rebate of {fmt_number(icpt.rebate_sen_per_kwh)} sen/kWh up to "
            f"{fmt_number(icpt.rebate_up_to_kwh)} kWh, surcharge of "
            f"{fmt_number(icpt.surcharge_sen_per_kwh)} sen/kWh above "
            f"{fmt_number(icpt.surcharge_above_kwh)} kWh\n"
            f"- Service tax: {fmt_pct(legacy.tax_rate)} on usage above "
            f"{fmt_number(legacy.tax_threshold_kwh)} kWh"
        )
        return

    cur = tables.current
    st.dataframe(current_rate_frame(tables), hide_index=True, width="stretch")
    st.markdown(
        f"- Retail charge: RM {cur.retail_fee_rm:.2f}/month, waived up to "
        f"{fmt_number(cur.retail_waived_up_to_kwh)} kWh net\n"
        f"- Renewable Energy Fund (KWTBB): {fmt_pct(cur.levy_rate)} of the subtotal\n"
        f"- Service tax (SST): {fmt_pct(cur.tax_rate)} on net usage above "
        f"{fmt_number(cur.tax_threshold_kwh)} kWh"
    )
    if tables.tou_peak_hours:
        st.markdown(
            f"- ToU peak hours (weekdays): {tables.tou_peak_hours}; "
            f"off-peak: {tables.tou_off_peak_hours}"
        )
    with st.expander("Energy Efficiency Incentive tiers", expanded=False):
        st.caption(
            f"Whole net usage is rebated at one tier's rate. No rebate above "
            f"{fmt_number(cur.rebate_cap_kwh)} kWh."
        )
        st.dataframe(rebate_tier_frame(tables), hide_index=True, width="stretch")
