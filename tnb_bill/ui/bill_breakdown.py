# tnb_bill/ui/bill_breakdown.py
from __future__ import annotations

import pandas as pd
import streamlit as st

from tnb_bill.config import settings
from tnb_bill.core.bill_models import BillBreakdown, BillResult
from tnb_bill.ui.style import CREDIT_FIELDS

# (field, label) in bill order, per regime
LEGACY_ROWS = [
    ("generation_charge", "Energy charge (blocks)"),
    ("legacy_levy", "Renewable Energy Fund (KWTBB)"),
    ("cost_pass_through", "ICPT rebate / surcharge"),
    ("legacy_tax", "Service tax"),
    ("solar_credit", "Solar credit"),
]

CURRENT_ROWS = [
    ("generation_charge", "Generation charge"),
    ("capacity_charge", "Capacity charge"),
    ("network_charge", "Network charge"),
    ("solar_credit", "Solar offset"),
    ("retail_charge", "Retail charge"),
    ("fuel_adjustment", "Automatic Fuel Adjustment (AFA)"),
    ("efficiency_rebate", "Energy Efficiency Incentive (EEI)"),
    ("current_levy", "Renewable Energy Fund (KWTBB)"),
    ("current_tax", "Service tax (SST)"),
]


def breakdown_rows(breakdown: BillBreakdown, regime: str) -> pd.DataFrame:
    """
    One row per bill component with the signed amount it adds to the total.

    Credits (rebate, solar) are stored positive on the breakdown and shown
    negative here so the column sums to the total.
    """
    rows = LEGACY_ROWS if regime == "legacy" else CURRENT_ROWS
    records = []
    for field_name, label in rows:
        value = float(getattr(breakdown, field_name))
        signed = -value if field_name in CREDIT_FIELDS else value
        records.append({"field": field_name, "component": label, "amount_rm": signed})
    return pd.DataFrame(records, columns=["field", "component", "amount_rm"])


def _money(value: float) -> str:
    return settings.MONEY_FMT.format(value + 0.0)


def render_bill_breakdown(result: BillResult) -> None:
    breakdown = result.breakdown

    col_total, col_solar, col_tou = st.columns(3)
    with col_total:
        st.metric(
            "Estimated bill",
            _money(breakdown.total_amount),
            help="Includes levy and service tax. Rounded to the sen.",
        )
    with col_solar:
        if result.request.effective_solar_kwh > 0:
            st.metric(
                "Solar savings",
                _money(result.solar_savings),
                help="Value of the exported energy credited against this bill.",
            )
    with col_tou:
        comparison = result.tou_comparison
        if comparison is not None:
            st.metric(
                "ToU vs general tariff",
                _money(comparison.tou_amount),
                delta=f"{-comparison.savings:+,.2f} RM",
                delta_color="inverse",
                help=(
                    f"General tariff: {_money(comparison.general_tariff_amount)}. "
                    f"Savings: {comparison.savings_pct:.1f}%."
                ),
            )

    for warning in result.warnings:
        st.warning(warning)

    df = breakdown_rows(breakdown, result.request.regime)
    display = df.drop(columns=["field"]).rename(
        columns={"component": "Component", "amount_rm": "Amount (RM)"}
    )
    st.dataframe(
        display,
        hide_index=True,
        width="stretch",
        column_config={
            "Amount (RM)": st.column_config.NumberColumn(format="%.2f"),
        },
    )

    with st.expander("Detailed calculation", expanded=False):
        st.code("\n".join(result.trace), language=None)
