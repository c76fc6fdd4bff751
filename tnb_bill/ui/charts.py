# tnb_bill/ui/charts.py
from __future__ import annotations

from typing import Optional

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from tnb_bill.ui.style import (
    COLOR_CHARGE,
    COLOR_CREDIT,
    COLOR_GENERAL,
    COLOR_TAX,
    COLOR_TOU,
    CREDIT_FIELDS,
    LINE_WIDTH_PRIMARY,
    TAX_FIELDS,
)


def _bar_color(field_name: str) -> str:
    if field_name in CREDIT_FIELDS:
        return COLOR_CREDIT
    if field_name in TAX_FIELDS:
        return COLOR_TAX
    return COLOR_CHARGE


def build_breakdown_chart(
    rows: pd.DataFrame,
    title: str = "Where the bill comes from",
) -> go.Figure:
    """
    Horizontal bar chart of bill components.

    Expected df columns (see bill_breakdown.breakdown_rows):
    - field: breakdown attribute name
    - component: display label
    - amount_rm: signed amount, credits negative
    """
    required = {"field", "component", "amount_rm"}
    if not required.issubset(rows.columns):
        raise ValueError(f"DataFrame must contain columns {sorted(required)}")

    df_plot = rows[rows["amount_rm"].abs() >= 0.005]

    fig = go.Figure(
        go.Bar(
            x=df_plot["amount_rm"],
            y=df_plot["component"],
            orientation="h",
            marker_color=[_bar_color(f) for f in df_plot["field"]],
            hovertemplate="<b>%{y}</b><br>RM %{x:,.2f}<extra></extra>",
        )
    )
    fig.update_layout(
        title=title,
        xaxis=dict(title="RM", tickprefix="RM "),
        yaxis=dict(title=None, autorange="reversed"),
        showlegend=False,
        margin=dict(l=40, r=40, t=60, b=40),
    )
    return fig


def build_tou_sweep_chart(
    df: pd.DataFrame,
    current_peak_pct: Optional[float] = None,
    title: str = "ToU vs general tariff by peak-hour share",
) -> go.Figure:
    """
    Line chart of both tariffs' totals across peak shares.

    Expected df columns (see core.tou_analysis.build_tou_sweep):
    - peak_pct, tou_total_rm, general_total_rm
    """
    if not {"peak_pct", "tou_total_rm", "general_total_rm"}.issubset(df.columns):
        raise ValueError(
            "DataFrame must contain 'peak_pct', 'tou_total_rm' and 'general_total_rm'"
        )

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=df["peak_pct"],
            y=df["general_total_rm"],
            mode="lines",
            name="General tariff",
            line=dict(color=COLOR_GENERAL, dash="dash", width=LINE_WIDTH_PRIMARY),
            hovertemplate="General: RM %{y:,.2f}<extra></extra>",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=df["peak_pct"],
            y=df["tou_total_rm"],
            mode="lines+markers",
            name="Time of Use",
            line=dict(color=COLOR_TOU, width=LINE_WIDTH_PRIMARY),
            hovertemplate="ToU: RM %{y:,.2f}<extra></extra>",
        )
    )

    if current_peak_pct is not None:
        fig.add_vline(
            x=current_peak_pct,
            line_dash="dot",
            annotation_text=f"You: {current_peak_pct:.0f}%",
            annotation_position="top",
        )

    fig.update_layout(
        title=title,
        xaxis=dict(title="Usage during peak hours (%)", range=[0, 100]),
        yaxis=dict(title="Monthly bill (RM)", tickprefix="RM "),
        hovermode="x unified",
        legend=dict(orientation="h", y=-0.2, x=0.5, xanchor="center"),
        margin=dict(l=40, r=40, t=60, b=60),
    )
    return fig


def render_breakdown_chart(rows: pd.DataFrame) -> None:
    st.plotly_chart(build_breakdown_chart(rows), width="stretch")


def render_tou_sweep_chart(
    df: pd.DataFrame, current_peak_pct: Optional[float] = None
) -> None:
    st.plotly_chart(build_tou_sweep_chart(df, current_peak_pct), width="stretch")
