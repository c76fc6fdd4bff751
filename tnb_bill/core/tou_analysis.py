# tnb_bill/core/tou_analysis.py
from __future__ import annotations

import dataclasses
from typing import Optional

import numpy as np
import pandas as pd

from tnb_bill.config import settings
from tnb_bill.core.bill_engine import compare_tou, validate_request
from tnb_bill.core.bill_models import BillRequest
from tnb_bill.core.rate_tables import RateTables, load_rate_tables

SWEEP_COLUMNS = [
    "peak_pct",
    "tou_total_rm",
    "general_total_rm",
    "savings_rm",
    "savings_pct",
]


def build_tou_sweep(
    request: BillRequest,
    tables: Optional[RateTables] = None,
    step_pct: Optional[float] = None,
) -> pd.DataFrame:
    """
    ToU vs general tariff totals across peak-usage shares 0..100%.

    Every other input (usage, solar, AFA) is taken from `request`. One row
    per peak share; 100% is always included.
    """
    validate_request(request)
    tables = tables or load_rate_tables()
    step = float(settings.TOU_SWEEP_STEP_PCT if step_pct is None else step_pct)
    if step <= 0:
        raise ValueError("step_pct must be positive")

    peak_values = np.arange(0.0, 100.0 + step / 2, step)
    peak_values = np.clip(peak_values, 0.0, 100.0)
    if peak_values[-1] < 100.0:
        peak_values = np.append(peak_values, 100.0)

    rows = []
    for peak_pct in peak_values:
        comparison = compare_tou(
            dataclasses.replace(request, tou_peak_pct=float(peak_pct)), tables
        )
        rows.append(
            {
                "peak_pct": float(peak_pct),
                "tou_total_rm": comparison.tou_amount,
                "general_total_rm": comparison.general_tariff_amount,
                "savings_rm": comparison.savings,
                "savings_pct": comparison.savings_pct,
            }
        )

    return pd.DataFrame(rows, columns=SWEEP_COLUMNS)


def breakeven_peak_pct(df: pd.DataFrame) -> Optional[float]:
    """Largest peak share in the sweep at which ToU still costs no more."""
    if df.empty:
        return None
    saving = df.loc[df["savings_rm"] >= 0, "peak_pct"]
    if saving.empty:
        return None
    return float(saving.max())
