import pandas as pd
import pytest

from tnb_bill.core.bill_engine import calculate_bill
from tnb_bill.core.bill_models import BillRequest
from tnb_bill.core.rate_tables import load_rate_tables
from tnb_bill.core.tou_analysis import build_tou_sweep
from tnb_bill.ui.bill_breakdown import breakdown_rows
from tnb_bill.ui.charts import build_breakdown_chart, build_tou_sweep_chart
from tnb_bill.ui.tariff_reference import (
    current_rate_frame,
    legacy_rate_frame,
    rebate_tier_frame,
)


@pytest.mark.parametrize(
    "request_",
    [
        BillRequest(usage_kwh=778, regime="legacy", solar_enabled=True, solar_excess_kwh=474),
        BillRequest(usage_kwh=1906, regime="legacy"),
        BillRequest(usage_kwh=500, regime="legacy"),
        BillRequest(
            usage_kwh=1000,
            regime="current",
            tou_enabled=True,
            tou_peak_pct=30,
            fuel_adjustment_sen_per_kwh=-0.89,
        ),
        BillRequest(usage_kwh=778, regime="current", solar_enabled=True, solar_excess_kwh=474),
    ],
)
def test_breakdown_rows_sum_to_total(request_):
    result = calculate_bill(request_)
    rows = breakdown_rows(result.breakdown, request_.regime)

    assert rows["amount_rm"].sum() == pytest.approx(result.breakdown.total_amount)


def test_credits_are_shown_negative():
    result = calculate_bill(BillRequest(usage_kwh=500, regime="current"))
    rows = breakdown_rows(result.breakdown, "current").set_index("field")
    assert rows.loc["efficiency_rebate", "amount_rm"] == pytest.approx(-60.0)


def test_breakdown_chart_skips_zero_rows():
    result = calculate_bill(BillRequest(usage_kwh=500, regime="current"))
    fig = build_breakdown_chart(breakdown_rows(result.breakdown, "current"))
    labels = list(fig.data[0].y)
    assert "Retail charge" not in labels
    assert "Generation charge" in labels


def test_tou_sweep_chart_has_both_lines():
    request = BillRequest(usage_kwh=1000, regime="current", tou_enabled=True)
    fig = build_tou_sweep_chart(build_tou_sweep(request), current_peak_pct=30)
    assert [trace.name for trace in fig.data] == ["General tariff", "Time of Use"]


def test_chart_rejects_unexpected_frame():
    with pytest.raises(ValueError):
        build_breakdown_chart(pd.DataFrame({"x": [1]}))


def test_reference_frames_mirror_rate_tables():
    tables = load_rate_tables()
    assert len(legacy_rate_frame(tables)) == len(tables.legacy.blocks)
    assert len(current_rate_frame(tables)) == 8
    assert len(rebate_tier_frame(tables)) == len(tables.current.rebate_tiers)
