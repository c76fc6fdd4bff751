from dataclasses import replace

import pytest

from tnb_bill.core.bill_engine import calculate_bill, compare_tou, validate_request
from tnb_bill.core.bill_models import BillRequest
from tnb_bill.core.errors import InvalidInputError
from tnb_bill.core.rate_tables import load_rate_tables


def _request(**overrides) -> BillRequest:
    base = BillRequest(usage_kwh=778.0, regime="current")
    return replace(base, **overrides)


def test_zero_usage_returns_none():
    assert calculate_bill(_request(usage_kwh=0.0)) is None
    assert calculate_bill(_request(usage_kwh=0.0, regime="legacy")) is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"usage_kwh": -1.0},
        {"usage_kwh": float("nan")},
        {"usage_kwh": float("inf")},
        {"solar_enabled": True, "solar_excess_kwh": -5.0},
        {"tou_peak_pct": -0.1},
        {"tou_peak_pct": 100.5},
        {"regime": "industrial"},
        {"fuel_adjustment_sen_per_kwh": float("nan")},
    ],
)
def test_invalid_requests_are_rejected(overrides):
    request = _request(**overrides)
    with pytest.raises(InvalidInputError):
        validate_request(request)
    with pytest.raises(ValueError):
        calculate_bill(request)


def test_dispatches_by_regime():
    legacy = calculate_bill(_request(regime="legacy"))
    current = calculate_bill(_request(regime="current"))

    assert legacy.breakdown.legacy_tax == pytest.approx(7.78, abs=0.005)
    assert legacy.breakdown.current_tax == 0.0
    assert current.breakdown.capacity_charge > 0
    assert current.breakdown.legacy_levy == 0.0
    assert legacy.trace[0] == "=== OLD TARIFF CALCULATION (Pre-July 2025) ==="
    assert current.trace[0] == "=== NEW GENERAL DOMESTIC TARIFF (Post-July 2025) ==="


def test_solar_export_ignored_when_disabled():
    off = calculate_bill(_request(solar_enabled=False, solar_excess_kwh=474.0))
    none = calculate_bill(_request())
    assert off.breakdown == none.breakdown
    assert off.solar_savings == 0.0


def test_legacy_reference_bill_with_solar():
    result = calculate_bill(
        _request(regime="legacy", solar_enabled=True, solar_excess_kwh=474.0)
    )
    assert result.breakdown.total_amount == pytest.approx(92.10, abs=0.005)
    assert result.solar_savings == pytest.approx(249.924)


def test_icpt_basis_is_passed_through():
    request = _request(regime="legacy", usage_kwh=1906.0)
    total_basis = calculate_bill(request)
    excess_basis = calculate_bill(request, icpt_basis="excess_above_threshold")
    assert total_basis.breakdown.total_amount - excess_basis.breakdown.total_amount == (
        pytest.approx(150.0)
    )


def test_tou_comparison_only_for_current_tou():
    assert calculate_bill(_request()).tou_comparison is None
    assert calculate_bill(_request(regime="legacy", tou_enabled=True)).tou_comparison is None
    assert calculate_bill(_request(tou_enabled=True)).tou_comparison is not None


@pytest.mark.parametrize("peak_pct", [0, 25, 50, 63.5, 100])
def test_tou_comparison_identities(peak_pct):
    request = _request(usage_kwh=1000.0, tou_enabled=True, tou_peak_pct=peak_pct)
    comparison = calculate_bill(request).tou_comparison

    assert comparison.general_tariff_amount - comparison.tou_amount == pytest.approx(
        comparison.savings
    )
    assert comparison.savings / comparison.general_tariff_amount * 100 == pytest.approx(
        comparison.savings_pct
    )


def test_tou_comparison_matches_separate_runs():
    request = _request(usage_kwh=1000.0, tou_enabled=True, tou_peak_pct=30.0)
    comparison = compare_tou(request, load_rate_tables())

    general = calculate_bill(replace(request, tou_enabled=False))
    tou = calculate_bill(request)
    assert comparison.general_tariff_amount == pytest.approx(general.breakdown.total_amount)
    assert comparison.tou_amount == pytest.approx(tou.breakdown.total_amount)
    # only generation differs; the levy follows it
    assert comparison.savings == pytest.approx((270.30 - 256.57) * 1.016)


def test_repeated_calls_are_identical():
    request = _request(
        usage_kwh=1234.0,
        tou_enabled=True,
        tou_peak_pct=40.0,
        solar_enabled=True,
        solar_excess_kwh=321.0,
        fuel_adjustment_sen_per_kwh=-0.89,
    )
    assert calculate_bill(request) == calculate_bill(request)


def test_breakdown_matches_tagged_trace_lines():
    result = calculate_bill(_request(usage_kwh=1906.0))
    assert f"Generation Charge: RM {result.breakdown.generation_charge:.2f}" in result.trace
    assert f"TOTAL: RM {result.breakdown.total_amount:.2f}" in result.trace


@pytest.mark.parametrize(
    "overrides",
    [
        {"tou_enabled": True, "tou_peak_pct": 150.0},
        {"usage_kwh": -1000.0},
        {"solar_enabled": True, "solar_excess_kwh": float("nan")},
        {"fuel_adjustment_sen_per_kwh": float("inf")},
    ],
)
def test_tou_comparison_rejects_invalid_requests(overrides):
    with pytest.raises(InvalidInputError):
        compare_tou(_request(**overrides))
