import pytest

from tnb_bill.config import settings
from tnb_bill.core.errors import InvalidInputError
from tnb_bill.core.legacy_tariff import (
    allocate_blocks,
    calculate_legacy_bill,
    taxable_block_usage,
)
from tnb_bill.core.rate_tables import load_rate_tables
from tnb_bill.core.result_assembler import assemble_breakdown, render_trace


def _table():
    return load_rate_tables().legacy


def _run(usage_kwh, solar_kwh=0.0, **kwargs):
    result = calculate_legacy_bill(usage_kwh, solar_kwh, _table(), **kwargs)
    return result, assemble_breakdown(result), render_trace(result.line_items)


def _line(trace, prefix):
    matches = [line for line in trace if line.startswith(prefix)]
    assert matches, f"no trace line starting with {prefix!r}"
    return matches[0]


@pytest.mark.parametrize(
    "usage_kwh, expected_energy, expected_tax",
    [
        (500, 180.20, 0.0),
        (778, 328.99, 7.78),
        (1906, 970.03, 59.06),
    ],
)
def test_energy_charge_and_tax(usage_kwh, expected_energy, expected_tax):
    _, breakdown, _ = _run(usage_kwh)
    assert breakdown.generation_charge == pytest.approx(expected_energy, abs=0.005)
    assert breakdown.legacy_tax == pytest.approx(expected_tax, abs=0.005)


def test_500_kwh_gets_icpt_rebate_and_no_tax():
    _, breakdown, trace = _run(500)

    assert breakdown.cost_pass_through == pytest.approx(-10.0)
    assert "RM -10.00" in _line(trace, "ICPT (Rebat 2 sen/kWh)")
    assert "Service Tax (8%): RM 0.00 (Waived for usage ≤ 600 kWh)" in trace
    assert breakdown.total_amount == pytest.approx(173.08, abs=0.005)


def test_778_kwh_trace_lines():
    _, breakdown, trace = _run(778)

    assert "Subtotal: RM 328.99" in trace
    assert "Service Tax (8% on taxable energy charge): RM 7.78" in trace
    assert _line(trace, "ICPT (Tiada rebat/surcaj)").endswith("RM 0.00")
    assert breakdown.cost_pass_through == 0.0
    assert breakdown.legacy_levy == pytest.approx(328.988 * 0.016)


def test_block_lines_stop_at_last_consumed_block():
    _, _, trace = _run(250)
    block_lines = [line for line in trace if line[:1].isdigit() and " × " in line]
    assert block_lines == [
        "0-200 kWh: 200 kWh × 21.8 sen/kWh = RM 43.60",
        "201-300 kWh: 50 kWh × 33.4 sen/kWh = RM 16.70",
    ]


def test_surcharge_on_total_usage_by_default():
    _, breakdown, trace = _run(1906)
    assert breakdown.cost_pass_through == pytest.approx(190.60)
    assert "RM 190.60" in _line(trace, "ICPT (Surcaj 10 sen/kWh")


def test_surcharge_on_excess_when_flagged():
    _, breakdown, _ = _run(1906, icpt_basis=settings.ICPT_BASIS_EXCESS)
    assert breakdown.cost_pass_through == pytest.approx(40.60)


def test_unknown_icpt_basis_is_rejected():
    with pytest.raises(InvalidInputError):
        _run(1906, icpt_basis="per_block")


def test_solar_credit_from_highest_block_down():
    result, breakdown, trace = _run(778, 474)

    # 178 kWh of block 4 then 296 kWh of block 3
    assert breakdown.solar_credit == pytest.approx(97.188 + 152.736)
    assert result.solar_savings == pytest.approx(breakdown.solar_credit)
    assert "RM 249.9" in _line(trace, "Total Solar Credit (Lebihan Tenaga yang Dijana)")
    assert "TOTAL: RM 92.10" in trace

    credit_lines = [line for line in trace if line.startswith("Solar credit ")]
    assert credit_lines[0].startswith("Solar credit 601-900 kWh: 178 kWh")
    assert credit_lines[1].startswith("Solar credit 301-600 kWh: 296 kWh")


def test_solar_credit_on_large_usage_stays_in_top_block():
    _, breakdown, _ = _run(1906, 585)
    assert breakdown.solar_credit == pytest.approx(334.035)


def test_solar_credit_never_exceeds_energy_charge():
    _, breakdown, _ = _run(300, 5000)
    assert breakdown.solar_credit == pytest.approx(breakdown.generation_charge)


@pytest.mark.parametrize("usage_kwh", [1, 150, 200, 299.5, 600, 601, 1234.5, 5000])
def test_blocks_fill_in_order_within_capacity(usage_kwh):
    table = _table()
    allocation = allocate_blocks(usage_kwh, table.blocks)

    assert sum(allocation) == pytest.approx(usage_kwh)
    for block, used in zip(table.blocks, allocation):
        if block.capacity_kwh is not None:
            assert used <= block.capacity_kwh
    # nothing spills into a block while an earlier one has room
    for earlier, later in zip(
        zip(table.blocks, allocation), zip(table.blocks[1:], allocation[1:])
    ):
        if later[1] > 0:
            assert earlier[1] == earlier[0].capacity_kwh


@pytest.mark.parametrize("usage_kwh", [601, 778, 900, 1906])
def test_tax_is_positive_above_threshold(usage_kwh):
    _, breakdown, _ = _run(usage_kwh)
    assert breakdown.legacy_tax > 0


def test_taxable_usage_split_over_upper_blocks():
    parts = taxable_block_usage(1906, 600, _table().blocks)
    assert [(block.label, kwh) for block, kwh in parts] == [
        ("601-900 kWh", 300),
        ("901+ kWh", 1006),
    ]
