import pytest

from tnb_bill.core.bill_models import EngineResult, LineItem
from tnb_bill.core.result_assembler import assemble_breakdown, render_trace


def _result(*items, amount=100.0):
    return EngineResult(amount=amount, line_items=tuple(items))


def test_tagged_items_fill_breakdown_and_rest_default_to_zero():
    result = _result(
        LineItem("HEADER"),
        LineItem("Generation Charge: RM {amount}", 12.5, field="generation_charge"),
        LineItem("Some detail: RM {amount}", 99.0),
        LineItem("Less EEI Rebate: RM {amount}", 3.0, field="efficiency_rebate"),
        amount=42.0,
    )
    breakdown = assemble_breakdown(result)

    assert breakdown.generation_charge == 12.5
    assert breakdown.efficiency_rebate == 3.0
    assert breakdown.capacity_charge == 0.0
    assert breakdown.legacy_tax == 0.0
    assert breakdown.total_amount == 42.0


def test_field_tagged_twice_is_an_error():
    result = _result(
        LineItem("a {amount}", 1.0, field="retail_charge"),
        LineItem("b {amount}", 2.0, field="retail_charge"),
    )
    with pytest.raises(ValueError):
        assemble_breakdown(result)


def test_unknown_field_is_an_error():
    with pytest.raises(ValueError):
        assemble_breakdown(_result(LineItem("x {amount}", 1.0, field="bogus")))


def test_total_amount_cannot_be_tagged():
    with pytest.raises(ValueError):
        assemble_breakdown(_result(LineItem("x {amount}", 1.0, field="total_amount")))


def test_render_trace_formats_amounts():
    lines = render_trace(
        [
            LineItem("=== TITLE ==="),
            LineItem(),
            LineItem("Levy: RM {amount}", 5.2638),
            LineItem("ICPT: RM {amount}", -10.0),
            LineItem("Tax: RM {amount}", -0.0),
        ]
    )
    assert lines == (
        "=== TITLE ===",
        "",
        "Levy: RM 5.26",
        "ICPT: RM -10.00",
        "Tax: RM 0.00",
    )


def test_breakdown_does_not_depend_on_trace_wording():
    a = _result(LineItem("Generation Charge: RM {amount}", 7.0, field="generation_charge"))
    b = _result(LineItem("Caj Penjanaan: {amount}", 7.0, field="generation_charge"))
    assert assemble_breakdown(a) == assemble_breakdown(b)
