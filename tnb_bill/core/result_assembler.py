# tnb_bill/core/result_assembler.py
from __future__ import annotations

from dataclasses import fields
from typing import Dict, Iterable, Tuple

from tnb_bill.core.bill_models import BillBreakdown, EngineResult, LineItem

BREAKDOWN_FIELDS = frozenset(f.name for f in fields(BillBreakdown)) - {"total_amount"}


def assemble_breakdown(result: EngineResult) -> BillBreakdown:
    """
    Copy every tagged line-item amount into a BillBreakdown.

    Untagged items are presentation only. A field tagged twice, or a tag
    that is not a breakdown field, is a programming error in the engine.
    """
    values: Dict[str, float] = {}
    for item in result.line_items:
        if item.field is None:
            continue
        if item.field not in BREAKDOWN_FIELDS:
            raise ValueError(f"Line item tagged with unknown field {item.field!r}")
        if item.field in values:
            raise ValueError(f"Breakdown field {item.field!r} tagged more than once")
        values[item.field] = float(item.amount or 0.0)

    return BillBreakdown(total_amount=result.amount, **values)


def render_trace(line_items: Iterable[LineItem]) -> Tuple[str, ...]:
    return tuple(item.render() for item in line_items)
