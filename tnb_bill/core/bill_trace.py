# tnb_bill/core/bill_trace.py
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from tnb_bill.core.bill_models import LineItem


def fmt_number(value: float, max_decimals: int = 2) -> str:
    """Format kWh / sen values the way a bill prints them: 778, 54.6, 27.03."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:.{max_decimals}f}".rstrip("0").rstrip(".")


def fmt_pct(fraction: float) -> str:
    """0.016 -> '1.6%'."""
    return f"{fmt_number(fraction * 100)}%"


class BillTrace:
    """Ordered collector for the line items an engine emits while computing."""

    def __init__(self) -> None:
        self._items: List[LineItem] = []

    def note(self, text: str) -> None:
        self._items.append(LineItem(text=text))

    def blank(self) -> None:
        self._items.append(LineItem())

    def amount(self, text: str, amount: float, field: Optional[str] = None) -> None:
        self._items.append(LineItem(text=text, amount=amount, field=field))

    def extend_notes(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.note(line)

    @property
    def items(self) -> Tuple[LineItem, ...]:
        return tuple(self._items)
