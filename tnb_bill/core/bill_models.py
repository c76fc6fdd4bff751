# tnb_bill/core/bill_models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple

Regime = Literal["legacy", "current"]
REGIMES: Tuple[str, ...] = ("legacy", "current")


@dataclass(frozen=True)
class BillRequest:
    """
    Inputs for a single monthly bill estimate.

    Built fresh for every calculation. Solar export only counts when
    `solar_enabled` is set, so the UI can keep the last typed value around
    while the toggle is off.
    """

    usage_kwh: float
    regime: Regime = "current"
    tou_enabled: bool = False
    tou_peak_pct: float = 50.0  # share of usage in peak hours, 0–100
    solar_enabled: bool = False
    solar_excess_kwh: float = 0.0
    fuel_adjustment_sen_per_kwh: float = 0.0  # AFA, signed

    @property
    def effective_solar_kwh(self) -> float:
        return self.solar_excess_kwh if self.solar_enabled else 0.0


@dataclass(frozen=True)
class LineItem:
    """
    One line of the calculation trace.

    `text` may contain an ``{amount}`` placeholder which is filled from
    `amount` when rendering. When `field` is set, the amount is also the
    value of that BillBreakdown attribute.
    """

    text: str = ""
    amount: Optional[float] = None
    field: Optional[str] = None

    def render(self) -> str:
        if self.amount is None:
            return self.text
        # + 0.0 turns -0.0 into 0.0 so waived items never print "RM -0.00"
        return self.text.format(amount=f"{self.amount + 0.0:.2f}")


@dataclass(frozen=True)
class EngineResult:
    """Raw output of one tariff engine run."""

    amount: float
    line_items: Tuple[LineItem, ...]
    solar_savings: float = 0.0
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BillBreakdown:
    """
    Fixed-shape breakdown shared by both regimes, in RM.

    Fields that do not apply to the active regime stay at zero.
    """

    generation_charge: float = 0.0  # legacy: block energy charge
    capacity_charge: float = 0.0
    network_charge: float = 0.0
    retail_charge: float = 0.0
    fuel_adjustment: float = 0.0
    efficiency_rebate: float = 0.0  # positive credit
    cost_pass_through: float = 0.0  # legacy ICPT, signed
    legacy_levy: float = 0.0
    legacy_tax: float = 0.0
    current_levy: float = 0.0
    current_tax: float = 0.0
    solar_credit: float = 0.0
    total_amount: float = 0.0


@dataclass(frozen=True)
class TouComparison:
    general_tariff_amount: float
    tou_amount: float
    savings: float
    savings_pct: float


@dataclass(frozen=True)
class BillResult:
    request: BillRequest
    breakdown: BillBreakdown
    trace: Tuple[str, ...]
    line_items: Tuple[LineItem, ...]
    solar_savings: float = 0.0
    tou_comparison: Optional[TouComparison] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)
