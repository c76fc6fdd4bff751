# tnb_bill/core/efficiency_rebate.py
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Tuple

from tnb_bill.config import settings
from tnb_bill.core.bill_trace import fmt_number
from tnb_bill.core.errors import MalformedRateTableError
from tnb_bill.core.rate_tables import RebateTier

logger = logging.getLogger(__name__)

_OPEN_ENDED_RE = re.compile(r"^\s*>\s*(\d+(?:\.\d+)?)\s*$")
_CLOSED_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)\s*$")


class RebateOutcome(str, Enum):
    APPLIED = "applied"
    NO_CONSUMPTION = "no_consumption"
    ABOVE_CAP = "above_cap"
    LOOKUP_GAP = "lookup_gap"
    MALFORMED_TIER = "malformed_tier"


@dataclass(frozen=True)
class RebateResult:
    amount: float  # RM, positive credit
    lines: Tuple[str, ...]
    effective_rate_sen: float
    outcome: RebateOutcome
    warnings: Tuple[str, ...] = ()


def parse_tier_range(text: str) -> Tuple[float, float]:
    """
    Parse a published tier range into inclusive (lower, upper) kWh bounds.

    "> 1000" is open-ended and starts at the next whole kWh (1001, inf).
    It has to be recognised before the "A - B" form.
    """
    open_match = _OPEN_ENDED_RE.match(text)
    if open_match:
        return float(open_match.group(1)) + 1, math.inf

    closed_match = _CLOSED_RE.match(text)
    if closed_match:
        lower, upper = float(closed_match.group(1)), float(closed_match.group(2))
        if lower > upper:
            raise MalformedRateTableError(f"Tier range {text!r} has lower > upper")
        return lower, upper

    raise MalformedRateTableError(f"Unrecognised tier range {text!r}")


def resolve_efficiency_rebate(
    net_kwh: float,
    tiers: Sequence[RebateTier],
    cap_kwh: float,
) -> RebateResult:
    """
    Flat efficiency-incentive rebate for the month.

    The whole net consumption is credited at the single matching tier's
    rate (not marginally). Consumption is matched on whole kWh, so 200.4 kWh
    falls in the "201 - 250" tier. Above `cap_kwh` there is no rebate at
    all, regardless of what the last tier says.
    """
    if net_kwh <= 0:
        return RebateResult(
            amount=0.0,
            lines=("No EEI rebate (net consumption ≤ 0 kWh)",),
            effective_rate_sen=0.0,
            outcome=RebateOutcome.NO_CONSUMPTION,
        )

    if net_kwh > cap_kwh:
        return RebateResult(
            amount=0.0,
            lines=(
                f"RM 0.00 (Not applicable for net consumption > "
                f"{fmt_number(cap_kwh)} kWh)",
            ),
            effective_rate_sen=0.0,
            outcome=RebateOutcome.ABOVE_CAP,
        )

    warnings: List[str] = []
    parsed: List[Tuple[float, float, RebateTier]] = []
    for tier in tiers:
        try:
            lower, upper = parse_tier_range(tier.usage_range)
        except MalformedRateTableError as exc:
            logger.warning("Skipping efficiency-rebate tier: %s", exc)
            warnings.append(str(exc))
            continue
        parsed.append((lower, upper, tier))

    matched_kwh = math.ceil(net_kwh)
    for lower, upper, tier in parsed:
        if lower <= matched_kwh <= upper:
            rate = abs(tier.rate_sen_per_kwh)
            amount = net_kwh * rate / settings.SEN_PER_RM
            upper_label = (
                f"{fmt_number(cap_kwh)}+" if math.isinf(upper) else fmt_number(upper)
            )
            return RebateResult(
                amount=amount,
                lines=(
                    f"{fmt_number(net_kwh)} kWh × {fmt_number(rate)} sen/kWh = "
                    f"RM {amount:.2f} (Rebate)",
                    f"EEI Tier: {fmt_number(lower)}-{upper_label} kWh @ "
                    f"{fmt_number(rate)} sen/kWh",
                ),
                effective_rate_sen=rate,
                outcome=RebateOutcome.APPLIED,
                warnings=tuple(warnings),
            )

    if warnings:
        outcome = RebateOutcome.MALFORMED_TIER
        message = (
            f"No EEI rebate: {fmt_number(net_kwh)} kWh matched no valid tier "
            f"({len(warnings)} malformed tier(s) skipped)"
        )
    else:
        outcome = RebateOutcome.LOOKUP_GAP
        message = (
            f"No EEI rebate: {fmt_number(net_kwh)} kWh falls in a gap of the "
            f"tier table"
        )
    logger.warning("%s", message)
    warnings.append(message)

    return RebateResult(
        amount=0.0,
        lines=(f"RM 0.00 ({message})",),
        effective_rate_sen=0.0,
        outcome=outcome,
        warnings=tuple(warnings),
    )
