# tnb_bill/core/legacy_tariff.py
from __future__ import annotations

import math
from typing import List, Optional, Tuple

from tnb_bill.config import settings
from tnb_bill.core.bill_models import EngineResult
from tnb_bill.core.bill_trace import BillTrace, fmt_number, fmt_pct
from tnb_bill.core.errors import InvalidInputError
from tnb_bill.core.rate_tables import (
    CostPassThroughSchedule,
    LegacyBlock,
    LegacyRateTable,
)

ICPT_BASES = (settings.ICPT_BASIS_TOTAL_USAGE, settings.ICPT_BASIS_EXCESS)


def _sen_to_rm(kwh: float, rate_sen_per_kwh: float) -> float:
    return kwh * rate_sen_per_kwh / settings.SEN_PER_RM


def allocate_blocks(usage_kwh: float, blocks: Tuple[LegacyBlock, ...]) -> List[float]:
    """
    kWh consumed in each block, lowest block first.

    Blocks are filled in ascending order and never beyond their capacity;
    blocks past the last consumed one get 0.
    """
    allocation: List[float] = []
    remaining = usage_kwh
    for block in blocks:
        if remaining <= 0:
            allocation.append(0.0)
            continue
        capacity = block.capacity_kwh if block.capacity_kwh is not None else remaining
        used = min(remaining, capacity)
        allocation.append(used)
        remaining -= used
    return allocation


def taxable_block_usage(
    usage_kwh: float,
    threshold_kwh: float,
    blocks: Tuple[LegacyBlock, ...],
) -> List[Tuple[LegacyBlock, float]]:
    """
    Split the usage above `threshold_kwh` over the blocks it falls in.

    With the published schedule and a 600 kWh threshold this is the first
    300 kWh of the excess at the 601-900 rate and the rest at the 901+ rate.
    """
    parts: List[Tuple[LegacyBlock, float]] = []
    lower = 0.0
    for block in blocks:
        upper = lower + block.capacity_kwh if block.capacity_kwh is not None else math.inf
        start = max(lower, threshold_kwh)
        end = min(upper, usage_kwh)
        if end > start:
            parts.append((block, end - start))
        lower = upper
    return parts


def cost_pass_through(
    usage_kwh: float,
    schedule: CostPassThroughSchedule,
    basis: str = settings.ICPT_BASIS_TOTAL_USAGE,
) -> Tuple[float, str]:
    """
    Return (amount_rm, trace_text) for the ICPT adjustment.

    Rebate up to the rebate band, nothing in the middle band, surcharge
    above. With basis "total_usage" the surcharge rate applies to the whole
    month's usage (this does not match the one real >1500 kWh bill we have;
    "excess_above_threshold" is the alternative reading).
    """
    if usage_kwh <= schedule.rebate_up_to_kwh:
        rate = schedule.rebate_sen_per_kwh
        amount = -_sen_to_rm(usage_kwh, rate)
        text = (
            f"ICPT (Rebat {fmt_number(rate)} sen/kWh): {fmt_number(usage_kwh)} kWh × "
            f"-{fmt_number(rate)} sen/kWh = RM {{amount}}"
        )
        return amount, text

    if usage_kwh <= schedule.surcharge_above_kwh:
        return 0.0, "ICPT (Tiada rebat/surcaj): RM {amount}"

    rate = schedule.surcharge_sen_per_kwh
    if basis == settings.ICPT_BASIS_EXCESS:
        charged_kwh = usage_kwh - schedule.surcharge_above_kwh
        basis_label = f"on {fmt_number(charged_kwh)} kWh above {fmt_number(schedule.surcharge_above_kwh)} kWh"
    else:
        charged_kwh = usage_kwh
        basis_label = f"on {fmt_number(charged_kwh)} kWh"
    amount = _sen_to_rm(charged_kwh, rate)
    return amount, f"ICPT (Surcaj {fmt_number(rate)} sen/kWh {basis_label}): RM {{amount}}"


def calculate_legacy_bill(
    usage_kwh: float,
    solar_excess_kwh: float,
    table: LegacyRateTable,
    icpt_basis: Optional[str] = None,
) -> EngineResult:
    """
    Monthly bill under the legacy 5-block tariff.

    Total = block energy charge + levy + ICPT + service tax - solar credit.
    The levy is on the block energy charge only; service tax is on the
    energy charge of usage above the tax threshold; solar credit offsets the
    most expensive consumed blocks first.
    """
    basis = (icpt_basis or settings.DEFAULT_ICPT_BASIS).lower()
    if basis not in ICPT_BASES:
        raise InvalidInputError(
            f"Unknown ICPT basis {icpt_basis!r}; expected one of {ICPT_BASES}"
        )

    trace = BillTrace()
    trace.note("=== OLD TARIFF CALCULATION (Pre-July 2025) ===")
    trace.note(f"Total Usage: {fmt_number(usage_kwh)} kWh")
    if solar_excess_kwh > 0:
        trace.note(f"Solar Excess Generation: {fmt_number(solar_excess_kwh)} kWh")
    trace.blank()

    # 1. Block energy charge
    allocation = allocate_blocks(usage_kwh, table.blocks)
    energy_charge = 0.0
    for block, used in zip(table.blocks, allocation):
        if used <= 0:
            break
        block_amount = _sen_to_rm(used, block.rate_sen_per_kwh)
        trace.amount(
            f"{block.label}: {fmt_number(used)} kWh × "
            f"{fmt_number(block.rate_sen_per_kwh)} sen/kWh = RM {{amount}}",
            block_amount,
        )
        energy_charge += block_amount

    trace.blank()
    trace.amount("Subtotal: RM {amount}", energy_charge, field="generation_charge")

    # 2. Levy on the block energy charge
    levy = energy_charge * table.levy_rate
    trace.blank()
    trace.amount(
        f"Renewable Energy Fund ({fmt_pct(table.levy_rate)}): RM {{amount}}",
        levy,
        field="legacy_levy",
    )

    # 3. ICPT
    icpt, icpt_text = cost_pass_through(usage_kwh, table.cost_pass_through, basis)
    trace.amount(icpt_text, icpt, field="cost_pass_through")

    # 4. Service tax on the energy charge above the threshold
    tax_label = fmt_pct(table.tax_rate)
    service_tax = 0.0
    if usage_kwh > table.tax_threshold_kwh:
        taxable_amount = 0.0
        for block, kwh in taxable_block_usage(
            usage_kwh, table.tax_threshold_kwh, table.blocks
        ):
            part = _sen_to_rm(kwh, block.rate_sen_per_kwh)
            trace.amount(
                f"Taxable {block.label}: {fmt_number(kwh)} kWh × "
                f"{fmt_number(block.rate_sen_per_kwh)} sen/kWh = RM {{amount}}",
                part,
            )
            taxable_amount += part
        service_tax = taxable_amount * table.tax_rate
        trace.amount(
            f"Service Tax ({tax_label} on taxable energy charge): RM {{amount}}",
            service_tax,
            field="legacy_tax",
        )
    else:
        trace.amount(
            f"Service Tax ({tax_label}): RM {{amount}} (Waived for usage ≤ "
            f"{fmt_number(table.tax_threshold_kwh)} kWh)",
            0.0,
            field="legacy_tax",
        )

    # 5. Solar credit, most expensive consumed block first
    solar_credit = 0.0
    if solar_excess_kwh > 0:
        trace.blank()
        trace.note("SOLAR OFFSET CALCULATION (Lebihan Tenaga yang Dijana):")
        remaining_solar = solar_excess_kwh
        for block, used in reversed(list(zip(table.blocks, allocation))):
            if remaining_solar <= 0:
                break
            if used <= 0:
                continue
            credited = min(remaining_solar, used)
            value = _sen_to_rm(credited, block.rate_sen_per_kwh)
            trace.amount(
                f"Solar credit {block.label}: {fmt_number(credited)} kWh × "
                f"{fmt_number(block.rate_sen_per_kwh)} sen/kWh = RM {{amount}}",
                value,
            )
            solar_credit += value
            remaining_solar -= credited
        trace.amount(
            "Total Solar Credit (Lebihan Tenaga yang Dijana): RM {amount}",
            solar_credit,
            field="solar_credit",
        )

    before_solar = energy_charge + levy + icpt + service_tax
    total = before_solar - solar_credit

    trace.blank()
    trace.note("TOTAL CALCULATION:")
    trace.amount("Energy Charge (blocks): RM {amount}", energy_charge)
    trace.amount("Plus Renewable Energy Fund: RM {amount}", levy)
    trace.amount("Plus ICPT: RM {amount}", icpt)
    trace.amount("Plus Service Tax: RM {amount}", service_tax)
    trace.amount("Subtotal (before solar): RM {amount}", before_solar)
    if solar_credit > 0:
        trace.amount("Less Solar Credit: RM {amount}", solar_credit)
    trace.blank()
    trace.amount("TOTAL: RM {amount}", total)

    return EngineResult(amount=total, line_items=trace.items, solar_savings=solar_credit)
