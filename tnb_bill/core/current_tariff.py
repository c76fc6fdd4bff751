# tnb_bill/core/current_tariff.py
from __future__ import annotations

import math
from typing import Tuple

from tnb_bill.config import settings
from tnb_bill.core.bill_models import EngineResult
from tnb_bill.core.bill_trace import BillTrace, fmt_number, fmt_pct
from tnb_bill.core.efficiency_rebate import resolve_efficiency_rebate
from tnb_bill.core.rate_tables import CurrentRateTable


def _sen_to_rm(kwh: float, rate_sen_per_kwh: float) -> float:
    return kwh * rate_sen_per_kwh / settings.SEN_PER_RM


def _round_half_up(value: float) -> float:
    return float(math.floor(value + 0.5))


def split_peak_usage(usage_kwh: float, peak_pct: float) -> Tuple[float, float]:
    """(peak_kwh, off_peak_kwh); the peak share is rounded to whole kWh within usage."""
    peak_kwh = _round_half_up(usage_kwh * peak_pct / 100)
    peak_kwh = min(max(peak_kwh, 0.0), usage_kwh)
    return peak_kwh, usage_kwh - peak_kwh


def _generation_charge(
    trace: BillTrace,
    usage_kwh: float,
    tou_enabled: bool,
    tou_peak_pct: float,
    table: CurrentRateTable,
) -> float:
    # whole usage billed at the tier the month falls in
    tier_label = "Tier 1" if usage_kwh <= table.tier_boundary_kwh else "Tier 2"

    if not tou_enabled:
        rate = table.generation_rate_for(usage_kwh)
        charge = _sen_to_rm(usage_kwh, rate)
        trace.note("GENERATION CHARGE:")
        trace.amount(
            f"{tier_label}: {fmt_number(usage_kwh)} kWh × {fmt_number(rate)} sen/kWh "
            f"= RM {{amount}}",
            charge,
        )
        return charge

    rates = table.tou_rates_for(usage_kwh)
    peak_kwh, off_peak_kwh = split_peak_usage(usage_kwh, tou_peak_pct)
    peak_charge = _sen_to_rm(peak_kwh, rates.peak_sen_per_kwh)
    off_peak_charge = _sen_to_rm(off_peak_kwh, rates.off_peak_sen_per_kwh)

    trace.note("GENERATION CHARGE (ToU):")
    trace.note(f"Peak Usage ({fmt_number(tou_peak_pct)}%): {fmt_number(peak_kwh)} kWh")
    trace.note(
        f"Off-Peak Usage ({fmt_number(100 - tou_peak_pct)}%): {fmt_number(off_peak_kwh)} kWh"
    )
    trace.amount(
        f"Peak charge ({tier_label}): {fmt_number(peak_kwh)} kWh × "
        f"{fmt_number(rates.peak_sen_per_kwh)} sen/kWh = RM {{amount}}",
        peak_charge,
    )
    trace.amount(
        f"Off-peak charge ({tier_label}): {fmt_number(off_peak_kwh)} kWh × "
        f"{fmt_number(rates.off_peak_sen_per_kwh)} sen/kWh = RM {{amount}}",
        off_peak_charge,
    )
    return peak_charge + off_peak_charge


def calculate_current_bill(
    usage_kwh: float,
    solar_excess_kwh: float,
    tou_enabled: bool,
    tou_peak_pct: float,
    fuel_sen_per_kwh: float,
    table: CurrentRateTable,
) -> EngineResult:
    """
    Monthly bill under the component tariff (general or ToU).

    Generation, capacity and network are charged on gross usage. Solar export
    is offset at those same rates. Retail fee, efficiency rebate, fuel
    adjustment and service tax all follow net consumption.
    """
    trace = BillTrace()
    trace.note("=== NEW GENERAL DOMESTIC TARIFF (Post-July 2025) ===")
    if tou_enabled:
        trace.note("=== WITH TIME OF USE (ToU) ===")
    trace.note(f"Total Usage: {fmt_number(usage_kwh)} kWh")
    if solar_excess_kwh > 0:
        trace.note(f"Solar Excess Generation: {fmt_number(solar_excess_kwh)} kWh")
    trace.blank()

    generation = _generation_charge(trace, usage_kwh, tou_enabled, tou_peak_pct, table)

    capacity = _sen_to_rm(usage_kwh, table.capacity_sen_per_kwh)
    network = _sen_to_rm(usage_kwh, table.network_sen_per_kwh)
    trace.blank()
    trace.note("CAPACITY CHARGE:")
    trace.amount(
        f"{fmt_number(usage_kwh)} kWh × {fmt_number(table.capacity_sen_per_kwh)} "
        f"sen/kWh = RM {{amount}}",
        capacity,
    )
    trace.blank()
    trace.note("NETWORK CHARGE:")
    trace.amount(
        f"{fmt_number(usage_kwh)} kWh × {fmt_number(table.network_sen_per_kwh)} "
        f"sen/kWh = RM {{amount}}",
        network,
    )

    components = generation + capacity + network

    # Solar offset at the gross-usage tier
    solar_offset = 0.0
    if solar_excess_kwh > 0:
        offsets = (
            ("Generation", table.generation_rate_for(usage_kwh)),
            ("Capacity", table.capacity_sen_per_kwh),
            ("Network", table.network_sen_per_kwh),
        )
        trace.blank()
        trace.note("SOLAR OFFSET:")
        for name, rate in offsets:
            value = _sen_to_rm(solar_excess_kwh, rate)
            trace.amount(
                f"{name} offset: {fmt_number(solar_excess_kwh)} kWh × "
                f"{fmt_number(rate)} sen/kWh = RM {{amount}}",
                value,
            )
            solar_offset += value
        trace.amount("Total Solar Offset: RM {amount}", solar_offset)

    net_kwh = max(0.0, usage_kwh - solar_excess_kwh)

    retail = 0.0 if net_kwh <= table.retail_waived_up_to_kwh else table.retail_fee_rm
    trace.blank()
    trace.note("RETAIL CHARGE:")
    if retail == 0.0:
        trace.amount(
            f"RM {{amount}} (Waived for net consumption ≤ "
            f"{fmt_number(table.retail_waived_up_to_kwh)} kWh)",
            retail,
        )
    else:
        trace.amount("RM {amount}", retail)

    rebate = resolve_efficiency_rebate(net_kwh, table.rebate_tiers, table.rebate_cap_kwh)
    trace.blank()
    trace.note("ENERGY EFFICIENCY INCENTIVE (EEI):")
    trace.note(f"Net consumption: {fmt_number(net_kwh)} kWh")
    trace.extend_notes(rebate.lines)

    fuel = _sen_to_rm(net_kwh, fuel_sen_per_kwh)
    sign = "+" if fuel_sen_per_kwh > 0 else ""
    trace.blank()
    trace.note("AUTOMATIC FUEL ADJUSTMENT (AFA):")
    trace.amount(
        f"{fmt_number(net_kwh)} kWh × {sign}{fmt_number(fuel_sen_per_kwh)} sen/kWh "
        f"= RM {{amount}}",
        fuel,
    )

    subtotal = components - solar_offset + retail + fuel - rebate.amount

    trace.blank()
    trace.note("SUBTOTAL (before KWTBB & SST):")
    trace.amount("Generation Charge: RM {amount}", generation, field="generation_charge")
    trace.amount("Capacity Charge: RM {amount}", capacity, field="capacity_charge")
    trace.amount("Network Charge: RM {amount}", network, field="network_charge")
    if solar_offset > 0:
        trace.amount("Less Solar Offset: RM {amount}", solar_offset, field="solar_credit")
    trace.amount("Retail Charge: RM {amount}", retail, field="retail_charge")
    trace.amount("AFA: RM {amount}", fuel, field="fuel_adjustment")
    trace.amount(
        "Less EEI Rebate: RM {amount}", rebate.amount, field="efficiency_rebate"
    )
    trace.amount("Subtotal: RM {amount}", subtotal)

    levy = subtotal * table.levy_rate
    trace.blank()
    trace.note("KUMPULAN WANG TENAGA BOLEH BAHARU (KWTBB):")
    trace.amount(
        f"{fmt_pct(table.levy_rate)} of RM {subtotal + 0.0:.2f} = RM {{amount}}",
        levy,
        field="current_levy",
    )

    # Tax rate follows the tier of net consumption, not gross usage
    tax_label = fmt_pct(table.tax_rate)
    trace.blank()
    trace.note("SERVICE TAX (SST):")
    if net_kwh > table.tax_threshold_kwh:
        taxable_kwh = net_kwh - table.tax_threshold_kwh
        tax_rate_sen = table.generation_rate_for(net_kwh)
        tax = _sen_to_rm(taxable_kwh, tax_rate_sen) * table.tax_rate
        trace.note(
            f"{tax_label} × ({fmt_number(net_kwh)} kWh - "
            f"{fmt_number(table.tax_threshold_kwh)} kWh) × {fmt_number(tax_rate_sen)} sen/kWh"
        )
        trace.amount(
            f"{tax_label} × {fmt_number(taxable_kwh)} kWh × {fmt_number(tax_rate_sen)} "
            f"sen/kWh = RM {{amount}}",
            tax,
            field="current_tax",
        )
    else:
        tax = 0.0
        trace.amount(
            f"RM {{amount}} (Waived for net consumption ≤ "
            f"{fmt_number(table.tax_threshold_kwh)} kWh)",
            tax,
            field="current_tax",
        )

    total = subtotal + levy + tax

    trace.blank()
    trace.note("FINAL TOTAL CALCULATION:")
    trace.amount("Subtotal (before KWTBB & SST): RM {amount}", subtotal)
    trace.amount("Plus KWTBB: RM {amount}", levy)
    trace.amount("Plus SST: RM {amount}", tax)
    trace.blank()
    trace.amount("TOTAL: RM {amount}", total)

    return EngineResult(
        amount=total,
        line_items=trace.items,
        solar_savings=solar_offset,
        warnings=rebate.warnings,
    )
