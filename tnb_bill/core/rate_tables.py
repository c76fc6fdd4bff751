# tnb_bill/core/rate_tables.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from tnb_bill.config import settings
from tnb_bill.core.errors import MalformedRateTableError

logger = logging.getLogger(__name__)

DEFAULT_RATES_PATH = (
    Path(__file__).resolve().parents[1] / "data" / "tariff_rates.json"
)

# ---------------------------------------------------------
# Data model
# ---------------------------------------------------------


@dataclass(frozen=True)
class LegacyBlock:
    label: str
    capacity_kwh: Optional[float]  # None = open-ended top block
    rate_sen_per_kwh: float


@dataclass(frozen=True)
class CostPassThroughSchedule:
    """ICPT bands for the legacy tariff (rates in sen/kWh, both positive)."""

    rebate_up_to_kwh: float
    rebate_sen_per_kwh: float
    surcharge_above_kwh: float
    surcharge_sen_per_kwh: float


@dataclass(frozen=True)
class LegacyRateTable:
    blocks: Tuple[LegacyBlock, ...]
    levy_rate: float  # fraction, 0.016 = 1.6%
    tax_threshold_kwh: float
    tax_rate: float
    cost_pass_through: CostPassThroughSchedule


@dataclass(frozen=True)
class TouRates:
    peak_sen_per_kwh: float
    off_peak_sen_per_kwh: float


@dataclass(frozen=True)
class RebateTier:
    """
    One efficiency-incentive tier as published.

    The range stays as text ("1 - 200", "> 1000"); it is parsed when the
    rebate is resolved so a single bad row only affects that lookup.
    """

    usage_range: str
    rate_sen_per_kwh: float  # stored negative (credit)


@dataclass(frozen=True)
class CurrentRateTable:
    tier_boundary_kwh: float
    generation_tier1_sen_per_kwh: float
    generation_tier2_sen_per_kwh: float
    tou_tier1: TouRates
    tou_tier2: TouRates
    capacity_sen_per_kwh: float
    network_sen_per_kwh: float
    retail_fee_rm: float
    retail_waived_up_to_kwh: float
    rebate_tiers: Tuple[RebateTier, ...]
    rebate_cap_kwh: float
    levy_rate: float
    tax_threshold_kwh: float
    tax_rate: float

    def generation_rate_for(self, kwh: float) -> float:
        """Whole-usage generation rate: tier 1 up to the boundary, tier 2 above."""
        if kwh <= self.tier_boundary_kwh:
            return self.generation_tier1_sen_per_kwh
        return self.generation_tier2_sen_per_kwh

    def tou_rates_for(self, kwh: float) -> TouRates:
        return self.tou_tier1 if kwh <= self.tier_boundary_kwh else self.tou_tier2


@dataclass(frozen=True)
class RateTables:
    effective_date: str
    legacy: LegacyRateTable
    current: CurrentRateTable
    tou_peak_hours: str = ""
    tou_off_peak_hours: str = ""


# ---------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------


def _require(doc: Mapping[str, Any], *keys: str) -> Any:
    node: Any = doc
    for depth, key in enumerate(keys):
        if not isinstance(node, Mapping) or key not in node:
            path = ".".join(keys[: depth + 1])
            raise MalformedRateTableError(f"Missing rate-table key: {path}")
        node = node[key]
    return node


def _rate(doc: Mapping[str, Any], *keys: str, allow_negative: bool = False) -> float:
    raw = _require(doc, *keys)
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedRateTableError(
            f"Rate-table value {'.'.join(keys)} is not numeric: {raw!r}"
        ) from exc
    if value < 0 and not allow_negative:
        raise MalformedRateTableError(
            f"Rate-table value {'.'.join(keys)} must be non-negative, got {value}"
        )
    return value


def _parse_legacy(doc: Mapping[str, Any]) -> LegacyRateTable:
    raw_blocks = _require(doc, "legacyTariff", "blocks")
    if not isinstance(raw_blocks, list) or not raw_blocks:
        raise MalformedRateTableError("legacyTariff.blocks must be a non-empty list")

    blocks = []
    for idx, raw in enumerate(raw_blocks):
        capacity = _require(raw, "capacityKWh")
        is_last = idx == len(raw_blocks) - 1
        if capacity is None:
            if not is_last:
                raise MalformedRateTableError(
                    f"Only the last legacy block may be open-ended (block {idx})"
                )
        else:
            capacity = _rate(raw, "capacityKWh")
            if capacity <= 0:
                raise MalformedRateTableError(
                    f"Legacy block {idx} capacity must be positive"
                )
            if is_last:
                raise MalformedRateTableError("The last legacy block must be open-ended")
        blocks.append(
            LegacyBlock(
                label=str(_require(raw, "range")),
                capacity_kwh=capacity,
                rate_sen_per_kwh=_rate(raw, "rateSenPerKWh"),
            )
        )

    legacy = _require(doc, "legacyTariff")
    return LegacyRateTable(
        blocks=tuple(blocks),
        levy_rate=_rate(legacy, "renewableEnergyFundRate"),
        tax_threshold_kwh=_rate(legacy, "serviceTax", "thresholdKWh"),
        tax_rate=_rate(legacy, "serviceTax", "rate"),
        cost_pass_through=CostPassThroughSchedule(
            rebate_up_to_kwh=_rate(legacy, "costPassThrough", "rebateUpToKWh"),
            rebate_sen_per_kwh=_rate(legacy, "costPassThrough", "rebateSenPerKWh"),
            surcharge_above_kwh=_rate(legacy, "costPassThrough", "surchargeAboveKWh"),
            surcharge_sen_per_kwh=_rate(
                legacy, "costPassThrough", "surchargeSenPerKWh"
            ),
        ),
    )


def _parse_current(doc: Mapping[str, Any]) -> CurrentRateTable:
    general = _require(doc, "generalDomesticTariff")
    components = _require(general, "components")
    tou = _require(doc, "timeOfUseTariff", "energyChargeToURates")

    raw_tiers = _require(general, "energyEfficiencyIncentive", "tiers")
    if not isinstance(raw_tiers, list) or not raw_tiers:
        raise MalformedRateTableError(
            "generalDomesticTariff.energyEfficiencyIncentive.tiers must be a non-empty list"
        )
    rebate_tiers = tuple(
        RebateTier(
            usage_range=str(_require(raw, "usageKWhRange")),
            rate_sen_per_kwh=_rate(raw, "rateSenPerKWh", allow_negative=True),
        )
        for raw in raw_tiers
    )

    return CurrentRateTable(
        tier_boundary_kwh=_rate(components, "generationCharge", "tierBoundaryKWh"),
        generation_tier1_sen_per_kwh=_rate(
            components, "generationCharge", "tier1", "rateSenPerKWh"
        ),
        generation_tier2_sen_per_kwh=_rate(
            components, "generationCharge", "tier2", "rateSenPerKWh"
        ),
        tou_tier1=TouRates(
            peak_sen_per_kwh=_rate(tou, "usageUpTo1500KWhPerMonth", "peakRateSenPerKWh"),
            off_peak_sen_per_kwh=_rate(
                tou, "usageUpTo1500KWhPerMonth", "offPeakRateSenPerKWh"
            ),
        ),
        tou_tier2=TouRates(
            peak_sen_per_kwh=_rate(tou, "usageOver1500KWhPerMonth", "peakRateSenPerKWh"),
            off_peak_sen_per_kwh=_rate(
                tou, "usageOver1500KWhPerMonth", "offPeakRateSenPerKWh"
            ),
        ),
        capacity_sen_per_kwh=_rate(components, "capacityCharge", "rateSenPerKWh"),
        network_sen_per_kwh=_rate(components, "networkCharge", "rateSenPerKWh"),
        retail_fee_rm=_rate(components, "retailCharge", "monthlyFeeRM"),
        retail_waived_up_to_kwh=_rate(components, "retailCharge", "waivedUpToKWh"),
        rebate_tiers=rebate_tiers,
        rebate_cap_kwh=_rate(general, "energyEfficiencyIncentive", "eligibleUpToKWh"),
        levy_rate=_rate(general, "renewableEnergyFundRate"),
        tax_threshold_kwh=_rate(general, "serviceTax", "thresholdKWh"),
        tax_rate=_rate(general, "serviceTax", "rate"),
    )


def parse_rate_tables(doc: Mapping[str, Any]) -> RateTables:
    """
    Build RateTables from a decoded rate-table document.

    Only the shape needed for lookups is checked; schema versions are not.
    """
    zones = doc.get("timeOfUseTariff", {}).get("timeZones", {})
    weekdays = zones.get("weekdays", {}) if isinstance(zones, Mapping) else {}

    return RateTables(
        effective_date=str(doc.get("effectiveDate", "")),
        legacy=_parse_legacy(doc),
        current=_parse_current(doc),
        tou_peak_hours=str(weekdays.get("peakHours", "")),
        tou_off_peak_hours=str(weekdays.get("offPeakHours", "")),
    )


# ---------------------------------------------------------
# Public API
# ---------------------------------------------------------


@lru_cache(maxsize=None)
def _load_cached(path_str: str) -> RateTables:
    path = Path(path_str)
    with path.open(encoding="utf-8") as fh:
        try:
            doc = json.load(fh)
        except json.JSONDecodeError as exc:
            raise MalformedRateTableError(f"{path} is not valid JSON: {exc}") from exc

    if not isinstance(doc, Mapping):
        raise MalformedRateTableError(f"{path} must contain a JSON object")

    tables = parse_rate_tables(doc)
    logger.info(
        "Loaded tariff rate tables from %s (effective %s)",
        path,
        tables.effective_date or "n/a",
    )
    return tables


def load_rate_tables(path: str | Path | None = None) -> RateTables:
    """
    Load the tariff rate tables once per process.

    Resolution order: explicit `path`, then settings.TARIFF_RATES_PATH
    (env TNB_TARIFF_RATES_PATH), then the packaged tariff_rates.json.
    """
    resolved = Path(path or settings.TARIFF_RATES_PATH or DEFAULT_RATES_PATH)
    return _load_cached(str(resolved.resolve()))
