import json

import pytest

from tnb_bill.core.errors import MalformedRateTableError
from tnb_bill.core.rate_tables import (
    DEFAULT_RATES_PATH,
    load_rate_tables,
    parse_rate_tables,
)


def _doc():
    with DEFAULT_RATES_PATH.open(encoding="utf-8") as fh:
        return json.load(fh)


def test_packaged_tables_load():
    tables = load_rate_tables()

    assert tables.effective_date == "2025-07-01"
    assert [b.rate_sen_per_kwh for b in tables.legacy.blocks] == [
        21.8,
        33.4,
        51.6,
        54.6,
        57.1,
    ]
    assert tables.legacy.blocks[-1].capacity_kwh is None
    assert tables.current.generation_rate_for(1500) == 27.03
    assert tables.current.generation_rate_for(1500.5) == 37.03
    assert tables.current.tou_rates_for(1501).peak_sen_per_kwh == 38.52
    assert tables.current.rebate_cap_kwh == 1000
    assert len(tables.current.rebate_tiers) == 17
    assert tables.tou_peak_hours == "14:00 - 22:00"


def test_load_is_cached_per_path():
    assert load_rate_tables() is load_rate_tables()


def test_load_from_explicit_path(tmp_path):
    doc = _doc()
    doc["effectiveDate"] = "2030-01-01"
    path = tmp_path / "rates.json"
    path.write_text(json.dumps(doc), encoding="utf-8")

    assert load_rate_tables(path).effective_date == "2030-01-01"


def test_invalid_json_is_malformed(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedRateTableError):
        load_rate_tables(path)


def test_missing_key_names_the_path():
    doc = _doc()
    del doc["generalDomesticTariff"]["components"]["networkCharge"]
    with pytest.raises(MalformedRateTableError, match="networkCharge"):
        parse_rate_tables(doc)


def test_non_numeric_rate_is_malformed():
    doc = _doc()
    doc["legacyTariff"]["blocks"][0]["rateSenPerKWh"] = "cheap"
    with pytest.raises(MalformedRateTableError):
        parse_rate_tables(doc)


def test_negative_rate_is_malformed():
    doc = _doc()
    doc["generalDomesticTariff"]["components"]["capacityCharge"]["rateSenPerKWh"] = -1
    with pytest.raises(MalformedRateTableError):
        parse_rate_tables(doc)


def test_only_last_block_may_be_open_ended():
    doc = _doc()
    doc["legacyTariff"]["blocks"][2]["capacityKWh"] = None
    with pytest.raises(MalformedRateTableError):
        parse_rate_tables(doc)

    doc = _doc()
    doc["legacyTariff"]["blocks"][-1]["capacityKWh"] = 500
    with pytest.raises(MalformedRateTableError):
        parse_rate_tables(doc)


def test_block_capacity_must_be_positive():
    doc = _doc()
    doc["legacyTariff"]["blocks"][1]["capacityKWh"] = 0
    with pytest.raises(MalformedRateTableError):
        parse_rate_tables(doc)


def test_tier_ranges_are_not_parsed_at_load():
    doc = _doc()
    doc["generalDomesticTariff"]["energyEfficiencyIncentive"]["tiers"][3][
        "usageKWhRange"
    ] = "three hundred"

    tables = parse_rate_tables(doc)
    assert tables.current.rebate_tiers[3].usage_range == "three hundred"
