import pytest

from tnb_bill.core.bill_models import BillRequest
from tnb_bill.ui.url_state import (
    default_request,
    request_from_query_params,
    request_to_query_params,
)


def test_defaults_produce_empty_query():
    assert request_to_query_params(default_request()) == {}
    assert request_from_query_params({}) == default_request()


def test_only_changed_fields_are_written():
    request = BillRequest(
        usage_kwh=778.0,
        regime="current",
        tou_peak_pct=30.0,
        solar_enabled=True,
        solar_excess_kwh=474.0,
    )
    assert request_to_query_params(request) == {
        "usage": "778",
        "solar": "true",
        "export": "474",
    }


def test_shared_link_restores_request():
    request = BillRequest(
        usage_kwh=1234.5,
        regime="legacy",
        tou_enabled=True,
        tou_peak_pct=42.0,
        solar_enabled=True,
        solar_excess_kwh=321.0,
        fuel_adjustment_sen_per_kwh=-0.89,
    )
    assert request_from_query_params(request_to_query_params(request)) == request


@pytest.mark.parametrize(
    "value, regime", [("old", "legacy"), ("new", "current"), ("LEGACY", "legacy")]
)
def test_regime_aliases(value, regime):
    assert request_from_query_params({"tariff": value}).regime == regime


def test_unparseable_values_fall_back_to_defaults():
    request = request_from_query_params(
        {"usage": "lots", "tariff": "industrial", "tou": "maybe", "peak": "nan"}
    )
    defaults = default_request()
    assert request.usage_kwh == defaults.usage_kwh
    assert request.regime == defaults.regime
    assert request.tou_enabled == defaults.tou_enabled
    assert request.tou_peak_pct == defaults.tou_peak_pct


def test_list_values_use_the_last_entry():
    request = request_from_query_params({"usage": ["100", "250"], "tou": ["1"]})
    assert request.usage_kwh == 250.0
    assert request.tou_enabled is True


def test_out_of_range_values_are_kept_for_validation():
    assert request_from_query_params({"peak": "150"}).tou_peak_pct == 150.0


def test_fine_grained_values_survive_a_shared_link():
    request = BillRequest(
        usage_kwh=778.123456,
        solar_enabled=True,
        solar_excess_kwh=0.1 + 0.2,
        fuel_adjustment_sen_per_kwh=-0.8912345,
    )
    params = request_to_query_params(request)

    assert params["usage"] == "778.123456"
    assert request_from_query_params(params) == request
