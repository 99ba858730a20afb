"""
Tests for the CSV-backed stores.
"""
import datetime

import pytest

from freight_pricing.data.reference import COST_DEFAULTS
from freight_pricing.data.sample_data import generate_sample_market_data
from freight_pricing.engine.models import CostVariable, MarketObservation, RouteStandard
from freight_pricing.services.base import StoreError
from freight_pricing.services.cost_master_service import CostMasterService
from freight_pricing.services.market_data_service import MarketDataService
from freight_pricing.services.route_standard_service import RouteStandardService


@pytest.fixture(scope="function")
def cost_master(settings):
    return CostMasterService(settings.cost_master_csv)


@pytest.fixture(scope="function")
def market_data(settings):
    return MarketDataService(settings.market_data_csv, settings.policy)


@pytest.fixture(scope="function")
def standards(settings):
    return RouteStandardService(settings.route_standard_csv)


# ── Cost master ─────────────────────────────────────────────────

def test_empty_store_resolves_defaults(cost_master):
    assert cost_master.list_variables() == []
    variables = cost_master.get_cost_variables()
    assert variables.fuel_price == COST_DEFAULTS['fuel_price']
    assert variables.freight_risk_hazardous == COST_DEFAULTS['freight_risk_hazardous']


def test_seed_defaults(cost_master):
    assert cost_master.seed_defaults() == 9
    assert cost_master.count() == 9
    assert cost_master.get_variable('toll_rate').category == 'Variable'
    # Existing items are kept on re-seed
    assert cost_master.seed_defaults() == 0


def test_store_values_override_defaults(cost_master):
    cost_master.create_variable(CostVariable('Variable', 'fuel_price', 1800, 'KRW/L'))

    variables = cost_master.get_cost_variables()
    assert variables.fuel_price == 1800
    assert variables.toll_rate == COST_DEFAULTS['toll_rate']


def test_create_duplicate_raises(cost_master):
    cost_master.create_variable(CostVariable('Variable', 'fuel_price', 1800, 'KRW/L'))
    with pytest.raises(ValueError, match="already exists"):
        cost_master.create_variable(CostVariable('Variable', 'fuel_price', 1900, 'KRW/L'))


def test_create_validates(cost_master):
    with pytest.raises(ValueError, match="Invalid category"):
        cost_master.create_variable(CostVariable('Misc', 'fuel_price', 1800, 'KRW/L'))
    with pytest.raises(ValueError, match="fuel_efficiency"):
        cost_master.create_variable(CostVariable('Variable', 'fuel_efficiency', 0, 'km/L'))


def test_update_and_delete(cost_master):
    cost_master.seed_defaults()

    updated = cost_master.update_variable('company_margin_rate', {'value': 0.1})
    assert updated.value == 0.1
    assert cost_master.get_cost_variables().company_margin_rate == 0.1

    assert cost_master.delete_variable('company_margin_rate')
    assert cost_master.get_variable('company_margin_rate') is None
    assert cost_master.get_cost_variables().company_margin_rate == COST_DEFAULTS['company_margin_rate']


def test_update_missing_raises(cost_master):
    with pytest.raises(ValueError, match="not found"):
        cost_master.update_variable('nope', {'value': 1})
    with pytest.raises(ValueError, match="not found"):
        cost_master.delete_variable('nope')


def test_import_csv_upserts(cost_master):
    cost_master.seed_defaults()
    text = (
        "category,item,value,unit,description\n"
        "Variable,fuel_price,1750,KRW/L,updated\n"
        "Bogus,toll_rate,100,KRW/km,bad\n"
    )

    result = cost_master.import_csv(text)

    assert result.success
    assert result.imported_count == 1
    assert result.error_count == 1
    assert cost_master.count() == 9
    assert cost_master.get_variable('fuel_price').value == 1750


def test_import_csv_caps_errors_when_nothing_imported(cost_master):
    rows = "".join(f"Bogus,item{i},1,x,y\n" for i in range(25))
    result = cost_master.import_csv("category,item,value,unit,description\n" + rows)

    assert not result.success
    assert result.imported_count == 0
    assert result.error_count == 25
    assert len(result.errors) == 20


def test_import_csv_caps_errors_on_partial_import(cost_master):
    rows = "".join(f"Bogus,item{i},1,x,y\n" for i in range(15))
    text = "category,item,value,unit,description\nFixed,vehicle_fixed_cost,1,KRW,ok\n" + rows

    result = cost_master.import_csv(text)

    assert result.success
    assert result.error_count == 15
    assert len(result.errors) == 10


def test_unreadable_store_raises_store_error(tmp_path):
    service = CostMasterService(tmp_path)  # a directory, not a file
    with pytest.raises(StoreError):
        service.list_variables()


# ── Market data ─────────────────────────────────────────────────

def _obs(origin, destination, vehicle_type, price, day=1):
    return MarketObservation(origin, destination, vehicle_type, price, "General", datetime.date(2024, 1, day))


def test_market_data_append_and_list(market_data):
    assert market_data.count() == 0
    added = market_data.append([
        _obs("Seoul/Gangnam", "Busan/Haeundae", "11t", 850000, 1),
        _obs("Seoul/Gangnam", "Busan/Haeundae", "11t", 860000, 2),
        _obs("Seoul/Gangseo", "Daegu/Dalseo", "5t", 450000, 3),
    ])

    assert added == 3
    assert market_data.count() == 3
    assert market_data.unique_routes() == 2

    listed = market_data.list_observations()
    assert listed[0] == _obs("Seoul/Gangnam", "Busan/Haeundae", "11t", 850000.0, 1)
    assert [o.unit_price for o in market_data.list_observations("5t")] == [450000]


def test_market_data_clear(market_data):
    market_data.append([_obs("Seoul/Gangnam", "Busan/Haeundae", "11t", 850000)])
    assert market_data.clear() == 1
    assert market_data.count() == 0
    assert market_data.list_observations() == []


def test_market_data_stats(market_data):
    market_data.append([
        _obs("Seoul/Gangnam", "Busan/Haeundae", "11t", 800000),
        _obs("Seoul/Gangnam", "Busan/Haeundae", "11t", 900000),
        _obs("Seoul/Gangseo", "Daegu/Dalseo", "5t", 450000),
    ])

    stats = market_data.get_stats()

    assert stats['total'] == 3
    assert stats['unique_routes'] == 2
    assert stats['by_vehicle_type'] == {'11t': 2, '5t': 1}
    assert stats['price_min'] == 450000
    assert stats['price_median'] == 800000
    assert stats['price_max'] == 900000


def test_market_data_import_runs_analysis(market_data):
    rows = "".join(f"2024-01-{d:02d},Seoul/Gangnam,Busan/Haeundae,11t,General,850000\n" for d in range(1, 7))
    text = "date,origin,destination,vehicleType,freightType,unitPrice\n" + rows + "bad,Seoul,Busan,11t,General,1\n"

    result = market_data.import_csv(text)

    assert result.success
    assert result.imported_count == 6
    assert result.error_count == 1
    assert result.analysis.total_routes == 1
    assert result.analysis.exact_routes == 1
    assert result.to_dict()["analysis"]["topRoutes"][0]["median"] == 850000


def test_market_data_import_rejects_bad_csv(market_data):
    result = market_data.import_csv("nothing useful\n")

    assert not result.success
    assert result.errors == ["CSV file is empty or has no data rows."]
    assert market_data.count() == 0


# ── Route standards ─────────────────────────────────────────────

def test_route_standard_upsert_is_last_write_wins(standards):
    first = RouteStandard("Seoul/Gangnam", "Busan/Haeundae", "11t", 393546, 630902, 682000, 0.66)
    second = RouteStandard("Seoul/Gangnam", "Busan/Haeundae", "11t", 393546, 393546, 426000, 0.51)
    other = RouteStandard("Seoul/Gangnam", "Busan/Haeundae", "25t", 500000, 500000, 540000, 0.51)

    standards.upsert(first)
    standards.upsert(other)
    standards.upsert(second)

    assert standards.count() == 2
    stored = standards.get("Seoul/Gangnam", "Busan/Haeundae", "11t")
    assert stored.final_price == 426000
    assert stored.confidence_score == 0.51
    assert stored.updated_at
    assert standards.get("Seoul", "Busan", "11t") is None


# ── Sample data ─────────────────────────────────────────────────

def test_sample_market_data_is_reproducible():
    first = generate_sample_market_data(seed=7, today=datetime.date(2024, 6, 30))
    second = generate_sample_market_data(seed=7, today=datetime.date(2024, 6, 30))

    assert first == second
    assert all(o.unit_price > 0 for o in first)
    assert all(datetime.date(2023, 7, 1) <= o.date <= datetime.date(2024, 6, 30) for o in first)

    sparse = [o for o in first if o.origin == "Gangwon/Wonju"]
    assert len(sparse) == 3
    assert {o.vehicle_type for o in first} == {"5t", "11t", "25t"}
