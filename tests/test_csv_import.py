"""
Tests for CSV import parsing.
"""
import datetime

from freight_pricing.data.csv_import import (
    EMPTY_CSV_ERROR,
    normalize_header,
    parse_cost_master_csv,
    parse_market_data_csv,
    parse_pricing_requests_csv,
)


def test_normalize_header():
    assert normalize_header("Vehicle Type") == "vehicletype"
    assert normalize_header("unit_price") == "unitprice"
    assert normalize_header(" Freight-Type ") == "freighttype"


# ── Market data ─────────────────────────────────────────────────

MARKET_CSV = """date,origin,destination,vehicleType,freightType,unitPrice
2024-01-15,Seoul/Gangnam,Busan/Haeundae,11t,General,850000
2024-01-16,Seoul/Gangnam,Busan/Haeundae,11t,Fragile,"870,000"

not-a-date,Seoul/Gangnam,Busan/Haeundae,11t,General,850000
2024-01-17,,Busan/Haeundae,11t,General,850000
2024-01-18,Seoul/Gangnam,Busan/Haeundae,,General,850000
2024-01-19,Seoul/Gangnam,Busan/Haeundae,11t,General,-5
2024-01-20,Seoul/Gangnam,Busan/Haeundae,11t,General,abc
"""


def test_parse_market_data():
    result = parse_market_data_csv(MARKET_CSV)

    assert result.total_rows == 7
    assert len(result.data) == 2
    first, second = result.data
    assert first.origin == "Seoul/Gangnam"
    assert first.unit_price == 850000
    assert first.date == datetime.date(2024, 1, 15)
    assert second.unit_price == 870000
    assert second.freight_type == "Fragile"


def test_parse_market_data_row_errors():
    errors = parse_market_data_csv(MARKET_CSV).errors

    assert errors == [
        'Row 4: Invalid date "not-a-date"',
        "Row 5: Missing origin or destination",
        "Row 6: Missing vehicleType",
        'Row 7: Invalid unitPrice "-5"',
        'Row 8: Invalid unitPrice "abc"',
    ]


def test_parse_market_data_header_aliases():
    text = "Date,Departure,Arrival,Vehicle Type,Cargo Type,Fare\n2024-02-01,Seoul,Daegu,5t,General,450000\n"
    result = parse_market_data_csv(text)

    assert result.errors == []
    obs = result.data[0]
    assert (obs.origin, obs.destination, obs.vehicle_type, obs.unit_price) == ("Seoul", "Daegu", "5t", 450000)


def test_first_matching_column_wins():
    text = "date,origin,destination,vehicle,freight,price,amount\n2024-02-01,Seoul,Daegu,5t,General,450000,1\n"
    result = parse_market_data_csv(text)
    assert result.data[0].unit_price == 450000


def test_parse_market_data_missing_columns():
    result = parse_market_data_csv("date,origin,destination\n2024-01-15,Seoul,Busan\n")

    assert result.data == []
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Missing required columns: vehicle_type, freight_type, unit_price")
    assert "Found headers: date, origin, destination" in result.errors[0]


def test_empty_csv():
    for text in ("", "\n\n", "date,origin,destination,vehicleType,freightType,unitPrice\n"):
        result = parse_market_data_csv(text)
        assert result.errors == [EMPTY_CSV_ERROR]
        assert result.total_rows == 0


# ── Cost master ─────────────────────────────────────────────────

def test_parse_cost_master():
    text = (
        "category,item,value,unit,description\n"
        'Variable,fuel_price,"1,700",KRW/L,Diesel\n'
        "variable,toll_rate,120,KRW/km,lowercase category\n"
        "Policy,,0.1,%,no item\n"
        "Risk,freight_risk_fragile,high,%,bad value\n"
        "Fixed,vehicle_fixed_cost,150000,,no unit\n"
    )
    result = parse_cost_master_csv(text)

    assert len(result.data) == 1
    assert result.data[0].item == "fuel_price"
    assert result.data[0].value == 1700
    assert result.errors[0].startswith('Row 3: Invalid category "variable"')
    assert result.errors[1:] == [
        "Row 4: Missing item name",
        "Row 5: Invalid value",
        "Row 6: Missing unit",
    ]


def test_parse_cost_master_aliases():
    text = "Type,Name,Amount,Unit,Note\nFixed,vehicle_fixed_cost,160000,KRW/trip,per trip\n"
    result = parse_cost_master_csv(text)
    assert result.data[0].category == "Fixed"
    assert result.data[0].value == 160000
    assert result.data[0].description == "per trip"


# ── Batch requests ──────────────────────────────────────────────

def test_parse_pricing_requests():
    text = (
        "from,to,ton,cargo,discount\n"
        "Seoul/Gangnam,Busan/Haeundae,25t,Fragile,-5\n"
        "Seoul/Gangseo,Daegu/Dalseo,99t,Gold,\n"
        ",Daegu/Dalseo,11t,General,0\n"
    )
    result = parse_pricing_requests_csv(text)

    assert len(result.data) == 2
    first, second = result.data
    assert first.vehicle_type == "25t"
    assert first.freight_type == "Fragile"
    assert first.manual_adjustment_rate == -0.05
    assert second.vehicle_type == "11t"
    assert second.freight_type == "General"
    assert second.manual_adjustment_rate == 0
    assert result.errors == ["Row 4: Missing origin or destination"]


def test_parse_pricing_requests_defaults_without_optional_columns():
    result = parse_pricing_requests_csv("origin,destination\nSeoul/Gangnam,Busan/Haeundae\n")

    request = result.data[0]
    assert request.vehicle_type == "11t"
    assert request.freight_type == "General"
    assert request.manual_adjustment_rate == 0


def test_parse_pricing_requests_requires_route_columns():
    result = parse_pricing_requests_csv("vehicle,cargo\n11t,General\n")
    assert result.errors[0].startswith("Missing required columns: origin, destination")
