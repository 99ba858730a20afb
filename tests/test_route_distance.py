"""
Tests for route distance resolution and the reference tables.
"""
import pytest

from freight_pricing.data.reference import PROVINCE_COORDS, ReferenceTables
from freight_pricing.engine.models import round_int
from freight_pricing.engine.route_distance import (
    DEFAULT_DISTANCE_KM,
    INTRA_PROVINCE_KM,
    RouteDistanceResolver,
    haversine_km,
)


@pytest.fixture(scope="function")
def resolver():
    return RouteDistanceResolver()


def test_same_province_uses_intra_province_default(resolver):
    estimate = resolver.resolve("Seoul/Gangnam", "Seoul/Jongno")
    assert estimate.distance_km == INTRA_PROVINCE_KM == 30
    assert estimate.source == "lookup"
    assert estimate.is_lookup


def test_known_corridor(resolver):
    estimate = resolver.resolve("Seoul/Gangnam", "Busan/Haeundae")
    assert estimate.distance_km == 325
    assert estimate.source == "lookup"


@pytest.mark.parametrize("a,b", [
    ("Seoul/Gangnam", "Busan/Haeundae"),
    ("Daejeon/Yuseong", "Sejong"),
    ("Gangwon/Wonju", "Jeonnam/Yeosu"),
    ("Tokyo/Shinjuku", "Seoul/Jongno"),
])
def test_resolution_is_symmetric(resolver, a, b):
    assert resolver.resolve(a, b) == resolver.resolve(b, a)


def test_haversine_estimate_for_unlisted_pair(resolver):
    estimate = resolver.resolve("Gangwon/Wonju", "Jeonnam/Yeosu")

    expected = round_int(haversine_km(PROVINCE_COORDS['Gangwon'], PROVINCE_COORDS['Jeonnam']) * 1.3)
    assert estimate.distance_km == expected
    assert estimate.source == "haversine"
    assert not estimate.is_lookup


def test_unknown_province_uses_default(resolver):
    estimate = resolver.resolve("Tokyo/Shinjuku", "Seoul/Jongno")
    assert estimate.distance_km == DEFAULT_DISTANCE_KM == 200
    assert estimate.source == "haversine"


def test_haversine_km():
    assert haversine_km((37.5665, 126.978), (37.5665, 126.978)) == 0
    seoul_busan = haversine_km(PROVINCE_COORDS['Seoul'], PROVINCE_COORDS['Busan'])
    assert 300 < seoul_busan < 350


def test_injected_tables():
    tables = ReferenceTables(
        road_distances={frozenset(("Alpha", "Beta")): 42},
        province_coords={},
    )
    resolver = RouteDistanceResolver(tables)

    assert resolver.resolve("Alpha/North", "Beta/South").distance_km == 42
    assert resolver.resolve("Alpha/North", "Gamma").distance_km == 200


def test_reference_tables_reject_non_positive_efficiency():
    with pytest.raises(ValueError, match="must be positive"):
        ReferenceTables(vehicle_efficiency={'1t': 0})

    with pytest.raises(ValueError, match="fuel_efficiency"):
        ReferenceTables(cost_defaults={'fuel_efficiency': -1.0})


def test_efficiency_lookup_falls_back_to_default():
    tables = ReferenceTables()
    assert tables.efficiency_for('25t', 3.5) == 2.5
    assert tables.efficiency_for('40t', 3.5) == 3.5
