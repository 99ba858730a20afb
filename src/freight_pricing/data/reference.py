"""
Reference tables - compiled-in defaults and static lookup data.

Holds the cost-variable defaults, the vehicle fuel-efficiency table,
the corridor road-distance table and the province centroid coordinates.
All tables are read-only mappings; tests substitute their own
ReferenceTables instead of patching module state.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional


COST_DEFAULTS = MappingProxyType({
    'fuel_price': 1650.0,                # KRW/L (diesel)
    'fuel_efficiency': 3.5,              # km/L for a typical 11t truck
    'toll_rate': 120.0,                  # KRW/km average toll
    'vehicle_fixed_cost': 150000.0,      # KRW per trip
    'driver_profit_rate': 0.15,
    'company_margin_rate': 0.08,
    'freight_risk_fragile': 0.12,
    'freight_risk_refrigerated': 0.15,
    'freight_risk_hazardous': 0.20,
})

# (category, unit, description) for seeding the cost master
COST_DEFAULT_META = MappingProxyType({
    'fuel_price': ('Variable', 'KRW/L', 'Diesel fuel price per liter'),
    'fuel_efficiency': ('Variable', 'km/L', 'Default fuel efficiency (11t truck)'),
    'toll_rate': ('Variable', 'KRW/km', 'Average highway toll cost per km'),
    'vehicle_fixed_cost': ('Fixed', 'KRW/trip', 'Depreciation + insurance + maintenance per trip'),
    'driver_profit_rate': ('Policy', '%', 'Guaranteed driver profit (15% of operating cost)'),
    'company_margin_rate': ('Policy', '%', 'Company margin (8%)'),
    'freight_risk_fragile': ('Risk', '%', 'Surcharge for fragile goods (paper, glass, etc.)'),
    'freight_risk_refrigerated': ('Risk', '%', 'Surcharge for refrigerated/cold chain goods'),
    'freight_risk_hazardous': ('Risk', '%', 'Surcharge for hazardous materials'),
})

VEHICLE_EFFICIENCY = MappingProxyType({
    '1t': 8.0,
    '2.5t': 6.5,
    '3.5t': 5.5,
    '5t': 4.5,
    '8t': 4.0,
    '11t': 3.5,
    '15t': 3.0,
    '18t': 2.8,
    '25t': 2.5,
})

PROVINCE_COORDS = MappingProxyType({
    'Seoul': (37.5665, 126.978),
    'Incheon': (37.4563, 126.7052),
    'Gyeonggi': (37.4138, 127.5183),
    'Gangwon': (37.8228, 128.1555),
    'Chungbuk': (36.6357, 127.4917),
    'Chungnam': (36.5184, 126.8),
    'Daejeon': (36.3504, 127.3845),
    'Sejong': (36.48, 127.0),
    'Jeonbuk': (35.8203, 127.1089),
    'Jeonnam': (34.8161, 126.4629),
    'Gwangju': (35.1595, 126.8526),
    'Gyeongbuk': (36.576, 128.5056),
    'Gyeongnam': (35.4606, 128.2132),
    'Daegu': (35.8714, 128.6014),
    'Busan': (35.1796, 129.0756),
    'Ulsan': (35.5384, 129.3114),
    'Jeju': (33.4996, 126.5312),
})

# Major corridor road distances (km), one entry per unordered pair
_CORRIDORS = [
    ('Busan', 'Seoul', 325),
    ('Daegu', 'Seoul', 237),
    ('Daejeon', 'Seoul', 140),
    ('Gwangju', 'Seoul', 268),
    ('Incheon', 'Seoul', 28),
    ('Gyeonggi', 'Seoul', 40),
    ('Gangwon', 'Seoul', 133),
    ('Chungbuk', 'Seoul', 120),
    ('Chungnam', 'Seoul', 130),
    ('Gyeongbuk', 'Seoul', 200),
    ('Gyeongnam', 'Seoul', 300),
    ('Jeonbuk', 'Seoul', 200),
    ('Jeonnam', 'Seoul', 290),
    ('Ulsan', 'Seoul', 307),
    ('Sejong', 'Seoul', 120),
    ('Busan', 'Daegu', 88),
    ('Busan', 'Ulsan', 52),
    ('Busan', 'Gyeongnam', 70),
    ('Daegu', 'Gyeongbuk', 50),
    ('Daegu', 'Ulsan', 75),
    ('Daejeon', 'Chungbuk', 60),
    ('Daejeon', 'Chungnam', 40),
    ('Daejeon', 'Sejong', 25),
    ('Gwangju', 'Jeonnam', 45),
    ('Gwangju', 'Jeonbuk', 85),
    ('Gyeonggi', 'Incheon', 30),
    ('Gyeonggi', 'Gangwon', 110),
    ('Gyeonggi', 'Chungbuk', 100),
    ('Gyeonggi', 'Chungnam', 90),
    ('Gyeongnam', 'Jeonnam', 180),
    ('Jeonbuk', 'Jeonnam', 100),
    ('Jeonbuk', 'Chungnam', 90),
    ('Busan', 'Gwangju', 260),
    ('Busan', 'Daejeon', 200),
    ('Busan', 'Jeonbuk', 230),
    ('Daegu', 'Daejeon', 120),
    ('Daegu', 'Gwangju', 185),
    ('Incheon', 'Busan', 350),
    ('Busan', 'Jeju', 450),   # includes ferry leg
    ('Seoul', 'Jeju', 480),   # includes ferry leg
]

ROAD_DISTANCES = MappingProxyType({
    frozenset((a, b)): km for a, b, km in _CORRIDORS
})


@dataclass(frozen=True)
class ReferenceTables:
    """Bundle of static lookup tables used by the distance resolver and engine."""
    cost_defaults: Mapping[str, float] = field(default_factory=lambda: COST_DEFAULTS)
    vehicle_efficiency: Mapping[str, float] = field(default_factory=lambda: VEHICLE_EFFICIENCY)
    road_distances: Mapping[frozenset, float] = field(default_factory=lambda: ROAD_DISTANCES)
    province_coords: Mapping[str, tuple] = field(default_factory=lambda: PROVINCE_COORDS)

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Reject tables that would make Tier 1 divide by zero."""
        for vehicle_type, efficiency in self.vehicle_efficiency.items():
            if not efficiency > 0:
                raise ValueError(
                    f"Fuel efficiency for vehicle type '{vehicle_type}' must be positive, got {efficiency}"
                )
        default_eff = self.cost_defaults.get('fuel_efficiency')
        if default_eff is None or not default_eff > 0:
            raise ValueError(f"Default fuel_efficiency must be positive, got {default_eff}")

    def efficiency_for(self, vehicle_type: str, default: float) -> float:
        """Vehicle km/L, falling back to the cost-variable default."""
        return self.vehicle_efficiency.get(vehicle_type, default)

    def corridor_distance(self, province_a: str, province_b: str) -> Optional[float]:
        """Known road distance for an unordered province pair, or None."""
        return self.road_distances.get(frozenset((province_a, province_b)))


def default_reference_tables() -> ReferenceTables:
    """The compiled-in reference tables."""
    return ReferenceTables()
