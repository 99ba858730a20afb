"""
Sample market data for demos and local development.

Seven well-covered routes across three vehicle classes plus two sparse
routes that exercise the province-level fallback.
"""
import random
from datetime import date, timedelta
from typing import Optional

from ..engine.models import MarketObservation, round_int

SAMPLE_ROUTES = [
    ("Seoul/Gangnam", "Busan/Haeundae", {"5t": 650000, "11t": 850000, "25t": 1200000}),
    ("Seoul/Yeongdeungpo", "Busan/Sasang", {"5t": 620000, "11t": 830000, "25t": 1180000}),
    ("Seoul/Gangseo", "Daegu/Dalseo", {"5t": 450000, "11t": 600000, "25t": 900000}),
    ("Incheon/Namdong", "Gwangju/Buk", {"5t": 500000, "11t": 680000, "25t": 950000}),
    ("Gyeonggi/Pyeongtaek", "Gyeongnam/Changwon", {"5t": 550000, "11t": 720000, "25t": 1050000}),
    ("Seoul/Songpa", "Daejeon/Yuseong", {"5t": 280000, "11t": 380000, "25t": 550000}),
    ("Gyeonggi/Icheon", "Busan/Gangseo", {"5t": 630000, "11t": 840000, "25t": 1190000}),
    # Sparse routes
    ("Gangwon/Wonju", "Jeonnam/Yeosu", {"11t": 750000}),
    ("Chungbuk/Cheongju", "Gyeongbuk/Pohang", {"11t": 520000}),
]

SAMPLE_FREIGHT_TYPES = ["General", "General", "General", "Fragile", "Refrigerated"]

OUTLIER_PROBABILITY = 0.08


def generate_sample_market_data(seed: Optional[int] = None, today: Optional[date] = None) -> list[MarketObservation]:
    """
    Generate observations over the past year.

    Well-covered routes get 15-24 records per vehicle class with ±15% noise
    and occasional ±40% outliers; sparse routes get 3 records.
    """
    rng = random.Random(seed)
    today = today or date.today()
    observations = []

    for origin, destination, base_prices in SAMPLE_ROUTES:
        for vehicle_type, base_price in base_prices.items():
            count = 15 + rng.randrange(10) if len(base_prices) > 1 else 3

            for _ in range(count):
                if rng.random() < OUTLIER_PROBABILITY:
                    variation = 1 + (rng.random() - 0.5) * 0.8
                else:
                    variation = 1 + (rng.random() - 0.5) * 0.3

                observations.append(MarketObservation(
                    origin=origin,
                    destination=destination,
                    vehicle_type=vehicle_type,
                    unit_price=float(round_int(base_price * variation)),
                    freight_type=rng.choice(SAMPLE_FREIGHT_TYPES),
                    date=today - timedelta(days=rng.randrange(365)),
                ))

    return observations
