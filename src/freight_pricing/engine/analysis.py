"""
Market Data Analyzer - Tier 2 statistics.

Turns raw market observations into a cleaned median price per
(origin, destination, vehicle type) using IQR outlier removal, and
scores each median with a 0-1 confidence.

Fallback strategy:
  A route with fewer than `min_sample_size` observations falls back to
  the province-level pool ("Seoul/Gangnam" → "Seoul"). When even the
  province pool is sparse, the raw values are used unfiltered.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import pandas as pd

from ..config.settings import PricingPolicy
from .models import (
    AnalysisSummary,
    MarketObservation,
    Resolution,
    RouteMedianResult,
    extract_province,
    round_half_up,
    round_int,
)

logger = logging.getLogger(__name__)


# ── Core statistics ─────────────────────────────────────────────

def _series(values: Iterable[float]) -> pd.Series:
    return pd.Series(list(values), dtype=float)


def quantile(values: Iterable[float], q: float) -> float:
    """
    Quantile by linear interpolation between order statistics.

    Empty input yields 0.
    """
    s = _series(values)
    if s.empty:
        return 0
    return float(s.quantile(q, interpolation='linear'))


def median(values: Iterable[float]) -> float:
    return quantile(values, 0.5)


@dataclass(frozen=True)
class IQRFilterResult:
    filtered: list[float]
    q1: float
    q3: float
    iqr: float
    lower_bound: float
    upper_bound: float


def apply_iqr_filter(values: Iterable[float], multiplier: float = 1.5) -> IQRFilterResult:
    """Keep values inside [Q1 - k·IQR, Q3 + k·IQR], bounds inclusive."""
    s = _series(values).sort_values(ignore_index=True)
    if s.empty:
        return IQRFilterResult([], 0, 0, 0, 0, 0)

    q1, q3 = (float(v) for v in s.quantile([0.25, 0.75], interpolation='linear'))
    iqr = q3 - q1
    lower_bound = q1 - multiplier * iqr
    upper_bound = q3 + multiplier * iqr

    filtered = s[s.between(lower_bound, upper_bound, inclusive='both')]
    return IQRFilterResult(
        filtered=filtered.tolist(),
        q1=q1,
        q3=q3,
        iqr=iqr,
        lower_bound=lower_bound,
        upper_bound=upper_bound,
    )


def compute_confidence(
    sample_size: int,
    filtered_values: Iterable[float],
    is_fallback: bool,
    policy: Optional[PricingPolicy] = None,
) -> float:
    """
    0-1 confidence from sample size and consistency.

    size factor:        min(n / 30, 1)
    consistency factor: max(0, 1 - CV), CV over the filtered values
    fallback results are scaled by the fallback penalty.
    """
    policy = policy or PricingPolicy()

    size_factor = min(sample_size / policy.size_saturation, 1.0)

    consistency_factor = 1.0
    s = _series(filtered_values)
    if len(s) >= 2:
        mean = float(s.mean())
        if mean > 0:
            cv = float(s.std(ddof=0)) / mean
            consistency_factor = max(0.0, 1.0 - cv)

    raw_score = size_factor * policy.size_weight + consistency_factor * policy.consistency_weight
    penalty = policy.fallback_penalty if is_fallback else 1.0
    return round_half_up(raw_score * penalty, 2)


# ── Grouping ────────────────────────────────────────────────────

_ROUTE_KEYS = ['origin', 'destination', 'vehicle_type']
_PROVINCE_KEYS = ['origin_province', 'destination_province', 'vehicle_type']


@dataclass
class _PricePool:
    origin: str
    destination: str
    vehicle_type: str
    prices: pd.Series


def _frame(observations: Sequence[MarketObservation]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            (o.origin, o.destination, o.vehicle_type,
             o.origin_province, o.destination_province, float(o.unit_price))
            for o in observations
        ],
        columns=_ROUTE_KEYS + _PROVINCE_KEYS[:2] + ['unit_price'],
    )


def _group(df: pd.DataFrame, by_province: bool) -> dict[tuple, _PricePool]:
    """Price pools keyed by (origin, destination, vehicle_type), first-seen order."""
    keys = _PROVINCE_KEYS if by_province else _ROUTE_KEYS
    groups: dict[tuple, _PricePool] = {}
    if df.empty:
        return groups
    for key, prices in df.groupby(keys, sort=False)['unit_price']:
        groups[key] = _PricePool(*key, prices=prices.reset_index(drop=True))
    return groups


# ── Analyzer ────────────────────────────────────────────────────

class MarketDataAnalyzer:
    """
    Computes cleaned route medians from market observations.

    Resolution per exact route group:
    1. >= min_sample_size observations → IQR-filtered exact median
    2. province pool >= min_sample_size → IQR-filtered province median
    3. otherwise → unfiltered median of the largest available pool
    """

    def __init__(self, policy: Optional[PricingPolicy] = None):
        self.policy = policy or PricingPolicy()

    def analyze(self, observations: Sequence[MarketObservation]) -> list[RouteMedianResult]:
        observations = list(observations)
        df = _frame(observations)
        route_groups = _group(df, by_province=False)
        province_groups = _group(df, by_province=True)

        results: list[RouteMedianResult] = []
        processed_province_keys: set[tuple] = set()

        for group in route_groups.values():
            if len(group.prices) >= self.policy.min_sample_size:
                results.append(self._filtered_result(group, Resolution.EXACT))
                continue

            prov_key = (
                extract_province(group.origin),
                extract_province(group.destination),
                group.vehicle_type,
            )
            if prov_key in processed_province_keys:
                continue
            processed_province_keys.add(prov_key)

            prov_group = province_groups.get(prov_key)
            if prov_group is None or len(prov_group.prices) < self.policy.min_sample_size:
                prices = prov_group.prices if prov_group is not None else group.prices
                results.append(self._raw_result(group, prices))
            else:
                results.append(self._filtered_result(prov_group, Resolution.PROVINCE))

        results.sort(key=lambda r: r.confidence_score, reverse=True)
        logger.debug(
            "Analyzed %d observations into %d route medians", len(observations), len(results)
        )
        return results

    def _filtered_result(self, pool: _PricePool, resolution: Resolution) -> RouteMedianResult:
        iqr = apply_iqr_filter(pool.prices, self.policy.iqr_multiplier)
        med = median(iqr.filtered)
        return RouteMedianResult(
            origin=pool.origin,
            destination=pool.destination,
            vehicle_type=pool.vehicle_type,
            median=round_int(med),
            sample_size=len(pool.prices),
            filtered_size=len(iqr.filtered),
            q1=round_int(iqr.q1),
            q3=round_int(iqr.q3),
            iqr=round_int(iqr.iqr),
            lower_bound=round_int(iqr.lower_bound),
            upper_bound=round_int(iqr.upper_bound),
            confidence_score=compute_confidence(
                len(pool.prices), iqr.filtered, resolution is not Resolution.EXACT, self.policy
            ),
            resolution=resolution,
        )

    def _raw_result(self, group: _PricePool, prices: pd.Series) -> RouteMedianResult:
        q1, med, q3 = (float(v) for v in prices.quantile([0.25, 0.5, 0.75], interpolation='linear'))
        return RouteMedianResult(
            origin=group.origin,
            destination=group.destination,
            vehicle_type=group.vehicle_type,
            median=round_int(med),
            sample_size=len(prices),
            filtered_size=len(prices),
            q1=round_int(q1),
            q3=round_int(q3),
            iqr=0,
            lower_bound=0,
            upper_bound=0,
            confidence_score=compute_confidence(len(prices), prices, True, self.policy),
            resolution=Resolution.RAW,
        )

    def find_route_median(
        self,
        results: Sequence[RouteMedianResult],
        origin: str,
        destination: str,
    ) -> Optional[RouteMedianResult]:
        """Exact route match first, then a province-level fallback result."""
        for r in results:
            if r.origin == origin and r.destination == destination:
                return r

        origin_prov = extract_province(origin)
        dest_prov = extract_province(destination)
        for r in results:
            if r.is_fallback and r.origin == origin_prov and r.destination == dest_prov:
                return r
        return None


def analyze_market_data(
    observations: Sequence[MarketObservation],
    policy: Optional[PricingPolicy] = None,
) -> list[RouteMedianResult]:
    """Convenience wrapper around MarketDataAnalyzer.analyze."""
    return MarketDataAnalyzer(policy).analyze(observations)


def summarize_analysis(results: Sequence[RouteMedianResult], top_n: int = 10) -> AnalysisSummary:
    """Counts, mean confidence and the top-N routes of an analysis run."""
    exact_routes = sum(1 for r in results if not r.is_fallback)
    fallback_routes = sum(1 for r in results if r.is_fallback)
    if results:
        avg_confidence = round_half_up(sum(r.confidence_score for r in results) / len(results), 2)
    else:
        avg_confidence = 0

    return AnalysisSummary(
        total_routes=len(results),
        exact_routes=exact_routes,
        fallback_routes=fallback_routes,
        avg_confidence=avg_confidence,
        top_routes=list(results[:top_n]),
    )
