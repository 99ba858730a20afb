"""
Pricing Engine - Fundamental Pricing Hierarchy (FPH) with traceability.

Three tiers, each fully computed before the next:
- Tier 1 (Cost basis)       → fuel, tolls, fixed cost and driver profit
- Tier 2 (Market overlay)   → confidence-weighted blend toward the IQR-cleaned median
- Tier 3 (Strategic finish) → company margin, freight risk, manual adjustment,
                               then rounded UP to the nearest 1,000 KRW
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config.settings import get_settings, Settings
from ..data.reference import ReferenceTables, default_reference_tables
from ..services.base import StoreError
from .analysis import MarketDataAnalyzer
from .models import (
    CostVariables,
    DistanceEstimate,
    MarketObservation,
    PricingRequest,
    PricingResult,
    PricingSummary,
    RouteMedianResult,
    RouteStandard,
    Tier1Breakdown,
    Tier2Breakdown,
    Tier3Breakdown,
    round_half_up,
    round_int,
)
from .route_distance import RouteDistanceResolver

logger = logging.getLogger(__name__)


FREIGHT_RISK_KEYWORDS = (
    ('freight_risk_fragile', ('fragile', 'paper', 'glass', 'ceramic', 'electronics')),
    ('freight_risk_refrigerated', ('refrigerated', 'frozen', 'chilled', 'cold')),
    ('freight_risk_hazardous', ('hazardous', 'chemical', 'flammable', 'explosive')),
)


def ceil_to_unit(value: float, unit: int = 1000) -> int:
    """
    Round UP to the nearest unit.

    850,001 → 851,000 ; 850,000 → 850,000
    """
    return int(math.ceil(value / unit) * unit)


def freight_risk_rate(freight_type: Optional[str], costs: CostVariables) -> float:
    """Surcharge rate for a cargo description; 0 for General or unknown."""
    if not freight_type:
        return 0.0

    normalized = freight_type.lower()
    for cost_item, keywords in FREIGHT_RISK_KEYWORDS:
        if any(k in normalized for k in keywords):
            return getattr(costs, cost_item)
    return 0.0


@dataclass
class SaveOutcome:
    """Result of compute-then-persist; persistence may fail independently."""
    result: PricingResult
    saved: bool
    error: Optional[str] = None


class PricingEngine:
    """
    Core pricing engine that resolves a standard freight price per route.

    Resolution order:
    1. Resolve cost variables (store values, compiled-in defaults for gaps)
    2. Resolve route distance (same province → corridor table → haversine → default)
    3. Tier 1 cost basis
    4. Tier 2 market overlay from the analyzer (exact route → province fallback → pass-through)
    5. Tier 3 strategic finalization and ceil-to-1,000 rounding
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cost_provider=None,
        market_data=None,
        route_standards=None,
        reference: Optional[ReferenceTables] = None,
        distance_resolver: Optional[RouteDistanceResolver] = None,
        analyzer: Optional[MarketDataAnalyzer] = None,
    ):
        """Initialize engine with its providers; store services default to the settings paths."""
        self.settings = settings or get_settings()
        self.policy = self.settings.policy
        self.reference = reference or default_reference_tables()

        if cost_provider is None or market_data is None or route_standards is None:
            from ..services.cost_master_service import CostMasterService
            from ..services.market_data_service import MarketDataService
            from ..services.route_standard_service import RouteStandardService

            if cost_provider is None:
                cost_provider = CostMasterService(self.settings.cost_master_csv, self.reference)
            if market_data is None:
                market_data = MarketDataService(self.settings.market_data_csv, self.policy)
            if route_standards is None:
                route_standards = RouteStandardService(self.settings.route_standard_csv)

        self.cost_provider = cost_provider
        self.market_data = market_data
        self.route_standards = route_standards
        self.distance_resolver = distance_resolver or RouteDistanceResolver(self.reference)
        self.analyzer = analyzer or MarketDataAnalyzer(self.policy)

    # ── Tier 1 ──────────────────────────────────────────────────

    def calculate_tier1(
        self,
        distance: DistanceEstimate,
        vehicle_type: str,
        costs: CostVariables,
    ) -> Tier1Breakdown:
        km = distance.distance_km
        efficiency = self.reference.efficiency_for(vehicle_type, costs.fuel_efficiency)

        fuel_cost = round_int(km / efficiency * costs.fuel_price)
        toll_cost = round_int(km * costs.toll_rate)
        fixed_cost = round_int(costs.vehicle_fixed_cost)

        operating_cost = fuel_cost + toll_cost + fixed_cost
        driver_profit = round_int(operating_cost * costs.driver_profit_rate)

        return Tier1Breakdown(
            fuel_cost=fuel_cost,
            toll_cost=toll_cost,
            fixed_cost=fixed_cost,
            driver_profit=driver_profit,
            subtotal=operating_cost + driver_profit,
            distance_km=km,
            distance_source=distance.source,
        )

    # ── Tier 2 ──────────────────────────────────────────────────

    def find_market_median(
        self,
        request: PricingRequest,
        observations: Sequence[MarketObservation],
    ) -> Optional[RouteMedianResult]:
        """Analyze the vehicle type's observations and pick the route's median."""
        pool = [o for o in observations if o.vehicle_type == request.vehicle_type]
        if not pool:
            return None
        results = self.analyzer.analyze(pool)
        return self.analyzer.find_route_median(results, request.origin, request.destination)

    def calculate_tier2(
        self,
        tier1_base: int,
        market_result: Optional[RouteMedianResult],
    ) -> Tier2Breakdown:
        if market_result is None:
            # No market data: Tier 1 passes through unchanged
            return Tier2Breakdown(
                market_median=None,
                adjustment_factor=1.0,
                adjusted_price=tier1_base,
                sample_size=0,
                confidence_score=0,
                is_fallback=False,
                has_market_data=False,
            )

        confidence = market_result.confidence_score
        adjusted_price = round_int(
            tier1_base * (1 - confidence) + market_result.median * confidence
        )
        if tier1_base > 0:
            adjustment_factor = round_half_up(adjusted_price / tier1_base, 3)
        else:
            adjustment_factor = 1.0

        return Tier2Breakdown(
            market_median=market_result.median,
            adjustment_factor=adjustment_factor,
            adjusted_price=adjusted_price,
            sample_size=market_result.sample_size,
            confidence_score=confidence,
            is_fallback=market_result.is_fallback,
            has_market_data=True,
        )

    # ── Tier 3 ──────────────────────────────────────────────────

    def calculate_tier3(
        self,
        tier2_price: int,
        freight_type: Optional[str],
        manual_adjustment_rate: float,
        costs: CostVariables,
    ) -> Tier3Breakdown:
        company_margin = round_int(tier2_price * costs.company_margin_rate)

        risk_rate = freight_risk_rate(freight_type, costs)
        risk_surcharge = round_int(tier2_price * risk_rate)

        # Positive = increase, negative = discount
        manual_adjustment = round_int(tier2_price * manual_adjustment_rate)

        subtotal = tier2_price + company_margin + risk_surcharge + manual_adjustment

        return Tier3Breakdown(
            company_margin_rate=costs.company_margin_rate,
            company_margin=company_margin,
            freight_risk_rate=risk_rate,
            freight_risk_surcharge=risk_surcharge,
            manual_adjustment_rate=manual_adjustment_rate,
            manual_adjustment=manual_adjustment,
            subtotal_before_rounding=subtotal,
            final_price=ceil_to_unit(subtotal, self.policy.rounding_unit),
        )

    # ── Confidence ──────────────────────────────────────────────

    def overall_confidence(self, distance: DistanceEstimate, tier2: Tier2Breakdown) -> float:
        policy = self.policy
        if distance.is_lookup:
            distance_conf = policy.lookup_distance_confidence
        else:
            distance_conf = policy.estimated_distance_confidence
        market_conf = tier2.confidence_score if tier2.has_market_data else policy.no_market_confidence

        return round_half_up(
            distance_conf * policy.distance_weight + market_conf * policy.market_weight, 2
        )

    # ── Entry points ────────────────────────────────────────────

    def load_cost_variables(self) -> CostVariables:
        return self.cost_provider.get_cost_variables()

    def load_observations(self) -> list[MarketObservation]:
        return self.market_data.list_observations()

    def calculate(
        self,
        request: PricingRequest,
        costs: Optional[CostVariables] = None,
        observations: Optional[Sequence[MarketObservation]] = None,
    ) -> PricingResult:
        """
        Calculate the full FPH price for a route.

        Args:
            request: Route, vehicle and cargo parameters
            costs: Pre-fetched cost variables (fetched from the provider if omitted)
            observations: Pre-fetched market observations (fetched if omitted)

        Returns:
            PricingResult with all three tier breakdowns, trace and warnings
        """
        manual_rate = _validate_request(request)

        if costs is None:
            costs = self.load_cost_variables()
        if observations is None:
            observations = self.load_observations()

        distance = self.distance_resolver.resolve(request.origin, request.destination)

        tier1 = self.calculate_tier1(distance, request.vehicle_type, costs)
        market_result = self.find_market_median(request, observations)
        tier2 = self.calculate_tier2(tier1.subtotal, market_result)
        tier3 = self.calculate_tier3(
            tier2.adjusted_price,
            request.freight_type,
            manual_rate,
            costs,
        )

        data_sources = ["CostMaster"]
        if tier2.has_market_data:
            data_sources.append("MarketData (IQR)")
        if distance.is_lookup:
            data_sources.append("RouteDistance (lookup)")
        else:
            data_sources.append("RouteDistance (haversine estimate)")

        result = PricingResult(
            request=request,
            tier1=tier1,
            tier2=tier2,
            tier3=tier3,
            summary=PricingSummary(
                tier1_base=tier1.subtotal,
                tier2_adjusted=tier2.adjusted_price,
                tier3_final=tier3.final_price,
                overall_confidence=self.overall_confidence(distance, tier2),
                data_sources=data_sources,
            ),
        )
        self._record_trace(result, distance, market_result)

        logger.debug(
            "Priced %s (%s): base=%s market=%s final=%s",
            request.route_label, request.vehicle_type,
            tier1.subtotal, tier2.adjusted_price, tier3.final_price,
        )
        return result

    def calculate_and_save(
        self,
        request: PricingRequest,
        costs: Optional[CostVariables] = None,
        observations: Optional[Sequence[MarketObservation]] = None,
    ) -> SaveOutcome:
        """Calculate, then upsert the RouteStandard; a store failure keeps the result."""
        result = self.calculate(request, costs=costs, observations=observations)

        try:
            self.route_standards.upsert(RouteStandard.from_result(result))
        except StoreError as e:
            logger.error("Failed to save route standard for %s: %s", request.route_label, e)
            return SaveOutcome(result=result, saved=False, error=f"Database error: {e}")

        return SaveOutcome(result=result, saved=True)

    def _record_trace(
        self,
        result: PricingResult,
        distance: DistanceEstimate,
        market_result: Optional[RouteMedianResult],
    ):
        tier1, tier2, tier3 = result.tier1, result.tier2, result.tier3

        result.add_trace("Distance", f"Resolved via {distance.source}", f"{distance.distance_km} km")
        if not distance.is_lookup:
            result.add_warning(f"Distance for {result.request.route_label} is an estimate")

        result.add_trace("Tier 1", "Fuel + toll + fixed + driver profit", f"{tier1.subtotal:,.0f}")

        if market_result is None:
            result.add_trace("Tier 2", "No market data, using Tier 1 price")
            result.add_warning(
                f"No market data for {result.request.route_label} ({result.request.vehicle_type})"
            )
        else:
            level = "province fallback" if market_result.is_fallback else "exact route"
            result.add_trace(
                "Market Median",
                f"{level}, n={market_result.sample_size}, confidence {market_result.confidence_score}",
                f"{market_result.median:,}",
            )
            if market_result.is_fallback:
                result.add_warning(
                    f"Market median for {result.request.route_label} uses province-level fallback"
                )
            result.add_trace("Tier 2", "Confidence-weighted blend", f"{tier2.adjusted_price:,.0f}")

        result.add_trace("Tier 3", "Margin + freight risk + manual adjustment", f"{tier3.subtotal_before_rounding:,.0f}")
        result.add_trace("Rounding", f"Ceil to {self.policy.rounding_unit:,}", f"{tier3.final_price:,}")


def _validate_request(request: PricingRequest) -> float:
    """Reject malformed requests before any tier runs; returns the manual adjustment rate."""
    for name in ('origin', 'destination', 'vehicle_type'):
        value = getattr(request, name)
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{name} is required")

    rate = request.manual_adjustment_rate
    if rate is None:
        return 0.0
    if isinstance(rate, bool) or not isinstance(rate, (int, float)) or not math.isfinite(rate):
        raise ValueError(f"manual_adjustment_rate must be a finite number, got {rate!r}")
    return float(rate)
