"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
`to_dict()` methods emit the camelCase contract consumed by the UI layer.
"""
import math
from dataclasses import dataclass, field
from datetime import date as Date
from enum import Enum
from typing import Optional


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half toward +infinity (2.5 → 3, -2.5 → -2)."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def round_int(value: float) -> int:
    """Round half up to an integer currency unit."""
    return int(math.floor(value + 0.5))


def extract_province(location: str) -> str:
    """
    Extract the province from "Province/District" format.

    "Seoul/Gangnam" → "Seoul"; "Seoul" → "Seoul".
    """
    return str(location).split('/')[0].strip()


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


# ── Market data ─────────────────────────────────────────────────

@dataclass(frozen=True)
class MarketObservation:
    """A single recorded market price for a route."""
    origin: str
    destination: str
    vehicle_type: str
    unit_price: float
    freight_type: str = ""
    date: Optional[Date] = None

    @property
    def origin_province(self) -> str:
        return extract_province(self.origin)

    @property
    def destination_province(self) -> str:
        return extract_province(self.destination)


class Resolution(Enum):
    """How a route median was obtained."""
    EXACT = "exact"          # route-level pool with IQR filtering
    PROVINCE = "province"    # province-level pool with IQR filtering
    RAW = "raw"              # sparse pool used as-is, no filtering


@dataclass(frozen=True)
class RouteMedianResult:
    """Cleaned market median for one route key."""
    origin: str
    destination: str
    vehicle_type: str
    median: int
    sample_size: int
    filtered_size: int
    q1: int
    q3: int
    iqr: int
    lower_bound: int
    upper_bound: int
    confidence_score: float
    resolution: Resolution = Resolution.EXACT

    @property
    def is_fallback(self) -> bool:
        return self.resolution is not Resolution.EXACT

    @property
    def fallback_level(self) -> Optional[str]:
        return "province" if self.is_fallback else None

    def to_dict(self) -> dict:
        data = {
            "origin": self.origin,
            "destination": self.destination,
            "vehicleType": self.vehicle_type,
            "median": self.median,
            "sampleSize": self.sample_size,
            "filteredSize": self.filtered_size,
            "q1": self.q1,
            "q3": self.q3,
            "iqr": self.iqr,
            "lowerBound": self.lower_bound,
            "upperBound": self.upper_bound,
            "confidenceScore": self.confidence_score,
            "isFallback": self.is_fallback,
        }
        if self.fallback_level:
            data["fallbackLevel"] = self.fallback_level
        return data


@dataclass
class AnalysisSummary:
    """Aggregate view over a set of route medians."""
    total_routes: int
    exact_routes: int
    fallback_routes: int
    avg_confidence: float
    top_routes: list[RouteMedianResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalRoutes": self.total_routes,
            "exactRoutes": self.exact_routes,
            "fallbackRoutes": self.fallback_routes,
            "avgConfidence": self.avg_confidence,
            "topRoutes": [r.to_dict() for r in self.top_routes],
        }


# ── Cost variables ──────────────────────────────────────────────

COST_CATEGORIES = ('Variable', 'Fixed', 'Policy', 'Risk')


@dataclass
class CostVariable:
    """A named business variable from the cost master."""
    category: str
    item: str
    value: float
    unit: str
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "item": self.item,
            "value": self.value,
            "unit": self.unit,
            "description": self.description,
        }


@dataclass(frozen=True)
class CostVariables:
    """Resolved cost variables used by all three tiers."""
    fuel_price: float
    fuel_efficiency: float
    toll_rate: float
    vehicle_fixed_cost: float
    driver_profit_rate: float
    company_margin_rate: float
    freight_risk_fragile: float
    freight_risk_refrigerated: float
    freight_risk_hazardous: float

    def __post_init__(self):
        if not self.fuel_efficiency > 0:
            raise ValueError(f"fuel_efficiency must be positive, got {self.fuel_efficiency}")

    @classmethod
    def from_mapping(cls, values: dict, defaults: dict) -> 'CostVariables':
        """Build from an item → value map, filling gaps from defaults."""
        resolved = {}
        for name in cls.__dataclass_fields__:
            value = values.get(name)
            resolved[name] = float(value) if value is not None else float(defaults[name])
        return cls(**resolved)


# ── Requests and results ────────────────────────────────────────

@dataclass
class PricingRequest:
    """A request to price one route / vehicle / cargo combination."""
    origin: str
    destination: str
    vehicle_type: str
    freight_type: Optional[str] = None
    manual_adjustment_rate: float = 0.0

    @property
    def route_label(self) -> str:
        return f"{self.origin or '?'} → {self.destination or '?'}"

    def to_dict(self) -> dict:
        return {
            "origin": self.origin,
            "destination": self.destination,
            "vehicleType": self.vehicle_type,
            "freightType": self.freight_type,
            "manualAdjustmentRate": self.manual_adjustment_rate,
        }


@dataclass(frozen=True)
class DistanceEstimate:
    """Resolved route distance and where it came from."""
    distance_km: float
    source: str  # "lookup" or "haversine"

    @property
    def is_lookup(self) -> bool:
        return self.source == "lookup"


@dataclass
class Tier1Breakdown:
    """Cost-based pricing."""
    fuel_cost: int
    toll_cost: int
    fixed_cost: int
    driver_profit: int
    subtotal: int
    distance_km: float
    distance_source: str

    def to_dict(self) -> dict:
        return {
            "fuelCost": self.fuel_cost,
            "tollCost": self.toll_cost,
            "fixedCost": self.fixed_cost,
            "driverProfit": self.driver_profit,
            "subtotal": self.subtotal,
            "distanceKm": self.distance_km,
            "distanceSource": self.distance_source,
        }


@dataclass
class Tier2Breakdown:
    """Market overlay on the Tier 1 base."""
    market_median: Optional[int]
    adjustment_factor: float
    adjusted_price: int
    sample_size: int
    confidence_score: float
    is_fallback: bool
    has_market_data: bool

    def to_dict(self) -> dict:
        return {
            "marketMedian": self.market_median,
            "adjustmentFactor": self.adjustment_factor,
            "adjustedPrice": self.adjusted_price,
            "sampleSize": self.sample_size,
            "confidenceScore": self.confidence_score,
            "isFallback": self.is_fallback,
            "hasMarketData": self.has_market_data,
        }


@dataclass
class Tier3Breakdown:
    """Strategic finalization."""
    company_margin_rate: float
    company_margin: int
    freight_risk_rate: float
    freight_risk_surcharge: int
    manual_adjustment_rate: float
    manual_adjustment: int
    subtotal_before_rounding: int
    final_price: int

    def to_dict(self) -> dict:
        return {
            "companyMarginRate": self.company_margin_rate,
            "companyMargin": self.company_margin,
            "freightRiskRate": self.freight_risk_rate,
            "freightRiskSurcharge": self.freight_risk_surcharge,
            "manualAdjustmentRate": self.manual_adjustment_rate,
            "manualAdjustment": self.manual_adjustment,
            "subtotalBeforeRounding": self.subtotal_before_rounding,
            "finalPrice": self.final_price,
        }


@dataclass
class PricingSummary:
    tier1_base: int
    tier2_adjusted: int
    tier3_final: int
    overall_confidence: float
    data_sources: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "tier1_base": self.tier1_base,
            "tier2_adjusted": self.tier2_adjusted,
            "tier3_final": self.tier3_final,
            "overallConfidence": self.overall_confidence,
            "dataSources": list(self.data_sources),
        }


@dataclass
class PricingResult:
    """Complete result of a pricing calculation."""
    request: PricingRequest
    tier1: Tier1Breakdown
    tier2: Tier2Breakdown
    tier3: Tier3Breakdown
    summary: PricingSummary
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the result-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a result-level warning."""
        self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable result trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert to the external request/response contract."""
        return {
            "input": self.request.to_dict(),
            "tier1": self.tier1.to_dict(),
            "tier2": self.tier2.to_dict(),
            "tier3": self.tier3.to_dict(),
            "summary": self.summary.to_dict(),
            "warnings": list(self.warnings),
            "trace": [
                {"step": t.step, "description": t.description, "value": t.value}
                for t in self.trace
            ],
        }


@dataclass
class RouteStandard:
    """Persisted standard price for a route key."""
    origin: str
    destination: str
    vehicle_type: str
    base_price: int
    market_adjusted_price: int
    final_price: int
    confidence_score: float
    updated_at: Optional[str] = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.origin, self.destination, self.vehicle_type)

    @classmethod
    def from_result(cls, result: PricingResult) -> 'RouteStandard':
        return cls(
            origin=result.request.origin,
            destination=result.request.destination,
            vehicle_type=result.request.vehicle_type,
            base_price=result.summary.tier1_base,
            market_adjusted_price=result.summary.tier2_adjusted,
            final_price=result.summary.tier3_final,
            confidence_score=result.summary.overall_confidence,
        )

    def to_dict(self) -> dict:
        return {
            "origin": self.origin,
            "destination": self.destination,
            "vehicleType": self.vehicle_type,
            "basePrice": self.base_price,
            "marketAdjustedPrice": self.market_adjusted_price,
            "finalPrice": self.final_price,
            "confidenceScore": self.confidence_score,
            "updatedAt": self.updated_at,
        }


@dataclass
class BatchError:
    """A failed request inside a batch run."""
    index: int
    route: str
    message: str

    def to_dict(self) -> dict:
        return {"index": self.index, "route": self.route, "message": self.message}


@dataclass
class BatchResult:
    """Outcome of a batch run: successes plus per-request errors."""
    results: list[PricingResult] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "results": [r.to_dict() for r in self.results],
            "errors": [e.to_dict() for e in self.errors],
        }
