"""Engine subpackage - market analysis, distance resolution and FPH pricing."""
from .pricing_engine import PricingEngine, SaveOutcome
from .batch import BatchRunner
from .analysis import MarketDataAnalyzer
from .route_distance import RouteDistanceResolver
from .models import PricingRequest, PricingResult, MarketObservation, CostVariables

__all__ = [
    'PricingEngine', 'SaveOutcome', 'BatchRunner', 'MarketDataAnalyzer',
    'RouteDistanceResolver', 'PricingRequest', 'PricingResult',
    'MarketObservation', 'CostVariables',
]
