"""
Shared application state for the API: one set of stores and one engine
per process. Tests swap it out through FastAPI dependency overrides.
"""
from typing import Optional

from fastapi import HTTPException

from ..config.settings import Settings, get_settings
from ..engine import BatchRunner, PricingEngine
from ..services.cost_master_service import CostMasterService
from ..services.market_data_service import MarketDataService
from ..services.route_standard_service import RouteStandardService


class AppState:
    """Stores plus the engine and batch runner wired to them."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.cost_master = CostMasterService(self.settings.cost_master_csv)
        self.market_data = MarketDataService(self.settings.market_data_csv, self.settings.policy)
        self.route_standards = RouteStandardService(self.settings.route_standard_csv)
        self.engine = PricingEngine(
            settings=self.settings,
            cost_provider=self.cost_master,
            market_data=self.market_data,
            route_standards=self.route_standards,
        )
        self.runner = BatchRunner(self.engine)


_state: Optional[AppState] = None


def get_state() -> AppState:
    """Get the process-wide application state."""
    global _state
    if _state is None:
        _state = AppState()
    return _state


def upload_response(result) -> dict:
    """Map an UploadResult onto the HTTP contract: 500 for store failures, 400 for bad CSV."""
    if not result.success:
        store_failure = any(e.startswith("Database error") for e in result.errors)
        raise HTTPException(status_code=500 if store_failure else 400, detail=result.to_dict())
    return result.to_dict()
