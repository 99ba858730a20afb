from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from ..engine.analysis import summarize_analysis
from ..engine.models import PricingRequest
from ..services.base import StoreError
from .cost_master_api import router as cost_master_router
from .market_data_api import router as market_data_router
from .state import AppState, get_state

app = FastAPI(
    title="Freight Pricing API",
    description="Standard freight pricing via the Fundamental Pricing Hierarchy",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(cost_master_router)
app.include_router(market_data_router)


class CalcRequest(BaseModel):
    """Request model for pricing one route."""
    model_config = ConfigDict(populate_by_name=True)

    origin: Optional[str] = None
    destination: Optional[str] = None
    vehicle_type: Optional[str] = Field(default=None, alias="vehicleType")
    freight_type: Optional[str] = Field(default=None, alias="freightType")
    manual_adjustment_rate: float = Field(default=0.0, alias="manualAdjustmentRate")

    def to_request(self) -> PricingRequest:
        return PricingRequest(
            origin=self.origin,
            destination=self.destination,
            vehicle_type=self.vehicle_type,
            freight_type=self.freight_type,
            manual_adjustment_rate=self.manual_adjustment_rate,
        )


class BatchRequest(BaseModel):
    """Request model for pricing many routes."""
    requests: list[CalcRequest]


@app.get("/")
async def root():
    return {"status": "online", "message": "Freight Pricing API Active"}


@app.post("/calculate")
async def calculate_price(req: CalcRequest, save: bool = False, state: AppState = Depends(get_state)):
    """Price one route; with save=true also upsert its route standard."""
    request = req.to_request()
    try:
        if save:
            outcome = state.engine.calculate_and_save(request)
            response = outcome.result.to_dict()
            response["saved"] = outcome.saved
            if outcome.error:
                response["saveError"] = outcome.error
            return response
        return state.engine.calculate(request).to_dict()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


@app.post("/batch")
async def run_batch(req: BatchRequest, save: bool = False, state: AppState = Depends(get_state)):
    """Price a list of routes; failures are reported per request."""
    batch = state.runner.run_batch([r.to_request() for r in req.requests], save=save)
    return batch.to_dict()


@app.get("/analysis")
async def get_analysis(vehicle_type: Optional[str] = None, top_n: int = 10, state: AppState = Depends(get_state)):
    """Route median analysis over all stored market data."""
    try:
        observations = state.market_data.list_observations(vehicle_type)
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
    results = state.engine.analyzer.analyze(observations)
    return summarize_analysis(results, top_n=top_n).to_dict()


@app.get("/system/status")
async def get_status(state: AppState = Depends(get_state)):
    """Dashboard counts and key cost variables."""
    try:
        fuel = state.cost_master.get_variable("fuel_price")
        margin = state.cost_master.get_variable("company_margin_rate")
        driver = state.cost_master.get_variable("driver_profit_rate")
        return {
            "engine_active": True,
            "market_data_count": state.market_data.count(),
            "cost_master_count": state.cost_master.count(),
            "route_standard_count": state.route_standards.count(),
            "fuel_price": fuel.value if fuel else None,
            "company_margin_rate": margin.value if margin else None,
            "driver_profit_rate": driver.value if driver else None,
            "unique_routes": state.market_data.unique_routes(),
        }
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
