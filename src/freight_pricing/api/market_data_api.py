"""
Market Data API - FastAPI router for market price imports and stats.
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..services.base import StoreError
from .state import AppState, get_state, upload_response

router = APIRouter(prefix="/api/market-data", tags=["market-data"])


class CsvImportRequest(BaseModel):
    """CSV text to import."""
    csv_text: str


@router.get("/stats")
async def get_stats(state: AppState = Depends(get_state)):
    """Get market data statistics."""
    try:
        return state.market_data.get_stats()
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")


@router.post("/import")
async def import_market_data(req: CsvImportRequest, state: AppState = Depends(get_state)):
    """Append market observations from CSV text and return the fresh analysis."""
    return upload_response(state.market_data.import_csv(req.csv_text))


@router.delete("")
async def clear_market_data(state: AppState = Depends(get_state)):
    """Delete all market observations."""
    try:
        deleted = state.market_data.clear()
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
    return {"deleted": deleted}
