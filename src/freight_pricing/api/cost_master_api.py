"""
Cost Master API - FastAPI router for cost variable management.
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional

from ..engine.models import CostVariable
from ..services.base import StoreError
from .state import AppState, get_state, upload_response

router = APIRouter(prefix="/api/cost-master", tags=["cost-master"])


# Pydantic models for API
class CostVariableCreate(BaseModel):
    """Request model for creating a cost variable."""
    category: str
    item: str
    value: float
    unit: str
    description: str = ""


class CostVariableUpdate(BaseModel):
    """Request model for updating a cost variable."""
    category: Optional[str] = None
    value: Optional[float] = None
    unit: Optional[str] = None
    description: Optional[str] = None


class CostVariableResponse(BaseModel):
    """Response model for a cost variable."""
    category: str
    item: str
    value: float
    unit: str
    description: str


class CsvImportRequest(BaseModel):
    """CSV text to import."""
    csv_text: str


# Endpoints

@router.get("", response_model=list[CostVariableResponse])
async def list_variables(state: AppState = Depends(get_state)):
    """List all cost variables."""
    try:
        variables = state.cost_master.list_variables()
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
    return [CostVariableResponse(**v.__dict__) for v in variables]


@router.get("/{item}", response_model=CostVariableResponse)
async def get_variable(item: str, state: AppState = Depends(get_state)):
    """Get a single cost variable by item name."""
    variable = state.cost_master.get_variable(item)
    if not variable:
        raise HTTPException(status_code=404, detail=f"Cost item '{item}' not found")
    return CostVariableResponse(**variable.__dict__)


@router.post("", response_model=CostVariableResponse)
async def create_variable(data: CostVariableCreate, state: AppState = Depends(get_state)):
    """Create a new cost variable."""
    try:
        created = state.cost_master.create_variable(CostVariable(**data.model_dump()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
    return CostVariableResponse(**created.__dict__)


@router.put("/{item}", response_model=CostVariableResponse)
async def update_variable(item: str, updates: CostVariableUpdate, state: AppState = Depends(get_state)):
    """Update an existing cost variable."""
    if state.cost_master.get_variable(item) is None:
        raise HTTPException(status_code=404, detail=f"Cost item '{item}' not found")
    try:
        updated = state.cost_master.update_variable(item, updates.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
    return CostVariableResponse(**updated.__dict__)


@router.delete("/{item}")
async def delete_variable(item: str, state: AppState = Depends(get_state)):
    """Delete a cost variable."""
    try:
        state.cost_master.delete_variable(item)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Database error: {e}")
    return {"success": True, "message": f"Cost item '{item}' deleted"}


@router.post("/import")
async def import_variables(req: CsvImportRequest, state: AppState = Depends(get_state)):
    """Upsert cost variables from CSV text."""
    return upload_response(state.cost_master.import_csv(req.csv_text))
