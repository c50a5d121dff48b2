"""Scenarios router: CRUD and ordering of training scenarios."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth import get_current_user, require_manager
from app.models.user import User
from app.schemas.scenario import ReorderRequest, ScenarioCreate, ScenarioResponse, ScenarioUpdate
from app.services import scenario_service
from app.services.errors import ServiceError

router = APIRouter(prefix="/api/scenarios", tags=["scenarios"])


@router.get("")
def list_scenarios(
    company_id: Optional[str] = Query(None),
    track_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        scenarios = scenario_service.list_scenarios(db, company_id=company_id, track_id=track_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {
        "success": True,
        "scenarios": [ScenarioResponse.model_validate(s).model_dump(mode="json") for s in scenarios],
    }


@router.post("", status_code=201)
def create_scenario(
    req: ScenarioCreate,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    """Create a scenario; company defaults to the manager's own."""
    data = req.model_dump()
    data["company_id"] = data.get("company_id") or manager.company_id
    try:
        scenario = scenario_service.create_scenario(db, data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {"success": True, "scenario": ScenarioResponse.model_validate(scenario).model_dump(mode="json")}


@router.post("/reorder")
def reorder_scenarios(
    req: ReorderRequest,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    try:
        updated = scenario_service.reorder_scenarios(db, req.scenario_ids)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {"success": True, "updated": updated}


@router.get("/{scenario_id}")
def get_scenario(
    scenario_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        scenario = scenario_service.get_scenario(db, scenario_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {"success": True, "scenario": ScenarioResponse.model_validate(scenario).model_dump(mode="json")}


@router.put("/{scenario_id}")
def update_scenario(
    scenario_id: str,
    req: ScenarioUpdate,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    try:
        scenario = scenario_service.update_scenario(db, scenario_id, req.model_dump(exclude_unset=True))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {"success": True, "scenario": ScenarioResponse.model_validate(scenario).model_dump(mode="json")}


@router.delete("/{scenario_id}")
def delete_scenario(
    scenario_id: str,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    """Delete a scenario together with its assignments."""
    try:
        scenario_service.delete_scenario(db, scenario_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {"success": True, "message": "Scenario deleted"}
