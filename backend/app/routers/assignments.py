"""Assignments router: which scenarios each employee has to complete."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth import get_current_user, require_manager
from app.models.user import User
from app.schemas.scenario import AssignmentCreate, AssignmentResponse, ScenarioResponse
from app.services import scenario_service
from app.services.errors import ServiceError

router = APIRouter(prefix="/api/scenario-assignments", tags=["assignments"])


@router.get("")
def list_assignments(
    employee_id: str = Query(""),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """An employee's assignments, newest first, each with its scenario."""
    try:
        rows = scenario_service.list_assignments(db, employee_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {
        "success": True,
        "assignments": [
            {
                **AssignmentResponse.model_validate(a).model_dump(mode="json"),
                "scenario": ScenarioResponse.model_validate(s).model_dump(mode="json"),
            }
            for a, s in rows
        ],
    }


@router.post("", status_code=201)
def create_assignment(
    req: AssignmentCreate,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    try:
        assignment = scenario_service.assign_scenario(
            db,
            employee_id=req.employee_id,
            scenario_id=req.scenario_id,
            assigned_by=manager.id,
            notes=req.notes,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {
        "success": True,
        "assignment": AssignmentResponse.model_validate(assignment).model_dump(mode="json"),
        "message": "Scenario assigned successfully",
    }
