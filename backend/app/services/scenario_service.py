"""Scenario service: scenario CRUD, ordering and assignment to employees."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.models.scenario import Scenario, ScenarioAssignment
from app.models.user import User
from app.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SCENARIO_TYPES = ("theory", "service_practice", "recommendations")

UPDATABLE_FIELDS = (
    "track_id",
    "title",
    "description",
    "scenario_type",
    "template_type",
    "client_behavior",
    "expected_response",
    "difficulty",
    "estimated_duration_minutes",
    "session_time_limit_minutes",
    "milestones",
    "knowledge_document_ids",
    "topic_ids",
    "recommendation_question_ids",
    "instructions",
    "customer_emotion_level",
    "voice_id",
    "is_active",
)


def validate_scenario(data: dict) -> None:
    """Type-specific required fields."""
    if not data.get("track_id") or not data.get("company_id"):
        raise ValidationError("track_id and company_id are required")

    scenario_type = data.get("scenario_type", "service_practice")
    if scenario_type not in SCENARIO_TYPES:
        raise ValidationError(f"Unknown scenario_type '{scenario_type}'")

    if scenario_type == "service_practice":
        if not data.get("title"):
            raise ValidationError("Situation is required for service practice scenarios")
        if not data.get("client_behavior") or not data.get("expected_response"):
            raise ValidationError(
                "For service practice scenarios: client_behavior and expected_response are required"
            )
    elif scenario_type == "theory":
        if not data.get("topic_ids"):
            raise ValidationError("At least one topic must be selected for theory scenarios")
    elif scenario_type == "recommendations":
        if not data.get("recommendation_question_ids"):
            raise ValidationError(
                "At least one recommendation question must be selected for recommendations scenarios"
            )


def create_scenario(db: Session, data: dict) -> Scenario:
    validate_scenario(data)

    # New scenarios go to the end of their track
    last = (
        db.query(Scenario)
        .filter(Scenario.track_id == data["track_id"])
        .order_by(Scenario.display_order.desc())
        .first()
    )
    scenario = Scenario(
        company_id=data["company_id"],
        display_order=(last.display_order + 1) if last else 0,
        **{k: v for k, v in data.items() if k in UPDATABLE_FIELDS and v is not None},
    )
    db.add(scenario)
    db.commit()
    db.refresh(scenario)
    logger.info("Created %s scenario %s", scenario.scenario_type, scenario.id)
    return scenario


def get_scenario(db: Session, scenario_id: str) -> Scenario:
    scenario = db.query(Scenario).filter(Scenario.id == scenario_id).first()
    if not scenario:
        raise NotFoundError("Scenario not found")
    return scenario


def list_scenarios(
    db: Session,
    company_id: Optional[str] = None,
    track_id: Optional[str] = None,
) -> list[Scenario]:
    if not company_id and not track_id:
        raise ValidationError("Either company_id or track_id parameter is required")
    query = db.query(Scenario).filter(Scenario.is_active.is_(True))
    if track_id:
        query = query.filter(Scenario.track_id == track_id)
    else:
        query = query.filter(Scenario.company_id == company_id)
    return query.order_by(Scenario.display_order.asc(), Scenario.created_at.asc()).all()


def update_scenario(db: Session, scenario_id: str, changes: dict) -> Scenario:
    scenario = get_scenario(db, scenario_id)
    for key, value in changes.items():
        if key in UPDATABLE_FIELDS:
            setattr(scenario, key, value)

    merged = {c.name: getattr(scenario, c.name) for c in Scenario.__table__.columns}
    try:
        validate_scenario(merged)
    except ValidationError:
        db.rollback()
        raise

    db.commit()
    db.refresh(scenario)
    return scenario


def delete_scenario(db: Session, scenario_id: str) -> None:
    scenario = get_scenario(db, scenario_id)
    db.query(ScenarioAssignment).filter(ScenarioAssignment.scenario_id == scenario_id).delete()
    db.delete(scenario)
    db.commit()


def reorder_scenarios(db: Session, scenario_ids: list[str]) -> int:
    """Set display_order from each id's position in `scenario_ids`."""
    if not scenario_ids:
        raise ValidationError("scenario_ids must be a non-empty list")
    scenarios = {s.id: s for s in db.query(Scenario).filter(Scenario.id.in_(scenario_ids)).all()}
    missing = [sid for sid in scenario_ids if sid not in scenarios]
    if missing:
        raise NotFoundError(f"Scenarios not found: {', '.join(missing)}")
    for position, sid in enumerate(scenario_ids):
        scenarios[sid].display_order = position
    db.commit()
    return len(scenario_ids)


# ── Assignments ──────────────────────────────────────────────────────────────

def assign_scenario(
    db: Session,
    employee_id: str,
    scenario_id: str,
    assigned_by: str,
    notes: Optional[str] = None,
) -> ScenarioAssignment:
    if not employee_id or not scenario_id or not assigned_by:
        raise ValidationError("Employee ID, scenario ID, and assigned_by are required")

    employee = db.query(User).filter(User.id == employee_id).first()
    if not employee:
        raise ValidationError(f"Employee not found in database. Employee ID: {employee_id}")
    if not db.query(Scenario).filter(Scenario.id == scenario_id).first():
        raise ValidationError("Scenario not found. Please select a valid scenario.")

    existing = (
        db.query(ScenarioAssignment)
        .filter(ScenarioAssignment.employee_id == employee_id, ScenarioAssignment.scenario_id == scenario_id)
        .first()
    )
    if existing:
        raise ValidationError("This scenario is already assigned to this employee")

    assignment = ScenarioAssignment(
        employee_id=employee_id,
        scenario_id=scenario_id,
        assigned_by=assigned_by,
        notes=notes,
    )
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    logger.info("Assigned scenario %s to %s", scenario_id, employee_id)
    return assignment


def list_assignments(db: Session, employee_id: str) -> list[tuple[ScenarioAssignment, Scenario]]:
    if not employee_id:
        raise ValidationError("Employee ID is required")
    return (
        db.query(ScenarioAssignment, Scenario)
        .join(Scenario, ScenarioAssignment.scenario_id == Scenario.id)
        .filter(ScenarioAssignment.employee_id == employee_id)
        .order_by(ScenarioAssignment.assigned_at.desc())
        .all()
    )
