"""Session recorder: creates the stub row at session start and writes the full record at the end.

Rows are keyed by the id the client generated before the conversation began,
so repeated calls with the same id address the same row.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.models.training_session import TrainingSession
from app.services.errors import AnalysisRequiredError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TRAINING_MODES = ("theory", "service_practice", "recommendation_tts")

MODE_DISPLAY_NAMES = {
    "theory": "Theory Q&A",
    "service_practice": "Service Practice",
    "recommendation_tts": "Recommendation",
    "recommendation": "Recommendation",
}

# Values a column takes when a full-row save omits it
COLUMN_DEFAULTS = {
    "language": "en",
    "conversation_transcript": list,
    "session_duration_seconds": 0,
    "recording_preference": "none",
}

# Bookkeeping columns a save never overwrites
PRESERVED_COLUMNS = ("id", "created_at")


def mode_display_name(training_mode: str) -> str:
    return MODE_DISPLAY_NAMES.get(training_mode, training_mode)


def _column_default(name: str):
    default = COLUMN_DEFAULTS.get(name)
    return default() if callable(default) else default


def get_session(db: Session, session_id: str) -> TrainingSession:
    session = db.get(TrainingSession, session_id)
    if session is None:
        raise NotFoundError("Session not found")
    return session


def _unanalyzed_previous_theory_session(
    db: Session, session_id: str, employee_id: str, scenario_id: str
) -> Optional[TrainingSession]:
    previous = (
        db.query(TrainingSession)
        .filter(
            TrainingSession.employee_id == employee_id,
            TrainingSession.scenario_id == scenario_id,
            TrainingSession.training_mode == "theory",
            TrainingSession.id != session_id,
        )
        .order_by(TrainingSession.started_at.desc())
        .first()
    )
    if previous is not None and previous.assessment_status != "completed":
        return previous
    return None


def start_session(
    db: Session,
    session_id: str,
    employee_id: str,
    assignment_id: str,
    company_id: str,
    training_mode: str,
    scenario_id: Optional[str] = None,
    language: Optional[str] = None,
    agent_id: Optional[str] = None,
) -> tuple[TrainingSession, bool]:
    """Insert a stub row for a new attempt.

    Returns (session, created). A second start with an existing id leaves
    the stored row untouched and returns created=False.
    """
    if not all([session_id, employee_id, assignment_id, company_id, training_mode]):
        raise ValidationError(
            "Missing required fields: sessionId, employeeId, assignmentId, companyId, trainingMode"
        )

    existing = db.get(TrainingSession, session_id)
    if existing is not None:
        logger.warning("Session %s already exists - skipping duplicate creation", session_id)
        return existing, False

    if training_mode == "theory" and scenario_id:
        try:
            blocking = _unanalyzed_previous_theory_session(db, session_id, employee_id, scenario_id)
        except Exception:
            # A failed lookup must not stop the employee from training
            logger.exception("Could not check previous theory sessions for %s", employee_id)
            db.rollback()
            blocking = None
        if blocking is not None:
            logger.warning("Blocked theory session %s: %s not analyzed yet", session_id, blocking.id)
            raise AnalysisRequiredError(
                "ANALYSIS_REQUIRED",
                details="You must analyze your previous theory session before starting a new one",
                blocking_session_id=blocking.id,
                blocking_session_name=blocking.session_name,
                requires_analysis=True,
            )

    now = datetime.now(timezone.utc)
    session = TrainingSession(
        id=session_id,
        employee_id=employee_id,
        assignment_id=assignment_id,
        company_id=company_id,
        scenario_id=scenario_id,
        session_name=f"{mode_display_name(training_mode)} Session - In Progress",
        training_mode=training_mode,
        language=language or "en",
        agent_id=agent_id or "unknown",
        knowledge_context=None,
        conversation_transcript=[],
        session_duration_seconds=0,
        started_at=now,
        ended_at=now,
        recording_preference="none",
        created_at=now,
    )
    db.add(session)
    db.commit()
    db.refresh(session)
    logger.info("Session start recorded: %s (%s)", session_id, training_mode)
    return session, True


def save_or_update_session(db: Session, record: dict) -> TrainingSession:
    """Upsert a complete session record by id.

    The write replaces the whole row: columns missing from `record` go back
    to their defaults rather than keeping earlier values.
    """
    session_id = record.get("id")
    if not session_id:
        raise ValidationError("Session id is required")

    session = db.get(TrainingSession, session_id)
    created = session is None
    if created:
        session = TrainingSession(id=session_id, created_at=record.get("created_at") or datetime.now(timezone.utc))
        db.add(session)

    for column in TrainingSession.__table__.columns:
        if column.name in PRESERVED_COLUMNS:
            continue
        value = record.get(column.name)
        if value is None and (column.name not in record or not column.nullable):
            value = _column_default(column.name)
        setattr(session, column.name, value)

    db.commit()
    db.refresh(session)
    logger.info("Session %s %s", session_id, "inserted" if created else "overwritten")
    return session


def list_unanalyzed_sessions(db: Session, employee_id: str) -> list[TrainingSession]:
    """Theory sessions for an employee whose assessment has not completed."""
    return (
        db.query(TrainingSession)
        .filter(
            TrainingSession.employee_id == employee_id,
            TrainingSession.training_mode == "theory",
            (TrainingSession.assessment_status.is_(None)) | (TrainingSession.assessment_status != "completed"),
        )
        .order_by(TrainingSession.started_at.desc())
        .all()
    )


def serialize_session(session: TrainingSession) -> dict:
    data = {}
    for column in TrainingSession.__table__.columns:
        value = getattr(session, column.name)
        data[column.name] = value.isoformat() if isinstance(value, datetime) else value
    return data
