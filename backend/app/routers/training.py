"""Training router: session start, save, lookup and deletion."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_storage, get_voice_client
from app.middleware.auth import get_current_user, require_manager
from app.models.user import User
from app.schemas.training import DeleteSessionRequest, SessionRecord, StartSessionRequest
from app.services import recording_service, session_recorder
from app.services.errors import ServiceError
from app.services.storage import RecordingStorage
from app.services.voice_client import VoiceClient

router = APIRouter(prefix="/api", tags=["training"])


@router.post("/training/start-training-session")
def start_training_session(
    req: StartSessionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Record that an attempt started; a repeated start is a no-op."""
    try:
        session, created = session_recorder.start_session(
            db,
            session_id=req.session_id,
            employee_id=req.employee_id,
            assignment_id=req.assignment_id,
            company_id=req.company_id,
            training_mode=req.training_mode,
            scenario_id=req.scenario_id,
            language=req.language,
            agent_id=req.agent_id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())

    if not created:
        return {"success": True, "message": "Session already exists", "session_id": session.id}
    return {"success": True, "session_id": session.id}


@router.post("/save-training-session")
@router.post("/training/save-training-session")
def save_training_session(
    record: SessionRecord,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Insert or fully overwrite a session record."""
    try:
        session = session_recorder.save_or_update_session(db, record.model_dump(exclude_unset=True))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {"success": True, "session": session_recorder.serialize_session(session)}


@router.get("/training-session/{session_id}")
def get_training_session(
    session_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        session = session_recorder.get_session(db, session_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {"success": True, "session": session_recorder.serialize_session(session)}


@router.get("/training/unanalyzed-sessions")
def unanalyzed_sessions(
    employee_id: str = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Theory sessions that still need an assessment run."""
    sessions = session_recorder.list_unanalyzed_sessions(db, employee_id)
    return {
        "success": True,
        "sessions": [
            {
                "id": s.id,
                "session_name": s.session_name,
                "scenario_id": s.scenario_id,
                "started_at": s.started_at.isoformat() if s.started_at else None,
                "assessment_status": s.assessment_status,
                "has_conversation": bool(s.elevenlabs_conversation_id),
            }
            for s in sessions
        ],
        "count": len(sessions),
    }


@router.post("/delete-training-session")
async def delete_training_session(
    req: DeleteSessionRequest,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
    voice_client: VoiceClient = Depends(get_voice_client),
    storage: RecordingStorage = Depends(get_storage),
):
    """Delete a session plus its remote conversation and recordings (manager only)."""
    try:
        outcome = await recording_service.delete_session(db, req.session_id, manager, voice_client, storage)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())

    return {
        "success": True,
        "deleted": {a.name: a.ok for a in outcome.auxiliary},
        "errors": outcome.warnings or None,
    }
