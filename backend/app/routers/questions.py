"""Questions router: per-question attempts and topic mastery."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth import get_current_user
from app.models.user import User
from app.schemas.question import QuestionAttemptCreate
from app.services import question_service

router = APIRouter(prefix="/api/questions", tags=["questions"])


@router.post("/record-question-attempt")
def record_question_attempt(
    req: QuestionAttemptCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not (req.training_session_id and req.employee_id and req.question_id and req.question_asked):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields: training_session_id, employee_id, question_id, question_asked",
        )

    attempt, progress = question_service.record_attempt(db, **req.model_dump())
    return {
        "success": True,
        "attempt_id": attempt.id,
        "mastery_level": progress.mastery_level if progress else None,
        "is_mastered": bool(progress and progress.mastered_at),
    }


@router.get("/question-progress")
def question_progress(
    employee_id: str = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    progress = question_service.get_progress(db, employee_id)
    return {"success": True, "progress": progress, "count": len(progress)}
