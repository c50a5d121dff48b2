"""Assessment router: transcript analysis with cached results."""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.dependencies import get_scorer, get_voice_client
from app.middleware.auth import get_current_user
from app.models.user import User
from app.schemas.training import AnalyzeSessionRequest, AssessTheoryRequest
from app.services import assessment_service
from app.services.errors import ServiceError
from app.services.voice_client import VoiceClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["assessment"])


@router.post("/session-transcript-analysis")
@router.post("/assessment/session-transcript-analysis")
async def session_transcript_analysis(
    req: AnalyzeSessionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    voice_client: VoiceClient = Depends(get_voice_client),
    scorer=Depends(get_scorer),
):
    """Return the cached assessment, or fetch the transcript and assess it now."""
    try:
        outcome = await assessment_service.analyze_session(
            db,
            req.session_id,
            voice_client=voice_client,
            scorer=scorer,
            force_reanalysis=req.force_reanalysis,
            timeout=settings.ASSESSMENT_TIMEOUT_SECONDS,
            max_retries=settings.TRANSCRIPT_MAX_RETRIES,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())

    response = {"success": True, **outcome.result}
    if outcome.failures:
        response["warnings"] = outcome.warnings
    return response


@router.post("/assess-theory-session")
async def assess_theory_session(
    req: AssessTheoryRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    scorer=Depends(get_scorer),
):
    """Score a transcript directly, without touching the session's cache."""
    try:
        result = await asyncio.wait_for(
            scorer.assess(db, session_id=req.session_id, employee_id=req.user_id, transcript=req.transcript),
            timeout=settings.ASSESSMENT_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="Assessment timed out")
    return result
