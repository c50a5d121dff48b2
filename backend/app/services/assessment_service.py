"""Assessment cache: reuse a stored assessment or fetch, score and store a fresh one.

Every external dependency degrades gracefully: a scorer timeout or error
produces a `failed` record rather than an error response, and failing to
write the cache never hides a freshly computed result from the caller.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from app.models.training_session import TrainingSession
from app.services.errors import NotFoundError, ValidationError
from app.services.outcomes import OperationOutcome
from app.services.voice_client import VoiceClient

logger = logging.getLogger(__name__)

MIN_ANSWER_LENGTH = 10


class Scorer(Protocol):
    async def assess(
        self, db: Session, session_id: str, employee_id: Optional[str], transcript: list[dict]
    ) -> dict: ...


def count_qa_exchanges(messages: list[dict]) -> int:
    """Rough count of question/answer pairs for display.

    An assistant turn ending in "?" followed directly by a user turn longer
    than ten characters counts as one pair.
    """
    pairs = 0
    for current, nxt in zip(messages, messages[1:]):
        question = (current.get("content") or current.get("message") or "").strip()
        answer = (nxt.get("content") or nxt.get("message") or "").strip()
        if (
            current.get("role") == "assistant"
            and nxt.get("role") == "user"
            and question.endswith("?")
            and len(answer) > MIN_ANSWER_LENGTH
        ):
            pairs += 1
    return pairs


def transcript_summary(messages: list[dict], qa_pairs: int) -> dict:
    return {
        "total_messages": len(messages),
        "user_messages": sum(1 for m in messages if m.get("role") == "user"),
        "assistant_messages": sum(1 for m in messages if m.get("role") == "assistant"),
        "qa_pairs_found": qa_pairs,
        "transcript": messages,
    }


def cache_assessment(db: Session, session: TrainingSession, results: dict, status: str) -> None:
    session.theory_assessment_results = results
    session.assessment_status = status
    session.assessment_completed_at = datetime.now(timezone.utc)
    db.commit()


async def _run_scorer(
    scorer: Scorer, db: Session, session: TrainingSession, messages: list[dict], timeout: float
) -> Optional[dict]:
    try:
        return await asyncio.wait_for(
            scorer.assess(db, session_id=session.id, employee_id=session.employee_id, transcript=messages),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.error("Assessment for session %s timed out after %s seconds", session.id, timeout)
    except Exception as e:
        logger.error("Assessment for session %s failed: %s", session.id, e)
    return None


async def analyze_session(
    db: Session,
    session_id: str,
    voice_client: VoiceClient,
    scorer: Scorer,
    force_reanalysis: bool = False,
    timeout: float = 45.0,
    max_retries: int = 5,
) -> OperationOutcome:
    """Return the session's assessment, computing and caching it when needed."""
    if not session_id:
        raise ValidationError("Session ID is required")

    session = db.get(TrainingSession, session_id)
    if session is None:
        raise NotFoundError("Session not found")

    cached = session.theory_assessment_results
    if not force_reanalysis and session.assessment_status == "completed" and cached:
        logger.info("Using cached assessment for session %s", session_id)
        transcript = session.conversation_transcript or []
        return OperationOutcome(result={
            "session_id": session_id,
            "transcript_analysis": transcript_summary(transcript, cached.get("processedExchanges", 0)),
            "assessment": cached,
            "from_cache": True,
            "cached_at": session.assessment_completed_at.isoformat() if session.assessment_completed_at else None,
        })

    if not session.elevenlabs_conversation_id:
        raise ValidationError("No ElevenLabs conversation ID found for this session")

    fetched = await voice_client.fetch_transcript(session.elevenlabs_conversation_id, max_retries=max_retries)
    messages = fetched["messages"]
    if not messages:
        raise NotFoundError("No transcript messages found")

    outcome = OperationOutcome(result=None)

    try:
        session.conversation_transcript = messages
        session.session_duration_seconds = int(fetched["duration_seconds"] or 0)
        session.assessment_status = "pending"
        db.commit()
        outcome.record("update_transcript", True)
    except Exception as e:
        db.rollback()
        logger.warning("Failed to store fresh transcript for session %s: %s", session_id, e)
        outcome.record("update_transcript", False, str(e))

    assessment = await _run_scorer(scorer, db, session, messages, timeout)

    qa_pairs = count_qa_exchanges(messages)
    analyzed_at = datetime.now(timezone.utc).isoformat()
    results = {**(assessment or {}), "processedExchanges": qa_pairs, "analyzedAt": analyzed_at}
    status = "completed" if assessment and assessment.get("success") else "failed"

    try:
        cache_assessment(db, session, results, status)
        outcome.record("cache_assessment", True)
        logger.info("Cached %s assessment for session %s", status, session_id)
    except Exception as e:
        db.rollback()
        logger.warning("Failed to cache assessment for session %s: %s", session_id, e)
        outcome.record("cache_assessment", False, str(e))

    outcome.result = {
        "session_id": session_id,
        "transcript_analysis": transcript_summary(messages, qa_pairs),
        "assessment": results,
        "assessment_status": status,
        "from_cache": False,
        "analyzed_at": analyzed_at,
    }
    return outcome
