"""Question service: records answered questions and rolls them into topic mastery."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.models.question_attempt import QuestionAttempt, EmployeeTopicProgress
from app.models.knowledge import KnowledgeTopic

MASTERY_THRESHOLD = 0.8
MASTERY_MIN_ATTEMPTS = 3


def apply_attempt(progress: EmployeeTopicProgress, is_correct: bool, now: datetime) -> EmployeeTopicProgress:
    """Fold one attempt into a progress row.

    A topic is mastered at >= 80% correct over at least 3 attempts. `mastered_at`
    moves to `now` on every attempt that meets the threshold and is left as is
    when mastery dips below it.
    """
    progress.total_attempts = (progress.total_attempts or 0) + 1
    progress.correct_attempts = (progress.correct_attempts or 0) + (1 if is_correct else 0)
    progress.mastery_level = progress.correct_attempts / progress.total_attempts
    progress.last_attempt_at = now
    if progress.mastery_level >= MASTERY_THRESHOLD and progress.total_attempts >= MASTERY_MIN_ATTEMPTS:
        progress.mastered_at = now
    progress.updated_at = now
    return progress


def record_attempt(
    db: Session,
    training_session_id: Optional[str],
    employee_id: str,
    question_id: str,
    question_asked: str,
    topic_id: Optional[str] = None,
    employee_answer: Optional[str] = None,
    correct_answer: Optional[str] = None,
    is_correct: bool = False,
    points_earned: int = 0,
    time_spent_seconds: Optional[int] = None,
    attempt_number: int = 1,
) -> tuple[QuestionAttempt, Optional[EmployeeTopicProgress]]:
    """Insert a question attempt and, when the topic is known, update topic progress."""
    now = datetime.now(timezone.utc)
    attempt = QuestionAttempt(
        training_session_id=training_session_id,
        employee_id=employee_id,
        topic_id=topic_id,
        question_id=question_id,
        question_asked=question_asked,
        employee_answer=employee_answer,
        correct_answer=correct_answer,
        is_correct=bool(is_correct),
        points_earned=points_earned,
        time_spent_seconds=time_spent_seconds,
        attempt_number=attempt_number,
        created_at=now,
    )
    db.add(attempt)

    progress = None
    if topic_id:
        progress = (
            db.query(EmployeeTopicProgress)
            .filter(EmployeeTopicProgress.employee_id == employee_id, EmployeeTopicProgress.topic_id == topic_id)
            .first()
        )
        if progress is None:
            progress = EmployeeTopicProgress(employee_id=employee_id, topic_id=topic_id)
            db.add(progress)
        apply_attempt(progress, bool(is_correct), now)

    db.commit()
    db.refresh(attempt)
    return attempt, progress


def get_progress(db: Session, employee_id: str) -> list[dict]:
    """Per-topic mastery for one employee, topic names included."""
    rows = (
        db.query(EmployeeTopicProgress, KnowledgeTopic)
        .outerjoin(KnowledgeTopic, EmployeeTopicProgress.topic_id == KnowledgeTopic.id)
        .filter(EmployeeTopicProgress.employee_id == employee_id)
        .order_by(EmployeeTopicProgress.updated_at.desc())
        .all()
    )
    return [
        {
            "topic_id": progress.topic_id,
            "topic_name": topic.name if topic else None,
            "topic_category": topic.category if topic else None,
            "total_attempts": progress.total_attempts,
            "correct_attempts": progress.correct_attempts,
            "mastery_level": progress.mastery_level,
            "is_mastered": progress.mastered_at is not None,
            "mastered_at": progress.mastered_at.isoformat() if progress.mastered_at else None,
            "last_attempt_at": progress.last_attempt_at.isoformat() if progress.last_attempt_at else None,
        }
        for progress, topic in rows
    ]
