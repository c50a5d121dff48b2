"""Question attempt schemas."""

from typing import Optional

from pydantic import BaseModel


class QuestionAttemptCreate(BaseModel):
    training_session_id: Optional[str] = None
    employee_id: Optional[str] = None
    topic_id: Optional[str] = None
    question_id: Optional[str] = None
    question_asked: Optional[str] = None
    employee_answer: Optional[str] = None
    correct_answer: Optional[str] = None
    is_correct: bool = False
    points_earned: int = 0
    time_spent_seconds: Optional[int] = None
    attempt_number: int = 1
