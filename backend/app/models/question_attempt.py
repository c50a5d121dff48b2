"""Question attempts and the per-employee, per-topic mastery they roll up into."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Integer, Float, Text, Boolean, UniqueConstraint

from app.database import Base


class QuestionAttempt(Base):
    __tablename__ = "question_attempts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    training_session_id = Column(String(64), nullable=True, index=True)
    employee_id = Column(String(36), nullable=False, index=True)
    topic_id = Column(String(36), nullable=True, index=True)
    question_id = Column(String(36), nullable=False)
    question_asked = Column(Text, nullable=False)
    employee_answer = Column(Text, nullable=True)
    correct_answer = Column(Text, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    points_earned = Column(Integer, nullable=False, default=0)
    time_spent_seconds = Column(Integer, nullable=True)
    attempt_number = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))


class EmployeeTopicProgress(Base):
    __tablename__ = "employee_topic_progress"
    __table_args__ = (UniqueConstraint("employee_id", "topic_id", name="uq_progress_employee_topic"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    employee_id = Column(String(36), nullable=False, index=True)
    topic_id = Column(String(36), nullable=False)
    total_attempts = Column(Integer, nullable=False, default=0)
    correct_attempts = Column(Integer, nullable=False, default=0)
    mastery_level = Column(Float, nullable=False, default=0.0)
    last_attempt_at = Column(DateTime, nullable=True)
    mastered_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))
