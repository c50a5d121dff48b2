"""Scenario and scenario-assignment models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text, Boolean, JSON, UniqueConstraint

from app.database import Base


class Scenario(Base):
    __tablename__ = "scenarios"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    track_id = Column(String(36), nullable=False, index=True)
    title = Column(String(500), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    scenario_type = Column(String(30), nullable=False, default="service_practice")  # theory | service_practice | recommendations
    template_type = Column(String(40), nullable=False, default="general_flow")
    client_behavior = Column(Text, nullable=True)
    expected_response = Column(Text, nullable=True)
    difficulty = Column(String(20), nullable=False, default="beginner")
    estimated_duration_minutes = Column(Integer, nullable=False, default=30)
    session_time_limit_minutes = Column(Integer, nullable=False, default=10)
    milestones = Column(JSON, nullable=False, default=list)
    knowledge_document_ids = Column(JSON, nullable=False, default=list)
    topic_ids = Column(JSON, nullable=False, default=list)
    recommendation_question_ids = Column(JSON, nullable=False, default=list)
    instructions = Column(Text, nullable=True)
    customer_emotion_level = Column(String(30), nullable=False, default="calm")
    voice_id = Column(String(100), nullable=False, default="random")
    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))


class ScenarioAssignment(Base):
    __tablename__ = "scenario_assignments"
    __table_args__ = (UniqueConstraint("employee_id", "scenario_id", name="uq_assignment_employee_scenario"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    employee_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    scenario_id = Column(String(36), ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=False)
    assigned_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(String(20), nullable=False, default="assigned")  # assigned | in_progress | completed
    notes = Column(Text, nullable=True)
    assigned_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
