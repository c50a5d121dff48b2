"""Scenario and assignment request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ScenarioCreate(BaseModel):
    track_id: Optional[str] = None
    company_id: Optional[str] = None
    title: str = ""
    description: str = ""
    scenario_type: str = "service_practice"  # theory | service_practice | recommendations
    template_type: str = "general_flow"
    client_behavior: Optional[str] = None
    expected_response: Optional[str] = None
    difficulty: str = "beginner"
    estimated_duration_minutes: int = 30
    session_time_limit_minutes: int = 10
    milestones: list[str] = []
    knowledge_document_ids: list[str] = []
    topic_ids: list[str] = []
    recommendation_question_ids: list[str] = []
    instructions: Optional[str] = None
    customer_emotion_level: str = "calm"
    voice_id: str = "random"


class ScenarioUpdate(BaseModel):
    track_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    scenario_type: Optional[str] = None
    template_type: Optional[str] = None
    client_behavior: Optional[str] = None
    expected_response: Optional[str] = None
    difficulty: Optional[str] = None
    estimated_duration_minutes: Optional[int] = None
    session_time_limit_minutes: Optional[int] = None
    milestones: Optional[list[str]] = None
    knowledge_document_ids: Optional[list[str]] = None
    topic_ids: Optional[list[str]] = None
    recommendation_question_ids: Optional[list[str]] = None
    instructions: Optional[str] = None
    customer_emotion_level: Optional[str] = None
    voice_id: Optional[str] = None
    is_active: Optional[bool] = None


class ScenarioResponse(BaseModel):
    id: str
    company_id: str
    track_id: str
    title: str
    description: str
    scenario_type: str
    template_type: str
    client_behavior: Optional[str]
    expected_response: Optional[str]
    difficulty: str
    estimated_duration_minutes: int
    session_time_limit_minutes: int
    milestones: list[str]
    knowledge_document_ids: list[str]
    topic_ids: list[str]
    recommendation_question_ids: list[str]
    instructions: Optional[str]
    customer_emotion_level: str
    voice_id: str
    display_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReorderRequest(BaseModel):
    scenario_ids: list[str]


class AssignmentCreate(BaseModel):
    employee_id: Optional[str] = None
    scenario_id: Optional[str] = None
    notes: Optional[str] = None


class AssignmentResponse(BaseModel):
    id: str
    employee_id: str
    scenario_id: str
    assigned_by: str
    status: str
    notes: Optional[str]
    assigned_at: datetime

    class Config:
        from_attributes = True
