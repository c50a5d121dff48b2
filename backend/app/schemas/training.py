"""Training session request schemas.

The dashboard posts camelCase keys for start/analyze calls and raw column
names for full session saves; both spellings are accepted where they differ.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class StartSessionRequest(BaseModel):
    # Presence is checked by the recorder so the error names every missing field
    session_id: Optional[str] = Field(None, alias="sessionId")
    employee_id: Optional[str] = Field(None, alias="employeeId")
    assignment_id: Optional[str] = Field(None, alias="assignmentId")
    company_id: Optional[str] = Field(None, alias="companyId")
    scenario_id: Optional[str] = Field(None, alias="scenarioId")
    training_mode: Optional[str] = Field(None, alias="trainingMode")
    language: Optional[str] = None
    agent_id: Optional[str] = Field(None, alias="agentId")

    class Config:
        populate_by_name = True


class SessionRecord(BaseModel):
    id: Optional[str] = None
    employee_id: Optional[str] = None
    assignment_id: Optional[str] = None
    company_id: Optional[str] = None
    scenario_id: Optional[str] = None
    session_name: Optional[str] = None
    training_mode: Optional[str] = None
    language: Optional[str] = None
    agent_id: Optional[str] = None
    knowledge_context: Optional[Any] = None
    conversation_transcript: Optional[list[dict]] = None
    session_duration_seconds: Optional[int] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    recording_preference: Optional[str] = None
    elevenlabs_conversation_id: Optional[str] = None
    video_recording_url: Optional[str] = None
    audio_recording_url: Optional[str] = None
    audio_file_size: Optional[int] = None

    class Config:
        extra = "ignore"


class AnalyzeSessionRequest(BaseModel):
    session_id: Optional[str] = Field(None, alias="sessionId")
    force_reanalysis: bool = Field(False, alias="forceReAnalysis")

    class Config:
        populate_by_name = True


class AssessTheoryRequest(BaseModel):
    session_id: str = Field(alias="sessionId")
    user_id: Optional[str] = Field(None, alias="userId")
    transcript: list[dict]

    class Config:
        populate_by_name = True


class DeleteSessionRequest(BaseModel):
    session_id: str = Field(alias="sessionId")

    class Config:
        populate_by_name = True
