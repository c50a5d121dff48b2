"""Training session model: one row per training attempt, keyed by a client-supplied id."""

from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Integer, Text, JSON

from app.database import Base


class TrainingSession(Base):
    __tablename__ = "training_sessions"

    id = Column(String(64), primary_key=True)
    employee_id = Column(String(36), nullable=True, index=True)
    assignment_id = Column(String(36), nullable=True)
    company_id = Column(String(36), nullable=True, index=True)
    scenario_id = Column(String(36), nullable=True, index=True)
    session_name = Column(String(255), nullable=True)
    training_mode = Column(String(30), nullable=True)  # theory | service_practice | recommendation_tts
    language = Column(String(10), nullable=False, default="en")
    agent_id = Column(String(100), nullable=True)
    knowledge_context = Column(JSON, nullable=True)
    conversation_transcript = Column(JSON, nullable=False, default=list)
    session_duration_seconds = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)
    recording_preference = Column(String(20), nullable=False, default="none")  # none | audio | audio_video

    elevenlabs_conversation_id = Column(String(100), nullable=True, index=True)
    video_recording_url = Column(Text, nullable=True)
    audio_recording_url = Column(Text, nullable=True)
    audio_file_size = Column(Integer, nullable=True)

    theory_assessment_results = Column(JSON, nullable=True)
    assessment_status = Column(String(20), nullable=True)  # pending | completed | failed
    assessment_completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
