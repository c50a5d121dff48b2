"""Per-company training preferences."""

from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean, JSON

from app.database import Base


class CompanySettings(Base):
    __tablename__ = "company_settings"

    company_id = Column(String(36), ForeignKey("companies.id"), primary_key=True)
    default_training_language = Column(String(10), nullable=False, default="en")
    ui_language = Column(String(10), nullable=False, default="en")
    theory_recording_options = Column(JSON, nullable=False, default=lambda: ["audio"])
    service_practice_recording_options = Column(JSON, nullable=False, default=lambda: ["audio"])
    recommendation_recording_options = Column(JSON, nullable=False, default=lambda: ["audio_video"])
    show_session_names_to_employees = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))
