"""Company settings schemas."""

from typing import Optional

from pydantic import BaseModel


class CompanySettingsUpdate(BaseModel):
    company_id: Optional[str] = None
    default_training_language: Optional[str] = None
    ui_language: Optional[str] = None
    theory_recording_options: Optional[list[str]] = None
    service_practice_recording_options: Optional[list[str]] = None
    recommendation_recording_options: Optional[list[str]] = None
    show_session_names_to_employees: Optional[bool] = None


class CompanySettingsResponse(BaseModel):
    company_id: str
    default_training_language: str
    ui_language: str
    theory_recording_options: list[str]
    service_practice_recording_options: list[str]
    recommendation_recording_options: list[str]
    show_session_names_to_employees: bool

    class Config:
        from_attributes = True
