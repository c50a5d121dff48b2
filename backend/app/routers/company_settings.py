"""Company settings router: per-company language and recording preferences."""

import copy
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth import get_current_user, require_manager
from app.models.company_settings import CompanySettings
from app.models.user import User
from app.schemas.company_settings import CompanySettingsResponse, CompanySettingsUpdate

router = APIRouter(prefix="/api/company-settings", tags=["company-settings"])

DEFAULT_SETTINGS = {
    "default_training_language": "en",
    "ui_language": "en",
    "theory_recording_options": ["audio"],
    "service_practice_recording_options": ["audio"],
    "recommendation_recording_options": ["audio_video"],
    "show_session_names_to_employees": True,
}


@router.get("")
def get_company_settings(
    company_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Stored settings, or the defaults when the company has none yet."""
    company_id = company_id or current_user.company_id
    if not company_id:
        raise HTTPException(status_code=400, detail="company_id is required")

    row = db.get(CompanySettings, company_id)
    if row is None:
        return {"success": True, "settings": {"company_id": company_id, **copy.deepcopy(DEFAULT_SETTINGS)}}
    return {"success": True, "settings": CompanySettingsResponse.model_validate(row).model_dump()}


@router.post("")
def update_company_settings(
    req: CompanySettingsUpdate,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    company_id = req.company_id or manager.company_id
    if not company_id:
        raise HTTPException(status_code=400, detail="company_id is required")
    if company_id != manager.company_id:
        raise HTTPException(status_code=403, detail="Cannot change settings of another company")

    row = db.get(CompanySettings, company_id)
    if row is None:
        row = CompanySettings(company_id=company_id, **copy.deepcopy(DEFAULT_SETTINGS))
        db.add(row)
    for key, value in req.model_dump(exclude_unset=True, exclude={"company_id"}).items():
        if value is not None:
            setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return {"success": True, "settings": CompanySettingsResponse.model_validate(row).model_dump()}
