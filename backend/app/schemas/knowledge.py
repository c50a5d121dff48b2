"""Knowledge base schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DocumentCreate(BaseModel):
    company_id: str
    title: str
    content: str
    category_id: Optional[str] = None
    item_count: Optional[str] = None


class DocumentResponse(BaseModel):
    id: str
    company_id: str
    category_id: Optional[str]
    title: str
    content: str
    item_count: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class TopicResponse(BaseModel):
    id: str
    company_id: str
    name: str
    category: str
    description: Optional[str]

    class Config:
        from_attributes = True


class GenerateQuestionsRequest(BaseModel):
    company_id: Optional[str] = None
    document_ids: list[str] = []
    category_ids: list[str] = []
    question_count: int = 3
    difficulty: str = "beginner"
    question_type: str = "mixed"
    focus_areas: list[str] = []
