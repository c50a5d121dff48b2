"""Voice API request schemas."""

from typing import Optional

from pydantic import BaseModel, Field


class TranscriptRequest(BaseModel):
    conversation_id: str = Field(alias="conversationId")

    class Config:
        populate_by_name = True


class TTSRequest(BaseModel):
    text: str
    language: str = "en"
    voice_id: Optional[str] = None


class WebhookData(BaseModel):
    agent_id: Optional[str] = None
    conversation_id: Optional[str] = None
    full_audio: Optional[str] = None

    class Config:
        extra = "allow"


class WebhookPayload(BaseModel):
    type: Optional[str] = None
    data: Optional[WebhookData] = None

    class Config:
        extra = "allow"
