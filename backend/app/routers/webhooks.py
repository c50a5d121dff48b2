"""Webhook router: asynchronous callbacks from the voice-conversation API."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_storage
from app.schemas.voice import WebhookData, WebhookPayload
from app.services import recording_service
from app.services.errors import ServiceError
from app.services.storage import RecordingStorage, StorageError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["webhooks"])


@router.post("/elevenlabs-webhook")
async def elevenlabs_webhook(
    payload: WebhookPayload,
    db: Session = Depends(get_db),
    storage: RecordingStorage = Depends(get_storage),
):
    """Handle post-call audio; acknowledge every other event type without acting on it.

    Application-level mismatches (no session for the conversation) are
    acknowledged with 200 so the sender does not retry them.
    """
    if payload.type != "post_call_audio":
        logger.info("Unhandled webhook type: %s", payload.type)
        return {"success": True, "message": "Webhook received", "type": payload.type}

    data = payload.data or WebhookData()
    try:
        linked = await recording_service.attach_post_call_audio(db, storage, data.conversation_id, data.full_audio)
    except ServiceError as e:
        logger.error("Rejected post-call audio webhook: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    except StorageError as e:
        logger.error("Failed to upload audio for %s: %s", data.conversation_id, e)
        raise HTTPException(status_code=500, detail="Upload failed")

    if linked is None:
        return {
            "success": True,
            "message": "Webhook received but no matching session found",
            "conversation_id": data.conversation_id,
        }
    return {"success": True, "message": "Audio processed successfully", **linked}
