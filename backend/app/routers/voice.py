"""Voice router: conversation tokens, transcripts and text-to-speech."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from app.config import settings
from app.dependencies import get_voice_client
from app.middleware.rate_limit import limiter
from app.schemas.voice import TranscriptRequest, TTSRequest
from app.services.errors import ServiceError
from app.services.voice_client import VoiceClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["voice"])


@router.get("/elevenlabs/elevenlabs-token")
@limiter.limit(settings.DEMO_RATE_LIMIT)
async def conversation_token(
    request: Request,
    agent_id: str = Query(...),
    voice_client: VoiceClient = Depends(get_voice_client),
):
    """Issue a conversation token for the browser widget."""
    try:
        token = await voice_client.get_conversation_token(agent_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {"success": True, "token": token, "agent_id": agent_id}


@router.post("/elevenlabs-conversation-transcript")
@router.post("/elevenlabs/elevenlabs-conversation-transcript")
async def conversation_transcript(
    req: TranscriptRequest,
    voice_client: VoiceClient = Depends(get_voice_client),
):
    """Fetch and normalise a conversation transcript, waiting for it to materialise."""
    try:
        fetched = await voice_client.fetch_transcript(req.conversation_id, max_retries=settings.TRANSCRIPT_MAX_RETRIES)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_detail())
    return {
        "success": True,
        "conversation_id": req.conversation_id,
        "messages": fetched["messages"],
        "message_count": len(fetched["messages"]),
        "duration_seconds": fetched["duration_seconds"],
    }


@router.post("/elevenlabs-tts")
async def text_to_speech(
    req: TTSRequest,
    voice_client: VoiceClient = Depends(get_voice_client),
):
    if not req.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    try:
        audio = await voice_client.synthesize_speech(req.text, voice_id=req.voice_id)
    except ServiceError as e:
        raise HTTPException(status_code=500, detail=e.message)
    logger.info("Generated %d bytes of speech (%s)", len(audio), req.language)
    return Response(
        content=audio,
        media_type="audio/mpeg",
        headers={"Cache-Control": "public, max-age=3600"},
    )
