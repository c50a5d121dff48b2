"""Recording service: links post-call audio to sessions and removes sessions with their media."""

import base64
import binascii
import logging
import time
from typing import Optional

from sqlalchemy.orm import Session

from app.models.training_session import TrainingSession
from app.models.user import User
from app.services.errors import NotFoundError, PermissionDeniedError, ValidationError
from app.services.outcomes import OperationOutcome
from app.services.storage import RecordingStorage
from app.services.voice_client import VoiceClient

logger = logging.getLogger(__name__)

AUDIO_DIR = "recordings/audio"
VIDEO_DIR = "recordings/video"


def audio_object_path(session_id: str, timestamp_ms: Optional[int] = None) -> str:
    timestamp_ms = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"{AUDIO_DIR}/{session_id}-elevenlabs-audio-{timestamp_ms}.mp3"


def find_session_by_conversation(db: Session, conversation_id: str) -> Optional[TrainingSession]:
    return (
        db.query(TrainingSession)
        .filter(TrainingSession.elevenlabs_conversation_id == conversation_id)
        .first()
    )


def decode_audio(full_audio: str) -> bytes:
    """Decode base64 audio leniently: line breaks and missing padding are accepted."""
    compact = "".join(full_audio.split())
    compact += "=" * (-len(compact) % 4)
    try:
        audio = base64.b64decode(compact)
    except (binascii.Error, ValueError):
        raise ValidationError("full_audio is not valid base64")
    if not audio:
        raise ValidationError("full_audio is not valid base64")
    return audio


async def attach_post_call_audio(
    db: Session,
    storage: RecordingStorage,
    conversation_id: str,
    full_audio: str,
) -> Optional[dict]:
    """Store the call audio and link it to the matching session.

    Returns None when no session carries `conversation_id`; the audio is
    not decoded and nothing is written in that case.
    """
    if not conversation_id or not full_audio:
        raise ValidationError("Missing required fields")

    session = find_session_by_conversation(db, conversation_id)
    if session is None:
        logger.warning("No training session found for conversation ID: %s", conversation_id)
        return None

    audio = decode_audio(full_audio)
    logger.info("Post-call audio for %s: %d bytes", conversation_id, len(audio))

    path = await storage.upload(audio_object_path(session.id), audio, content_type="audio/mpeg")
    url = storage.get_public_url(path)

    session.audio_recording_url = url
    session.audio_file_size = len(audio)
    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to link audio to session %s; removing %s", session.id, path)
        await storage.remove([path])
        raise
    logger.info("Session %s linked to audio %s", session.id, url)

    return {
        "session_id": session.id,
        "conversation_id": conversation_id,
        "audio_url": url,
        "audio_size": len(audio),
    }


async def _remove_media(storage: RecordingStorage, url: str, name: str, outcome: OperationOutcome) -> None:
    path = storage.extract_path(url)
    if not path:
        logger.warning("Could not extract %s path from URL %s", name, url)
        outcome.record(name, False, f"Could not parse {name} URL")
        return
    try:
        await storage.remove([path])
        outcome.record(name, True)
    except Exception as e:
        logger.error("Failed to delete %s %s: %s", name, path, e)
        outcome.record(name, False, str(e))


async def delete_session(
    db: Session,
    session_id: str,
    manager: User,
    voice_client: VoiceClient,
    storage: RecordingStorage,
) -> OperationOutcome:
    """Delete a session on behalf of a manager of the same company.

    The remote conversation and stored media are removed first on a best
    effort basis; only the database delete decides success.
    """
    if manager.role != "manager":
        raise PermissionDeniedError("Only managers can delete sessions")

    session = db.get(TrainingSession, session_id)
    if session is None:
        raise NotFoundError("Session not found")
    if session.company_id != manager.company_id:
        raise PermissionDeniedError("You do not have permission to delete this session")

    outcome = OperationOutcome(result=session_id)

    if session.elevenlabs_conversation_id:
        try:
            await voice_client.delete_conversation(session.elevenlabs_conversation_id)
            outcome.record("elevenlabs_conversation", True)
        except Exception as e:
            logger.error("Failed to delete conversation %s: %s", session.elevenlabs_conversation_id, e)
            outcome.record("elevenlabs_conversation", False, str(e))

    if session.video_recording_url:
        await _remove_media(storage, session.video_recording_url, "video_recording", outcome)
    if session.audio_recording_url:
        await _remove_media(storage, session.audio_recording_url, "audio_recording", outcome)

    db.delete(session)
    db.commit()
    outcome.record("session", True)
    logger.info("Session %s deleted by %s (%d side-effect failures)", session_id, manager.id, len(outcome.failures))
    return outcome
