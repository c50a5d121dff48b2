"""ElevenLabs Conversational AI client.

One instance is created per process (see app.main startup) and shared by
all requests. Every call authenticates with the static `xi-api-key` header.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from app.services.errors import TranscriptUnavailableError, VoiceApiError

logger = logging.getLogger(__name__)

# 401 is retried too: the API intermittently rejects valid keys right after a call ends
RETRYABLE_STATUSES = {401, 404}


def format_transcript(conversation: dict) -> list[dict]:
    """Map ElevenLabs transcript turns onto the internal {role, content, timestamp} shape.

    `agent` becomes `assistant`, `time_in_call_secs` becomes milliseconds and
    turns with no text are dropped.
    """
    turns = conversation.get("transcript") or []
    if isinstance(turns, dict):
        turns = turns.get("transcript") or []

    messages = []
    for turn in turns:
        content = turn.get("message") or ""
        if not content.strip():
            continue
        role = turn.get("role")
        messages.append({
            "role": "assistant" if role == "agent" else role,
            "content": content,
            "timestamp": int((turn.get("time_in_call_secs") or 0) * 1000),
        })
    return messages


class VoiceClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.elevenlabs.io",
        http: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        tts_voice_id: str = "pNInz6obpgDQGcFmaJgB",
        tts_model: str = "eleven_flash_v2_5",
    ):
        self.api_key = api_key
        self.http = http or httpx.AsyncClient(base_url=base_url, timeout=30.0)
        self._sleep = sleep
        self.tts_voice_id = tts_voice_id
        self.tts_model = tts_model

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self, **extra) -> dict:
        if not self.api_key:
            raise VoiceApiError(500, "", message="ElevenLabs API key not configured")
        return {"xi-api-key": self.api_key, **extra}

    async def aclose(self) -> None:
        await self.http.aclose()

    # ── Conversations ────────────────────────────────────────────────────────

    async def get_conversation_token(self, agent_id: str) -> str:
        """Issue a short-lived token the browser widget uses to join a conversation."""
        resp = await self.http.get(
            "/v1/convai/conversation/token",
            params={"agent_id": agent_id},
            headers=self._headers(),
        )
        if resp.status_code != 200:
            logger.error("Token request failed for agent %s: %s %s", agent_id, resp.status_code, resp.text)
            raise VoiceApiError(resp.status_code, resp.text, message=f"Token generation failed: {resp.reason_phrase}")
        return resp.json().get("token")

    async def get_conversation(self, conversation_id: str, max_retries: int = 5) -> dict:
        """GET a conversation, retrying 401/404/network errors with 2**attempt second backoff."""
        headers = self._headers()
        path = f"/v1/convai/conversations/{conversation_id}"

        for attempt in range(max_retries):
            last_attempt = attempt == max_retries - 1
            try:
                resp = await self.http.get(path, headers=headers)
            except httpx.TransportError as e:
                logger.warning("Attempt %d/%d for conversation %s failed: %s", attempt + 1, max_retries, conversation_id, e)
            else:
                if resp.status_code == 200:
                    return resp.json()
                if resp.status_code not in RETRYABLE_STATUSES:
                    logger.error("Voice API error for %s: %s %s", conversation_id, resp.status_code, resp.text)
                    raise VoiceApiError(resp.status_code, resp.text)
                logger.warning(
                    "Attempt %d/%d for conversation %s returned %s",
                    attempt + 1, max_retries, conversation_id, resp.status_code,
                )

            if not last_attempt:
                delay = 2 ** attempt
                logger.info("Retrying conversation %s in %ss", conversation_id, delay)
                await self._sleep(delay)

        logger.error("Transcript for %s unavailable after %d attempts", conversation_id, max_retries)
        raise TranscriptUnavailableError()

    async def fetch_transcript(self, conversation_id: str, max_retries: int = 5) -> dict:
        """Fetch a conversation and return its formatted transcript and call duration."""
        conversation = await self.get_conversation(conversation_id, max_retries=max_retries)
        messages = format_transcript(conversation)
        duration = (conversation.get("metadata") or {}).get("call_duration_secs") or 0
        logger.info("Fetched %d transcript messages (%ss) for %s", len(messages), duration, conversation_id)
        return {
            "conversation_id": conversation_id,
            "messages": messages,
            "duration_seconds": duration,
            "raw": conversation,
        }

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation. A 404 means it is already gone and counts as success."""
        resp = await self.http.delete(f"/v1/convai/conversations/{conversation_id}", headers=self._headers())
        if resp.status_code in (200, 204, 404):
            return
        raise VoiceApiError(resp.status_code, resp.text)

    # ── Text to speech ───────────────────────────────────────────────────────

    async def synthesize_speech(self, text: str, voice_id: Optional[str] = None) -> bytes:
        resp = await self.http.post(
            f"/v1/text-to-speech/{voice_id or self.tts_voice_id}",
            headers=self._headers(Accept="audio/mpeg"),
            json={
                "text": text,
                "model_id": self.tts_model,
                "voice_settings": {
                    "stability": 0.5,
                    "similarity_boost": 0.5,
                    "style": 0.0,
                    "use_speaker_boost": True,
                },
            },
        )
        if resp.status_code != 200:
            logger.error("TTS failed: %s %s", resp.status_code, resp.text)
            raise VoiceApiError(resp.status_code, resp.text, message="Failed to generate speech")
        return resp.content
