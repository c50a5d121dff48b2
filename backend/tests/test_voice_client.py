"""Tests for the ElevenLabs client: transcript formatting and retry behaviour."""

import asyncio
import os
import sys

import httpx
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.services.errors import TranscriptUnavailableError, VoiceApiError
from app.services.voice_client import VoiceClient, format_transcript

CONVERSATION = {
    "transcript": [
        {"role": "agent", "message": "Welcome! What comes in a flat white?", "time_in_call_secs": 1.5},
        {"role": "user", "message": "Espresso and steamed milk.", "time_in_call_secs": 6},
        {"role": "agent", "message": "   ", "time_in_call_secs": 8},
    ],
    "metadata": {"call_duration_secs": 42},
}


def make_client(handler, sleeps, api_key="test-key"):
    async def fake_sleep(delay):
        sleeps.append(delay)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://voice.test")
    return VoiceClient(api_key=api_key, http=http, sleep=fake_sleep)


class TestFormatTranscript:
    """Test mapping of provider turns onto internal messages."""

    def test_maps_roles_and_timestamps(self):
        messages = format_transcript(CONVERSATION)
        assert messages[0] == {
            "role": "assistant",
            "content": "Welcome! What comes in a flat white?",
            "timestamp": 1500,
        }
        assert messages[1]["role"] == "user"
        assert messages[1]["timestamp"] == 6000

    def test_drops_empty_turns(self):
        assert len(format_transcript(CONVERSATION)) == 2

    def test_missing_transcript(self):
        assert format_transcript({}) == []


class TestGetConversation:
    """Test the bounded retry loop."""

    def test_success_first_try(self):
        sleeps = []
        client = make_client(lambda request: httpx.Response(200, json=CONVERSATION), sleeps)
        result = asyncio.run(client.fetch_transcript("conv-1"))
        assert len(result["messages"]) == 2
        assert result["duration_seconds"] == 42
        assert sleeps == []

    def test_sends_api_key_header(self):
        seen = {}

        def handler(request):
            seen["key"] = request.headers.get("xi-api-key")
            return httpx.Response(200, json=CONVERSATION)

        asyncio.run(make_client(handler, []).get_conversation("conv-1"))
        assert seen["key"] == "test-key"

    def test_retries_not_found_then_succeeds(self):
        sleeps = []
        responses = iter([httpx.Response(404), httpx.Response(401), httpx.Response(200, json=CONVERSATION)])
        client = make_client(lambda request: next(responses), sleeps)
        result = asyncio.run(client.get_conversation("conv-1"))
        assert result["metadata"]["call_duration_secs"] == 42
        assert sleeps == [1, 2]

    def test_persistent_unauthorized_exhausts_retries(self):
        sleeps = []
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(401, text="unauthorized")

        client = make_client(handler, sleeps)
        with pytest.raises(TranscriptUnavailableError) as exc_info:
            asyncio.run(client.get_conversation("conv-1", max_retries=5))

        assert len(calls) == 5
        assert sleeps == [1, 2, 4, 8]
        assert exc_info.value.status_code == 503
        assert exc_info.value.extra["retryable"] is True

    def test_network_errors_are_retried(self):
        sleeps = []
        attempts = []

        def handler(request):
            attempts.append(1)
            if len(attempts) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=CONVERSATION)

        asyncio.run(make_client(handler, sleeps).get_conversation("conv-1"))
        assert sleeps == [1, 2]

    def test_server_error_is_not_retried(self):
        sleeps = []
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(500, text="boom")

        with pytest.raises(VoiceApiError) as exc_info:
            asyncio.run(make_client(handler, sleeps).get_conversation("conv-1"))

        assert len(calls) == 1
        assert sleeps == []
        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "boom"

    def test_missing_api_key(self):
        client = make_client(lambda request: httpx.Response(200, json=CONVERSATION), [], api_key="")
        with pytest.raises(VoiceApiError) as exc_info:
            asyncio.run(client.get_conversation("conv-1"))
        assert "not configured" in exc_info.value.message


class TestDeleteConversation:
    """Test remote conversation deletion."""

    def test_already_deleted_counts_as_success(self):
        client = make_client(lambda request: httpx.Response(404), [])
        asyncio.run(client.delete_conversation("conv-1"))

    def test_other_errors_raise(self):
        client = make_client(lambda request: httpx.Response(403, text="forbidden"), [])
        with pytest.raises(VoiceApiError):
            asyncio.run(client.delete_conversation("conv-1"))


class TestSynthesizeSpeech:
    def test_returns_audio_bytes(self):
        def handler(request):
            assert request.url.path.startswith("/v1/text-to-speech/")
            return httpx.Response(200, content=b"mp3-bytes")

        assert asyncio.run(make_client(handler, []).synthesize_speech("Hello")) == b"mp3-bytes"
