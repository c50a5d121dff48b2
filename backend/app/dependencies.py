"""Dependencies for the process-wide integration clients.

The objects are built once at application startup and stored on
`app.state`; handlers receive them through these functions so tests can
substitute fakes with `app.dependency_overrides`.
"""

from fastapi import Request

from app.agents.theory_assessor import TheoryAssessor
from app.services.storage import RecordingStorage
from app.services.voice_client import VoiceClient


def get_voice_client(request: Request) -> VoiceClient:
    return request.app.state.voice_client


def get_storage(request: Request) -> RecordingStorage:
    return request.app.state.storage


def get_scorer(request: Request) -> TheoryAssessor:
    return request.app.state.scorer
