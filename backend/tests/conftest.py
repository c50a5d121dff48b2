"""Shared fixtures: in-memory database, fake integrations and a wired TestClient."""

import asyncio
import os
import sys
import tempfile

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="recordings-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.dependencies import get_scorer, get_storage, get_voice_client
from app.main import app
from app.middleware.auth import get_current_user, hash_password
from app.models.user import Company, User
from app.services.storage import RecordingStorage


class FakeVoiceClient:
    """Records every call; behaviour is set per test through attributes."""

    def __init__(self):
        self.calls = []
        self.messages = [
            {"role": "assistant", "content": "What is the price of a large latte?", "timestamp": 0},
            {"role": "user", "content": "A large latte costs four fifty.", "timestamp": 4000},
        ]
        self.duration = 95
        self.transcript_error = None
        self.delete_error = None

    async def fetch_transcript(self, conversation_id, max_retries=5):
        self.calls.append(("fetch_transcript", conversation_id))
        if self.transcript_error:
            raise self.transcript_error
        return {
            "conversation_id": conversation_id,
            "messages": self.messages,
            "duration_seconds": self.duration,
            "raw": {},
        }

    async def delete_conversation(self, conversation_id):
        self.calls.append(("delete_conversation", conversation_id))
        if self.delete_error:
            raise self.delete_error

    async def get_conversation_token(self, agent_id):
        self.calls.append(("get_conversation_token", agent_id))
        return "token-123"

    async def synthesize_speech(self, text, voice_id=None):
        self.calls.append(("synthesize_speech", text))
        return b"ID3-fake-mp3"


class FakeScorer:
    def __init__(self, result=None, error=None, delay=0.0):
        self.calls = []
        self.result = result if result is not None else {
            "success": True,
            "assessmentResults": [],
            "summary": {"totalQuestions": 1, "correctAnswers": 1, "score": 90},
        }
        self.error = error
        self.delay = delay

    async def assess(self, db, session_id, employee_id, transcript):
        self.calls.append(session_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def company(db_session):
    company = Company(id="c1", name="Corner Cafe")
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture
def manager(db_session, company):
    user = User(
        id="m1",
        email="manager@cafe.test",
        password_hash=hash_password("secret-pass"),
        name="Maria Manager",
        role="manager",
        company_id=company.id,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def employee(db_session, company):
    user = User(
        id="e1",
        email="employee@cafe.test",
        password_hash=hash_password("secret-pass"),
        name="Eli Employee",
        role="employee",
        company_id=company.id,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def voice_client():
    return FakeVoiceClient()


@pytest.fixture
def scorer():
    return FakeScorer()


@pytest.fixture
def storage(tmp_path):
    return RecordingStorage(root=str(tmp_path), public_url="http://testserver/storage", bucket="training-recordings")


@pytest.fixture
def client(db_session, manager, voice_client, scorer, storage):
    """TestClient acting as `manager`, with every integration faked."""
    app.dependency_overrides[get_db] = lambda: db_session
    app.dependency_overrides[get_current_user] = lambda: manager
    app.dependency_overrides[get_voice_client] = lambda: voice_client
    app.dependency_overrides[get_scorer] = lambda: scorer
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(db_session):
    """TestClient with real authentication."""
    app.dependency_overrides[get_db] = lambda: db_session
    yield TestClient(app)
    app.dependency_overrides.clear()

