"""Tests for session start, full-row save and the theory analysis gate."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.models.training_session import TrainingSession
from app.services import session_recorder
from app.services.errors import AnalysisRequiredError, ValidationError


def start(db, session_id="s1", training_mode="service_practice", scenario_id="sc1", **overrides):
    kwargs = dict(
        session_id=session_id,
        employee_id="e1",
        assignment_id="a1",
        company_id="c1",
        training_mode=training_mode,
        scenario_id=scenario_id,
    )
    kwargs.update(overrides)
    return session_recorder.start_session(db, **kwargs)


class TestStartSession:
    """Test the stub row created when an attempt begins."""

    def test_creates_stub_row(self, db_session):
        session, created = start(db_session, training_mode="theory")
        assert created is True
        assert session.session_name == "Theory Q&A Session - In Progress"
        assert session.language == "en"
        assert session.agent_id == "unknown"
        assert session.conversation_transcript == []
        assert session.recording_preference == "none"

    def test_repeated_start_is_a_no_op(self, db_session):
        start(db_session, language="es")
        session, created = start(db_session, language="fr", agent_id="agent-x")
        assert created is False
        assert session.language == "es"
        assert session.agent_id == "unknown"
        assert db_session.query(TrainingSession).count() == 1

    def test_missing_fields(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            start(db_session, company_id=None)
        assert exc_info.value.status_code == 400
        assert "companyId" in exc_info.value.message

    def test_theory_blocked_by_unanalyzed_session(self, db_session):
        start(db_session, session_id="old", training_mode="theory")
        with pytest.raises(AnalysisRequiredError) as exc_info:
            start(db_session, session_id="new", training_mode="theory")

        err = exc_info.value
        assert err.status_code == 423
        assert err.extra["blocking_session_id"] == "old"
        assert err.extra["requires_analysis"] is True
        assert db_session.get(TrainingSession, "new") is None

    def test_theory_allowed_after_analysis(self, db_session):
        old, _ = start(db_session, session_id="old", training_mode="theory")
        old.assessment_status = "completed"
        db_session.commit()

        _, created = start(db_session, session_id="new", training_mode="theory")
        assert created is True

    def test_other_modes_are_not_gated(self, db_session):
        start(db_session, session_id="old", training_mode="theory")
        _, created = start(db_session, session_id="new", training_mode="service_practice")
        assert created is True


class TestSaveSession:
    """Test the full-row upsert written when an attempt ends."""

    def test_insert_new_row(self, db_session):
        session = session_recorder.save_or_update_session(db_session, {
            "id": "s1",
            "employee_id": "e1",
            "training_mode": "theory",
            "conversation_transcript": [],
        })
        assert session.employee_id == "e1"
        assert session.session_duration_seconds == 0

    def test_second_save_supersedes_first(self, db_session):
        session_recorder.save_or_update_session(db_session, {
            "id": "s1",
            "employee_id": "e1",
            "training_mode": "theory",
            "conversation_transcript": [],
        })
        session = session_recorder.save_or_update_session(db_session, {
            "id": "s1",
            "session_duration_seconds": 120,
        })
        assert session.session_duration_seconds == 120
        assert session.employee_id is None
        assert session.training_mode is None

    def test_repeating_fields_preserves_them(self, db_session):
        first = {"id": "s1", "employee_id": "e1", "language": "es"}
        session_recorder.save_or_update_session(db_session, first)
        session = session_recorder.save_or_update_session(db_session, {**first, "session_duration_seconds": 60})
        assert session.employee_id == "e1"
        assert session.language == "es"

    def test_omitted_defaulted_columns_revert(self, db_session):
        session_recorder.save_or_update_session(db_session, {
            "id": "s1",
            "language": "es",
            "recording_preference": "audio",
        })
        session = session_recorder.save_or_update_session(db_session, {"id": "s1"})
        assert session.language == "en"
        assert session.recording_preference == "none"

    def test_created_at_survives_overwrite(self, db_session):
        first = session_recorder.save_or_update_session(db_session, {"id": "s1"})
        created_at = first.created_at
        second = session_recorder.save_or_update_session(db_session, {"id": "s1", "session_name": "B"})
        assert second.created_at == created_at

    def test_requires_id(self, db_session):
        with pytest.raises(ValidationError):
            session_recorder.save_or_update_session(db_session, {"employee_id": "e1"})


class TestTrainingEndpoints:
    """Test the HTTP surface for session lifecycle."""

    def test_start_twice(self, client):
        body = {
            "sessionId": "s1",
            "employeeId": "e1",
            "assignmentId": "a1",
            "companyId": "c1",
            "trainingMode": "theory",
        }
        first = client.post("/api/training/start-training-session", json=body)
        assert first.status_code == 200
        assert first.json() == {"success": True, "session_id": "s1"}

        second = client.post("/api/training/start-training-session", json=body)
        assert second.status_code == 200
        assert second.json()["message"] == "Session already exists"

    def test_start_missing_fields_envelope(self, client):
        resp = client.post("/api/training/start-training-session", json={"sessionId": "s1"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False
        assert "Missing required fields" in resp.json()["error"]

    def test_start_blocked_envelope(self, client, db_session):
        start(db_session, session_id="old", training_mode="theory")
        resp = client.post("/api/training/start-training-session", json={
            "sessionId": "new",
            "employeeId": "e1",
            "assignmentId": "a1",
            "companyId": "c1",
            "trainingMode": "theory",
            "scenarioId": "sc1",
        })
        assert resp.status_code == 423
        data = resp.json()
        assert data["success"] is False
        assert data["error"] == "ANALYSIS_REQUIRED"
        assert data["blocking_session_id"] == "old"

    def test_save_and_fetch(self, client):
        resp = client.post("/api/save-training-session", json={
            "id": "s9",
            "employee_id": "e1",
            "training_mode": "service_practice",
            "conversation_transcript": [{"role": "user", "content": "Hi", "timestamp": 0}],
            "session_duration_seconds": 30,
            "started_at": "2026-01-05T10:00:00",
        })
        assert resp.status_code == 200
        assert resp.json()["session"]["session_duration_seconds"] == 30

        fetched = client.get("/api/training-session/s9").json()["session"]
        assert fetched["employee_id"] == "e1"
        assert fetched["started_at"].startswith("2026-01-05T10:00:00")

    def test_fetch_missing_session(self, client):
        resp = client.get("/api/training-session/nope")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Session not found"}

    def test_unanalyzed_sessions(self, client, db_session):
        start(db_session, session_id="t1", training_mode="theory")
        start(db_session, session_id="p1", training_mode="service_practice")
        data = client.get("/api/training/unanalyzed-sessions", params={"employee_id": "e1"}).json()
        assert data["count"] == 1
        assert data["sessions"][0]["id"] == "t1"
