"""Tests for the assessment cache and the transcript-analysis endpoint."""

import asyncio
import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.models.training_session import TrainingSession
from app.services import assessment_service
from app.services.assessment_service import analyze_session, count_qa_exchanges
from app.services.errors import NotFoundError, TranscriptUnavailableError, ValidationError
from conftest import FakeScorer


def add_session(db, session_id="s1", **fields):
    values = dict(
        id=session_id,
        employee_id="e1",
        company_id="c1",
        training_mode="theory",
        elevenlabs_conversation_id="conv-1",
    )
    values.update(fields)
    session = TrainingSession(**values)
    db.add(session)
    db.commit()
    return session


def run(db, voice_client, scorer, session_id="s1", **kwargs):
    return asyncio.run(analyze_session(db, session_id, voice_client=voice_client, scorer=scorer, **kwargs))


class TestCountQaExchanges:
    """Test the display heuristic for question/answer pairs."""

    def test_counts_question_followed_by_answer(self):
        messages = [
            {"role": "assistant", "content": "How many shots go in a doppio?"},
            {"role": "user", "content": "Two espresso shots."},
        ]
        assert count_qa_exchanges(messages) == 1

    def test_short_answer_is_ignored(self):
        messages = [
            {"role": "assistant", "content": "Is oat milk extra?"},
            {"role": "user", "content": "Yes."},
        ]
        assert count_qa_exchanges(messages) == 0

    def test_question_must_end_with_question_mark(self):
        messages = [
            {"role": "assistant", "content": "Why? Tell me about the house blend."},
            {"role": "user", "content": "It is a medium roast from Brazil."},
        ]
        assert count_qa_exchanges(messages) == 0

    def test_empty_transcript(self):
        assert count_qa_exchanges([]) == 0


class TestCachedAssessment:
    """Test that a completed assessment is served without external calls."""

    def test_cache_hit_makes_no_calls(self, db_session, voice_client, scorer):
        cached = {"success": True, "summary": {"score": 80}, "processedExchanges": 3}
        add_session(
            db_session,
            assessment_status="completed",
            theory_assessment_results=cached,
            assessment_completed_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
        )

        outcome = run(db_session, voice_client, scorer)

        assert voice_client.calls == []
        assert scorer.calls == []
        assert outcome.result["from_cache"] is True
        assert outcome.result["assessment"] == cached
        assert outcome.result["transcript_analysis"]["qa_pairs_found"] == 3

    def test_force_reanalysis_bypasses_cache(self, db_session, voice_client, scorer):
        add_session(
            db_session,
            assessment_status="completed",
            theory_assessment_results={"success": True},
        )
        outcome = run(db_session, voice_client, scorer, force_reanalysis=True)
        assert outcome.result["from_cache"] is False
        assert len(scorer.calls) == 1

    def test_failed_assessment_is_recomputed(self, db_session, voice_client, scorer):
        add_session(db_session, assessment_status="failed", theory_assessment_results={"success": False})
        outcome = run(db_session, voice_client, scorer)
        assert outcome.result["from_cache"] is False
        assert outcome.result["assessment_status"] == "completed"


class TestFreshAssessment:
    """Test fetch, score and store."""

    def test_completed_result_is_stored(self, db_session, voice_client, scorer):
        add_session(db_session)
        outcome = run(db_session, voice_client, scorer)

        session = db_session.get(TrainingSession, "s1")
        assert session.assessment_status == "completed"
        assert session.assessment_completed_at is not None
        assert session.theory_assessment_results["processedExchanges"] == 1
        assert session.theory_assessment_results["summary"]["score"] == 90
        assert session.conversation_transcript == voice_client.messages
        assert session.session_duration_seconds == 95
        assert outcome.failures == []

    def test_unsuccessful_scorer_result_is_failed(self, db_session, voice_client):
        add_session(db_session)
        run(db_session, voice_client, FakeScorer(result={"success": False, "error": "no pool"}))
        assert db_session.get(TrainingSession, "s1").assessment_status == "failed"

    def test_scorer_exception_is_failed(self, db_session, voice_client):
        add_session(db_session)
        outcome = run(db_session, voice_client, FakeScorer(error=RuntimeError("llm down")))
        assert outcome.result["assessment_status"] == "failed"
        assert db_session.get(TrainingSession, "s1").assessment_status == "failed"

    def test_scorer_timeout_is_failed(self, db_session, voice_client):
        add_session(db_session)
        outcome = run(db_session, voice_client, FakeScorer(delay=1.0), timeout=0.01)
        assert outcome.result["assessment_status"] == "failed"
        assert db_session.get(TrainingSession, "s1").assessment_status == "failed"

    def test_cache_write_failure_still_returns_result(self, db_session, voice_client, scorer, monkeypatch):
        add_session(db_session)

        def broken_cache(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(assessment_service, "cache_assessment", broken_cache)
        outcome = run(db_session, voice_client, scorer)

        assert outcome.result["assessment"]["success"] is True
        assert [f.name for f in outcome.failures] == ["cache_assessment"]
        assert "disk full" in outcome.warnings[0]

    def test_missing_conversation_id(self, db_session, voice_client, scorer):
        add_session(db_session, elevenlabs_conversation_id=None)
        with pytest.raises(ValidationError):
            run(db_session, voice_client, scorer)

    def test_unknown_session(self, db_session, voice_client, scorer):
        with pytest.raises(NotFoundError):
            run(db_session, voice_client, scorer, session_id="missing")

    def test_empty_transcript(self, db_session, voice_client, scorer):
        add_session(db_session)
        voice_client.messages = []
        with pytest.raises(NotFoundError):
            run(db_session, voice_client, scorer)
        assert scorer.calls == []


class TestAnalysisEndpoint:
    """Test the HTTP surface of transcript analysis."""

    def test_fresh_analysis(self, client, db_session):
        add_session(db_session)
        resp = client.post("/api/session-transcript-analysis", json={"sessionId": "s1"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["from_cache"] is False
        assert data["assessment_status"] == "completed"
        assert "warnings" not in data

    def test_transcript_unavailable_is_retryable(self, client, db_session, voice_client):
        add_session(db_session)
        voice_client.transcript_error = TranscriptUnavailableError()
        resp = client.post("/api/assessment/session-transcript-analysis", json={"sessionId": "s1"})
        assert resp.status_code == 503
        data = resp.json()
        assert data["success"] is False
        assert data["retryable"] is True
        assert db_session.get(TrainingSession, "s1").assessment_status is None

    def test_missing_session_id(self, client):
        resp = client.post("/api/session-transcript-analysis", json={})
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Session ID is required"}

    def test_assess_theory_directly(self, client, scorer):
        resp = client.post("/api/assess-theory-session", json={
            "sessionId": "s1",
            "userId": "e1",
            "transcript": [{"role": "assistant", "content": "Q?"}],
        })
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert scorer.calls == ["s1"]
