"""Tests for question attempts and topic mastery."""

import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.models.knowledge import KnowledgeTopic
from app.models.question_attempt import EmployeeTopicProgress, QuestionAttempt
from app.services.question_service import apply_attempt, get_progress, record_attempt

NOW = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


class TestApplyAttempt:
    """Test folding attempts into mastery."""

    def test_below_threshold_stays_unmastered(self):
        progress = EmployeeTopicProgress(total_attempts=2, correct_attempts=1)
        apply_attempt(progress, True, NOW)
        assert progress.total_attempts == 3
        assert progress.correct_attempts == 2
        assert progress.mastery_level == pytest.approx(0.667, abs=1e-3)
        assert progress.mastered_at is None

    def test_needs_minimum_attempts(self):
        progress = EmployeeTopicProgress(total_attempts=1, correct_attempts=1)
        apply_attempt(progress, True, NOW)
        assert progress.mastery_level == 1.0
        assert progress.mastered_at is None

    def test_mastered_at_threshold(self):
        progress = EmployeeTopicProgress(total_attempts=4, correct_attempts=3)
        apply_attempt(progress, True, NOW)
        assert progress.mastery_level == pytest.approx(0.8)
        assert progress.mastered_at == NOW

    def test_mastered_at_is_kept_when_mastery_dips(self):
        earlier = datetime(2026, 1, 1, tzinfo=timezone.utc)
        progress = EmployeeTopicProgress(total_attempts=3, correct_attempts=3, mastered_at=earlier)
        apply_attempt(progress, False, NOW)
        assert progress.mastery_level == pytest.approx(0.75)
        assert progress.mastered_at == earlier
        assert progress.last_attempt_at == NOW

    def test_mastered_at_refreshes_while_above_threshold(self):
        earlier = datetime(2026, 1, 1, tzinfo=timezone.utc)
        progress = EmployeeTopicProgress(total_attempts=5, correct_attempts=5, mastered_at=earlier)
        apply_attempt(progress, False, NOW)
        assert progress.mastery_level == pytest.approx(5 / 6)
        assert progress.mastered_at == NOW


class TestRecordAttempt:
    """Test persisted attempts and progress rows."""

    def test_creates_progress_row(self, db_session):
        _, progress = record_attempt(
            db_session,
            training_session_id="s1",
            employee_id="e1",
            question_id="q1",
            question_asked="What is in a cortado?",
            topic_id="t1",
            is_correct=True,
            points_earned=2,
        )
        assert progress.total_attempts == 1
        assert progress.mastery_level == 1.0
        assert db_session.query(QuestionAttempt).count() == 1

    def test_without_topic_skips_progress(self, db_session):
        attempt, progress = record_attempt(
            db_session,
            training_session_id=None,
            employee_id="e1",
            question_id="q1",
            question_asked="Free question?",
        )
        assert progress is None
        assert attempt.is_correct is False
        assert db_session.query(EmployeeTopicProgress).count() == 0

    def test_progress_includes_topic_name(self, db_session, company):
        db_session.add(KnowledgeTopic(id="t1", company_id=company.id, name="Coffee", category="menu"))
        db_session.commit()
        for correct in (True, True, False):
            record_attempt(
                db_session, "s1", "e1", "q1", "Q?", topic_id="t1", is_correct=correct,
            )

        progress = get_progress(db_session, "e1")
        assert len(progress) == 1
        assert progress[0]["topic_name"] == "Coffee"
        assert progress[0]["total_attempts"] == 3
        assert progress[0]["is_mastered"] is False


class TestQuestionEndpoints:
    def test_record_attempt(self, client):
        resp = client.post("/api/questions/record-question-attempt", json={
            "training_session_id": "s1",
            "employee_id": "e1",
            "topic_id": "t1",
            "question_id": "q1",
            "question_asked": "Which milk is vegan?",
            "employee_answer": "Oat milk",
            "is_correct": True,
            "points_earned": 2,
        })
        assert resp.status_code == 200
        assert resp.json()["mastery_level"] == 1.0

    def test_record_attempt_missing_fields(self, client):
        resp = client.post("/api/questions/record-question-attempt", json={"employee_id": "e1"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_progress(self, client):
        client.post("/api/questions/record-question-attempt", json={
            "training_session_id": "s1",
            "employee_id": "e1",
            "topic_id": "t1",
            "question_id": "q1",
            "question_asked": "Q?",
        })
        data = client.get("/api/questions/question-progress", params={"employee_id": "e1"}).json()
        assert data["count"] == 1
        assert data["progress"][0]["topic_name"] is None
