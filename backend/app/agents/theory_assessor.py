"""Theory assessor: grades the answers an employee gave during a theory session.

Each assistant question in the transcript is matched to a row of the
company question pool, then the employee's answer is graded against the
stored correct answer. Every graded exchange is recorded as a question
attempt so topic mastery moves with voice sessions too.
"""

import logging
import re
from typing import Optional

from sqlalchemy.orm import Session

from app.models.knowledge import KnowledgeTopic, TopicQuestion
from app.services import ai_client
from app.services.question_service import record_attempt

logger = logging.getLogger(__name__)

POINTS_PER_CORRECT_ANSWER = 2

GRADER_SYSTEM = (
    "You grade answers given by hospitality staff during product-knowledge training. "
    "Compare the employee's answer with the reference answer. Minor wording differences "
    "and missing filler words are fine; wrong prices, sizes or ingredients are not. "
    "Return ONLY valid JSON, no markdown fences: "
    '{"isCorrect": true/false, "score": 0-100, "feedback": "one or two sentences"}'
)


def extract_qa_exchanges(messages: list[dict]) -> list[dict]:
    """Pair each assistant question with the user turn that answers it."""
    exchanges = []
    for current, nxt in zip(messages, messages[1:]):
        question = (current.get("content") or "").strip()
        answer = (nxt.get("content") or "").strip()
        if current.get("role") == "assistant" and nxt.get("role") == "user" and "?" in question and len(answer) > 2:
            exchanges.append({"question": question, "answer": answer})
    return exchanges


def _summarize(assessments: list[dict]) -> dict:
    total = len(assessments)
    correct = sum(1 for a in assessments if a["isCorrect"])
    average = round(sum(a["score"] for a in assessments) / total) if total else 0
    return {
        "totalQuestions": total,
        "correctAnswers": correct,
        "incorrectAnswers": total - correct,
        "averageScore": average,
        "accuracy": round(correct / total * 100) if total else 0,
        "score": average,
    }


class TheoryAssessor:
    """Default scorer. Tests replace it through the get_scorer dependency."""

    async def _match_question(self, question: str, pool: list[TopicQuestion]) -> Optional[TopicQuestion]:
        listing = "\n".join(f"{i + 1}. {q.question_template}" for i, q in enumerate(pool))
        reply = await ai_client.chat(
            system="You match spoken questions to a numbered question list.",
            messages=[{
                "role": "user",
                "content": (
                    f'Given this spoken question: "{question}"\n\n'
                    f"Find the best matching question from this list:\n{listing}\n\n"
                    f'Return only the number (1-{len(pool)}) of the best match, or "0" if no good match.'
                ),
            }],
            max_tokens=10,
            temperature=0.0,
        )
        match = re.search(r"\d+", reply)
        index = int(match.group()) if match else 0
        return pool[index - 1] if 0 < index <= len(pool) else None

    async def _grade(self, question: str, answer: str, correct_answer: str) -> dict:
        reply = await ai_client.chat(
            system=GRADER_SYSTEM,
            messages=[{
                "role": "user",
                "content": f"Question: {question}\nEmployee answer: {answer}\nReference answer: {correct_answer}",
            }],
            max_tokens=300,
            temperature=0.3,
        )
        return ai_client.parse_json_reply(reply)

    async def assess(self, db: Session, session_id: str, employee_id: Optional[str], transcript: list[dict]) -> dict:
        exchanges = extract_qa_exchanges(transcript)
        pool = (
            db.query(TopicQuestion)
            .join(KnowledgeTopic, TopicQuestion.topic_id == KnowledgeTopic.id)
            .filter(TopicQuestion.is_active.is_(True))
            .all()
        )
        logger.info("Assessing %d exchanges against %d pool questions", len(exchanges), len(pool))

        if not exchanges or not pool:
            return {
                "success": True,
                "assessmentResults": [],
                "summary": _summarize([]),
                "message": "No Q&A exchanges found for assessment",
            }

        assessments = []
        for exchange in exchanges:
            try:
                matched = await self._match_question(exchange["question"], pool)
                if matched is None:
                    logger.info("No pool match for %r", exchange["question"][:60])
                    continue
                grade = await self._grade(exchange["question"], exchange["answer"], matched.correct_answer)
            except ai_client.AINotConfiguredError:
                raise
            except Exception as e:
                logger.warning("Skipping exchange %r: %s", exchange["question"][:60], e)
                continue

            is_correct = bool(grade.get("isCorrect"))
            assessments.append({
                "questionId": matched.id,
                "questionAsked": exchange["question"],
                "userAnswer": exchange["answer"],
                "correctAnswer": matched.correct_answer,
                "isCorrect": is_correct,
                "score": int(grade.get("score") or 0),
                "feedback": grade.get("feedback", ""),
                "topicName": matched.topic.name,
                "topicCategory": matched.topic.category,
                "difficultyLevel": matched.difficulty_level,
            })

            if employee_id:
                try:
                    record_attempt(
                        db,
                        training_session_id=session_id,
                        employee_id=employee_id,
                        topic_id=matched.topic_id,
                        question_id=matched.id,
                        question_asked=exchange["question"],
                        employee_answer=exchange["answer"],
                        correct_answer=matched.correct_answer,
                        is_correct=is_correct,
                        points_earned=POINTS_PER_CORRECT_ANSWER if is_correct else 0,
                    )
                except Exception as e:
                    db.rollback()
                    logger.warning("Failed to record attempt for question %s: %s", matched.id, e)

        logger.info("Graded %d / %d exchanges", len(assessments), len(exchanges))
        return {"success": True, "assessmentResults": assessments, "summary": _summarize(assessments)}
