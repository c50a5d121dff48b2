"""Question generator: drafts factual training questions from knowledge-base documents."""

import json
import re
import uuid

from app.models.knowledge import KnowledgeDocument
from app.services.ai_client import chat

DIFFICULTY_DESCRIPTIONS = {
    "beginner": "simple",
    "intermediate": "moderately detailed",
    "advanced": "detailed, multi-fact",
}

GENERATOR_SYSTEM = (
    "You write training questions for cafe and restaurant staff. "
    "Every question must be answerable ONLY from the provided documents. "
    "Wrong multiple-choice options must be plausible but absent from the documents. "
    "Prefer concrete facts: prices, portion sizes, ingredients, item names. "
    "Return ONLY a JSON array, no markdown fences, of objects shaped like: "
    '{"question": "...", "type": "multiple_choice" | "open_ended", "options": ["..."], '
    '"correctAnswer": "...", "explanation": "...", "sourceDocument": "...", "difficulty": "..."}'
)


def _parse_questions(raw: str) -> list[dict]:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        # The model sometimes wraps the array in prose
        match = re.search(r"\[[\s\S]*\]", raw)
        if not match:
            raise ValueError("Failed to parse generated questions as JSON")
        return json.loads(match.group())


async def generate_questions(
    documents: list[KnowledgeDocument],
    question_count: int = 3,
    difficulty: str = "beginner",
    question_type: str = "mixed",
    focus_areas: list[str] | None = None,
) -> list[dict]:
    """Ask the LLM for `question_count` questions grounded in `documents`."""
    if not documents:
        raise ValueError("No documents provided for question generation")

    context = "\n\n---\n\n".join(f'Document "{d.title}":\n{d.content}' for d in documents)
    focus = f"Focus on: {', '.join(focus_areas)}.\n" if focus_areas else ""

    raw = await chat(
        system=GENERATOR_SYSTEM,
        messages=[{
            "role": "user",
            "content": (
                f"{focus}Using the documentation below, write {question_count} "
                f"{DIFFICULTY_DESCRIPTIONS.get(difficulty, difficulty)} questions of type \"{question_type}\".\n\n"
                f"{context}"
            ),
        }],
        max_tokens=2000,
        temperature=0.3,
    )

    questions = []
    for q in _parse_questions(raw)[:question_count]:
        q_type = q.get("type")
        if question_type != "mixed":
            q_type = question_type
        elif q_type not in ("multiple_choice", "open_ended"):
            q_type = "open_ended"
        questions.append({
            **q,
            "id": q.get("id") or f"ai_generated_{uuid.uuid4().hex[:12]}",
            "type": q_type,
            "difficulty": q.get("difficulty") or difficulty,
        })
    return questions
