"""Knowledge router: source documents, topics and AI question drafting."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.agents.question_generator import generate_questions
from app.database import get_db
from app.middleware.auth import get_current_user, require_manager
from app.models.knowledge import KnowledgeDocument, KnowledgeTopic
from app.models.user import User
from app.schemas.knowledge import DocumentCreate, DocumentResponse, GenerateQuestionsRequest, TopicResponse
from app.services.ai_client import AINotConfiguredError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["knowledge"])


@router.get("/knowledge-base/documents")
def list_documents(
    company_id: str = Query(...),
    category_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(KnowledgeDocument).filter(KnowledgeDocument.company_id == company_id)
    if category_id:
        query = query.filter(KnowledgeDocument.category_id == category_id)
    documents = query.order_by(KnowledgeDocument.created_at.desc()).all()
    return {
        "success": True,
        "documents": [DocumentResponse.model_validate(d).model_dump(mode="json") for d in documents],
    }


@router.post("/knowledge-base/documents", status_code=201)
def create_document(
    req: DocumentCreate,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    document = KnowledgeDocument(**req.model_dump())
    db.add(document)
    db.commit()
    db.refresh(document)
    return {"success": True, "document": DocumentResponse.model_validate(document).model_dump(mode="json")}


@router.get("/knowledge-assessment/topics")
def list_topics(
    company_id: str = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    topics = (
        db.query(KnowledgeTopic)
        .filter(KnowledgeTopic.company_id == company_id)
        .order_by(KnowledgeTopic.category, KnowledgeTopic.name)
        .all()
    )
    return {
        "success": True,
        "topics": [
            {
                **TopicResponse.model_validate(t).model_dump(mode="json"),
                "question_count": sum(1 for q in t.questions if q.is_active),
            }
            for t in topics
        ],
    }


@router.post("/ai/generate-questions")
async def ai_generate_questions(
    req: GenerateQuestionsRequest,
    db: Session = Depends(get_db),
    manager: User = Depends(require_manager),
):
    """Draft questions from the selected documents or whole categories."""
    if not req.document_ids and not req.category_ids:
        raise HTTPException(status_code=400, detail="Either document_ids or category_ids is required")

    query = db.query(KnowledgeDocument)
    if req.company_id:
        query = query.filter(KnowledgeDocument.company_id == req.company_id)
    if req.document_ids:
        query = query.filter(KnowledgeDocument.id.in_(req.document_ids))
    else:
        query = query.filter(KnowledgeDocument.category_id.in_(req.category_ids))
    documents = query.all()
    if not documents:
        raise HTTPException(status_code=404, detail="No documents found")

    try:
        questions = await generate_questions(
            documents,
            question_count=req.question_count,
            difficulty=req.difficulty,
            question_type=req.question_type,
            focus_areas=req.focus_areas,
        )
    except AINotConfiguredError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except ValueError as e:
        logger.error("Question generation failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))

    return {
        "success": True,
        "questions": questions,
        "documents_used": [{"id": d.id, "title": d.title} for d in documents],
    }
