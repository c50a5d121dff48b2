"""Knowledge base models: source documents, topics and the question pool."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Boolean
from sqlalchemy.orm import relationship

from app.database import Base


class KnowledgeDocument(Base):
    __tablename__ = "knowledge_base_documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    category_id = Column(String(36), nullable=True, index=True)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False, default="")
    item_count = Column(String(20), nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))


class KnowledgeTopic(Base):
    __tablename__ = "knowledge_topics"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, default="general")
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    questions = relationship("TopicQuestion", back_populates="topic")


class TopicQuestion(Base):
    __tablename__ = "topic_questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    topic_id = Column(String(36), ForeignKey("knowledge_topics.id"), nullable=False, index=True)
    question_template = Column(Text, nullable=False)
    correct_answer = Column(Text, nullable=False)
    difficulty_level = Column(String(20), nullable=False, default="beginner")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    topic = relationship("KnowledgeTopic", back_populates="questions")
