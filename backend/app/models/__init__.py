"""SQLAlchemy ORM models."""

from app.models.user import Company, User
from app.models.scenario import Scenario, ScenarioAssignment
from app.models.training_session import TrainingSession
from app.models.knowledge import KnowledgeDocument, KnowledgeTopic, TopicQuestion
from app.models.question_attempt import QuestionAttempt, EmployeeTopicProgress
from app.models.company_settings import CompanySettings

__all__ = [
    "Company",
    "User",
    "Scenario",
    "ScenarioAssignment",
    "TrainingSession",
    "KnowledgeDocument",
    "KnowledgeTopic",
    "TopicQuestion",
    "QuestionAttempt",
    "EmployeeTopicProgress",
    "CompanySettings",
]
