"""
Dependencies - Application Review Platform
review_platform/core/dependencies.py

FastAPI dependency injection for repositories and services.
"""

from functools import lru_cache

from review_platform.repositories.application_repository import ApplicationRepository
from review_platform.repositories.evaluation_repository import EvaluationRepository
from review_platform.repositories.question_answer_repository import QuestionAnswerRepository
from review_platform.repositories.user_repository import UserRepository
from review_platform.services.evaluation_service import EvaluationService


@lru_cache()
def get_application_repository() -> ApplicationRepository:
    """Get cached ApplicationRepository instance."""
    return ApplicationRepository()


@lru_cache()
def get_user_repository() -> UserRepository:
    """Get cached UserRepository instance."""
    return UserRepository()


@lru_cache()
def get_question_answer_repository() -> QuestionAnswerRepository:
    """Get cached QuestionAnswerRepository instance."""
    return QuestionAnswerRepository()


@lru_cache()
def get_evaluation_repository() -> EvaluationRepository:
    """Get cached EvaluationRepository instance."""
    return EvaluationRepository()


def get_evaluation_service() -> EvaluationService:
    """Build an EvaluationService over the cached repositories."""
    return EvaluationService(
        qa_repo=get_question_answer_repository(),
        evaluation_repo=get_evaluation_repository(),
    )
