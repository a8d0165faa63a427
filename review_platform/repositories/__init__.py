"""
Repositories Package - Application Review Platform
review_platform/repositories/__init__.py

Data access layer for Snowflake database operations.
"""

from review_platform.repositories.base import BaseRepository
from review_platform.repositories.application_repository import ApplicationRepository
from review_platform.repositories.evaluation_repository import EvaluationRepository
from review_platform.repositories.question_answer_repository import QuestionAnswerRepository
from review_platform.repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "ApplicationRepository",
    "EvaluationRepository",
    "QuestionAnswerRepository",
    "UserRepository",
]
