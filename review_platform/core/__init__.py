"""
Core Package - Application Review Platform
review_platform/core/__init__.py

Core infrastructure: dependencies, exceptions, security, logging.
"""

from review_platform.core.exceptions import (
    AnswerEvaluationInsertFailed,
    DatabaseConnectionException,
    DuplicateEntityException,
    DuplicateEvaluation,
    EntityNotFoundException,
    EvaluationError,
    EvaluationInsertFailed,
    ForeignKeyViolationException,
    IncompleteEvaluation,
    InvalidRating,
    InvalidState,
    RepositoryException,
    Unauthenticated,
    UnknownAnswer,
)

__all__ = [
    # Repository exceptions
    "DatabaseConnectionException",
    "DuplicateEntityException",
    "EntityNotFoundException",
    "ForeignKeyViolationException",
    "RepositoryException",
    # Evaluation exceptions
    "AnswerEvaluationInsertFailed",
    "DuplicateEvaluation",
    "EvaluationError",
    "EvaluationInsertFailed",
    "IncompleteEvaluation",
    "InvalidRating",
    "InvalidState",
    "Unauthenticated",
    "UnknownAnswer",
]
