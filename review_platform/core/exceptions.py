"""
Custom Exceptions - Application Review Platform
review_platform/core/exceptions.py

Custom exception classes for repository and evaluation operations.
"""

from typing import List, Optional
from uuid import UUID


class RepositoryException(Exception):
    """Base exception for repository operations."""

    pass


class EntityNotFoundException(RepositoryException):
    """Entity not found in database."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with ID {entity_id} not found")


class DuplicateEntityException(RepositoryException):
    """Duplicate entity violation."""

    def __init__(self, message: str = "Entity already exists"):
        self.message = message
        super().__init__(message)


class DatabaseConnectionException(RepositoryException):
    """Database connection failure."""

    def __init__(self, message: str = "Database connection failed"):
        self.message = message
        super().__init__(message)


class ForeignKeyViolationException(RepositoryException):
    """Foreign key constraint violation."""

    def __init__(self, message: str = "Foreign key constraint violation"):
        self.message = message
        super().__init__(message)


# =============================================================================
# EVALUATION ERRORS
# =============================================================================


class EvaluationError(Exception):
    """Base exception for evaluation submission."""

    error_code = "EVALUATION_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class IncompleteEvaluation(EvaluationError):
    """One or more answers have no rating."""

    error_code = "INCOMPLETE_EVALUATION"

    def __init__(self, missing_answer_ids: List[str]):
        self.missing_answer_ids = list(missing_answer_ids)
        super().__init__(
            f"{len(self.missing_answer_ids)} answer(s) have not been rated"
        )


class Unauthenticated(EvaluationError):
    """No valid evaluator identity."""

    error_code = "UNAUTHENTICATED"

    def __init__(self, message: str = "You must be logged in to evaluate"):
        super().__init__(message)


class InvalidState(EvaluationError):
    """Scorer reached in a state it cannot handle."""

    error_code = "INVALID_STATE"


class InvalidRating(EvaluationError):
    """Rating outside the accepted range."""

    error_code = "INVALID_RATING"

    def __init__(self, answer_id: str, rating: object, min_rating: int, max_rating: int):
        self.answer_id = answer_id
        self.rating = rating
        super().__init__(
            f"Rating for answer {answer_id} must be an integer between "
            f"{min_rating} and {max_rating}, got {rating!r}"
        )


class UnknownAnswer(EvaluationError):
    """Answer ID does not belong to the application being evaluated."""

    error_code = "UNKNOWN_ANSWER"

    def __init__(self, answer_id: str):
        self.answer_id = answer_id
        super().__init__(f"Answer {answer_id} does not belong to this application")


class DuplicateEvaluation(EvaluationError):
    """Application already evaluated and the policy forbids another."""

    error_code = "DUPLICATE_EVALUATION"

    def __init__(self, application_id: UUID, existing_evaluation_id: UUID):
        self.application_id = application_id
        self.existing_evaluation_id = existing_evaluation_id
        super().__init__(
            f"Application {application_id} already has evaluation {existing_evaluation_id}"
        )


class EvaluationInsertFailed(EvaluationError):
    """Evaluation row rejected by the store. Nothing was written."""

    error_code = "EVALUATION_INSERT_FAILED"

    def __init__(self, message: str = "Failed to save evaluation", cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class AnswerEvaluationInsertFailed(EvaluationError):
    """Answer evaluation rows rejected after the parent evaluation was written."""

    error_code = "ANSWER_EVALUATION_INSERT_FAILED"

    def __init__(
        self,
        evaluation_id: UUID,
        message: str = "Failed to save answer evaluations",
        cause: Optional[Exception] = None,
        orphaned: bool = True,
    ):
        self.evaluation_id = evaluation_id
        self.cause = cause
        self.orphaned = orphaned
        super().__init__(message)
