from pydantic import BaseModel, Field, StrictInt, computed_field
from uuid import UUID
from datetime import datetime
from typing import Optional, List


class AnswerRating(BaseModel):
    """
    Operator judgment of a single answer as submitted over the API.

    A null rating means the answer has not been rated yet.
    """

    answer_id: UUID = Field(..., description="Answer being rated")
    rating: Optional[StrictInt] = Field(default=None, description="Whole-number rating within the configured range (1-10 by default)")
    looks_ai: bool = Field(default=False, description="Answer looks AI-generated")


class EvaluationSubmitRequest(BaseModel):
    """
    Ratings for every answer of an application.
    """

    ratings: List[AnswerRating] = Field(default_factory=list)


class ScoreBreakdown(BaseModel):
    """Intermediate values of the final score calculation."""

    total_questions: int
    max_score: int
    rating_sum: int
    ai_flagged: int
    rating_quality: float
    ai_penalty: float
    raw_score: float


class EvaluationSubmitResponse(BaseModel):
    """
    Result of a successful evaluation submission.
    """

    evaluation_id: UUID
    application_id: UUID
    evaluator_id: str
    final_score: float = Field(..., ge=0, le=100)
    breakdown: ScoreBreakdown

    @computed_field
    @property
    def final_score_display(self) -> str:
        return f"{self.final_score:.2f}"


class AnswerEvaluationResponse(BaseModel):
    """
    Stored judgment of one answer.
    """

    evaluation_id: UUID
    answer_id: UUID
    rating: int = Field(..., ge=0)
    looks_ai: bool = False


class EvaluationResponse(BaseModel):
    """
    Stored evaluation with its per-answer judgments.
    """

    id: UUID
    application_id: UUID
    evaluator_id: str
    final_score: float = Field(..., ge=0, le=100)
    created_at: Optional[datetime] = None
    answer_evaluations: List[AnswerEvaluationResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class OrphanedEvaluationResponse(BaseModel):
    """
    Evaluations that were written without any answer evaluations.
    """

    items: List[EvaluationResponse]
    total: int
