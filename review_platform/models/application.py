from pydantic import BaseModel, Field, computed_field
from uuid import UUID
from datetime import datetime
from typing import Optional, List

from review_platform.config import get_department_label, get_status_label
from review_platform.models.enumerations import ApplicationStatus, Department


class QuestionAnswerPair(BaseModel):
    """
    One question and the applicant's answer to it.

    `id` is the answer ID; ratings are keyed by it.
    """

    model_config = {"frozen": True}

    id: UUID = Field(..., description="Answer identifier")
    question: str = Field(..., description="Question text")
    answer: str = Field(..., description="Applicant's answer text")


class ApplicationSummary(BaseModel):
    """
    Application as shown in listings.
    """

    id: UUID
    department: Department
    submitted: bool = False
    status: ApplicationStatus = ApplicationStatus.PENDING_REVIEW
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def status_label(self) -> str:
        return get_status_label(self.status.value)

    @computed_field
    @property
    def department_label(self) -> str:
        return get_department_label(self.department.value)

    class Config:
        from_attributes = True


class ApplicationResponse(ApplicationSummary):
    """
    Application with the applicant's display name.
    """

    user_id: UUID
    username: str = Field(default="Unknown User", description="Applicant full name")


class ApplicationDetailResponse(ApplicationResponse):
    """
    Application with its question/answer pairs.
    """

    qa_pairs: List[QuestionAnswerPair] = Field(default_factory=list)


class PaginatedApplicationResponse(BaseModel):
    """
    Paginated response for listing applications.
    """

    items: List[ApplicationResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
