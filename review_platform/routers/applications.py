"""
Application Router - Application Review Platform
review_platform/routers/applications.py

Read access to applications and their question/answer pairs.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from review_platform.config import get_settings
from review_platform.core.dependencies import (
    get_application_repository,
    get_question_answer_repository,
)
from review_platform.core.exceptions import EntityNotFoundException
from review_platform.models.application import (
    ApplicationDetailResponse,
    ApplicationResponse,
    PaginatedApplicationResponse,
)
from review_platform.models.common import total_pages
from review_platform.models.enumerations import ApplicationStatus, Department
from review_platform.repositories.application_repository import ApplicationRepository
from review_platform.repositories.question_answer_repository import QuestionAnswerRepository
from review_platform.routers.errors import ERROR_RESPONSES

router = APIRouter(prefix="/api/v1/applications", tags=["Applications"])


@router.get(
    "",
    response_model=PaginatedApplicationResponse,
    responses={422: ERROR_RESPONSES[422]},
    summary="List applications",
    description="Returns a paginated list of applications with the applicant's name, "
                "optionally filtered by department, status and submission flag.",
)
async def list_applications(
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=100),
    department: Optional[Department] = Query(default=None),
    status_filter: Optional[ApplicationStatus] = Query(default=None, alias="status"),
    submitted: Optional[bool] = Query(default=None),
    application_repo: ApplicationRepository = Depends(get_application_repository),
) -> PaginatedApplicationResponse:
    page_size = page_size or get_settings().DEFAULT_PAGE_SIZE

    applications, total = application_repo.get_all(
        page=page,
        page_size=page_size,
        department=department,
        status=status_filter,
        submitted=submitted,
    )

    return PaginatedApplicationResponse(
        items=[ApplicationResponse(**a) for a in applications],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    responses={404: ERROR_RESPONSES[404], 422: ERROR_RESPONSES[422]},
    summary="Get application by ID",
    description="Retrieves an application with the applicant's name and every question/answer pair.",
)
async def get_application(
    application_id: UUID,
    application_repo: ApplicationRepository = Depends(get_application_repository),
    qa_repo: QuestionAnswerRepository = Depends(get_question_answer_repository),
) -> ApplicationDetailResponse:
    application = application_repo.get_by_id(application_id)
    if application is None:
        raise EntityNotFoundException("Application", str(application_id))

    pairs = qa_repo.fetch_pairs(application_id)
    return ApplicationDetailResponse(**application, qa_pairs=pairs)
