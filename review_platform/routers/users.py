"""
User Router - Application Review Platform
review_platform/routers/users.py

User directory and per-user application history.
"""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from review_platform.config import get_settings
from review_platform.core.dependencies import get_application_repository, get_user_repository
from review_platform.core.exceptions import EntityNotFoundException
from review_platform.models.application import ApplicationSummary
from review_platform.models.common import total_pages
from review_platform.models.enumerations import UserRole
from review_platform.models.user import PaginatedUserResponse, UserDetailResponse, UserResponse
from review_platform.repositories.application_repository import ApplicationRepository
from review_platform.repositories.user_repository import UserRepository
from review_platform.routers.errors import ERROR_RESPONSES

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.get(
    "",
    response_model=PaginatedUserResponse,
    responses={422: ERROR_RESPONSES[422]},
    summary="List users",
    description="Paginated user directory. `search` matches name, email, role and registration number.",
)
async def list_users(
    page: int = Query(default=1, ge=1),
    page_size: Optional[int] = Query(default=None, ge=1, le=100),
    search: Optional[str] = Query(default=None, max_length=255),
    role: Optional[UserRole] = Query(default=None),
    chickened_out: Optional[bool] = Query(default=None),
    sort_by: Literal["full_name", "email", "role", "reg_num", "created_at"] = Query(default="full_name"),
    sort_dir: Literal["asc", "desc"] = Query(default="asc"),
    user_repo: UserRepository = Depends(get_user_repository),
) -> PaginatedUserResponse:
    page_size = page_size or get_settings().DEFAULT_PAGE_SIZE

    users, total = user_repo.get_all(
        page=page,
        page_size=page_size,
        search=search.strip() if search else None,
        role=role,
        chickened_out=chickened_out,
        sort_by=sort_by,
        descending=sort_dir == "desc",
    )

    return PaginatedUserResponse(
        items=[UserResponse(**u) for u in users],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.get(
    "/{user_id}",
    response_model=UserDetailResponse,
    responses={404: ERROR_RESPONSES[404], 422: ERROR_RESPONSES[422]},
    summary="Get user by ID",
    description="Retrieves a user with their applications, newest first.",
)
async def get_user(
    user_id: UUID,
    user_repo: UserRepository = Depends(get_user_repository),
    application_repo: ApplicationRepository = Depends(get_application_repository),
) -> UserDetailResponse:
    user = user_repo.get_by_id(user_id)
    if user is None:
        raise EntityNotFoundException("User", str(user_id))

    applications = application_repo.list_by_user(user_id)
    return UserDetailResponse(
        **user,
        applications=[ApplicationSummary(**a) for a in applications],
    )
