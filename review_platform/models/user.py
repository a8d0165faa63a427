from pydantic import BaseModel, Field, computed_field
from uuid import UUID
from datetime import datetime
from typing import Optional, List

from review_platform.config import get_role_label
from review_platform.models.enumerations import UserRole
from review_platform.models.application import ApplicationSummary


class UserResponse(BaseModel):
    """
    Directory entry for a registered user.
    """

    id: UUID = Field(..., description="Unique user identifier")
    full_name: str = Field(..., max_length=255, description="Full name")
    email: str = Field(..., max_length=255, description="Email address")
    verified: bool = Field(default=False, description="Whether the email is verified")
    phone_number: Optional[str] = Field(default=None, max_length=50)
    role: UserRole = Field(..., description="Role within the platform")
    chickened_out: bool = Field(
        default=False,
        description="Applicant withdrew after registering"
    )
    reg_num: Optional[str] = Field(default=None, max_length=50, description="Registration number")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def role_label(self) -> str:
        return get_role_label(self.role.value)

    class Config:
        from_attributes = True


class UserDetailResponse(UserResponse):
    """
    User with their application history (newest first).
    """

    applications: List[ApplicationSummary] = Field(default_factory=list)


class PaginatedUserResponse(BaseModel):
    """
    Paginated response for the user directory.
    """

    items: List[UserResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
