"""Application configuration with comprehensive validation."""
from typing import Optional, Literal, Dict
from functools import lru_cache
from pydantic import Field, model_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# DISPLAY LABELS
# =============================================================================
# Human-readable labels for the enum values stored in the managed backend.
# =============================================================================

STATUS_LABELS: Dict[str, str] = {
    "pending_review": "Pending Review",
    "under_review": "Under Review",
    "waitlisted": "Waitlisted",
    "accepted": "Accepted",
    "rejected": "Rejected",
}

DEPARTMENT_LABELS: Dict[str, str] = {
    "technical": "Technical",
    "social_media": "Social Media",
    "design": "Design",
    "management": "Management",
}

ROLE_LABELS: Dict[str, str] = {
    "super_admin": "Super Admin",
    "admin": "Admin",
    "evaluator": "Evaluator",
    "applicant": "Applicant",
}


def get_status_label(status: str) -> str:
    """Return the display label for an application status, or the raw value."""
    return STATUS_LABELS.get(status, status)


def get_department_label(department: str) -> str:
    """Return the display label for a department, or the raw value."""
    return DEPARTMENT_LABELS.get(department, department)


def get_role_label(role: str) -> str:
    """Return the display label for a user role, or the raw value."""
    return ROLE_LABELS.get(role, role)


class Settings(BaseSettings):
    """Application settings with production-grade validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Application Review Platform"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Snowflake
    SNOWFLAKE_ACCOUNT: Optional[str] = None
    SNOWFLAKE_USER: Optional[str] = None
    SNOWFLAKE_PASSWORD: Optional[SecretStr] = None
    SNOWFLAKE_DATABASE: Optional[str] = None
    SNOWFLAKE_SCHEMA: Optional[str] = None
    SNOWFLAKE_WAREHOUSE: Optional[str] = None
    SNOWFLAKE_ROLE: Optional[str] = None

    # Auth (tokens are issued by the managed backend, verified here)
    AUTH_JWT_SECRET: SecretStr = SecretStr("change-me-in-development")
    AUTH_JWT_ALGORITHM: Literal["HS256", "HS384", "HS512"] = "HS256"
    AUTH_JWT_AUDIENCE: Optional[str] = "authenticated"

    # Scoring Parameters
    W_RATING_QUALITY: float = Field(default=0.8, ge=0.0, le=1.0)
    W_AI_PENALTY: float = Field(default=0.2, ge=0.0, le=1.0)
    RATING_MIN: int = Field(default=1, ge=0)
    RATING_MAX: int = Field(default=10, ge=1, le=100)

    # Evaluation persistence
    DUPLICATE_EVALUATION_POLICY: Literal["allow", "first_wins", "latest_wins"] = "allow"
    EVALUATION_WRITE_MODE: Literal["sequential", "transactional"] = "sequential"

    # Listing
    DEFAULT_PAGE_SIZE: int = Field(default=10, ge=1, le=100)

    @model_validator(mode="after")
    def validate_scoring_weights(self):
        """Validate scoring weights sum to 1.0."""
        total = self.W_RATING_QUALITY + self.W_AI_PENALTY
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total}")
        return self

    @model_validator(mode="after")
    def validate_rating_bounds(self):
        if self.RATING_MIN >= self.RATING_MAX:
            raise ValueError("RATING_MIN must be lower than RATING_MAX")
        return self

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production has required security settings."""
        if self.APP_ENV == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if len(self.AUTH_JWT_SECRET.get_secret_value()) < 32:
                raise ValueError("AUTH_JWT_SECRET must be ≥32 characters in production")
        return self

    @property
    def scoring_weights(self) -> Dict[str, float]:
        """Get scoring weights keyed by component."""
        return {
            "rating_quality": self.W_RATING_QUALITY,
            "ai_penalty": self.W_AI_PENALTY,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
