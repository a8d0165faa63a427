"""
Error Handling - Application Review Platform
review_platform/routers/errors.py

Exception handlers and helpers producing the standard ErrorResponse body.
Register in main.py:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(EvaluationError, evaluation_exception_handler)
    app.add_exception_handler(RepositoryException, repository_exception_handler)
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from review_platform.core.exceptions import (
    AnswerEvaluationInsertFailed,
    DatabaseConnectionException,
    DuplicateEvaluation,
    EntityNotFoundException,
    EvaluationError,
    EvaluationInsertFailed,
    IncompleteEvaluation,
    InvalidRating,
    InvalidState,
    RepositoryException,
    Unauthenticated,
    UnknownAnswer,
)
from review_platform.models.common import ErrorResponse

logger = logging.getLogger(__name__)


#  Validation Error Messages


FIELD_MESSAGES = {
    "application_id": {
        "uuid_parsing": "Application ID must be a valid UUID format",
        "uuid_type": "Application ID must be a valid UUID",
    },
    "user_id": {
        "uuid_parsing": "User ID must be a valid UUID format",
        "uuid_type": "User ID must be a valid UUID",
    },
    "evaluation_id": {
        "uuid_parsing": "Evaluation ID must be a valid UUID format",
        "uuid_type": "Evaluation ID must be a valid UUID",
    },
    "department": {
        "enum": "Department must be one of: technical, social_media, design, management",
    },
    "status": {
        "enum": "Status must be one of: pending_review, under_review, waitlisted, accepted, rejected",
    },
    "role": {
        "enum": "Role must be one of: super_admin, admin, evaluator, applicant",
    },
    "page": {
        "greater_than_equal": "Page must be greater than or equal to 1",
        "int_type": "Page must be an integer",
        "int_parsing": "Page must be a valid integer",
    },
    "page_size": {
        "greater_than_equal": "Page size must be greater than or equal to 1",
        "less_than_equal": "Page size must not exceed 100",
        "int_type": "Page size must be an integer",
        "int_parsing": "Page size must be a valid integer",
    },
}

DEFAULT_MESSAGES = {
    "missing": "Field '{field}' is required",
    "string_too_short": "Field '{field}' is too short",
    "string_too_long": "Field '{field}' is too long",
    "less_than_equal": "Field '{field}' exceeds maximum allowed value",
    "greater_than_equal": "Field '{field}' is below minimum allowed value",
    "uuid_parsing": "Field '{field}' must be a valid UUID",
    "uuid_type": "Field '{field}' must be a valid UUID",
    "string_type": "Field '{field}' must be a string",
    "int_type": "Field '{field}' must be an integer",
    "int_parsing": "Field '{field}' must be a valid integer",
    "int_from_float": "Field '{field}' must be a whole number",
    "bool_type": "Field '{field}' must be true or false",
    "bool_parsing": "Field '{field}' must be true or false",
    "enum": "Field '{field}' has an invalid value",
    "json_invalid": "Malformed JSON request body",
    "extra_forbidden": "Unknown field '{field}' is not allowed",
}

EVALUATION_STATUS_CODES: Dict[type, int] = {
    Unauthenticated: status.HTTP_401_UNAUTHORIZED,
    IncompleteEvaluation: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidRating: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnknownAnswer: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidState: status.HTTP_409_CONFLICT,
    DuplicateEvaluation: status.HTTP_409_CONFLICT,
    EvaluationInsertFailed: status.HTTP_502_BAD_GATEWAY,
    AnswerEvaluationInsertFailed: status.HTTP_502_BAD_GATEWAY,
}


def get_validation_message(field: str, error_type: str) -> str:
    if field in FIELD_MESSAGES:
        for key in FIELD_MESSAGES[field]:
            if key in error_type:
                return FIELD_MESSAGES[field][key]
    for key, template in DEFAULT_MESSAGES.items():
        if key in error_type:
            return template.format(field=field)
    return f"Invalid value for field '{field}'"


def _error_content(error_code: str, message: str, details: Optional[dict] = None) -> dict:
    return ErrorResponse(
        error_code=error_code,
        message=message,
        details=details,
        timestamp=datetime.now(timezone.utc),
    ).model_dump(mode="json")


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_content("VALIDATION_ERROR", "Request validation failed"),
        )
    err = errors[0]
    error_type = err.get("type", "")
    loc = err.get("loc", [])
    if "json_invalid" in error_type:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_content("INVALID_REQUEST", "Malformed JSON request body"),
        )
    # loc is ("path" | "query" | "body", field, ...)
    field = ".".join(str(l) for l in loc[1:]) if len(loc) > 1 else ".".join(str(l) for l in loc)
    message = get_validation_message(field, error_type)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_content(
            "VALIDATION_ERROR",
            message,
            {"field": field, "type": error_type} if field else None,
        ),
    )


async def evaluation_exception_handler(request: Request, exc: EvaluationError):
    status_code = EVALUATION_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)

    details: Optional[dict] = None
    if isinstance(exc, IncompleteEvaluation):
        details = {"missing_answer_ids": exc.missing_answer_ids}
    elif isinstance(exc, (InvalidRating, UnknownAnswer)):
        details = {"answer_id": exc.answer_id}
    elif isinstance(exc, DuplicateEvaluation):
        details = {"existing_evaluation_id": str(exc.existing_evaluation_id)}
    elif isinstance(exc, AnswerEvaluationInsertFailed):
        details = {"evaluation_id": str(exc.evaluation_id), "orphaned": exc.orphaned}

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=status_code,
        content=_error_content(exc.error_code, exc.message, details),
        headers=headers,
    )


async def repository_exception_handler(request: Request, exc: RepositoryException):
    if isinstance(exc, EntityNotFoundException):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=_error_content(
                f"{exc.entity_type.upper()}_NOT_FOUND", f"{exc.entity_type} not found"
            ),
        )
    if isinstance(exc, DatabaseConnectionException):
        logger.error(f"Database unavailable: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_error_content("DATABASE_UNAVAILABLE", "Database connection failed"),
        )
    logger.error(f"Unhandled repository error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content("INTERNAL_SERVER_ERROR", "Unexpected server error"),
    )


ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
    404: {"model": ErrorResponse, "description": "Entity not found"},
    409: {"model": ErrorResponse, "description": "Conflicting evaluation state"},
    422: {"model": ErrorResponse, "description": "Validation error"},
    502: {"model": ErrorResponse, "description": "Evaluation could not be stored"},
}
