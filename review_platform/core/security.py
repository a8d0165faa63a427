"""
Security - Application Review Platform
review_platform/core/security.py

Identity collaborator: resolves the acting evaluator from a bearer token
issued by the managed backend. Tokens are verified here, never issued.
"""

import logging
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from review_platform.config import Settings, get_settings
from review_platform.core.exceptions import Unauthenticated

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def decode_evaluator_id(token: str, settings: Settings) -> str:
    """
    Verify a JWT and return its subject.

    Raises:
        Unauthenticated: Token invalid, expired, for another audience, or has no subject
    """
    options = {"require": ["sub", "exp"]}
    try:
        claims = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET.get_secret_value(),
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE,
            options=options if settings.AUTH_JWT_AUDIENCE else {**options, "verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Session expired, please log in again")
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise Unauthenticated("Invalid authentication token")

    subject = str(claims.get("sub") or "").strip()
    if not subject:
        raise Unauthenticated("Authentication token has no subject")
    return subject


def get_current_evaluator_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> str:
    """FastAPI dependency returning the authenticated evaluator's ID."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return decode_evaluator_id(credentials.credentials, settings)
