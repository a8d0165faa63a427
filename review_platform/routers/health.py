"""
Health Check Router - Application Review Platform
review_platform/routers/health.py

Returns health status of the service and its Snowflake dependency.
"""
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Dict
from datetime import datetime, timezone

from review_platform.config import get_settings
from review_platform.services.snowflake import get_snowflake_connection

router = APIRouter(tags=["Health"])



#  Schemas


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    dependencies: Dict[str, str]



#  Dependency Health Checks


def check_snowflake() -> str:
    """Check Snowflake connection health."""
    settings = get_settings()
    if not all([settings.SNOWFLAKE_ACCOUNT, settings.SNOWFLAKE_USER, settings.SNOWFLAKE_PASSWORD]):
        missing = []
        if not settings.SNOWFLAKE_ACCOUNT: missing.append("SNOWFLAKE_ACCOUNT")
        if not settings.SNOWFLAKE_USER: missing.append("SNOWFLAKE_USER")
        if not settings.SNOWFLAKE_PASSWORD: missing.append("SNOWFLAKE_PASSWORD")
        return f"unhealthy: Missing env vars: {', '.join(missing)}"

    try:
        conn = get_snowflake_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT CURRENT_USER()")
            result = cursor.fetchone()
            cursor.close()
        finally:
            conn.close()
        return f"healthy (User: {result[0]})"
    except Exception as e:
        error_msg = str(e)[:100] + "..." if len(str(e)) > 100 else str(e)
        return f"unhealthy: {error_msg}"



#  Routes


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse, "description": "A dependency is unhealthy"}},
    summary="Service health",
)
async def health_check():
    settings = get_settings()
    dependencies = {"snowflake": check_snowflake()}
    healthy = all(v.startswith("healthy") for v in dependencies.values())

    body = HealthResponse(
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        dependencies=dependencies,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(mode="json"),
    )
