from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from review_platform.config import get_settings
from review_platform.core.exceptions import EvaluationError, RepositoryException
from review_platform.core.logging_config import configure_logging
from review_platform.core.security import get_current_evaluator_id

# IMPORT ROUTERS
from review_platform.routers.health import router as health_router
from review_platform.routers.applications import router as applications_router
from review_platform.routers.users import router as users_router
from review_platform.routers.evaluations import router as evaluations_router
from review_platform.routers.errors import (
    evaluation_exception_handler,
    repository_exception_handler,
    validation_exception_handler,
)

import structlog

logger = structlog.get_logger(__name__)


# SWAGGER UI: tag display order
_OPENAPI_TAGS = [
    {"name": "Root"},
    {"name": "Health"},
    {"name": "Applications"},
    {"name": "Users"},
    {"name": "Evaluations"},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    settings = get_settings()
    logger.info(
        "application_starting",
        app_env=settings.APP_ENV,
        duplicate_evaluation_policy=settings.DUPLICATE_EVALUATION_POLICY,
        evaluation_write_mode=settings.EVALUATION_WRITE_MODE,
    )
    yield
    logger.info("application_stopping")


# FASTAPI APPLICATION CONFIGURATION
app = FastAPI(
    title="Application Review Platform API",
    version=get_settings().APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=_OPENAPI_TAGS,
    lifespan=lifespan,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

# REGISTER EXCEPTION HANDLERS
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(EvaluationError, evaluation_exception_handler)
app.add_exception_handler(RepositoryException, repository_exception_handler)

# REGISTER ROUTERS (order matches _OPENAPI_TAGS / Swagger UI display order)
_authenticated = [Depends(get_current_evaluator_id)]

app.include_router(health_router)                                       # Health
app.include_router(applications_router, dependencies=_authenticated)    # Applications
app.include_router(users_router, dependencies=_authenticated)           # Users
app.include_router(evaluations_router, dependencies=_authenticated)     # Evaluations


# ROOT ENDPOINT
@app.get("/", tags=["Root"], summary="Root endpoint")
async def root():
    return {
        "service": "Application Review Platform API",
        "version": get_settings().APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "status": "running"
    }


# RUN WITH UVICORN
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "review_platform.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
