"""
Evaluation Router - Application Review Platform
review_platform/routers/evaluations.py

Endpoints:
  POST /api/v1/applications/{id}/evaluations         : Score and store an evaluation
  GET  /api/v1/applications/{id}/evaluations         : All evaluations, newest first
  GET  /api/v1/applications/{id}/evaluations/current : Evaluation that counts under the policy
  GET  /api/v1/evaluations/orphaned                  : Evaluations without answer evaluations
  GET  /api/v1/evaluations/{id}                      : One evaluation with its answers
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from review_platform.core.dependencies import (
    get_application_repository,
    get_evaluation_repository,
    get_evaluation_service,
)
from review_platform.core.exceptions import EntityNotFoundException
from review_platform.core.security import get_current_evaluator_id
from review_platform.models.evaluation import (
    EvaluationResponse,
    EvaluationSubmitRequest,
    EvaluationSubmitResponse,
    OrphanedEvaluationResponse,
    ScoreBreakdown,
)
from review_platform.repositories.application_repository import ApplicationRepository
from review_platform.repositories.evaluation_repository import EvaluationRepository
from review_platform.routers.errors import ERROR_RESPONSES
from review_platform.services.evaluation_service import EvaluationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Evaluations"])


@router.post(
    "/applications/{application_id}/evaluations",
    response_model=EvaluationSubmitResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Submit an evaluation",
    description="Scores the application from one rating (1-10) and one AI flag per answer, "
                "then stores the evaluation and its answer evaluations. Every answer must be rated.",
)
async def submit_evaluation(
    application_id: UUID,
    payload: EvaluationSubmitRequest,
    evaluator_id: str = Depends(get_current_evaluator_id),
    service: EvaluationService = Depends(get_evaluation_service),
) -> EvaluationSubmitResponse:
    outcome = service.submit_ratings(application_id, evaluator_id, payload.ratings)
    score = outcome.score

    logger.info(
        f"Evaluation {outcome.evaluation_id} stored for application {application_id}: "
        f"{outcome.final_score:.2f}"
    )

    return EvaluationSubmitResponse(
        evaluation_id=outcome.evaluation_id,
        application_id=outcome.application_id,
        evaluator_id=outcome.evaluator_id,
        final_score=outcome.final_score,
        breakdown=ScoreBreakdown(
            total_questions=score.total_questions,
            max_score=score.max_score,
            rating_sum=score.rating_sum,
            ai_flagged=score.ai_flagged,
            rating_quality=float(score.rating_quality),
            ai_penalty=float(score.ai_penalty),
            raw_score=float(score.raw_score),
        ),
    )


@router.get(
    "/applications/{application_id}/evaluations",
    response_model=List[EvaluationResponse],
    responses={401: ERROR_RESPONSES[401], 404: ERROR_RESPONSES[404]},
    summary="List evaluations of an application",
)
async def list_evaluations(
    application_id: UUID,
    application_repo: ApplicationRepository = Depends(get_application_repository),
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
) -> List[EvaluationResponse]:
    if not application_repo.exists(application_id):
        raise EntityNotFoundException("Application", str(application_id))

    evaluations = evaluation_repo.list_for_application(application_id)
    return [EvaluationResponse(**e) for e in evaluations]


@router.get(
    "/applications/{application_id}/evaluations/current",
    response_model=EvaluationResponse,
    responses={401: ERROR_RESPONSES[401], 404: ERROR_RESPONSES[404]},
    summary="Get the current evaluation of an application",
    description="Earliest complete evaluation under the first_wins policy, latest otherwise. Evaluations without answer evaluations are skipped.",
)
async def get_current_evaluation(
    application_id: UUID,
    service: EvaluationService = Depends(get_evaluation_service),
) -> EvaluationResponse:
    evaluation = service.current_evaluation(application_id)
    if evaluation is None:
        raise EntityNotFoundException("Evaluation", f"for application {application_id}")
    return EvaluationResponse(**evaluation)


@router.get(
    "/evaluations/orphaned",
    response_model=OrphanedEvaluationResponse,
    responses={401: ERROR_RESPONSES[401]},
    summary="List orphaned evaluations",
    description="Evaluations whose answer evaluations were never written.",
)
async def list_orphaned_evaluations(
    older_than_minutes: Optional[int] = Query(default=None, ge=0, le=60 * 24 * 365),
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
) -> OrphanedEvaluationResponse:
    orphans = evaluation_repo.find_orphaned(older_than_minutes=older_than_minutes)
    return OrphanedEvaluationResponse(
        items=[EvaluationResponse(**o) for o in orphans],
        total=len(orphans),
    )


@router.get(
    "/evaluations/{evaluation_id}",
    response_model=EvaluationResponse,
    responses={401: ERROR_RESPONSES[401], 404: ERROR_RESPONSES[404], 422: ERROR_RESPONSES[422]},
    summary="Get evaluation by ID",
)
async def get_evaluation(
    evaluation_id: UUID,
    evaluation_repo: EvaluationRepository = Depends(get_evaluation_repository),
) -> EvaluationResponse:
    evaluation = evaluation_repo.get_by_id(evaluation_id)
    if evaluation is None:
        raise EntityNotFoundException("Evaluation", str(evaluation_id))
    return EvaluationResponse(**evaluation)
