"""
Evaluation Service
review_platform/services/evaluation_service.py

Submits an operator's evaluation of one application:

  1. Check the evaluator identity
  2. Fetch the application's question/answer pairs
  3. Bind the submitted ratings to a RatingSheet for exactly those pairs
  4. Score with EvaluationScorer (rejects incomplete sheets)
  5. Apply the duplicate-evaluation policy
  6. Write the evaluation, then its answer evaluations

Step 6 runs strictly in order. In sequential mode a failure of the second
write leaves the evaluation row without children; that case is logged with
the orphaned evaluation ID so the reconciliation job can find it. In
transactional mode both writes share one transaction.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence
from uuid import UUID

import structlog

from review_platform.config import get_settings
from review_platform.core.exceptions import (
    AnswerEvaluationInsertFailed,
    DuplicateEvaluation,
    EvaluationInsertFailed,
    InvalidState,
    RepositoryException,
    Unauthenticated,
    UnknownAnswer,
)
from review_platform.models.application import QuestionAnswerPair
from review_platform.models.enumerations import DuplicateEvaluationPolicy, EvaluationWriteMode
from review_platform.models.evaluation import AnswerRating
from review_platform.repositories.evaluation_repository import (
    AnswerEvaluationRow,
    EvaluationRepository,
)
from review_platform.repositories.question_answer_repository import QuestionAnswerRepository
from review_platform.scoring.evaluation_scorer import EvaluationScorer, EvaluationScoreResult
from review_platform.scoring.rating_sheet import RatingSheet

logger = structlog.get_logger(__name__)


@dataclass
class EvaluationOutcome:
    """Result of a successful submission."""
    evaluation_id: UUID
    application_id: UUID
    evaluator_id: str
    score: EvaluationScoreResult

    @property
    def final_score(self) -> float:
        return float(self.score.final_score)


class EvaluationService:
    """Validates, scores and persists evaluations."""

    def __init__(
        self,
        qa_repo: QuestionAnswerRepository,
        evaluation_repo: EvaluationRepository,
        scorer: Optional[EvaluationScorer] = None,
        duplicate_policy: Optional[DuplicateEvaluationPolicy] = None,
        write_mode: Optional[EvaluationWriteMode] = None,
        min_rating: Optional[int] = None,
        max_rating: Optional[int] = None,
    ):
        settings = get_settings()
        self.qa_repo = qa_repo
        self.evaluation_repo = evaluation_repo
        self.scorer = scorer or EvaluationScorer(
            settings.W_RATING_QUALITY, settings.W_AI_PENALTY
        )
        self.duplicate_policy = DuplicateEvaluationPolicy(
            duplicate_policy or settings.DUPLICATE_EVALUATION_POLICY
        )
        self.write_mode = EvaluationWriteMode(write_mode or settings.EVALUATION_WRITE_MODE)
        self.min_rating = settings.RATING_MIN if min_rating is None else min_rating
        self.max_rating = settings.RATING_MAX if max_rating is None else max_rating

    # ------------------------------------------------------------------
    # Rating sessions
    # ------------------------------------------------------------------

    def open_sheet(self, application_id: UUID) -> tuple[List[QuestionAnswerPair], RatingSheet]:
        """Fetch an application's pairs and open an empty rating sheet for them."""
        pairs = self.qa_repo.fetch_pairs(application_id)
        return pairs, self.new_sheet(pairs)

    def new_sheet(self, pairs: Iterable[QuestionAnswerPair]) -> RatingSheet:
        return RatingSheet.from_pairs(pairs, min_rating=self.min_rating, max_rating=self.max_rating)

    def fill_sheet(self, sheet: RatingSheet, ratings: Sequence[AnswerRating]) -> RatingSheet:
        """
        Apply submitted ratings to a sheet.

        Raises:
            UnknownAnswer: A rating targets an answer outside the sheet
            InvalidRating: A rating is outside the configured bounds
        """
        for item in ratings:
            if item.answer_id not in sheet:
                raise UnknownAnswer(str(item.answer_id))
            if item.rating is not None:
                sheet.set_rating(item.answer_id, item.rating)
            sheet.set_looks_ai(item.answer_id, item.looks_ai)
        return sheet

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit_ratings(
        self,
        application_id: UUID,
        evaluator_id: Optional[str],
        ratings: Sequence[AnswerRating],
    ) -> EvaluationOutcome:
        """Fetch pairs, bind the ratings and submit in one call."""
        self._require_evaluator(evaluator_id)
        pairs, sheet = self.open_sheet(application_id)
        self.fill_sheet(sheet, ratings)
        return self.submit(application_id, evaluator_id, pairs, sheet)

    def submit(
        self,
        application_id: UUID,
        evaluator_id: Optional[str],
        pairs: Sequence[QuestionAnswerPair],
        sheet: RatingSheet,
    ) -> EvaluationOutcome:
        """
        Score a completed sheet and persist the evaluation.

        Raises:
            Unauthenticated: No evaluator identity
            InvalidState: No pairs, sheet mismatch, or sheet already submitted
            IncompleteEvaluation: A pair has no rating
            DuplicateEvaluation: first_wins policy and an evaluation exists
            EvaluationInsertFailed: The evaluation row was rejected
            AnswerEvaluationInsertFailed: The answer evaluation batch was rejected
        """
        evaluator_id = self._require_evaluator(evaluator_id)
        if sheet.submitted:
            raise InvalidState("Evaluation already submitted for this rating sheet")

        score = self.scorer.calculate(pairs, sheet)

        rows: List[AnswerEvaluationRow] = []
        for pair in pairs:
            entry = sheet.get(pair.id)
            rows.append((pair.id, entry.rating, entry.looks_ai))

        final_score = float(score.final_score)
        if self.write_mode == EvaluationWriteMode.TRANSACTIONAL:
            evaluation_id = self._persist_transactional(application_id, evaluator_id, final_score, rows)
        else:
            self._reject_duplicate(application_id, evaluator_id)
            evaluation_id = self._persist_sequential(application_id, evaluator_id, final_score, rows)

        sheet.mark_submitted()

        logger.info(
            "evaluation_persisted",
            evaluation_id=str(evaluation_id),
            application_id=str(application_id),
            evaluator_id=evaluator_id,
            final_score=final_score,
            answer_count=len(rows),
            write_mode=self.write_mode.value,
        )

        return EvaluationOutcome(
            evaluation_id=evaluation_id,
            application_id=application_id,
            evaluator_id=evaluator_id,
            score=score,
        )

    def _persist_sequential(
        self,
        application_id: UUID,
        evaluator_id: str,
        final_score: float,
        rows: List[AnswerEvaluationRow],
    ) -> UUID:
        try:
            evaluation_id = self.evaluation_repo.insert_evaluation(
                application_id, evaluator_id, final_score
            )
        except RepositoryException as e:
            logger.error(
                "evaluation_insert_failed",
                application_id=str(application_id),
                evaluator_id=evaluator_id,
                error=str(e),
            )
            raise EvaluationInsertFailed(cause=e) from e

        try:
            self.evaluation_repo.insert_answer_evaluations(evaluation_id, rows)
        except RepositoryException as e:
            # Parent row stays behind; find_orphaned() reports it.
            logger.error(
                "answer_evaluations_insert_failed",
                orphaned_evaluation_id=str(evaluation_id),
                application_id=str(application_id),
                evaluator_id=evaluator_id,
                answer_count=len(rows),
                error=str(e),
            )
            raise AnswerEvaluationInsertFailed(evaluation_id, cause=e, orphaned=True) from e

        return evaluation_id

    def _persist_transactional(
        self,
        application_id: UUID,
        evaluator_id: str,
        final_score: float,
        rows: List[AnswerEvaluationRow],
    ) -> UUID:
        evaluation_id: Optional[UUID] = None
        try:
            with self.evaluation_repo.transaction() as cursor:
                self._reject_duplicate(application_id, evaluator_id, cursor=cursor)
                try:
                    evaluation_id = self.evaluation_repo.insert_evaluation(
                        application_id, evaluator_id, final_score, cursor=cursor
                    )
                except RepositoryException as e:
                    raise EvaluationInsertFailed(cause=e) from e

                try:
                    self.evaluation_repo.insert_answer_evaluations(evaluation_id, rows, cursor=cursor)
                except RepositoryException as e:
                    raise AnswerEvaluationInsertFailed(evaluation_id, cause=e, orphaned=False) from e
        except (EvaluationInsertFailed, AnswerEvaluationInsertFailed) as e:
            logger.error(
                "evaluation_transaction_rolled_back",
                application_id=str(application_id),
                evaluator_id=evaluator_id,
                failed_step=e.error_code,
                error=str(e.cause),
            )
            raise
        except RepositoryException as e:
            # Commit itself failed; nothing was persisted.
            logger.error(
                "evaluation_commit_failed",
                application_id=str(application_id),
                evaluator_id=evaluator_id,
                error=str(e),
            )
            raise EvaluationInsertFailed(cause=e) from e

        return evaluation_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def current_evaluation(self, application_id: UUID) -> Optional[Dict[str, Any]]:
        """
        The evaluation that counts for an application under the configured policy:
        the earliest for first_wins, otherwise the latest.

        Evaluations without answer evaluations are never current.
        """
        evaluations = [
            e for e in self.evaluation_repo.list_for_application(application_id)
            if e["answer_evaluations"]
        ]
        if not evaluations:
            return None
        if self.duplicate_policy == DuplicateEvaluationPolicy.FIRST_WINS:
            return evaluations[-1]
        return evaluations[0]

    def _reject_duplicate(
        self,
        application_id: UUID,
        evaluator_id: str,
        cursor: Optional[Any] = None,
    ) -> None:
        """
        Enforce first_wins before any write.

        In transactional mode the lookup runs on the transaction's cursor.
        Snowflake only isolates at READ COMMITTED, so two submissions that
        overlap exactly can still both pass; a unique constraint is not
        available on Snowflake standard tables.
        """
        if self.duplicate_policy != DuplicateEvaluationPolicy.FIRST_WINS:
            return
        existing = self.evaluation_repo.get_first_id_for_application(application_id, cursor=cursor)
        if existing is not None:
            logger.warning(
                "evaluation_rejected_duplicate",
                application_id=str(application_id),
                existing_evaluation_id=str(existing),
                evaluator_id=evaluator_id,
            )
            raise DuplicateEvaluation(application_id, existing)

    def _require_evaluator(self, evaluator_id: Optional[str]) -> str:
        if evaluator_id is None or not str(evaluator_id).strip():
            raise Unauthenticated()
        return str(evaluator_id).strip()
