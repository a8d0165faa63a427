# review_platform/scoring/evaluation_scorer.py
"""
Evaluation Scorer
-----------------
Computes an application's final score from the operator's per-answer ratings
and AI-likelihood flags.

Formula:
    T = number of question/answer pairs
    M = T × max_rating                 (max attainable raw score)
    C = Σ rating                       (each in [min_rating, max_rating])
    A = number of answers flagged as looking AI-generated
    S = w1 × (C / M) − w2 × (A / T)
    final_score = max(0, S) × 100      clamped to [0, 100], quantized to 0.01

Weights (config.py):
    w1  rating quality   0.8
    w2  AI penalty       0.2
"""
import structlog
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from review_platform.core.exceptions import IncompleteEvaluation, InvalidState
from review_platform.models.application import QuestionAnswerPair
from review_platform.scoring.rating_sheet import RatingSheet
from review_platform.scoring.utils import clamp, fraction, to_decimal

logger = structlog.get_logger(__name__)

W_RATING_QUALITY = Decimal("0.8")
W_AI_PENALTY = Decimal("0.2")


@dataclass
class EvaluationScoreResult:
    """Output of EvaluationScorer.calculate()."""
    final_score: Decimal       # [0, 100] quantized to 0.01
    raw_score: Decimal         # S before flooring, quantized to 0.0001
    rating_quality: Decimal    # C / M quantized to 0.0001
    ai_penalty: Decimal        # A / T quantized to 0.0001
    total_questions: int       # T
    max_score: int             # M
    rating_sum: int            # C
    ai_flagged: int            # A
    w_rating_quality: Decimal
    w_ai_penalty: Decimal

    @property
    def final_score_float(self) -> float:
        return float(self.final_score)


class EvaluationScorer:
    """Calculate the final evaluation score for one application."""

    def __init__(
        self,
        w_rating_quality: Optional[float] = None,
        w_ai_penalty: Optional[float] = None,
    ):
        self.w_rating_quality = (
            W_RATING_QUALITY if w_rating_quality is None else to_decimal(w_rating_quality)
        )
        self.w_ai_penalty = (
            W_AI_PENALTY if w_ai_penalty is None else to_decimal(w_ai_penalty)
        )

    def calculate(
        self,
        pairs: Sequence[QuestionAnswerPair],
        sheet: RatingSheet,
    ) -> EvaluationScoreResult:
        """
        Args:
            pairs: The application's question/answer pairs, in display order.
            sheet: Rating sheet opened for exactly these pairs.

        Returns:
            EvaluationScoreResult with final_score and the intermediate terms.

        Raises:
            InvalidState: No pairs, or the sheet does not cover exactly the pairs.
            IncompleteEvaluation: At least one pair has no rating.

        Examples:
            >>> pairs = [QuestionAnswerPair(id=a, question="q", answer="x") for a in ids]
            >>> # ratings [7, 9], flags [False, True]
            >>> EvaluationScorer().calculate(pairs, sheet).final_score
            Decimal('54.00')
        """
        total = len(pairs)
        if total == 0:
            raise InvalidState("Cannot score an application with no answers")

        pair_ids = [str(p.id) for p in pairs]
        if sorted(pair_ids) != sorted(sheet.answer_ids):
            raise InvalidState("Rating sheet does not match the application's answers")

        missing = sheet.missing_answer_ids()
        if missing:
            raise IncompleteEvaluation(missing)

        max_score = total * sheet.max_rating
        rating_sum = 0
        ai_flagged = 0
        for answer_id in pair_ids:
            entry = sheet.get(answer_id)
            rating_sum += entry.rating
            if entry.looks_ai:
                ai_flagged += 1

        rating_quality = fraction(rating_sum, max_score)
        ai_penalty = fraction(ai_flagged, total)

        raw = self.w_rating_quality * rating_quality - self.w_ai_penalty * ai_penalty

        final = clamp(
            (max(Decimal("0"), raw) * Decimal("100")).quantize(Decimal("0.01")),
            Decimal("0"),
            Decimal("100"),
        )

        logger.info(
            "evaluation_scored",
            total_questions=total,
            max_score=max_score,
            rating_sum=rating_sum,
            ai_flagged=ai_flagged,
            rating_quality=float(rating_quality),
            ai_penalty=float(ai_penalty),
            raw_score=float(raw),
            final_score=float(final),
        )

        return EvaluationScoreResult(
            final_score=final,
            raw_score=raw.quantize(Decimal("0.0001")),
            rating_quality=rating_quality.quantize(Decimal("0.0001")),
            ai_penalty=ai_penalty.quantize(Decimal("0.0001")),
            total_questions=total,
            max_score=max_score,
            rating_sum=rating_sum,
            ai_flagged=ai_flagged,
            w_rating_quality=self.w_rating_quality,
            w_ai_penalty=self.w_ai_penalty,
        )
