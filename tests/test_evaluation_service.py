# tests/test_evaluation_service.py
"""
Evaluation Service Tests

Submission flow against the in-memory repositories: validation before any
write, write ordering, duplicate policies and the two write modes.
"""

from decimal import Decimal

import pytest

from review_platform.core.exceptions import (
    AnswerEvaluationInsertFailed,
    DuplicateEvaluation,
    EntityNotFoundException,
    EvaluationInsertFailed,
    IncompleteEvaluation,
    InvalidRating,
    InvalidState,
    Unauthenticated,
    UnknownAnswer,
)
from review_platform.models.evaluation import AnswerRating
from review_platform.services.evaluation_service import EvaluationService

from tests.conftest import (
    ANSWER_IDS,
    APPLICATION_ID,
    EMPTY_APPLICATION_ID,
    EVALUATOR_ID,
    MISSING_ID,
)


def _ratings(values, flags=(False, True, False)):
    return [
        AnswerRating(answer_id=a, rating=r, looks_ai=f)
        for a, r, f in zip(ANSWER_IDS, values, flags)
    ]


@pytest.fixture
def transactional_service(qa_repo, evaluation_repo):
    return EvaluationService(qa_repo=qa_repo, evaluation_repo=evaluation_repo, write_mode="transactional")


# =============================================================================
# SUCCESSFUL SUBMISSION
# =============================================================================


class TestSubmitSuccess:

    def test_scores_and_persists(self, evaluation_service, evaluation_repo):
        outcome = evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        # C=20, M=30, A=1 → 0.8×(2/3) − 0.2×(1/3) = 0.4667
        assert outcome.score.final_score == Decimal("46.67")
        assert outcome.final_score == 46.67
        assert evaluation_repo.calls == ["insert_evaluation", "insert_answer_evaluations"]

        [stored] = evaluation_repo.evaluations
        assert stored["id"] == outcome.evaluation_id
        assert stored["application_id"] == APPLICATION_ID
        assert stored["evaluator_id"] == EVALUATOR_ID
        assert stored["final_score"] == 46.67

    def test_one_answer_evaluation_per_pair_in_pair_order(self, evaluation_service, evaluation_repo):
        outcome = evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        children = evaluation_repo.answer_evaluations
        assert [c["answer_id"] for c in children] == ANSWER_IDS
        assert [c["rating"] for c in children] == [7, 9, 4]
        assert [c["looks_ai"] for c in children] == [False, True, False]
        assert {c["evaluation_id"] for c in children} == {outcome.evaluation_id}

    def test_rating_order_in_payload_is_irrelevant(self, evaluation_service, evaluation_repo):
        ratings = list(reversed(_ratings([7, 9, 4])))
        evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, ratings)
        assert [c["answer_id"] for c in evaluation_repo.answer_evaluations] == ANSWER_IDS

    def test_evaluator_id_is_stripped(self, evaluation_service, evaluation_repo):
        evaluation_service.submit_ratings(APPLICATION_ID, f"  {EVALUATOR_ID} ", _ratings([5, 5, 5]))
        assert evaluation_repo.evaluations[0]["evaluator_id"] == EVALUATOR_ID

    def test_each_submission_gets_new_id(self, evaluation_service, evaluation_repo):
        first = evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))
        second = evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        assert first.evaluation_id != second.evaluation_id
        assert len(evaluation_repo.evaluations) == 2
        assert len(evaluation_repo.answer_evaluations) == 6

    def test_later_rating_for_same_answer_wins(self, evaluation_service, evaluation_repo):
        ratings = _ratings([7, 9, 4]) + [AnswerRating(answer_id=ANSWER_IDS[0], rating=2)]
        evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, ratings)
        assert evaluation_repo.answer_evaluations[0]["rating"] == 2


# =============================================================================
# VALIDATION BEFORE ANY WRITE
# =============================================================================


class TestRejectedBeforeWrites:

    @pytest.mark.parametrize("evaluator_id", [None, "", "   "])
    def test_unauthenticated_checked_first(self, evaluation_service, qa_repo, evaluation_repo, evaluator_id):
        with pytest.raises(Unauthenticated):
            evaluation_service.submit_ratings(APPLICATION_ID, evaluator_id, _ratings([7, 9, 4]))
        assert qa_repo.calls == []
        assert evaluation_repo.calls == []

    def test_incomplete_sheet(self, evaluation_service, evaluation_repo):
        ratings = _ratings([7, None, 4])
        with pytest.raises(IncompleteEvaluation) as exc_info:
            evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, ratings)

        assert exc_info.value.missing_answer_ids == [str(ANSWER_IDS[1])]
        assert evaluation_repo.calls == []

    def test_missing_ratings_entirely(self, evaluation_service, evaluation_repo):
        with pytest.raises(IncompleteEvaluation) as exc_info:
            evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, [])
        assert len(exc_info.value.missing_answer_ids) == 3
        assert evaluation_repo.evaluations == []

    def test_out_of_range_rating(self, evaluation_service, evaluation_repo):
        with pytest.raises(InvalidRating):
            evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 11, 4]))
        assert evaluation_repo.calls == []

    def test_unknown_answer(self, evaluation_service, evaluation_repo):
        ratings = _ratings([7, 9, 4]) + [AnswerRating(answer_id=MISSING_ID, rating=5)]
        with pytest.raises(UnknownAnswer) as exc_info:
            evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, ratings)
        assert exc_info.value.answer_id == str(MISSING_ID)
        assert evaluation_repo.calls == []

    def test_application_without_answers(self, evaluation_service, evaluation_repo):
        with pytest.raises(InvalidState):
            evaluation_service.submit_ratings(EMPTY_APPLICATION_ID, EVALUATOR_ID, [])
        assert evaluation_repo.calls == []

    def test_missing_application(self, evaluation_service, evaluation_repo):
        with pytest.raises(EntityNotFoundException):
            evaluation_service.submit_ratings(MISSING_ID, EVALUATOR_ID, [])
        assert evaluation_repo.calls == []

    def test_sheet_already_submitted(self, evaluation_service, evaluation_repo):
        pairs, sheet = evaluation_service.open_sheet(APPLICATION_ID)
        evaluation_service.fill_sheet(sheet, _ratings([7, 9, 4]))
        evaluation_service.submit(APPLICATION_ID, EVALUATOR_ID, pairs, sheet)

        with pytest.raises(InvalidState):
            evaluation_service.submit(APPLICATION_ID, EVALUATOR_ID, pairs, sheet)
        assert len(evaluation_repo.evaluations) == 1


# =============================================================================
# SEQUENTIAL WRITE FAILURES
# =============================================================================


class TestSequentialWriteFailures:

    def test_evaluation_insert_failure_skips_answers(self, evaluation_service, evaluation_repo):
        evaluation_repo.fail_evaluation_insert = True

        with pytest.raises(EvaluationInsertFailed):
            evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        assert evaluation_repo.calls == ["insert_evaluation"]
        assert evaluation_repo.evaluations == []
        assert evaluation_repo.answer_evaluations == []

    def test_answer_insert_failure_leaves_orphan(self, evaluation_service, evaluation_repo):
        evaluation_repo.fail_answer_insert = True

        with pytest.raises(AnswerEvaluationInsertFailed) as exc_info:
            evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        error = exc_info.value
        assert error.orphaned is True
        assert error.evaluation_id == evaluation_repo.evaluations[0]["id"]
        assert evaluation_repo.answer_evaluations == []
        assert [o["id"] for o in evaluation_repo.find_orphaned()] == [error.evaluation_id]

    def test_sheet_stays_open_after_failure(self, evaluation_service, evaluation_repo):
        pairs, sheet = evaluation_service.open_sheet(APPLICATION_ID)
        evaluation_service.fill_sheet(sheet, _ratings([7, 9, 4]))

        evaluation_repo.fail_evaluation_insert = True
        with pytest.raises(EvaluationInsertFailed):
            evaluation_service.submit(APPLICATION_ID, EVALUATOR_ID, pairs, sheet)
        assert not sheet.submitted

        evaluation_repo.fail_evaluation_insert = False
        outcome = evaluation_service.submit(APPLICATION_ID, EVALUATOR_ID, pairs, sheet)
        assert sheet.submitted
        assert outcome.final_score == 46.67


# =============================================================================
# TRANSACTIONAL WRITES
# =============================================================================


class TestTransactionalWrites:

    def test_commits_both_writes(self, transactional_service, evaluation_repo):
        transactional_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        assert evaluation_repo.calls == [
            "begin", "insert_evaluation", "insert_answer_evaluations", "commit",
        ]
        assert len(evaluation_repo.evaluations) == 1
        assert len(evaluation_repo.answer_evaluations) == 3

    def test_answer_failure_rolls_back_parent(self, transactional_service, evaluation_repo):
        evaluation_repo.fail_answer_insert = True

        with pytest.raises(AnswerEvaluationInsertFailed) as exc_info:
            transactional_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        assert exc_info.value.orphaned is False
        assert evaluation_repo.calls[-1] == "rollback"
        assert evaluation_repo.evaluations == []
        assert evaluation_repo.find_orphaned() == []

    def test_commit_failure(self, transactional_service, evaluation_repo):
        evaluation_repo.fail_commit = True

        with pytest.raises(EvaluationInsertFailed):
            transactional_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        assert evaluation_repo.evaluations == []
        assert evaluation_repo.answer_evaluations == []


# =============================================================================
# DUPLICATE POLICIES
# =============================================================================


class TestDuplicatePolicies:

    def test_allow_keeps_every_evaluation(self, evaluation_service, evaluation_repo):
        evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))
        evaluation_service.submit_ratings(APPLICATION_ID, "another-evaluator", _ratings([10, 10, 10]))
        assert len(evaluation_repo.evaluations) == 2

    def test_first_wins_rejects_second(self, qa_repo, evaluation_repo):
        service = EvaluationService(qa_repo=qa_repo, evaluation_repo=evaluation_repo, duplicate_policy="first_wins")
        first = service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        with pytest.raises(DuplicateEvaluation) as exc_info:
            service.submit_ratings(APPLICATION_ID, "another-evaluator", _ratings([10, 10, 10]))

        assert exc_info.value.existing_evaluation_id == first.evaluation_id
        assert len(evaluation_repo.evaluations) == 1
        assert service.current_evaluation(APPLICATION_ID)["id"] == first.evaluation_id

    def test_latest_wins_current_is_newest(self, qa_repo, evaluation_repo):
        service = EvaluationService(qa_repo=qa_repo, evaluation_repo=evaluation_repo, duplicate_policy="latest_wins")
        service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))
        second = service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([10, 10, 10], (False,) * 3))

        current = service.current_evaluation(APPLICATION_ID)
        assert current["id"] == second.evaluation_id
        assert current["final_score"] == 80.0
        assert len(current["answer_evaluations"]) == 3

    def test_no_current_evaluation(self, evaluation_service):
        assert evaluation_service.current_evaluation(APPLICATION_ID) is None


# =============================================================================
# POLICIES AFTER A FAILED SECOND WRITE
# =============================================================================


class TestPoliciesWithOrphans:
    """An evaluation left without answer evaluations never counts."""

    @pytest.fixture
    def first_wins_service(self, qa_repo, evaluation_repo):
        return EvaluationService(qa_repo=qa_repo, evaluation_repo=evaluation_repo, duplicate_policy="first_wins")

    def test_first_wins_retry_with_same_sheet_after_orphan(self, first_wins_service, evaluation_repo):
        pairs, sheet = first_wins_service.open_sheet(APPLICATION_ID)
        first_wins_service.fill_sheet(sheet, _ratings([7, 9, 4]))

        evaluation_repo.fail_answer_insert = True
        with pytest.raises(AnswerEvaluationInsertFailed) as exc_info:
            first_wins_service.submit(APPLICATION_ID, EVALUATOR_ID, pairs, sheet)
        orphan_id = exc_info.value.evaluation_id

        evaluation_repo.fail_answer_insert = False
        outcome = first_wins_service.submit(APPLICATION_ID, EVALUATOR_ID, pairs, sheet)

        assert outcome.evaluation_id != orphan_id
        assert outcome.final_score == 46.67
        assert len(evaluation_repo.answer_evaluations) == 3

    def test_first_wins_blocks_on_complete_evaluation_not_orphan(self, first_wins_service, evaluation_repo):
        evaluation_repo.fail_answer_insert = True
        with pytest.raises(AnswerEvaluationInsertFailed):
            first_wins_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))
        evaluation_repo.fail_answer_insert = False

        kept = first_wins_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        with pytest.raises(DuplicateEvaluation) as exc_info:
            first_wins_service.submit_ratings(APPLICATION_ID, "another-evaluator", _ratings([1, 1, 1]))
        assert exc_info.value.existing_evaluation_id == kept.evaluation_id
        assert first_wins_service.current_evaluation(APPLICATION_ID)["id"] == kept.evaluation_id

    def test_latest_wins_skips_newer_orphan(self, qa_repo, evaluation_repo):
        service = EvaluationService(qa_repo=qa_repo, evaluation_repo=evaluation_repo, duplicate_policy="latest_wins")
        good = service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        evaluation_repo.fail_answer_insert = True
        with pytest.raises(AnswerEvaluationInsertFailed):
            service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([10, 10, 10]))

        current = service.current_evaluation(APPLICATION_ID)
        assert current["id"] == good.evaluation_id
        assert len(current["answer_evaluations"]) == 3

    def test_only_orphan_means_no_current(self, evaluation_service, evaluation_repo):
        evaluation_repo.fail_answer_insert = True
        with pytest.raises(AnswerEvaluationInsertFailed):
            evaluation_service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        assert evaluation_service.current_evaluation(APPLICATION_ID) is None


class TestTransactionalFirstWins:

    @pytest.fixture
    def service(self, qa_repo, evaluation_repo):
        return EvaluationService(
            qa_repo=qa_repo,
            evaluation_repo=evaluation_repo,
            duplicate_policy="first_wins",
            write_mode="transactional",
        )

    def test_lookup_runs_inside_transaction(self, service, evaluation_repo):
        service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))

        assert evaluation_repo.calls == [
            "begin",
            "get_first_id_for_application",
            "insert_evaluation",
            "insert_answer_evaluations",
            "commit",
        ]

    def test_duplicate_rolls_back_without_writes(self, service, evaluation_repo):
        service.submit_ratings(APPLICATION_ID, EVALUATOR_ID, _ratings([7, 9, 4]))
        evaluation_repo.calls.clear()

        with pytest.raises(DuplicateEvaluation):
            service.submit_ratings(APPLICATION_ID, "another-evaluator", _ratings([1, 1, 1]))

        assert evaluation_repo.calls == ["begin", "get_first_id_for_application", "rollback"]
        assert len(evaluation_repo.evaluations) == 1
