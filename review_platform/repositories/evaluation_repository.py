"""
Evaluation Repository - Application Review Platform
review_platform/repositories/evaluation_repository.py

Data access layer for EVALUATIONS and their ANSWER_EVALUATIONS children.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple
from uuid import UUID, uuid4

from snowflake.connector.errors import DatabaseError

from review_platform.repositories.base import BaseRepository

# (answer_id, rating, looks_ai)
AnswerEvaluationRow = Tuple[UUID, int, bool]

_INSERT_EVALUATION_SQL = """
    INSERT INTO EVALUATIONS (ID, APPLICATION_ID, EVALUATOR_ID, FINAL_SCORE, CREATED_AT)
    VALUES (%s, %s, %s, %s, %s)
"""

_INSERT_ANSWER_EVALUATION_SQL = """
    INSERT INTO ANSWER_EVALUATIONS (EVALUATION_ID, ANSWER_ID, RATING, LOOKS_AI)
    VALUES (%s, %s, %s, %s)
"""


class EvaluationRepository(BaseRepository):
    """Repository for Evaluation writes and reads."""

    TABLE_NAME = "EVALUATIONS"

    def insert_evaluation(
        self,
        application_id: UUID,
        evaluator_id: str,
        final_score: float,
        cursor: Optional[Any] = None,
    ) -> UUID:
        """
        Insert one evaluation row.

        Args:
            application_id: UUID of the evaluated application
            evaluator_id: Identity of the operator
            final_score: Score in [0, 100]
            cursor: Cursor of an open transaction; autocommits when omitted

        Returns:
            ID of the new evaluation
        """
        evaluation_id = uuid4()
        params = (
            str(evaluation_id),
            str(application_id),
            evaluator_id,
            final_score,
            datetime.now(timezone.utc),
        )

        if cursor is not None:
            self._execute_on(cursor, _INSERT_EVALUATION_SQL, [params])
        else:
            self.execute_query(_INSERT_EVALUATION_SQL, params, commit=True)

        return evaluation_id

    def insert_answer_evaluations(
        self,
        evaluation_id: UUID,
        rows: Sequence[AnswerEvaluationRow],
        cursor: Optional[Any] = None,
    ) -> int:
        """
        Insert the per-answer judgments of an evaluation as one batch.

        Args:
            evaluation_id: Parent evaluation
            rows: (answer_id, rating, looks_ai) per answer
            cursor: Cursor of an open transaction; autocommits when omitted

        Returns:
            Number of rows inserted
        """
        params = [
            (str(evaluation_id), str(answer_id), rating, looks_ai)
            for answer_id, rating, looks_ai in rows
        ]
        if not params:
            return 0

        if cursor is not None:
            self._execute_on(cursor, _INSERT_ANSWER_EVALUATION_SQL, params)
            return len(params)

        self.execute_many(_INSERT_ANSWER_EVALUATION_SQL, params, commit=True)
        return len(params)

    def get_by_id(self, evaluation_id: UUID) -> Optional[Dict[str, Any]]:
        """
        Retrieve an evaluation with its answer evaluations.

        Args:
            evaluation_id: UUID of the evaluation

        Returns:
            Evaluation dict or None if not found
        """
        sql = """
            SELECT ID, APPLICATION_ID, EVALUATOR_ID, FINAL_SCORE, CREATED_AT
            FROM EVALUATIONS
            WHERE ID = %s
        """
        row = self.execute_query(sql, (str(evaluation_id),), fetch_one=True)
        if not row:
            return None

        evaluation = self._row_to_dict(row)
        evaluation["answer_evaluations"] = self.get_answer_evaluations([evaluation_id]).get(
            evaluation_id, []
        )
        return evaluation

    def list_for_application(self, application_id: UUID) -> List[Dict[str, Any]]:
        """
        All evaluations of an application, newest first, with children.

        Args:
            application_id: UUID of the application

        Returns:
            List of evaluation dicts
        """
        sql = """
            SELECT ID, APPLICATION_ID, EVALUATOR_ID, FINAL_SCORE, CREATED_AT
            FROM EVALUATIONS
            WHERE APPLICATION_ID = %s
            ORDER BY CREATED_AT DESC
        """
        rows = self.execute_query(sql, (str(application_id),), fetch_all=True) or []
        evaluations = [self._row_to_dict(row) for row in rows]

        children = self.get_answer_evaluations([e["id"] for e in evaluations])
        for evaluation in evaluations:
            evaluation["answer_evaluations"] = children.get(evaluation["id"], [])
        return evaluations

    def get_first_id_for_application(
        self,
        application_id: UUID,
        cursor: Optional[Any] = None,
    ) -> Optional[UUID]:
        """
        ID of the earliest complete evaluation of an application, if any.

        Evaluations without answer evaluations (orphans of a failed second
        write) are ignored, so they never block a retry.

        Args:
            application_id: UUID of the application
            cursor: Cursor of an open transaction; uses its own connection when omitted
        """
        sql = """
            SELECT E.ID FROM EVALUATIONS E
            WHERE E.APPLICATION_ID = %s
              AND EXISTS (
                  SELECT 1 FROM ANSWER_EVALUATIONS AE WHERE AE.EVALUATION_ID = E.ID
              )
            ORDER BY E.CREATED_AT ASC
            LIMIT 1
        """
        params = (str(application_id),)
        if cursor is not None:
            self._execute_on(cursor, sql, [params])
            row = cursor.fetchone()
        else:
            row = self.execute_query(sql, params, fetch_one=True)
        return UUID(row["ID"]) if row else None

    def get_answer_evaluations(
        self, evaluation_ids: Sequence[UUID]
    ) -> Dict[UUID, List[Dict[str, Any]]]:
        """
        Children of several evaluations, grouped by evaluation ID.
        """
        if not evaluation_ids:
            return {}

        sql = f"""
            SELECT EVALUATION_ID, ANSWER_ID, RATING, LOOKS_AI
            FROM ANSWER_EVALUATIONS
            WHERE EVALUATION_ID IN ({self.placeholders(len(evaluation_ids))})
        """
        rows = self.execute_query(
            sql, tuple(str(e) for e in evaluation_ids), fetch_all=True
        ) or []

        grouped: Dict[UUID, List[Dict[str, Any]]] = {}
        for row in rows:
            child = {
                "evaluation_id": UUID(row["EVALUATION_ID"]),
                "answer_id": UUID(row["ANSWER_ID"]),
                "rating": int(row["RATING"]),
                "looks_ai": bool(row["LOOKS_AI"]),
            }
            grouped.setdefault(child["evaluation_id"], []).append(child)
        return grouped

    def find_orphaned(self, older_than_minutes: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Evaluations that have no answer evaluations.

        Args:
            older_than_minutes: Only report rows created at least this long ago,
                                so submissions still in flight are skipped

        Returns:
            List of evaluation dicts (with empty answer_evaluations)
        """
        params: List[Any] = []
        age_clause = ""
        if older_than_minutes:
            age_clause = "AND E.CREATED_AT <= %s"
            params.append(datetime.now(timezone.utc) - timedelta(minutes=older_than_minutes))

        sql = f"""
            SELECT E.ID, E.APPLICATION_ID, E.EVALUATOR_ID, E.FINAL_SCORE, E.CREATED_AT
            FROM EVALUATIONS E
            WHERE NOT EXISTS (
                SELECT 1 FROM ANSWER_EVALUATIONS AE WHERE AE.EVALUATION_ID = E.ID
            )
            {age_clause}
            ORDER BY E.CREATED_AT ASC
        """
        rows = self.execute_query(sql, tuple(params), fetch_all=True) or []

        orphans = [self._row_to_dict(row) for row in rows]
        for orphan in orphans:
            orphan["answer_evaluations"] = []
        return orphans

    def delete_orphaned(self, evaluation_id: UUID) -> bool:
        """
        Delete an evaluation only if it still has no answer evaluations.

        Returns:
            True if a row was deleted
        """
        sql = """
            DELETE FROM EVALUATIONS
            WHERE ID = %s
              AND NOT EXISTS (
                  SELECT 1 FROM ANSWER_EVALUATIONS
                  WHERE ANSWER_EVALUATIONS.EVALUATION_ID = EVALUATIONS.ID
              )
        """
        deleted = self.execute_query(sql, (str(evaluation_id),), commit=True)
        return bool(deleted)

    def _execute_on(self, cursor: Any, sql: str, params: List[tuple]) -> None:
        """Run a statement on a caller-owned transaction cursor."""
        try:
            if len(params) == 1:
                cursor.execute(sql, params[0])
            else:
                cursor.executemany(sql, params)
        except DatabaseError as e:
            raise self._translate_error(e)

    def _row_to_dict(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Convert Snowflake row to evaluation dict."""
        return {
            "id": UUID(row["ID"]),
            "application_id": UUID(row["APPLICATION_ID"]),
            "evaluator_id": row["EVALUATOR_ID"],
            "final_score": float(row["FINAL_SCORE"]),
            "created_at": self.normalize_timestamp(row["CREATED_AT"]),
        }
