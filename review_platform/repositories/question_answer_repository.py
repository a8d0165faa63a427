"""
Question/Answer Repository - Application Review Platform
review_platform/repositories/question_answer_repository.py

Reads the question/answer pairs of an application from ANSWERS and QUESTIONS.
"""

from typing import List
from uuid import UUID

from review_platform.core.exceptions import EntityNotFoundException
from review_platform.models.application import QuestionAnswerPair
from review_platform.repositories.base import BaseRepository

UNKNOWN_QUESTION = "Unknown Question"


class QuestionAnswerRepository(BaseRepository):
    """Repository for an application's question/answer pairs."""

    def fetch_pairs(self, application_id: UUID) -> List[QuestionAnswerPair]:
        """
        Fetch every answer of an application with its question text.

        Args:
            application_id: UUID of the application

        Returns:
            Pairs keyed by answer ID, in question order. Answers whose question
            row is missing get the text "Unknown Question".

        Raises:
            EntityNotFoundException: Application does not exist
        """
        exists = self.execute_query(
            "SELECT 1 FROM APPLICATIONS WHERE ID = %s",
            (str(application_id),),
            fetch_one=True,
        )
        if not exists:
            raise EntityNotFoundException("Application", str(application_id))

        sql = """
            SELECT A.ID, A.BODY AS ANSWER, Q.BODY AS QUESTION
            FROM ANSWERS A
            LEFT JOIN QUESTIONS Q ON Q.ID = A.QUESTION_ID
            WHERE A.APPLICATION_ID = %s
            ORDER BY A.QUESTION_ID, A.ID
        """
        rows = self.execute_query(sql, (str(application_id),), fetch_all=True) or []

        return [
            QuestionAnswerPair(
                id=UUID(row["ID"]),
                question=row["QUESTION"] or UNKNOWN_QUESTION,
                answer=row["ANSWER"] or "",
            )
            for row in rows
        ]
