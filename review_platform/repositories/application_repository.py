"""
Application Repository - Application Review Platform
review_platform/repositories/application_repository.py

Data access layer for Application entity reads.
"""

from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from review_platform.models.enumerations import ApplicationStatus, Department
from review_platform.repositories.base import BaseRepository

UNKNOWN_USER = "Unknown User"

_SELECT_COLUMNS = """
    A.ID, A.USER_ID, A.DEPARTMENT, A.SUBMITTED, A.STATUS,
    A.CREATED_AT, A.UPDATED_AT, U.FULL_NAME AS USERNAME
"""


class ApplicationRepository(BaseRepository):
    """Repository for Application reads, joined with the applicant's name."""

    TABLE_NAME = "APPLICATIONS"

    def get_by_id(self, application_id: UUID) -> Optional[Dict[str, Any]]:
        """
        Retrieve an application by ID.

        Args:
            application_id: UUID of the application

        Returns:
            Application dict or None if not found
        """
        sql = f"""
            SELECT {_SELECT_COLUMNS}
            FROM APPLICATIONS A
            LEFT JOIN USERS U ON U.ID = A.USER_ID
            WHERE A.ID = %s
        """
        row = self.execute_query(sql, (str(application_id),), fetch_one=True)

        if not row:
            return None

        return self._row_to_dict(row)

    def get_all(
        self,
        page: int = 1,
        page_size: int = 10,
        department: Optional[Department] = None,
        status: Optional[ApplicationStatus] = None,
        submitted: Optional[bool] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Retrieve paginated list of applications with optional filters.

        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page
            department: Optional filter by department
            status: Optional filter by status
            submitted: Optional filter by submission flag

        Returns:
            Tuple of (list of application dicts, total count)
        """
        where_clauses = ["1=1"]
        params: List[Any] = []

        if department:
            where_clauses.append("A.DEPARTMENT = %s")
            params.append(department.value)

        if status:
            where_clauses.append("A.STATUS = %s")
            params.append(status.value)

        if submitted is not None:
            where_clauses.append("A.SUBMITTED = %s")
            params.append(submitted)

        where_sql = " AND ".join(where_clauses)

        count_sql = f"SELECT COUNT(*) as TOTAL FROM APPLICATIONS A WHERE {where_sql}"
        count_result = self.execute_query(count_sql, tuple(params), fetch_one=True)
        total = count_result["TOTAL"] if count_result else 0

        limit, offset = self.paginate(page, page_size)
        data_sql = f"""
            SELECT {_SELECT_COLUMNS}
            FROM APPLICATIONS A
            LEFT JOIN USERS U ON U.ID = A.USER_ID
            WHERE {where_sql}
            ORDER BY A.CREATED_AT DESC, A.ID
            LIMIT %s OFFSET %s
        """
        rows = self.execute_query(data_sql, tuple(params) + (limit, offset), fetch_all=True) or []

        return [self._row_to_dict(row) for row in rows], total

    def list_by_user(self, user_id: UUID) -> List[Dict[str, Any]]:
        """
        All applications of one user, newest first.

        Args:
            user_id: UUID of the applicant

        Returns:
            List of application dicts
        """
        sql = f"""
            SELECT {_SELECT_COLUMNS}
            FROM APPLICATIONS A
            LEFT JOIN USERS U ON U.ID = A.USER_ID
            WHERE A.USER_ID = %s
            ORDER BY A.CREATED_AT DESC
        """
        rows = self.execute_query(sql, (str(user_id),), fetch_all=True) or []
        return [self._row_to_dict(row) for row in rows]

    def exists(self, application_id: UUID) -> bool:
        """
        Check if an application exists.

        Args:
            application_id: UUID of the application

        Returns:
            True if exists, False otherwise
        """
        sql = "SELECT 1 FROM APPLICATIONS WHERE ID = %s"
        row = self.execute_query(sql, (str(application_id),), fetch_one=True)
        return row is not None

    def _row_to_dict(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Convert Snowflake row to application dict."""
        return {
            "id": UUID(row["ID"]),
            "user_id": UUID(row["USER_ID"]),
            "department": Department(row["DEPARTMENT"]),
            "submitted": bool(row["SUBMITTED"]),
            "status": ApplicationStatus(row["STATUS"]),
            "created_at": self.normalize_timestamp(row["CREATED_AT"]),
            "updated_at": self.normalize_timestamp(row["UPDATED_AT"]),
            "username": row.get("USERNAME") or UNKNOWN_USER,
        }
