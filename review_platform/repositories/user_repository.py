"""
User Repository - Application Review Platform
review_platform/repositories/user_repository.py

Data access layer for the user directory.
"""

from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from review_platform.models.enumerations import UserRole
from review_platform.repositories.base import BaseRepository

SORTABLE_COLUMNS = {
    "full_name": "FULL_NAME",
    "email": "EMAIL",
    "role": "ROLE",
    "reg_num": "REG_NUM",
    "created_at": "CREATED_AT",
}

_SELECT_COLUMNS = """
    ID, FULL_NAME, EMAIL, VERIFIED, PHONE_NUMBER, ROLE,
    CHICKENED_OUT, REG_NUM, CREATED_AT, UPDATED_AT
"""


class UserRepository(BaseRepository):
    """Repository for read access to USERS."""

    TABLE_NAME = "USERS"

    def get_by_id(self, user_id: UUID) -> Optional[Dict[str, Any]]:
        """
        Retrieve a user by ID.

        Args:
            user_id: UUID of the user

        Returns:
            User dict or None if not found
        """
        sql = f"SELECT {_SELECT_COLUMNS} FROM USERS WHERE ID = %s"
        row = self.execute_query(sql, (str(user_id),), fetch_one=True)

        if not row:
            return None

        return self._row_to_dict(row)

    def get_all(
        self,
        page: int = 1,
        page_size: int = 10,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        chickened_out: Optional[bool] = None,
        sort_by: str = "full_name",
        descending: bool = False,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Retrieve paginated list of users with optional filters.

        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page
            search: Case-insensitive match on name, email, role or registration number
            role: Optional filter by role
            chickened_out: Optional filter by withdrawal flag
            sort_by: One of SORTABLE_COLUMNS
            descending: Sort direction

        Returns:
            Tuple of (list of user dicts, total count)
        """
        where_clauses = ["1=1"]
        params: List[Any] = []

        if search:
            term = f"%{search.lower()}%"
            where_clauses.append(
                "(LOWER(FULL_NAME) LIKE %s OR LOWER(EMAIL) LIKE %s "
                "OR LOWER(ROLE) LIKE %s OR LOWER(REG_NUM) LIKE %s)"
            )
            params.extend([term, term, term, term])

        if role:
            where_clauses.append("ROLE = %s")
            params.append(role.value)

        if chickened_out is not None:
            where_clauses.append("CHICKENED_OUT = %s")
            params.append(chickened_out)

        where_sql = " AND ".join(where_clauses)
        order_column = SORTABLE_COLUMNS.get(sort_by, "FULL_NAME")
        direction = "DESC" if descending else "ASC"

        count_sql = f"SELECT COUNT(*) as TOTAL FROM USERS WHERE {where_sql}"
        count_result = self.execute_query(count_sql, tuple(params), fetch_one=True)
        total = count_result["TOTAL"] if count_result else 0

        limit, offset = self.paginate(page, page_size)
        data_sql = f"""
            SELECT {_SELECT_COLUMNS}
            FROM USERS
            WHERE {where_sql}
            ORDER BY {order_column} {direction}, ID
            LIMIT %s OFFSET %s
        """
        rows = self.execute_query(data_sql, tuple(params) + (limit, offset), fetch_all=True) or []

        return [self._row_to_dict(row) for row in rows], total

    def _row_to_dict(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Convert Snowflake row to user dict."""
        return {
            "id": UUID(row["ID"]),
            "full_name": row["FULL_NAME"],
            "email": row["EMAIL"],
            "verified": bool(row["VERIFIED"]),
            "phone_number": row["PHONE_NUMBER"],
            "role": UserRole(row["ROLE"]),
            "chickened_out": bool(row["CHICKENED_OUT"]),
            "reg_num": row["REG_NUM"],
            "created_at": self.normalize_timestamp(row["CREATED_AT"]),
            "updated_at": self.normalize_timestamp(row["UPDATED_AT"]),
        }
