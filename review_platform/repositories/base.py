"""
Base Repository - Application Review Platform
review_platform/repositories/base.py

Base repository class with Snowflake connection management and common utilities.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, List, Optional, Sequence
from uuid import UUID

import snowflake.connector
from snowflake.connector import DictCursor
from snowflake.connector.errors import DatabaseError, InterfaceError, ProgrammingError

from review_platform.core.exceptions import (
    DatabaseConnectionException,
    DuplicateEntityException,
    ForeignKeyViolationException,
    RepositoryException,
)
from review_platform.services.snowflake import get_snowflake_connection


class BaseRepository:
    """Base repository with Snowflake connection management."""

    @contextmanager
    def get_connection(self) -> Generator[snowflake.connector.SnowflakeConnection, None, None]:
        """Context manager for Snowflake connections."""
        conn = None
        try:
            conn = get_snowflake_connection()
            yield conn
        except InterfaceError as e:
            raise DatabaseConnectionException(f"Failed to connect to Snowflake: {e}")
        finally:
            if conn:
                conn.close()

    @contextmanager
    def get_cursor(self, dict_cursor: bool = True) -> Generator[Any, None, None]:
        """Context manager for Snowflake cursors with automatic connection cleanup."""
        with self.get_connection() as conn:
            cursor = conn.cursor(DictCursor) if dict_cursor else conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()

    @contextmanager
    def transaction(self) -> Generator[Any, None, None]:
        """
        Run several statements in one transaction.

        Commits when the block exits normally and rolls back on any exception,
        which is re-raised translated into a repository exception.
        """
        with self.get_connection() as conn:
            conn.autocommit(False)
            cursor = conn.cursor(DictCursor)
            try:
                yield cursor
                conn.commit()
            except (ProgrammingError, DatabaseError) as e:
                conn.rollback()
                raise self._translate_error(e)
            except Exception:
                conn.rollback()
                raise
            finally:
                cursor.close()

    def execute_query(
        self,
        sql: str,
        params: Optional[tuple] = None,
        fetch_one: bool = False,
        fetch_all: bool = False,
        commit: bool = False,
    ) -> Optional[Any]:
        """
        Execute a SQL query with error handling.

        Args:
            sql: SQL query string
            params: Query parameters
            fetch_one: Return single row
            fetch_all: Return all rows
            commit: Commit transaction after execution

        Returns:
            Query results or None
        """
        with self.get_cursor() as cursor:
            try:
                cursor.execute(sql, params or ())

                if commit:
                    cursor.connection.commit()

                if fetch_one:
                    return cursor.fetchone()
                elif fetch_all:
                    return cursor.fetchall()

                return cursor.rowcount

            except (ProgrammingError, DatabaseError) as e:
                raise self._translate_error(e)

    def execute_many(self, sql: str, rows: Sequence[tuple], commit: bool = True) -> int:
        """
        Execute one statement for a batch of parameter tuples.

        Returns:
            Number of affected rows
        """
        with self.get_cursor() as cursor:
            try:
                cursor.executemany(sql, list(rows))
                if commit:
                    cursor.connection.commit()
                return cursor.rowcount
            except (ProgrammingError, DatabaseError) as e:
                raise self._translate_error(e)

    def _translate_error(self, e: Exception) -> RepositoryException:
        """Map a Snowflake error to the repository exception hierarchy."""
        error_msg = str(e).upper()
        if isinstance(e, ProgrammingError):
            if "UNIQUE" in error_msg or "DUPLICATE" in error_msg:
                return DuplicateEntityException(str(e))
            elif "FOREIGN KEY" in error_msg:
                return ForeignKeyViolationException(str(e))
            return RepositoryException(f"Query error: {e}")
        return RepositoryException(f"Database error: {e}")

    def uuid_to_str(self, uuid_val: Optional[UUID]) -> Optional[str]:
        """Convert UUID to string for Snowflake storage."""
        return str(uuid_val) if uuid_val else None

    def str_to_uuid(self, uuid_str: Optional[str]) -> Optional[UUID]:
        """Convert string from Snowflake to UUID."""
        return UUID(uuid_str) if uuid_str else None

    def normalize_timestamp(self, dt: Optional[datetime]) -> Optional[datetime]:
        """Ensure timestamp is UTC-aware."""
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    def row_to_dict(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Convert Snowflake row (uppercase keys) to lowercase dict."""
        if row is None:
            return {}
        return {k.lower(): v for k, v in row.items()}

    def placeholders(self, count: int) -> str:
        """Comma-separated %s placeholders for an IN clause."""
        return ", ".join(["%s"] * count)

    def paginate(self, page: int, page_size: int) -> tuple[int, int]:
        """Return (limit, offset) for a 1-indexed page."""
        return page_size, (page - 1) * page_size
