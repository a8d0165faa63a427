"""
Services module for the Application Review Platform.

Repositories import the connection factory from here, so this module must not
import anything that depends on repositories. Import EvaluationService from
review_platform.services.evaluation_service directly.
"""

from review_platform.services.snowflake import get_snowflake_connection

__all__ = [
    "get_snowflake_connection",
]
