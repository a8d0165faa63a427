# tests/conftest.py

"""
Pytest Fixtures - Shared test configuration, in-memory repositories and data

Store access is replaced through FastAPI dependency overrides, so no test
needs a Snowflake account.

SAMPLE DATA ID REFERENCE:
- Users:        d1000000-... (applicant), d2000000-... (evaluator)
- Applications: e1000000-... (technical, 3 answers), e2000000-... (design, no answers)
- Answers:      f1000000-..., f2000000-..., f3000000-...
"""

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

import jwt
import pytest
from fastapi.testclient import TestClient

from review_platform.config import get_settings
from review_platform.core.dependencies import (
    get_application_repository,
    get_evaluation_repository,
    get_evaluation_service,
    get_question_answer_repository,
    get_user_repository,
)
from review_platform.core.exceptions import EntityNotFoundException, RepositoryException
from review_platform.core.security import get_current_evaluator_id
from review_platform.main import app
from review_platform.models.application import QuestionAnswerPair
from review_platform.models.enumerations import ApplicationStatus, Department, UserRole
from review_platform.services.evaluation_service import EvaluationService


APPLICANT_ID = UUID("d1000000-0000-0000-0000-000000000001")
EVALUATOR_USER_ID = UUID("d2000000-0000-0000-0000-000000000002")
APPLICATION_ID = UUID("e1000000-0000-0000-0000-000000000001")
EMPTY_APPLICATION_ID = UUID("e2000000-0000-0000-0000-000000000002")
MISSING_ID = UUID("99999999-0000-0000-0000-000000000000")
ANSWER_IDS = [
    UUID("f1000000-0000-0000-0000-000000000001"),
    UUID("f2000000-0000-0000-0000-000000000002"),
    UUID("f3000000-0000-0000-0000-000000000003"),
]
EVALUATOR_ID = str(EVALUATOR_USER_ID)


# =============================================================================
# IN-MEMORY REPOSITORIES
# =============================================================================


class FakeQuestionAnswerRepository:
    """QuestionAnswerRepository backed by a dict of application ID -> pairs."""

    def __init__(self, pairs_by_application: Dict[UUID, List[QuestionAnswerPair]]):
        self.pairs_by_application = pairs_by_application
        self.calls: List[UUID] = []

    def fetch_pairs(self, application_id: UUID) -> List[QuestionAnswerPair]:
        self.calls.append(application_id)
        if application_id not in self.pairs_by_application:
            raise EntityNotFoundException("Application", str(application_id))
        return list(self.pairs_by_application[application_id])


class FakeEvaluationRepository:
    """
    EvaluationRepository keeping rows in lists.

    `fail_evaluation_insert` / `fail_answer_insert` make the next matching
    write raise RepositoryException. `calls` records write order.
    """

    def __init__(self):
        self.evaluations: List[Dict[str, Any]] = []
        self.answer_evaluations: List[Dict[str, Any]] = []
        self.calls: List[str] = []
        self.fail_evaluation_insert = False
        self.fail_answer_insert = False
        self.fail_commit = False
        self._pending: Optional[Dict[str, list]] = None
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    @contextmanager
    def transaction(self):
        self._pending = {"evaluations": [], "answer_evaluations": []}
        self.calls.append("begin")
        try:
            yield object()
            if self.fail_commit:
                raise RepositoryException("Database error: commit failed")
            self.evaluations.extend(self._pending["evaluations"])
            self.answer_evaluations.extend(self._pending["answer_evaluations"])
            self.calls.append("commit")
        except Exception:
            self.calls.append("rollback")
            raise
        finally:
            self._pending = None

    def insert_evaluation(self, application_id, evaluator_id, final_score, cursor=None) -> UUID:
        self.calls.append("insert_evaluation")
        if self.fail_evaluation_insert:
            raise RepositoryException("Query error: insert rejected")
        self._clock += timedelta(seconds=1)
        row = {
            "id": uuid4(),
            "application_id": application_id,
            "evaluator_id": evaluator_id,
            "final_score": final_score,
            "created_at": self._clock,
        }
        target = self._pending["evaluations"] if cursor is not None else self.evaluations
        target.append(row)
        return row["id"]

    def insert_answer_evaluations(self, evaluation_id, rows, cursor=None) -> int:
        self.calls.append("insert_answer_evaluations")
        if self.fail_answer_insert:
            raise RepositoryException("Query error: batch rejected")
        children = [
            {"evaluation_id": evaluation_id, "answer_id": a, "rating": r, "looks_ai": f}
            for a, r, f in rows
        ]
        target = self._pending["answer_evaluations"] if cursor is not None else self.answer_evaluations
        target.extend(children)
        return len(children)

    def _with_children(self, evaluation: Dict[str, Any]) -> Dict[str, Any]:
        return {
            **evaluation,
            "answer_evaluations": [
                c for c in self.answer_evaluations if c["evaluation_id"] == evaluation["id"]
            ],
        }

    def get_by_id(self, evaluation_id):
        for e in self.evaluations:
            if e["id"] == evaluation_id:
                return self._with_children(e)
        return None

    def list_for_application(self, application_id):
        rows = [e for e in self.evaluations if e["application_id"] == application_id]
        rows.sort(key=lambda e: e["created_at"], reverse=True)
        return [self._with_children(e) for e in rows]

    def get_first_id_for_application(self, application_id, cursor=None):
        self.calls.append("get_first_id_for_application")
        with_children = {c["evaluation_id"] for c in self.answer_evaluations}
        rows = [
            e for e in self.evaluations
            if e["application_id"] == application_id and e["id"] in with_children
        ]
        rows.sort(key=lambda e: e["created_at"])
        return rows[0]["id"] if rows else None

    def find_orphaned(self, older_than_minutes=None):
        with_children = {c["evaluation_id"] for c in self.answer_evaluations}
        return [
            {**e, "answer_evaluations": []}
            for e in self.evaluations
            if e["id"] not in with_children
        ]

    def delete_orphaned(self, evaluation_id) -> bool:
        if any(c["evaluation_id"] == evaluation_id for c in self.answer_evaluations):
            return False
        before = len(self.evaluations)
        self.evaluations = [e for e in self.evaluations if e["id"] != evaluation_id]
        return len(self.evaluations) < before


class FakeApplicationRepository:
    def __init__(self, applications: List[Dict[str, Any]]):
        self.applications = applications

    def get_by_id(self, application_id):
        return next((dict(a) for a in self.applications if a["id"] == application_id), None)

    def get_all(self, page=1, page_size=10, department=None, status=None, submitted=None):
        rows = [
            a for a in self.applications
            if (department is None or a["department"] == department)
            and (status is None or a["status"] == status)
            and (submitted is None or a["submitted"] == submitted)
        ]
        start = (page - 1) * page_size
        return [dict(a) for a in rows[start:start + page_size]], len(rows)

    def list_by_user(self, user_id):
        rows = [dict(a) for a in self.applications if a["user_id"] == user_id]
        rows.sort(key=lambda a: a["created_at"], reverse=True)
        return rows

    def exists(self, application_id):
        return any(a["id"] == application_id for a in self.applications)


class FakeUserRepository:
    def __init__(self, users: List[Dict[str, Any]]):
        self.users = users
        self.last_query: Dict[str, Any] = {}

    def get_by_id(self, user_id):
        return next((dict(u) for u in self.users if u["id"] == user_id), None)

    def get_all(self, page=1, page_size=10, search=None, role=None, chickened_out=None,
                sort_by="full_name", descending=False):
        self.last_query = {
            "page": page, "page_size": page_size, "search": search, "role": role,
            "chickened_out": chickened_out, "sort_by": sort_by, "descending": descending,
        }
        rows = [
            u for u in self.users
            if (role is None or u["role"] == role)
            and (chickened_out is None or u["chickened_out"] == chickened_out)
            and (not search or search.lower() in u["full_name"].lower()
                 or search.lower() in u["email"].lower())
        ]
        rows.sort(key=lambda u: u[sort_by] or "", reverse=descending)
        start = (page - 1) * page_size
        return [dict(u) for u in rows[start:start + page_size]], len(rows)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def sample_pairs() -> List[QuestionAnswerPair]:
    return [
        QuestionAnswerPair(id=ANSWER_IDS[0], question="Why do you want to join?", answer="To learn."),
        QuestionAnswerPair(id=ANSWER_IDS[1], question="Describe a project.", answer="A compiler."),
        QuestionAnswerPair(id=ANSWER_IDS[2], question="What is recursion?", answer="See recursion."),
    ]


@pytest.fixture
def sample_users() -> List[Dict[str, Any]]:
    now = datetime(2026, 1, 10, tzinfo=timezone.utc)
    return [
        {
            "id": APPLICANT_ID,
            "full_name": "Alex Applicant",
            "email": "alex@example.com",
            "verified": True,
            "phone_number": "+15550001",
            "role": UserRole.APPLICANT,
            "chickened_out": False,
            "reg_num": "REG-001",
            "created_at": now,
            "updated_at": now,
        },
        {
            "id": EVALUATOR_USER_ID,
            "full_name": "Eve Evaluator",
            "email": "eve@example.com",
            "verified": True,
            "phone_number": None,
            "role": UserRole.EVALUATOR,
            "chickened_out": False,
            "reg_num": "REG-002",
            "created_at": now,
            "updated_at": now,
        },
    ]


@pytest.fixture
def sample_applications() -> List[Dict[str, Any]]:
    return [
        {
            "id": APPLICATION_ID,
            "user_id": APPLICANT_ID,
            "department": Department.TECHNICAL,
            "submitted": True,
            "status": ApplicationStatus.UNDER_REVIEW,
            "created_at": datetime(2026, 1, 12, tzinfo=timezone.utc),
            "updated_at": datetime(2026, 1, 12, tzinfo=timezone.utc),
            "username": "Alex Applicant",
        },
        {
            "id": EMPTY_APPLICATION_ID,
            "user_id": APPLICANT_ID,
            "department": Department.DESIGN,
            "submitted": False,
            "status": ApplicationStatus.PENDING_REVIEW,
            "created_at": datetime(2026, 1, 15, tzinfo=timezone.utc),
            "updated_at": datetime(2026, 1, 15, tzinfo=timezone.utc),
            "username": "Alex Applicant",
        },
    ]


@pytest.fixture
def qa_repo(sample_pairs) -> FakeQuestionAnswerRepository:
    return FakeQuestionAnswerRepository(
        {APPLICATION_ID: sample_pairs, EMPTY_APPLICATION_ID: []}
    )


@pytest.fixture
def evaluation_repo() -> FakeEvaluationRepository:
    return FakeEvaluationRepository()


@pytest.fixture
def evaluation_service(qa_repo, evaluation_repo) -> EvaluationService:
    return EvaluationService(qa_repo=qa_repo, evaluation_repo=evaluation_repo)


@pytest.fixture
def full_ratings() -> List[Dict[str, Any]]:
    """Ratings [7, 9, 4], second answer flagged as AI."""
    return [
        {"answer_id": str(ANSWER_IDS[0]), "rating": 7, "looks_ai": False},
        {"answer_id": str(ANSWER_IDS[1]), "rating": 9, "looks_ai": True},
        {"answer_id": str(ANSWER_IDS[2]), "rating": 4, "looks_ai": False},
    ]


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def make_token():
    """Build a bearer token signed with the configured secret."""
    settings = get_settings()

    def _make(sub: Optional[str] = EVALUATOR_ID, expires_in: int = 3600, **claims) -> str:
        payload = {
            "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in),
            "aud": settings.AUTH_JWT_AUDIENCE,
            **claims,
        }
        if sub is not None:
            payload["sub"] = sub
        return jwt.encode(
            payload,
            settings.AUTH_JWT_SECRET.get_secret_value(),
            algorithm=settings.AUTH_JWT_ALGORITHM,
        )

    return _make


# =============================================================================
# FASTAPI TEST CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def overrides(qa_repo, evaluation_repo, evaluation_service, sample_applications, sample_users):
    """Point every repository dependency at the in-memory fakes."""
    application_repo = FakeApplicationRepository(sample_applications)
    user_repo = FakeUserRepository(sample_users)

    app.dependency_overrides[get_question_answer_repository] = lambda: qa_repo
    app.dependency_overrides[get_evaluation_repository] = lambda: evaluation_repo
    app.dependency_overrides[get_evaluation_service] = lambda: evaluation_service
    app.dependency_overrides[get_application_repository] = lambda: application_repo
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    yield {"application_repo": application_repo, "user_repo": user_repo}
    app.dependency_overrides.clear()


@pytest.fixture
def client(overrides):
    """TestClient authenticated as EVALUATOR_ID."""
    app.dependency_overrides[get_current_evaluator_id] = lambda: EVALUATOR_ID
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def anonymous_client(overrides):
    """TestClient that goes through real bearer-token verification."""
    with TestClient(app) as test_client:
        yield test_client
