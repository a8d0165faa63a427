from enum import Enum

class ApplicationStatus(str, Enum):
    PENDING_REVIEW = "pending_review"
    UNDER_REVIEW = "under_review"
    WAITLISTED = "waitlisted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

class Department(str, Enum):
    TECHNICAL = "technical"
    SOCIAL_MEDIA = "social_media"
    DESIGN = "design"
    MANAGEMENT = "management"

class UserRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    EVALUATOR = "evaluator"
    APPLICANT = "applicant"

class DuplicateEvaluationPolicy(str, Enum):
    ALLOW = "allow"              # Every submission creates a new evaluation
    FIRST_WINS = "first_wins"    # Reject once the application has an evaluation
    LATEST_WINS = "latest_wins"  # Accept all; the newest is the current one

class EvaluationWriteMode(str, Enum):
    SEQUENTIAL = "sequential"        # Parent insert, then child batch insert
    TRANSACTIONAL = "transactional"  # Both inserts in one store transaction
