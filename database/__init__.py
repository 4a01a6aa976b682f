"""
Database Package

SQLAlchemy models and connection management for the peer review store.
"""

from database.connection import (
    get_db_context,
    init_db,
    close_db,
    get_engine,
    get_session_factory,
    engine_options,
)

from database.models import (
    Base,
    Review,
    Document,
    Finding,
    CorrectiveActionPlan,
    FieldworkChecklistItem,
    ReviewReport,
    Assessment,
    Question,
    AssessmentResponse,
    finding_documents,
)

__all__ = [
    # Connection
    "get_db_context",
    "init_db",
    "close_db",
    "get_engine",
    "get_session_factory",
    "engine_options",
    # Models
    "Base",
    "Review",
    "Document",
    "Finding",
    "CorrectiveActionPlan",
    "FieldworkChecklistItem",
    "ReviewReport",
    "Assessment",
    "Question",
    "AssessmentResponse",
    "finding_documents",
]
