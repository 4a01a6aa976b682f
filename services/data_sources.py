"""
Data Sources

Read-only collaborator interfaces consumed by the scoring and checklist
validation services. ``services.database_storage`` provides the PostgreSQL
implementations.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from schemas.assessment import AssessmentResponseRecord, AssessmentType
from schemas.checklist import ChecklistItemState, DocumentSummary, FindingSummary


class ChecklistDataSource(ABC):
    """Review state needed to evaluate checklist validation rules."""

    @abstractmethod
    async def count_documents(
        self,
        review_id: str,
        category: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None
    ) -> int:
        """Count non-deleted documents, optionally by category and status set."""

    @abstractmethod
    async def list_documents(self, review_id: str, category: str) -> list[DocumentSummary]:
        """List non-deleted documents of a category."""

    @abstractmethod
    async def count_findings(
        self,
        review_id: str,
        statuses: Optional[Sequence[str]] = None
    ) -> int:
        """Count findings, optionally restricted to a status set."""

    @abstractmethod
    async def list_findings(
        self,
        review_id: str,
        cap_required_only: bool = False
    ) -> list[FindingSummary]:
        """List findings with evidence counts and CAP status."""

    @abstractmethod
    async def list_checklist_items(
        self,
        review_id: str,
        item_codes: Optional[Sequence[str]] = None
    ) -> list[ChecklistItemState]:
        """List checklist items in sort order, optionally only the given codes."""

    @abstractmethod
    async def get_review_phase(self, review_id: str) -> Optional[str]:
        """Current phase of the review, or None if the review does not exist."""

    @abstractmethod
    async def report_exists(self, review_id: str) -> bool:
        """Whether a report has been generated for the review."""


class AssessmentDataSource(ABC):
    """Assessment responses joined with their question metadata."""

    @abstractmethod
    async def get_assessment_type(self, assessment_id: str) -> Optional[AssessmentType]:
        """Questionnaire type of the assessment, or None if it does not exist."""

    @abstractmethod
    async def list_responses(self, assessment_id: str) -> list[AssessmentResponseRecord]:
        """All responses of the assessment."""
