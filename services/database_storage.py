"""
Database Storage Service

Async read-only stores over the PostgreSQL peer review database.
Implements the data source interfaces used by the scoring and checklist
validation services.
"""

import uuid
from enum import Enum
from typing import Optional, Sequence, Type, TypeVar, Union

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import (
    Assessment,
    AssessmentResponse,
    CorrectiveActionPlan,
    Document,
    FieldworkChecklistItem,
    Finding,
    Question,
    Review,
    ReviewReport,
    finding_documents,
)
from schemas.assessment import (
    ANSResponseValue,
    AssessmentResponseRecord,
    AssessmentType,
    MaturityLevel,
    QuestionMetadata,
)
from schemas.checklist import ChecklistItemState, DocumentSummary, FindingSummary
from services.data_sources import AssessmentDataSource, ChecklistDataSource


E = TypeVar("E", bound=Enum)


def _to_uuid(value: Union[str, uuid.UUID]) -> uuid.UUID:
    """Convert an identifier to UUID; raises ValueError if malformed."""
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _enum_or_none(enum_cls: Type[E], value: Optional[str]) -> Optional[E]:
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


class DatabaseReviewStore(ChecklistDataSource):
    """
    Review state read through an async SQLAlchemy session.

    The session is owned by the caller; this store never commits.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # =========================================================================
    # Documents
    # =========================================================================

    async def count_documents(
        self,
        review_id: str,
        category: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None
    ) -> int:
        query = (
            select(func.count())
            .select_from(Document)
            .where(
                Document.review_id == _to_uuid(review_id),
                Document.is_deleted.is_(False)
            )
        )
        if category:
            query = query.where(Document.category == category)
        if statuses:
            query = query.where(Document.status.in_(list(statuses)))

        result = await self.session.execute(query)
        return result.scalar_one()

    async def list_documents(self, review_id: str, category: str) -> list[DocumentSummary]:
        result = await self.session.execute(
            select(Document.id, Document.name, Document.status)
            .where(
                Document.review_id == _to_uuid(review_id),
                Document.category == category,
                Document.is_deleted.is_(False)
            )
            .order_by(Document.created_at, Document.name)
        )
        return [
            DocumentSummary(id=str(row.id), name=row.name, status=row.status)
            for row in result
        ]

    # =========================================================================
    # Findings
    # =========================================================================

    async def count_findings(
        self,
        review_id: str,
        statuses: Optional[Sequence[str]] = None
    ) -> int:
        query = (
            select(func.count())
            .select_from(Finding)
            .where(Finding.review_id == _to_uuid(review_id))
        )
        if statuses:
            query = query.where(Finding.status.in_(list(statuses)))

        result = await self.session.execute(query)
        return result.scalar_one()

    async def list_findings(
        self,
        review_id: str,
        cap_required_only: bool = False
    ) -> list[FindingSummary]:
        # Attached evidence, ignoring soft-deleted documents
        evidence = (
            select(
                finding_documents.c.finding_id,
                func.count().label("evidence_count")
            )
            .select_from(finding_documents)
            .join(Document, Document.id == finding_documents.c.document_id)
            .where(Document.is_deleted.is_(False))
            .group_by(finding_documents.c.finding_id)
            .subquery()
        )

        query = (
            select(
                Finding.id,
                Finding.reference_number,
                Finding.status,
                Finding.cap_required,
                CorrectiveActionPlan.status.label("cap_status"),
                func.coalesce(evidence.c.evidence_count, 0).label("evidence_count")
            )
            .outerjoin(evidence, evidence.c.finding_id == Finding.id)
            .outerjoin(CorrectiveActionPlan, CorrectiveActionPlan.finding_id == Finding.id)
            .where(Finding.review_id == _to_uuid(review_id))
            .order_by(Finding.created_at)
        )
        if cap_required_only:
            query = query.where(Finding.cap_required.is_(True))

        result = await self.session.execute(query)
        return [
            FindingSummary(
                id=str(row.id),
                reference_number=row.reference_number,
                status=row.status,
                evidence_count=row.evidence_count,
                cap_required=bool(row.cap_required),
                cap_status=row.cap_status
            )
            for row in result
        ]

    # =========================================================================
    # Checklist, Review, Reports
    # =========================================================================

    async def list_checklist_items(
        self,
        review_id: str,
        item_codes: Optional[Sequence[str]] = None
    ) -> list[ChecklistItemState]:
        query = (
            select(FieldworkChecklistItem)
            .where(FieldworkChecklistItem.review_id == _to_uuid(review_id))
            .order_by(FieldworkChecklistItem.sort_order)
        )
        if item_codes is not None:
            query = query.where(FieldworkChecklistItem.item_code.in_(list(item_codes)))

        result = await self.session.execute(query)
        return [
            ChecklistItemState(
                item_code=item.item_code,
                label_en=item.label_en,
                label_fr=item.label_fr,
                phase=item.phase,
                sort_order=item.sort_order,
                is_completed=item.is_completed,
                is_overridden=item.is_overridden,
                validation_rules=item.validation_rules
            )
            for item in result.scalars()
        ]

    async def get_review_phase(self, review_id: str) -> Optional[str]:
        try:
            review_uuid = _to_uuid(review_id)
        except ValueError:
            return None

        result = await self.session.execute(
            select(Review.phase).where(Review.id == review_uuid)
        )
        return result.scalar_one_or_none()

    async def report_exists(self, review_id: str) -> bool:
        result = await self.session.execute(
            select(ReviewReport.id)
            .where(ReviewReport.review_id == _to_uuid(review_id))
            .limit(1)
        )
        return result.scalar_one_or_none() is not None


class DatabaseAssessmentStore(AssessmentDataSource):
    """Assessment responses read through an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_assessment_type(self, assessment_id: str) -> Optional[AssessmentType]:
        try:
            assessment_uuid = _to_uuid(assessment_id)
        except ValueError:
            return None

        result = await self.session.execute(
            select(Assessment.assessment_type).where(Assessment.id == assessment_uuid)
        )
        value = result.scalar_one_or_none()
        return AssessmentType(value) if value else None

    async def list_responses(self, assessment_id: str) -> list[AssessmentResponseRecord]:
        result = await self.session.execute(
            select(AssessmentResponse, Question)
            .join(Question, Question.id == AssessmentResponse.question_id)
            .where(AssessmentResponse.assessment_id == _to_uuid(assessment_id))
            .order_by(Question.pq_number)
        )

        records = []
        for response, question in result.tuples():
            records.append(AssessmentResponseRecord(
                id=str(response.id),
                assessment_id=str(response.assessment_id),
                question_id=str(response.question_id),
                response_value=_enum_or_none(ANSResponseValue, response.response_value),
                maturity_level=_enum_or_none(MaturityLevel, response.maturity_level),
                evidence_description=response.evidence_description,
                is_complete=response.is_complete,
                question=QuestionMetadata(
                    id=str(question.id),
                    pq_number=question.pq_number,
                    audit_area=question.audit_area,
                    critical_element=question.critical_element,
                    sms_component=question.sms_component,
                    study_area=question.study_area,
                    is_priority_pq=question.is_priority_pq,
                    weight=question.weight
                )
            ))

        return records
