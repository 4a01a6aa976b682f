"""
Database Models

SQLAlchemy models for the peer review store: reviews with their documents,
findings, corrective action plans and fieldwork checklist, and
self-assessments with their questions and responses.

The scoring and checklist validation engine only reads these tables.
"""

import uuid
from datetime import datetime
from typing import Optional, List

from sqlalchemy import (
    JSON, String, Text, Integer, Float, Boolean, DateTime,
    Column, ForeignKey, Index, Table, UniqueConstraint, Uuid
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ============================================================================
# REVIEW MODELS
# ============================================================================

class Review(Base):
    """Peer review of an air navigation service provider."""
    __tablename__ = "reviews"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    reference_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    phase: Mapped[str] = mapped_column(String(50), default="PLANNING")
    status: Mapped[str] = mapped_column(String(50), default="REQUESTED")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    # Relationships
    documents: Mapped[List["Document"]] = relationship(
        back_populates="review",
        cascade="all, delete-orphan"
    )
    findings: Mapped[List["Finding"]] = relationship(
        back_populates="review",
        cascade="all, delete-orphan"
    )
    checklist_items: Mapped[List["FieldworkChecklistItem"]] = relationship(
        back_populates="review",
        cascade="all, delete-orphan",
        order_by="FieldworkChecklistItem.sort_order"
    )
    reports: Mapped[List["ReviewReport"]] = relationship(
        back_populates="review",
        cascade="all, delete-orphan"
    )


finding_documents = Table(
    "finding_documents",
    Base.metadata,
    Column("finding_id", Uuid, ForeignKey("findings.id", ondelete="CASCADE"), primary_key=True),
    Column("document_id", Uuid, ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True),
)


class Document(Base):
    """Document uploaded to a review, soft-deleted via ``is_deleted``."""
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    review_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="UPLOADED")
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    # Relationships
    review: Mapped["Review"] = relationship(back_populates="documents")

    __table_args__ = (
        Index("idx_documents_review_category", "review_id", "category"),
    )


class Finding(Base):
    """Finding raised during a review."""
    __tablename__ = "findings"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    review_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False
    )
    reference_number: Mapped[Optional[str]] = mapped_column(String(50))
    title: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(50), default="OPEN")
    cap_required: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    # Relationships
    review: Mapped["Review"] = relationship(back_populates="findings")
    documents: Mapped[List["Document"]] = relationship(secondary=finding_documents)
    corrective_action_plan: Mapped[Optional["CorrectiveActionPlan"]] = relationship(
        back_populates="finding",
        uselist=False,
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_findings_review", "review_id"),
        Index("idx_findings_status", "status"),
    )


class CorrectiveActionPlan(Base):
    """Corrective action plan answering a finding."""
    __tablename__ = "corrective_action_plans"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    finding_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("findings.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    status: Mapped[str] = mapped_column(String(50), default="DRAFT")
    description: Mapped[Optional[str]] = mapped_column(Text)
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Relationships
    finding: Mapped["Finding"] = relationship(back_populates="corrective_action_plan")


class FieldworkChecklistItem(Base):
    """Staged fieldwork checklist item with its validation rule document."""
    __tablename__ = "fieldwork_checklist_items"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    review_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False
    )
    phase: Mapped[str] = mapped_column(String(50), nullable=False)
    item_code: Mapped[str] = mapped_column(String(100), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    label_en: Mapped[str] = mapped_column(String(255), nullable=False)
    label_fr: Mapped[str] = mapped_column(String(255), nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    is_overridden: Mapped[bool] = mapped_column(Boolean, default=False)
    override_reason: Mapped[Optional[str]] = mapped_column(Text)
    validation_rules: Mapped[Optional[dict]] = mapped_column(JSONType)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Relationships
    review: Mapped["Review"] = relationship(back_populates="checklist_items")

    __table_args__ = (
        UniqueConstraint("review_id", "item_code", name="uq_review_item_code"),
        Index("idx_checklist_review", "review_id"),
    )


class ReviewReport(Base):
    """Generated review report."""
    __tablename__ = "review_reports"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    review_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, default=1)
    content: Mapped[Optional[dict]] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    # Relationships
    review: Mapped["Review"] = relationship(back_populates="reports")


# ============================================================================
# ASSESSMENT MODELS
# ============================================================================

class Assessment(Base):
    """Self-assessment against one questionnaire."""
    __tablename__ = "assessments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    assessment_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[str] = mapped_column(String(50), default="DRAFT")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now()
    )

    # Relationships
    responses: Mapped[List["AssessmentResponse"]] = relationship(
        back_populates="assessment",
        cascade="all, delete-orphan"
    )


class Question(Base):
    """Protocol or maturity question with its classification."""
    __tablename__ = "questions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    pq_number: Mapped[Optional[str]] = mapped_column(String(50))
    question_text_en: Mapped[Optional[str]] = mapped_column(Text)
    question_text_fr: Mapped[Optional[str]] = mapped_column(Text)
    audit_area: Mapped[Optional[str]] = mapped_column(String(20))
    critical_element: Mapped[Optional[str]] = mapped_column(String(20))
    sms_component: Mapped[Optional[str]] = mapped_column(String(50))
    study_area: Mapped[Optional[str]] = mapped_column(String(50))
    is_priority_pq: Mapped[bool] = mapped_column(Boolean, default=False)
    weight: Mapped[float] = mapped_column(Float, default=1.0)


class AssessmentResponse(Base):
    """Response to one question within an assessment."""
    __tablename__ = "assessment_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    assessment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("assessments.id", ondelete="CASCADE"),
        nullable=False
    )
    question_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False
    )
    response_value: Mapped[Optional[str]] = mapped_column(String(30))
    maturity_level: Mapped[Optional[str]] = mapped_column(String(1))
    evidence_description: Mapped[Optional[str]] = mapped_column(Text)
    is_complete: Mapped[bool] = mapped_column(Boolean, default=False)
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Relationships
    assessment: Mapped["Assessment"] = relationship(back_populates="responses")
    question: Mapped["Question"] = relationship()

    __table_args__ = (
        UniqueConstraint("assessment_id", "question_id", name="uq_assessment_question"),
        Index("idx_responses_assessment", "assessment_id"),
    )
