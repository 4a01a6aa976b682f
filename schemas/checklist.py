"""
Checklist Schemas

Data models for fieldwork checklist items, their validation rules and
validation results.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class FieldworkPhase(str, Enum):
    """Stage of the fieldwork checklist."""
    PRE_VISIT = "PRE_VISIT"
    ON_SITE = "ON_SITE"
    POST_VISIT = "POST_VISIT"


class DocumentCategory(str, Enum):
    """Review document categories referenced by checklist rules."""
    PRE_VISIT_REQUEST = "PRE_VISIT_REQUEST"
    HOST_SUBMISSION = "HOST_SUBMISSION"
    INTERVIEW_NOTES = "INTERVIEW_NOTES"
    EVIDENCE = "EVIDENCE"
    DRAFT_REPORT = "DRAFT_REPORT"
    FINAL_REPORT = "FINAL_REPORT"
    CORRESPONDENCE = "CORRESPONDENCE"
    OTHER = "OTHER"


class DocumentStatus(str, Enum):
    """Document review workflow status."""
    UPLOADED = "UPLOADED"
    UNDER_REVIEW = "UNDER_REVIEW"
    REVIEWED = "REVIEWED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class FindingStatus(str, Enum):
    """Finding lifecycle status."""
    OPEN = "OPEN"
    CAP_REQUIRED = "CAP_REQUIRED"
    CAP_SUBMITTED = "CAP_SUBMITTED"
    CAP_ACCEPTED = "CAP_ACCEPTED"
    CLOSED = "CLOSED"


class CAPStatus(str, Enum):
    """Corrective action plan status."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class AutoCheckCondition(str, Enum):
    """Conditions understood by AUTO_CHECK rules."""
    FINDINGS_COUNT_GT_0 = "FINDINGS_COUNT_GT_0"
    ALL_CAPS_SUBMITTED = "ALL_CAPS_SUBMITTED"
    REPORT_GENERATED = "REPORT_GENERATED"


class CamelModel(BaseModel):
    """Model read from / dumped to camelCase documents."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True
    )


# ============================================================================
# VALIDATION RULES
# ============================================================================

class DocumentExistsRule(CamelModel):
    """At least ``min_count`` non-deleted documents of a category."""
    type: Literal["DOCUMENT_EXISTS"] = "DOCUMENT_EXISTS"
    category: str
    min_count: int = Field(default=1, ge=0)
    required_status: Optional[list[str]] = None


class DocumentsReviewedRule(CamelModel):
    """Every document of a category has been reviewed or approved."""
    type: Literal["DOCUMENTS_REVIEWED"] = "DOCUMENTS_REVIEWED"
    category: str
    all_must_be_reviewed: bool = True


class FindingsExistRule(CamelModel):
    """At least ``min_count`` findings, optionally in a status set."""
    type: Literal["FINDINGS_EXIST"] = "FINDINGS_EXIST"
    min_count: int = Field(default=1, ge=0)
    status_required: Optional[list[str]] = None


class FindingsHaveEvidenceRule(CamelModel):
    """Findings carry attached evidence documents."""
    type: Literal["FINDINGS_HAVE_EVIDENCE"] = "FINDINGS_HAVE_EVIDENCE"
    all_findings_must_have_evidence: bool = False


class PrerequisiteItemsRule(CamelModel):
    """Sibling checklist items must be completed or overridden first."""
    type: Literal["PREREQUISITE_ITEMS"] = "PREREQUISITE_ITEMS"
    required_items: list[str] = Field(default_factory=list)


class PhaseCheckRule(CamelModel):
    """The review must be in a given phase."""
    type: Literal["PHASE_CHECK"] = "PHASE_CHECK"
    required_phase: str
    allow_manual: bool = False


class ApprovalRequiredRule(CamelModel):
    """Informational: completion is restricted to approver roles."""
    type: Literal["APPROVAL_REQUIRED"] = "APPROVAL_REQUIRED"
    approver_roles: list[str] = Field(default_factory=list)


class ManualOrDocumentRule(CamelModel):
    """Manual confirmation, or a document in the category."""
    type: Literal["MANUAL_OR_DOCUMENT"] = "MANUAL_OR_DOCUMENT"
    category: Optional[str] = None
    allow_manual: bool = False


class DocumentOrCommentsRule(CamelModel):
    """A document in the category, or any finding when enabled."""
    type: Literal["DOCUMENT_OR_COMMENTS"] = "DOCUMENT_OR_COMMENTS"
    category: str
    or_finding_comments: bool = False


class AutoCheckRule(CamelModel):
    """A named condition evaluated against the review state."""
    type: Literal["AUTO_CHECK"] = "AUTO_CHECK"
    condition: str


class UnknownRule(CamelModel):
    """A rule whose kind this engine does not recognise."""
    type: str
    raw: dict[str, Any] = Field(default_factory=dict)


ValidationRule = Annotated[
    Union[
        DocumentExistsRule,
        DocumentsReviewedRule,
        FindingsExistRule,
        FindingsHaveEvidenceRule,
        PrerequisiteItemsRule,
        PhaseCheckRule,
        ApprovalRequiredRule,
        ManualOrDocumentRule,
        DocumentOrCommentsRule,
        AutoCheckRule,
    ],
    Field(discriminator="type"),
]


# ============================================================================
# VALIDATION RESULTS
# ============================================================================

class ValidationDetails(CamelModel):
    """Countable threshold behind a validation verdict."""
    required: int
    current: int
    missing: Optional[list[str]] = None


class ValidationResult(CamelModel):
    """Verdict for one checklist item."""
    is_valid: bool
    can_complete: bool
    reason: Optional[str] = None
    reason_fr: Optional[str] = None
    details: Optional[ValidationDetails] = None


# ============================================================================
# STORE RECORDS
# ============================================================================

class ChecklistItemState(BaseModel):
    """Stored state of a checklist item."""
    item_code: str
    label_en: str = ""
    label_fr: str = ""
    phase: Optional[str] = None
    sort_order: int = 0
    is_completed: bool = False
    is_overridden: bool = False
    validation_rules: Optional[dict[str, Any]] = None


class DocumentSummary(BaseModel):
    """Document fields needed by document rules."""
    id: str
    name: str
    status: str


class FindingSummary(BaseModel):
    """Finding fields needed by finding rules."""
    id: str
    reference_number: Optional[str] = None
    status: Optional[str] = None
    evidence_count: int = Field(default=0, description="Attached document count")
    cap_required: bool = False
    cap_status: Optional[str] = Field(default=None, description="None when no CAP exists")


class ChecklistItemDefinition(BaseModel):
    """Template for a standard checklist item."""
    phase: FieldworkPhase
    item_code: str
    sort_order: int
    label_en: str
    label_fr: str
    validation_rules: Optional[dict[str, Any]] = None


# ============================================================================
# AGGREGATED OUTPUTS
# ============================================================================

class IncompleteItem(BaseModel):
    """A checklist item blocking fieldwork completion."""
    item_code: str
    label_en: str
    reason: str


class FieldworkCompletion(BaseModel):
    """Whether fieldwork may be marked complete."""
    can_complete: bool
    incomplete_items: list[IncompleteItem] = Field(default_factory=list)


class PhaseProgress(BaseModel):
    """Item counts for one checklist phase."""
    total: int = 0
    completed: int = 0


class ChecklistCompletionStatus(BaseModel):
    """Progress overview of a review's checklist."""
    total_items: int = 0
    completed_items: int = 0
    progress: int = Field(default=0, description="Completed percentage (0-100)")
    by_phase: dict[str, PhaseProgress] = Field(default_factory=dict)
    can_complete_fieldwork: bool = False
    incomplete_items: list[IncompleteItem] = Field(default_factory=list)
