"""
ANSP Peer Review - Pydantic Schemas

Data models for assessment scoring and checklist validation.
"""

from schemas.assessment import (
    AssessmentType,
    ANSResponseValue,
    MaturityLevel,
    ScoreBand,
    Trend,
    QuestionMetadata,
    AssessmentResponseRecord,
    AuditAreaScore,
    CriticalElementScore,
    EIScoreResult,
    ComponentScore,
    StudyAreaScore,
    SMSMaturityResult,
    ScoreComparison,
    ImprovementAreas,
    AssessmentComparison,
    SubmissionValidation,
)
from schemas.checklist import (
    FieldworkPhase,
    DocumentCategory,
    DocumentStatus,
    FindingStatus,
    CAPStatus,
    AutoCheckCondition,
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
    UnknownRule,
    ValidationRule,
    ValidationDetails,
    ValidationResult,
    ChecklistItemState,
    DocumentSummary,
    FindingSummary,
    ChecklistItemDefinition,
    IncompleteItem,
    FieldworkCompletion,
    PhaseProgress,
    ChecklistCompletionStatus,
)

__all__ = [
    # Assessment
    "AssessmentType",
    "ANSResponseValue",
    "MaturityLevel",
    "ScoreBand",
    "Trend",
    "QuestionMetadata",
    "AssessmentResponseRecord",
    "AuditAreaScore",
    "CriticalElementScore",
    "EIScoreResult",
    "ComponentScore",
    "StudyAreaScore",
    "SMSMaturityResult",
    "ScoreComparison",
    "ImprovementAreas",
    "AssessmentComparison",
    "SubmissionValidation",
    # Checklist
    "FieldworkPhase",
    "DocumentCategory",
    "DocumentStatus",
    "FindingStatus",
    "CAPStatus",
    "AutoCheckCondition",
    "DocumentExistsRule",
    "DocumentsReviewedRule",
    "FindingsExistRule",
    "FindingsHaveEvidenceRule",
    "PrerequisiteItemsRule",
    "PhaseCheckRule",
    "ApprovalRequiredRule",
    "ManualOrDocumentRule",
    "DocumentOrCommentsRule",
    "AutoCheckRule",
    "UnknownRule",
    "ValidationRule",
    "ValidationDetails",
    "ValidationResult",
    "ChecklistItemState",
    "DocumentSummary",
    "FindingSummary",
    "ChecklistItemDefinition",
    "IncompleteItem",
    "FieldworkCompletion",
    "PhaseProgress",
    "ChecklistCompletionStatus",
]
