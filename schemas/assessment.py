"""
Assessment Scoring Schemas

Data models for assessment responses and the EI / SMS maturity score results.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class AssessmentType(str, Enum):
    """Audit framework an assessment is run against."""
    ANS_USOAP_CMA = "ANS_USOAP_CMA"
    SMS_CANSO_SOE = "SMS_CANSO_SOE"


class ANSResponseValue(str, Enum):
    """Answer to an ICAO USOAP CMA protocol question."""
    SATISFACTORY = "SATISFACTORY"
    NOT_SATISFACTORY = "NOT_SATISFACTORY"
    NOT_APPLICABLE = "NOT_APPLICABLE"
    NOT_REVIEWED = "NOT_REVIEWED"


class MaturityLevel(str, Enum):
    """CANSO SoE maturity level, A lowest to E highest."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


class ScoreBand(str, Enum):
    """Qualitative band for a 0-100 score."""
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    SATISFACTORY = "SATISFACTORY"
    NEEDS_IMPROVEMENT = "NEEDS_IMPROVEMENT"
    CRITICAL = "CRITICAL"


class Trend(str, Enum):
    """Direction of change between two score snapshots."""
    IMPROVING = "IMPROVING"
    DECLINING = "DECLINING"
    STABLE = "STABLE"


# ============================================================================
# INPUT RECORDS
# ============================================================================

class QuestionMetadata(BaseModel):
    """Question classification joined to each response."""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(default=None, description="Question identifier")
    pq_number: Optional[str] = Field(default=None, description="Protocol question number")
    audit_area: Optional[str] = Field(default=None, description="USOAP audit area code")
    critical_element: Optional[str] = Field(default=None, description="Critical element code (ANS)")
    sms_component: Optional[str] = Field(default=None, description="SMS component code")
    study_area: Optional[str] = Field(default=None, description="CANSO study area code (SMS)")
    is_priority_pq: bool = Field(default=False, description="Whether this is a priority PQ")
    weight: float = Field(default=1.0, ge=0.0, description="Question weight (not yet applied)")


class AssessmentResponseRecord(BaseModel):
    """A single response to a question, with its question metadata."""
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(default=None, description="Response identifier")
    assessment_id: Optional[str] = Field(default=None, description="Owning assessment")
    question_id: Optional[str] = Field(default=None, description="Answered question")
    response_value: Optional[ANSResponseValue] = Field(
        default=None,
        description="ANS answer; None for SMS responses"
    )
    maturity_level: Optional[MaturityLevel] = Field(
        default=None,
        description="SMS maturity level; None for ANS responses or unrated"
    )
    evidence_description: Optional[str] = Field(default=None, description="Evidence narrative")
    is_complete: bool = Field(default=False, description="Marked complete by the respondent")
    question: QuestionMetadata = Field(default_factory=QuestionMetadata)

    @model_validator(mode="after")
    def _single_answer_kind(self) -> "AssessmentResponseRecord":
        if self.response_value is not None and self.maturity_level is not None:
            raise ValueError("A response carries either an ANS value or a maturity level, not both")
        return self


# ============================================================================
# EI (ANS) RESULTS
# ============================================================================

class AuditAreaScore(BaseModel):
    """EI tally for one audit area."""
    ei: float = Field(default=0.0, description="EI percentage for the area")
    satisfactory: int = 0
    not_satisfactory: int = 0
    not_applicable: int = 0
    total: int = 0


class CriticalElementScore(BaseModel):
    """EI tally for one critical element."""
    ei: float = Field(default=0.0, description="EI percentage for the element")
    satisfactory: int = 0
    not_satisfactory: int = 0
    total: int = 0


class EIScoreResult(BaseModel):
    """Effectiveness Indicator result for an ANS assessment."""
    overall_ei: float = Field(default=0.0, ge=0.0, le=100.0, description="Overall EI percentage")
    total_applicable: int = Field(default=0, description="Satisfactory + not satisfactory")
    satisfactory_count: int = 0
    not_satisfactory_count: int = 0
    not_applicable_count: int = 0
    not_reviewed_count: int = 0
    audit_area_scores: dict[str, AuditAreaScore] = Field(default_factory=dict)
    critical_element_scores: dict[str, CriticalElementScore] = Field(default_factory=dict)
    priority_pq_score: Optional[float] = Field(
        default=None,
        description="EI over priority PQs; None when no priority PQ was answered"
    )


# ============================================================================
# SMS MATURITY RESULTS
# ============================================================================

class ComponentScore(BaseModel):
    """Maturity of one SMS component."""
    level: Optional[MaturityLevel] = Field(default=None, description="None when nothing was rated")
    score: float = Field(default=0.0, description="Mean numeric level (1-5)")
    weight: float = Field(default=0.25, description="Component weight in the overall score")
    weighted_score: float = Field(default=0.0, description="score * weight")
    question_count: int = Field(default=0, description="Responses tagged with the component")


class StudyAreaScore(BaseModel):
    """Maturity of one CANSO study area."""
    level: Optional[MaturityLevel] = None
    score: float = 0.0
    question_count: int = 0


class SMSMaturityResult(BaseModel):
    """SMS maturity result for a CANSO SoE assessment."""
    overall_level: Optional[MaturityLevel] = Field(
        default=None,
        description="Lowest component level (worst component wins)"
    )
    overall_score: float = Field(default=0.0, description="Weighted mean of component scores")
    overall_percentage: int = Field(default=0, description="overall_score on a 0-100 scale")
    component_levels: dict[str, ComponentScore] = Field(default_factory=dict)
    study_area_levels: dict[str, StudyAreaScore] = Field(default_factory=dict)
    maturity_distribution: dict[str, int] = Field(default_factory=dict)
    gap_areas: list[str] = Field(
        default_factory=list,
        description="Components below level C"
    )


# ============================================================================
# COMPARISON / SUBMISSION
# ============================================================================

class ScoreComparison(BaseModel):
    """Delta between two score snapshots."""
    delta: float
    percentage_change: float
    trend: Trend


class ImprovementAreas(BaseModel):
    """Categories grouped by how their score moved."""
    improved: list[str] = Field(default_factory=list)
    declined: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)


class AssessmentComparison(BaseModel):
    """Comparison of two assessments of the same type."""
    current_assessment_id: str
    previous_assessment_id: str
    assessment_type: AssessmentType
    overall: ScoreComparison
    areas: ImprovementAreas


class SubmissionValidation(BaseModel):
    """Whether an assessment may be submitted."""
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
