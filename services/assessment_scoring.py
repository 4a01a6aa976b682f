"""
Assessment Scoring Service

Loads an assessment's responses through an AssessmentDataSource and runs
the calculator matching its questionnaire type.
"""

from typing import Optional, Union

from config.logging_config import get_logger
from config.settings import settings
from schemas.assessment import (
    AssessmentComparison,
    AssessmentResponseRecord,
    AssessmentType,
    EIScoreResult,
    SMSMaturityResult,
    SubmissionValidation,
)
from services.data_sources import AssessmentDataSource
from services.scoring import (
    calculate_category_scores,
    calculate_ei_score,
    calculate_sms_maturity,
    compare_scores,
    identify_improvement_areas,
    round2,
    validate_assessment_for_submission,
)
from services.scoring_tables import DEFAULT_TABLES, ScoringTables


logger = get_logger("services.assessment_scoring")

ScoreResult = Union[EIScoreResult, SMSMaturityResult]


class ScoringError(Exception):
    """Scoring-related error."""
    pass


class AssessmentNotFoundError(ScoringError):
    """The requested assessment does not exist."""
    pass


class AssessmentScoringService:
    """Scores stored assessments."""

    def __init__(
        self,
        store: AssessmentDataSource,
        tables: ScoringTables = DEFAULT_TABLES,
        stability_threshold: Optional[float] = None,
        improvement_threshold: Optional[float] = None
    ):
        """
        Initialize the scoring service.

        Args:
            store: Source of assessment responses
            tables: Scoring reference tables
            stability_threshold: Trend stability threshold (defaults to settings)
            improvement_threshold: Category delta threshold (defaults to settings)
        """
        self.store = store
        self.tables = tables
        self.stability_threshold = (
            settings.trend_stability_threshold
            if stability_threshold is None else stability_threshold
        )
        self.improvement_threshold = (
            settings.improvement_threshold
            if improvement_threshold is None else improvement_threshold
        )

    async def _load(
        self,
        assessment_id: str
    ) -> tuple[AssessmentType, list[AssessmentResponseRecord]]:
        assessment_type = await self.store.get_assessment_type(assessment_id)
        if assessment_type is None:
            raise AssessmentNotFoundError(f"Assessment not found: {assessment_id}")

        responses = await self.store.list_responses(assessment_id)
        return assessment_type, responses

    def _score(
        self,
        assessment_type: AssessmentType,
        responses: list[AssessmentResponseRecord]
    ) -> ScoreResult:
        if assessment_type == AssessmentType.ANS_USOAP_CMA:
            return calculate_ei_score(responses)
        return calculate_sms_maturity(responses, self.tables)

    def _overall_percentage(self, result: ScoreResult) -> float:
        if isinstance(result, EIScoreResult):
            return result.overall_ei
        max_score = max(self.tables.level_scores.values())
        return round2(result.overall_score / max_score * 100)

    async def score_assessment(self, assessment_id: str) -> ScoreResult:
        """
        Score an assessment.

        Returns:
            EIScoreResult for ANS assessments, SMSMaturityResult for SMS ones

        Raises:
            AssessmentNotFoundError: If the assessment does not exist
        """
        assessment_type, responses = await self._load(assessment_id)
        result = self._score(assessment_type, responses)

        if isinstance(result, EIScoreResult):
            logger.info(
                f"Assessment {assessment_id}: EI {result.overall_ei}% "
                f"over {result.total_applicable} applicable question(s)"
            )
        else:
            logger.info(
                f"Assessment {assessment_id}: SMS maturity "
                f"{result.overall_level.value if result.overall_level else 'n/a'} "
                f"(score {result.overall_score})"
            )

        return result

    async def category_scores(self, assessment_id: str) -> dict[str, float]:
        """Percentage score per audit area (ANS) or SMS component (SMS)."""
        assessment_type, responses = await self._load(assessment_id)
        return calculate_category_scores(responses, assessment_type, self.tables)

    async def check_submission(
        self,
        assessment_id: str,
        total_questions: int
    ) -> SubmissionValidation:
        """Check an assessment against the submission requirements."""
        assessment_type, responses = await self._load(assessment_id)
        return validate_assessment_for_submission(responses, total_questions, assessment_type)

    async def compare_assessments(
        self,
        current_assessment_id: str,
        previous_assessment_id: str
    ) -> AssessmentComparison:
        """
        Compare two assessments of the same questionnaire type.

        Overall scores are compared on the 0-100 scale; categories use the
        improvement threshold.

        Raises:
            AssessmentNotFoundError: If either assessment does not exist
            ScoringError: If the assessments use different questionnaires
        """
        current_type, current_responses = await self._load(current_assessment_id)
        previous_type, previous_responses = await self._load(previous_assessment_id)

        if current_type != previous_type:
            raise ScoringError(
                f"Cannot compare {current_type.value} assessment with {previous_type.value} assessment"
            )

        current = self._score(current_type, current_responses)
        previous = self._score(previous_type, previous_responses)

        overall = compare_scores(
            self._overall_percentage(current),
            self._overall_percentage(previous),
            self.stability_threshold
        )
        areas = identify_improvement_areas(
            calculate_category_scores(current_responses, current_type, self.tables),
            calculate_category_scores(previous_responses, previous_type, self.tables),
            self.improvement_threshold
        )

        logger.info(
            f"Compared {current_assessment_id} with {previous_assessment_id}: "
            f"{overall.trend.value} ({overall.delta:+})"
        )

        return AssessmentComparison(
            current_assessment_id=current_assessment_id,
            previous_assessment_id=previous_assessment_id,
            assessment_type=current_type,
            overall=overall,
            areas=areas,
        )
