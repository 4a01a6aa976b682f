"""
Scoring Service

Score calculation for peer-review assessments:
- ICAO USOAP CMA Effectiveness Indicator (EI) for ANS assessments
- CANSO Standard of Excellence maturity for SMS assessments

All functions are pure: they read the responses they are given and never
touch the database.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional, Sequence, Union

from schemas.assessment import (
    ANSResponseValue,
    AssessmentResponseRecord,
    AssessmentType,
    AuditAreaScore,
    ComponentScore,
    CriticalElementScore,
    EIScoreResult,
    ImprovementAreas,
    MaturityLevel,
    SMSMaturityResult,
    ScoreComparison,
    StudyAreaScore,
    SubmissionValidation,
    Trend,
)
from services.scoring_tables import (
    DEFAULT_TABLES,
    MIN_EVIDENCE_PERCENTAGE,
    ScoringTables,
    calculate_weighted_sms_score,
    get_maturity_level_from_score,
)


DEFAULT_STABILITY_THRESHOLD = 1.0
DEFAULT_IMPROVEMENT_THRESHOLD = 5.0

NULL_LEVEL_KEY = "null"


def round2(value: float) -> float:
    """Round to 2 decimals, halves away from zero."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _round_whole(value: float) -> int:
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round2(part / whole * 100)


# ============================================================================
# EI SCORE (USOAP CMA)
# ============================================================================

def calculate_ei_score(responses: Iterable[AssessmentResponseRecord]) -> EIScoreResult:
    """
    Calculate the Effectiveness Indicator of an ANS assessment.

    EI = satisfactory / (satisfactory + not satisfactory) * 100.
    NOT_APPLICABLE and NOT_REVIEWED answers are left out of every
    denominator; responses without an answer count as NOT_REVIEWED.

    Args:
        responses: Responses joined with their question metadata

    Returns:
        EIScoreResult with audit area, critical element and priority PQ breakdowns
    """
    satisfactory = 0
    not_satisfactory = 0
    not_applicable = 0
    not_reviewed = 0

    audit_areas: dict[str, AuditAreaScore] = {}
    critical_elements: dict[str, CriticalElementScore] = {}

    priority_seen = False
    priority_satisfactory = 0
    priority_applicable = 0

    for response in responses:
        value = response.response_value
        question = response.question

        if value == ANSResponseValue.SATISFACTORY:
            satisfactory += 1
        elif value == ANSResponseValue.NOT_SATISFACTORY:
            not_satisfactory += 1
        elif value == ANSResponseValue.NOT_APPLICABLE:
            not_applicable += 1
        else:
            not_reviewed += 1

        if question.audit_area:
            area = audit_areas.setdefault(question.audit_area, AuditAreaScore())
            area.total += 1
            if value == ANSResponseValue.SATISFACTORY:
                area.satisfactory += 1
            elif value == ANSResponseValue.NOT_SATISFACTORY:
                area.not_satisfactory += 1
            elif value == ANSResponseValue.NOT_APPLICABLE:
                area.not_applicable += 1

        if question.critical_element:
            element = critical_elements.setdefault(
                question.critical_element, CriticalElementScore()
            )
            element.total += 1
            if value == ANSResponseValue.SATISFACTORY:
                element.satisfactory += 1
            elif value == ANSResponseValue.NOT_SATISFACTORY:
                element.not_satisfactory += 1

        if question.is_priority_pq:
            priority_seen = True
            if value == ANSResponseValue.SATISFACTORY:
                priority_satisfactory += 1
                priority_applicable += 1
            elif value == ANSResponseValue.NOT_SATISFACTORY:
                priority_applicable += 1

    for area in audit_areas.values():
        area.ei = _percentage(area.satisfactory, area.satisfactory + area.not_satisfactory)

    for element in critical_elements.values():
        element.ei = _percentage(
            element.satisfactory, element.satisfactory + element.not_satisfactory
        )

    total_applicable = satisfactory + not_satisfactory

    return EIScoreResult(
        overall_ei=_percentage(satisfactory, total_applicable),
        total_applicable=total_applicable,
        satisfactory_count=satisfactory,
        not_satisfactory_count=not_satisfactory,
        not_applicable_count=not_applicable,
        not_reviewed_count=not_reviewed,
        audit_area_scores=audit_areas,
        critical_element_scores=critical_elements,
        priority_pq_score=(
            _percentage(priority_satisfactory, priority_applicable) if priority_seen else None
        ),
    )


def calculate_simple_ei_score(satisfactory_count: int, not_satisfactory_count: int) -> float:
    """EI from pre-aggregated counts; 0 when nothing is applicable."""
    return _percentage(satisfactory_count, satisfactory_count + not_satisfactory_count)


# ============================================================================
# SMS MATURITY (CANSO SOE)
# ============================================================================

def maturity_level_to_score(
    level: Union[MaturityLevel, str],
    tables: ScoringTables = DEFAULT_TABLES
) -> int:
    """Numeric value of a maturity level (A=1 .. E=5)."""
    return tables.level_scores[MaturityLevel(level)]


def score_to_maturity_level(
    score: float,
    tables: ScoringTables = DEFAULT_TABLES
) -> MaturityLevel:
    """Inverse of maturity_level_to_score for mean scores."""
    return get_maturity_level_from_score(score, tables)


def get_lowest_maturity_level(
    levels: Iterable[Optional[Union[MaturityLevel, str]]],
    tables: ScoringTables = DEFAULT_TABLES
) -> Optional[MaturityLevel]:
    """
    Lowest non-null level of a sequence.

    Returns None when the sequence is empty or only holds None.
    """
    valid = [MaturityLevel(level) for level in levels if level is not None]
    if not valid:
        return None
    return min(valid, key=lambda level: tables.level_scores[level])


def _mean_level_score(
    responses: Sequence[AssessmentResponseRecord],
    tables: ScoringTables
) -> Optional[float]:
    scores = [
        tables.level_scores[r.maturity_level]
        for r in responses
        if r.maturity_level is not None
    ]
    if not scores:
        return None
    return sum(scores) / len(scores)


def calculate_sms_maturity(
    responses: Iterable[AssessmentResponseRecord],
    tables: ScoringTables = DEFAULT_TABLES
) -> SMSMaturityResult:
    """
    Calculate the SMS maturity of a CANSO SoE assessment.

    - Component / study area score = mean numeric level of its rated responses
    - Overall score = component scores weighted by the component weights,
      renormalised over the components that were rated
    - Overall level = lowest component level, not the level of the overall score
    - Gap areas = components below level C

    Args:
        responses: Responses joined with their question metadata
        tables: Scoring reference tables

    Returns:
        SMSMaturityResult
    """
    distribution: dict[str, int] = {level.value: 0 for level in MaturityLevel}
    distribution[NULL_LEVEL_KEY] = 0

    component_groups: dict[str, list[AssessmentResponseRecord]] = {}
    study_area_groups: dict[str, list[AssessmentResponseRecord]] = {}

    for response in responses:
        level = response.maturity_level
        distribution[level.value if level is not None else NULL_LEVEL_KEY] += 1

        component = response.question.sms_component
        if component:
            component_groups.setdefault(component, []).append(response)

        study_area = response.question.study_area
        if study_area:
            study_area_groups.setdefault(study_area, []).append(response)

    component_levels: dict[str, ComponentScore] = {}
    rated_components: dict[str, float] = {}

    for component, group in component_groups.items():
        mean = _mean_level_score(group, tables)
        weight = tables.component_weight(component)
        if mean is not None:
            rated_components[component] = mean

        component_levels[component] = ComponentScore(
            level=get_maturity_level_from_score(mean, tables) if mean is not None else None,
            score=round2(mean) if mean is not None else 0.0,
            weight=weight,
            weighted_score=round2(mean * weight) if mean is not None else 0.0,
            question_count=len(group),
        )

    study_area_levels: dict[str, StudyAreaScore] = {}
    for study_area, group in study_area_groups.items():
        mean = _mean_level_score(group, tables)
        study_area_levels[study_area] = StudyAreaScore(
            level=get_maturity_level_from_score(mean, tables) if mean is not None else None,
            score=round2(mean) if mean is not None else 0.0,
            question_count=len(group),
        )

    overall_score = round2(calculate_weighted_sms_score(rated_components, tables))
    overall_level = get_lowest_maturity_level(
        (score.level for score in component_levels.values()), tables
    )
    max_score = max(tables.level_scores.values())

    gap_levels = {MaturityLevel.A, MaturityLevel.B}
    gap_areas = [
        component
        for component, score in component_levels.items()
        if score.level in gap_levels
    ]

    return SMSMaturityResult(
        overall_level=overall_level,
        overall_score=overall_score,
        overall_percentage=_round_whole(overall_score / max_score * 100),
        component_levels=component_levels,
        study_area_levels=study_area_levels,
        maturity_distribution=distribution,
        gap_areas=gap_areas,
    )


# ============================================================================
# CATEGORY SCORES
# ============================================================================

def calculate_category_scores(
    responses: Iterable[AssessmentResponseRecord],
    assessment_type: Union[AssessmentType, str],
    tables: ScoringTables = DEFAULT_TABLES
) -> dict[str, float]:
    """
    Percentage score per category.

    ANS assessments are grouped by audit area and scored as EI. SMS
    assessments are grouped by SMS component and scored as the mean maturity
    level converted to a 0-100 scale (mean / 5 * 100).
    """
    assessment_type = AssessmentType(assessment_type)

    if assessment_type == AssessmentType.ANS_USOAP_CMA:
        tallies: dict[str, list[int]] = {}
        for response in responses:
            area = response.question.audit_area
            if not area:
                continue
            tally = tallies.setdefault(area, [0, 0])
            if response.response_value == ANSResponseValue.SATISFACTORY:
                tally[0] += 1
                tally[1] += 1
            elif response.response_value == ANSResponseValue.NOT_SATISFACTORY:
                tally[1] += 1
        return {
            area: _percentage(satisfactory, applicable)
            for area, (satisfactory, applicable) in tallies.items()
        }

    groups: dict[str, list[AssessmentResponseRecord]] = {}
    for response in responses:
        component = response.question.sms_component
        if component:
            groups.setdefault(component, []).append(response)

    max_score = max(tables.level_scores.values())
    scores: dict[str, float] = {}
    for component, group in groups.items():
        mean = _mean_level_score(group, tables) or 0.0
        scores[component] = round2(mean / max_score * 100)
    return scores


# ============================================================================
# COMPARISON
# ============================================================================

def compare_scores(
    current: float,
    previous: float,
    stability_threshold: float = DEFAULT_STABILITY_THRESHOLD
) -> ScoreComparison:
    """
    Compare two scores.

    Args:
        current: Score of the newer snapshot
        previous: Score of the older snapshot
        stability_threshold: Absolute delta below which the trend is STABLE

    Returns:
        ScoreComparison with delta, percentage change and trend
    """
    delta = round2(current - previous)

    if previous == 0:
        percentage_change = 100.0 if current > 0 else 0.0
    else:
        percentage_change = round2(delta / previous * 100)

    if abs(delta) < stability_threshold:
        trend = Trend.STABLE
    elif delta > 0:
        trend = Trend.IMPROVING
    else:
        trend = Trend.DECLINING

    return ScoreComparison(delta=delta, percentage_change=percentage_change, trend=trend)


def identify_improvement_areas(
    current_scores: Mapping[str, float],
    previous_scores: Mapping[str, float],
    threshold: float = DEFAULT_IMPROVEMENT_THRESHOLD
) -> ImprovementAreas:
    """
    Group categories by how their score moved between two snapshots.

    A category only present in ``current_scores`` is new and counts as
    improved; one only present in ``previous_scores`` was removed and counts
    as declined.
    """
    areas = ImprovementAreas()

    categories = list(current_scores)
    categories.extend(c for c in previous_scores if c not in current_scores)

    for category in categories:
        if category not in previous_scores:
            areas.improved.append(category)
            continue
        if category not in current_scores:
            areas.declined.append(category)
            continue

        delta = current_scores[category] - previous_scores[category]
        if delta >= threshold:
            areas.improved.append(category)
        elif delta <= -threshold:
            areas.declined.append(category)
        else:
            areas.unchanged.append(category)

    return areas


# ============================================================================
# SUBMISSION READINESS
# ============================================================================

def validate_assessment_for_submission(
    responses: Sequence[AssessmentResponseRecord],
    total_questions: int,
    assessment_type: Union[AssessmentType, str]
) -> SubmissionValidation:
    """
    Check whether an assessment meets the submission requirements.

    Errors block submission: unanswered questions and, for ANS, answers
    left as NOT_REVIEWED. Low evidence coverage is only a warning.
    """
    assessment_type = AssessmentType(assessment_type)
    errors: list[str] = []
    warnings: list[str] = []

    if total_questions <= 0:
        return SubmissionValidation(
            is_valid=False,
            errors=["The questionnaire has no questions to answer."],
        )

    if assessment_type == AssessmentType.ANS_USOAP_CMA:
        answered = sum(
            1 for r in responses
            if r.response_value is not None
            and r.response_value != ANSResponseValue.NOT_REVIEWED
        )
    else:
        answered = sum(1 for r in responses if r.maturity_level is not None)

    answered_percentage = answered / total_questions * 100
    if answered_percentage < 100:
        errors.append(
            f"Only {answered} of {total_questions} questions answered "
            f"({_round_whole(answered_percentage)}%). All questions must be answered."
        )

    with_evidence = sum(
        1 for r in responses
        if r.is_complete or (r.evidence_description and r.evidence_description.strip())
    )
    evidence_percentage = with_evidence / total_questions * 100
    min_evidence = MIN_EVIDENCE_PERCENTAGE[assessment_type.value]
    if evidence_percentage < min_evidence:
        warnings.append(
            f"Only {_round_whole(evidence_percentage)}% of questions have evidence. "
            f"Recommended: at least {min_evidence}%."
        )

    if assessment_type == AssessmentType.ANS_USOAP_CMA:
        not_reviewed = sum(
            1 for r in responses if r.response_value == ANSResponseValue.NOT_REVIEWED
        )
        if not_reviewed > 0:
            errors.append(
                f'{not_reviewed} questions are marked as "Not Reviewed". '
                f"All questions must be assessed."
            )

    return SubmissionValidation(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
    )
