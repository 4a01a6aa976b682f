"""
Scoring Tables

Fixed reference tables for ICAO USOAP CMA (EI) and CANSO SoE (SMS maturity)
scoring: level values, SMS component weights and EI score bands.

The tables are immutable and are passed explicitly to the calculators.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.assessment import MaturityLevel, ScoreBand


# Level -> numeric score
MATURITY_LEVEL_SCORES: Mapping[MaturityLevel, int] = MappingProxyType({
    MaturityLevel.A: 1,
    MaturityLevel.B: 2,
    MaturityLevel.C: 3,
    MaturityLevel.D: 4,
    MaturityLevel.E: 5,
})

# Lower bound (inclusive) of each level when converting a mean score back
MATURITY_LEVEL_THRESHOLDS: tuple[tuple[float, MaturityLevel], ...] = (
    (4.5, MaturityLevel.E),
    (3.5, MaturityLevel.D),
    (2.5, MaturityLevel.C),
    (1.5, MaturityLevel.B),
)

SMS_COMPONENT_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "SAFETY_POLICY_OBJECTIVES": 0.25,
    "SAFETY_RISK_MANAGEMENT": 0.30,
    "SAFETY_ASSURANCE": 0.25,
    "SAFETY_PROMOTION": 0.20,
})

DEFAULT_COMPONENT_WEIGHT = 0.25

# Descending; each band is inclusive on its lower bound
EI_SCORE_THRESHOLDS: tuple[tuple[float, ScoreBand], ...] = (
    (90.0, ScoreBand.EXCELLENT),
    (75.0, ScoreBand.GOOD),
    (60.0, ScoreBand.SATISFACTORY),
    (40.0, ScoreBand.NEEDS_IMPROVEMENT),
    (0.0, ScoreBand.CRITICAL),
)

SCORE_BAND_LABELS: Mapping[ScoreBand, dict[str, str]] = MappingProxyType({
    ScoreBand.EXCELLENT: {"en": "Excellent", "fr": "Excellent"},
    ScoreBand.GOOD: {"en": "Good", "fr": "Bon"},
    ScoreBand.SATISFACTORY: {"en": "Satisfactory", "fr": "Satisfaisant"},
    ScoreBand.NEEDS_IMPROVEMENT: {"en": "Needs Improvement", "fr": "À améliorer"},
    ScoreBand.CRITICAL: {"en": "Critical", "fr": "Critique"},
})

# Minimum evidence coverage (%) for submission, per audit type
MIN_EVIDENCE_PERCENTAGE: Mapping[str, int] = MappingProxyType({
    "ANS_USOAP_CMA": 80,
    "SMS_CANSO_SOE": 75,
})


class ScoringTables(BaseModel):
    """Immutable bundle of the scoring reference tables."""
    model_config = ConfigDict(frozen=True)

    level_scores: Mapping[MaturityLevel, int] = Field(default_factory=lambda: MATURITY_LEVEL_SCORES)
    level_thresholds: tuple[tuple[float, MaturityLevel], ...] = Field(
        default=MATURITY_LEVEL_THRESHOLDS
    )
    component_weights: Mapping[str, float] = Field(default_factory=lambda: SMS_COMPONENT_WEIGHTS)
    default_component_weight: float = Field(default=DEFAULT_COMPONENT_WEIGHT, gt=0.0)
    ei_thresholds: tuple[tuple[float, ScoreBand], ...] = Field(default=EI_SCORE_THRESHOLDS)

    def component_weight(self, component: str) -> float:
        """Weight of an SMS component, falling back to the default weight."""
        return self.component_weights.get(component, self.default_component_weight)


DEFAULT_TABLES = ScoringTables()


def get_maturity_level_from_score(
    score: float,
    tables: ScoringTables = DEFAULT_TABLES
) -> MaturityLevel:
    """
    Convert a mean numeric score (1-5) into a maturity level.

    Boundary values round up: 2.5 is C, 4.5 is E.
    """
    for lower_bound, level in tables.level_thresholds:
        if score >= lower_bound:
            return level
    return MaturityLevel.A


def get_ei_score_category(
    score: float,
    tables: ScoringTables = DEFAULT_TABLES
) -> ScoreBand:
    """Classify a 0-100 score into its band."""
    for lower_bound, band in tables.ei_thresholds:
        if score >= lower_bound:
            return band
    return ScoreBand.CRITICAL


def get_score_band_label(band: ScoreBand, locale: str = "en") -> str:
    """Bilingual display label for a band."""
    labels = SCORE_BAND_LABELS[band]
    return labels.get(locale, labels["en"])


def calculate_weighted_sms_score(
    component_scores: Mapping[str, Optional[float]],
    tables: ScoringTables = DEFAULT_TABLES
) -> float:
    """
    Weighted mean of component scores.

    Only components present in ``component_scores`` (and not None) take part
    in the denominator.
    """
    total_weight = 0.0
    weighted_sum = 0.0

    for component, score in component_scores.items():
        if score is None:
            continue
        weight = tables.component_weight(component)
        weighted_sum += score * weight
        total_weight += weight

    return weighted_sum / total_weight if total_weight > 0 else 0.0
