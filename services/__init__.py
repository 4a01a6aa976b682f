"""
ANSP Peer Review - Services Package

Assessment scoring, checklist validation and their data stores.
"""

from services.scoring import (
    round2,
    calculate_ei_score,
    calculate_simple_ei_score,
    maturity_level_to_score,
    score_to_maturity_level,
    get_lowest_maturity_level,
    calculate_sms_maturity,
    calculate_category_scores,
    compare_scores,
    identify_improvement_areas,
    validate_assessment_for_submission,
)
from services.scoring_tables import (
    ScoringTables,
    DEFAULT_TABLES,
    get_maturity_level_from_score,
    get_ei_score_category,
    get_score_band_label,
    calculate_weighted_sms_score,
)
from services.assessment_scoring import (
    AssessmentScoringService,
    ScoringError,
    AssessmentNotFoundError,
)
from services.checklist_validation import (
    ChecklistValidationService,
    ChecklistValidationError,
    ChecklistRuleError,
    parse_validation_rule,
)
from services.checklist_templates import (
    STANDARD_FIELDWORK_CHECKLIST,
    get_checklist_template,
)
from services.data_sources import AssessmentDataSource, ChecklistDataSource
from services.database_storage import DatabaseAssessmentStore, DatabaseReviewStore

__all__ = [
    # Calculators
    "round2",
    "calculate_ei_score",
    "calculate_simple_ei_score",
    "maturity_level_to_score",
    "score_to_maturity_level",
    "get_lowest_maturity_level",
    "calculate_sms_maturity",
    "calculate_category_scores",
    "compare_scores",
    "identify_improvement_areas",
    "validate_assessment_for_submission",
    # Reference tables
    "ScoringTables",
    "DEFAULT_TABLES",
    "get_maturity_level_from_score",
    "get_ei_score_category",
    "get_score_band_label",
    "calculate_weighted_sms_score",
    # Services
    "AssessmentScoringService",
    "ScoringError",
    "AssessmentNotFoundError",
    "ChecklistValidationService",
    "ChecklistValidationError",
    "ChecklistRuleError",
    "parse_validation_rule",
    "STANDARD_FIELDWORK_CHECKLIST",
    "get_checklist_template",
    # Stores
    "AssessmentDataSource",
    "ChecklistDataSource",
    "DatabaseAssessmentStore",
    "DatabaseReviewStore",
]
