"""
Standard Fieldwork Checklist

The fourteen items every peer review checklist starts with, grouped into
pre-visit, on-site and post-visit phases.
"""

from typing import Optional

from schemas.checklist import ChecklistItemDefinition, FieldworkPhase


_ACCEPTED_UPLOAD_STATUSES = ["UPLOADED", "REVIEWED", "APPROVED"]


STANDARD_FIELDWORK_CHECKLIST: list[ChecklistItemDefinition] = [
    # Pre-visit preparation
    ChecklistItemDefinition(
        phase=FieldworkPhase.PRE_VISIT,
        item_code="PRE_DOC_REQUEST_SENT",
        sort_order=1,
        label_en="Document request sent to host organization",
        label_fr="Demande de documents envoyée à l'organisation hôte",
        validation_rules={
            "type": "DOCUMENT_EXISTS",
            "category": "PRE_VISIT_REQUEST",
            "minCount": 1,
            "requiredStatus": _ACCEPTED_UPLOAD_STATUSES,
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.PRE_VISIT,
        item_code="PRE_DOCS_RECEIVED",
        sort_order=2,
        label_en="Pre-visit documents received and reviewed",
        label_fr="Documents pré-visite reçus et examinés",
        validation_rules={
            "type": "DOCUMENT_EXISTS",
            "category": "HOST_SUBMISSION",
            "minCount": 1,
            "requiredStatus": ["REVIEWED", "APPROVED"],
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.PRE_VISIT,
        item_code="PRE_COORDINATION_MEETING",
        sort_order=3,
        label_en="Pre-visit coordination meeting held with team",
        label_fr="Réunion de coordination pré-visite tenue avec l'équipe",
        validation_rules={
            "type": "MANUAL_OR_DOCUMENT",
            "category": "INTERVIEW_NOTES",
            "allowManual": True,
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.PRE_VISIT,
        item_code="PRE_PLAN_APPROVED",
        sort_order=4,
        label_en="Review plan approved by team",
        label_fr="Plan de revue approuvé par l'équipe",
        validation_rules={
            "type": "APPROVAL_REQUIRED",
            "approverRoles": ["LEAD_REVIEWER", "PROGRAMME_COORDINATOR"],
        },
    ),

    # On-site activities
    ChecklistItemDefinition(
        phase=FieldworkPhase.ON_SITE,
        item_code="SITE_OPENING_MEETING",
        sort_order=5,
        label_en="Opening meeting conducted with host",
        label_fr="Réunion d'ouverture tenue avec l'hôte",
        validation_rules={
            "type": "MANUAL_OR_DOCUMENT",
            "allowManual": True,
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.ON_SITE,
        item_code="SITE_INTERVIEWS",
        sort_order=6,
        label_en="Staff interviews completed",
        label_fr="Entretiens avec le personnel terminés",
        validation_rules={
            "type": "DOCUMENT_EXISTS",
            "category": "INTERVIEW_NOTES",
            "minCount": 1,
            "requiredStatus": _ACCEPTED_UPLOAD_STATUSES,
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.ON_SITE,
        item_code="SITE_FACILITIES",
        sort_order=7,
        label_en="Facilities inspection completed",
        label_fr="Inspection des installations terminée",
        validation_rules={
            "type": "DOCUMENT_EXISTS",
            "category": "EVIDENCE",
            "minCount": 1,
            "requiredStatus": _ACCEPTED_UPLOAD_STATUSES,
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.ON_SITE,
        item_code="SITE_DOC_REVIEW",
        sort_order=8,
        label_en="Document review completed",
        label_fr="Examen des documents terminé",
        validation_rules={
            "type": "DOCUMENTS_REVIEWED",
            "category": "HOST_SUBMISSION",
            "allMustBeReviewed": True,
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.ON_SITE,
        item_code="SITE_FINDINGS_DISCUSSED",
        sort_order=9,
        label_en="Preliminary findings discussed with host",
        label_fr="Constatations préliminaires discutées avec l'hôte",
        validation_rules={
            "type": "FINDINGS_EXIST",
            "minCount": 1,
            "statusRequired": ["OPEN", "CAP_REQUIRED", "CAP_SUBMITTED", "CAP_ACCEPTED"],
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.ON_SITE,
        item_code="SITE_CLOSING_MEETING",
        sort_order=10,
        label_en="Closing meeting conducted",
        label_fr="Réunion de clôture tenue",
        validation_rules={
            "type": "PREREQUISITE_ITEMS",
            "requiredItems": [
                "SITE_OPENING_MEETING",
                "SITE_INTERVIEWS",
                "SITE_FACILITIES",
                "SITE_DOC_REVIEW",
                "SITE_FINDINGS_DISCUSSED",
            ],
        },
    ),

    # Post-visit activities
    ChecklistItemDefinition(
        phase=FieldworkPhase.POST_VISIT,
        item_code="POST_FINDINGS_ENTERED",
        sort_order=11,
        label_en="All findings entered in system",
        label_fr="Toutes les constatations saisies dans le système",
        validation_rules={
            "type": "AUTO_CHECK",
            "condition": "FINDINGS_COUNT_GT_0",
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.POST_VISIT,
        item_code="POST_EVIDENCE_UPLOADED",
        sort_order=12,
        label_en="Supporting evidence uploaded",
        label_fr="Preuves à l'appui téléchargées",
        validation_rules={
            "type": "FINDINGS_HAVE_EVIDENCE",
            "allFindingsMustHaveEvidence": True,
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.POST_VISIT,
        item_code="POST_DRAFT_REPORT",
        sort_order=13,
        label_en="Draft report prepared",
        label_fr="Projet de rapport préparé",
        validation_rules={
            "type": "DOCUMENT_EXISTS",
            "category": "DRAFT_REPORT",
            "minCount": 1,
            "requiredStatus": _ACCEPTED_UPLOAD_STATUSES,
        },
    ),
    ChecklistItemDefinition(
        phase=FieldworkPhase.POST_VISIT,
        item_code="POST_HOST_FEEDBACK",
        sort_order=14,
        label_en="Host feedback received on draft findings",
        label_fr="Commentaires de l'hôte reçus sur les constatations",
        validation_rules={
            "type": "MANUAL_OR_DOCUMENT",
            "category": "CORRESPONDENCE",
            "allowManual": True,
        },
    ),
]


def get_checklist_template(
    phase: Optional[FieldworkPhase] = None
) -> list[ChecklistItemDefinition]:
    """
    Standard checklist items in sort order.

    Args:
        phase: Only return items of this phase

    Returns:
        Copies of the template definitions
    """
    items = [
        item.model_copy(deep=True)
        for item in STANDARD_FIELDWORK_CHECKLIST
        if phase is None or item.phase == phase
    ]
    return sorted(items, key=lambda item: item.sort_order)
