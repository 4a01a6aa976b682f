"""
Checklist Validation Service

Validates fieldwork checklist items against their validation rules:
- Document existence and review status
- Findings and their evidence
- Prerequisite items
- Review phase
- Approval requirements
- Automatic checks (findings entered, CAPs submitted, report generated)

Every failing rule carries an English and a French reason. The service only
reads review state through a ChecklistDataSource; store errors propagate.
"""

from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from pydantic import BaseModel, TypeAdapter, ValidationError as PydanticValidationError

from config.logging_config import get_logger
from schemas.checklist import (
    ApprovalRequiredRule,
    AutoCheckCondition,
    AutoCheckRule,
    CAPStatus,
    ChecklistCompletionStatus,
    ChecklistItemState,
    DocumentExistsRule,
    DocumentOrCommentsRule,
    DocumentStatus,
    DocumentsReviewedRule,
    FieldworkCompletion,
    FindingsExistRule,
    FindingsHaveEvidenceRule,
    IncompleteItem,
    ManualOrDocumentRule,
    PhaseCheckRule,
    PhaseProgress,
    PrerequisiteItemsRule,
    UnknownRule,
    ValidationDetails,
    ValidationResult,
    ValidationRule,
)
from services.data_sources import ChecklistDataSource


logger = get_logger("services.checklist_validation")


REVIEWED_DOCUMENT_STATUSES = frozenset({
    DocumentStatus.REVIEWED.value,
    DocumentStatus.APPROVED.value,
})

KNOWN_RULE_TYPES = frozenset({
    "DOCUMENT_EXISTS",
    "DOCUMENTS_REVIEWED",
    "FINDINGS_EXIST",
    "FINDINGS_HAVE_EVIDENCE",
    "PREREQUISITE_ITEMS",
    "PHASE_CHECK",
    "APPROVAL_REQUIRED",
    "MANUAL_OR_DOCUMENT",
    "DOCUMENT_OR_COMMENTS",
    "AUTO_CHECK",
})

DEFAULT_INCOMPLETE_REASON = "Item not completed"

_RULE_ADAPTER = TypeAdapter(ValidationRule)

RuleInput = Union[BaseModel, Mapping[str, Any], None]


class ChecklistValidationError(Exception):
    """Checklist validation error."""
    pass


class ChecklistRuleError(ChecklistValidationError):
    """A rule document with a known type could not be parsed."""
    pass


def parse_validation_rule(raw: RuleInput) -> Optional[BaseModel]:
    """
    Parse a stored rule document into its rule model.

    Args:
        raw: Rule document (camelCase keys), an already parsed rule, or None

    Returns:
        The rule model, an UnknownRule for unrecognised types, or None

    Raises:
        ChecklistRuleError: If a known rule type has invalid parameters
    """
    if raw is None:
        return None
    if isinstance(raw, BaseModel):
        return raw

    rule_type = raw.get("type")
    if rule_type not in KNOWN_RULE_TYPES:
        return UnknownRule(type=str(rule_type), raw=dict(raw))

    try:
        return _RULE_ADAPTER.validate_python(dict(raw))
    except PydanticValidationError as e:
        raise ChecklistRuleError(f"Invalid {rule_type} rule: {e}") from e


def _passed(reason: Optional[str] = None, reason_fr: Optional[str] = None) -> ValidationResult:
    return ValidationResult(is_valid=True, can_complete=True, reason=reason, reason_fr=reason_fr)


def _verdict(
    is_valid: bool,
    reason: str,
    reason_fr: str,
    details: Optional[ValidationDetails] = None
) -> ValidationResult:
    """Result whose reasons are only kept on failure."""
    return ValidationResult(
        is_valid=is_valid,
        can_complete=is_valid,
        reason=None if is_valid else reason,
        reason_fr=None if is_valid else reason_fr,
        details=details,
    )


class ChecklistValidationService:
    """
    Evaluates checklist validation rules against the current review state.

    Stateless between calls; every evaluation reads fresh data from the store.
    """

    def __init__(self, store: ChecklistDataSource):
        self.store = store
        self._validators: dict[str, Callable[..., Awaitable[ValidationResult]]] = {
            "DOCUMENT_EXISTS": self._validate_document_exists,
            "DOCUMENTS_REVIEWED": self._validate_documents_reviewed,
            "FINDINGS_EXIST": self._validate_findings_exist,
            "FINDINGS_HAVE_EVIDENCE": self._validate_findings_have_evidence,
            "PREREQUISITE_ITEMS": self._validate_prerequisite_items,
            "PHASE_CHECK": self._validate_phase_check,
            "APPROVAL_REQUIRED": self._validate_approval_required,
            "MANUAL_OR_DOCUMENT": self._validate_manual_or_document,
            "DOCUMENT_OR_COMMENTS": self._validate_document_or_comments,
            "AUTO_CHECK": self._validate_auto_check,
        }
        self._auto_checks: dict[str, Callable[[str], Awaitable[ValidationResult]]] = {
            AutoCheckCondition.FINDINGS_COUNT_GT_0.value: self._check_findings_entered,
            AutoCheckCondition.ALL_CAPS_SUBMITTED.value: self._check_caps_submitted,
            AutoCheckCondition.REPORT_GENERATED.value: self._check_report_generated,
        }

    # =========================================================================
    # Public API
    # =========================================================================

    async def validate_item(
        self,
        review_id: str,
        item_code: str,
        rules: RuleInput
    ) -> ValidationResult:
        """
        Validate a single checklist item against its rule.

        Items without a rule are manual and always completable. Unrecognised
        rule types are allowed to complete.
        """
        rule = parse_validation_rule(rules)
        if rule is None:
            return _passed()

        validator = self._validators.get(rule.type)
        if validator is None:
            logger.debug(f"Unknown rule type '{rule.type}' on item {item_code}, allowing completion")
            return _passed()

        return await validator(review_id, item_code, rule)

    async def validate_all_items(self, review_id: str) -> dict[str, ValidationResult]:
        """Validate every checklist item of a review, keyed by item code."""
        items = await self.store.list_checklist_items(review_id)

        results: dict[str, ValidationResult] = {}
        for item in items:
            results[item.item_code] = await self.validate_item(
                review_id, item.item_code, item.validation_rules
            )

        return results

    async def can_complete_fieldwork(self, review_id: str) -> FieldworkCompletion:
        """
        Check if fieldwork can be marked as complete.

        Completed or overridden items are never re-validated.
        """
        items = await self.store.list_checklist_items(review_id)
        return await self._evaluate_open_items(review_id, items)

    async def get_completion_status(self, review_id: str) -> ChecklistCompletionStatus:
        """Checklist progress overall and per phase, with the completion verdict."""
        items = await self.store.list_checklist_items(review_id)

        if not items:
            return ChecklistCompletionStatus()

        by_phase: dict[str, PhaseProgress] = {}
        completed_items = 0
        for item in items:
            done = item.is_completed or item.is_overridden
            phase = by_phase.setdefault(item.phase or "UNASSIGNED", PhaseProgress())
            phase.total += 1
            if done:
                phase.completed += 1
                completed_items += 1

        completion = await self._evaluate_open_items(review_id, items)

        return ChecklistCompletionStatus(
            total_items=len(items),
            completed_items=completed_items,
            progress=int(completed_items * 100 / len(items) + 0.5),
            by_phase=by_phase,
            can_complete_fieldwork=completion.can_complete,
            incomplete_items=completion.incomplete_items,
        )

    async def _evaluate_open_items(
        self,
        review_id: str,
        items: list[ChecklistItemState]
    ) -> FieldworkCompletion:
        incomplete: list[IncompleteItem] = []

        for item in items:
            if item.is_completed or item.is_overridden:
                continue

            validation = await self.validate_item(
                review_id, item.item_code, item.validation_rules
            )
            if not validation.can_complete:
                incomplete.append(IncompleteItem(
                    item_code=item.item_code,
                    label_en=item.label_en,
                    reason=validation.reason or DEFAULT_INCOMPLETE_REASON,
                ))

        if incomplete:
            logger.info(
                f"Review {review_id}: {len(incomplete)} checklist item(s) block fieldwork completion"
            )

        return FieldworkCompletion(
            can_complete=not incomplete,
            incomplete_items=incomplete,
        )

    # =========================================================================
    # Documents
    # =========================================================================

    async def _validate_document_exists(
        self,
        review_id: str,
        item_code: str,
        rule: DocumentExistsRule
    ) -> ValidationResult:
        count = await self.store.count_documents(
            review_id,
            category=rule.category,
            statuses=rule.required_status or None
        )

        return _verdict(
            count >= rule.min_count,
            f"Requires at least {rule.min_count} {rule.category} document(s)",
            f"Nécessite au moins {rule.min_count} document(s) de type {rule.category}",
            ValidationDetails(required=rule.min_count, current=count),
        )

    async def _validate_documents_reviewed(
        self,
        review_id: str,
        item_code: str,
        rule: DocumentsReviewedRule
    ) -> ValidationResult:
        documents = await self.store.list_documents(review_id, rule.category)

        if not documents:
            return ValidationResult(
                is_valid=False,
                can_complete=False,
                reason=f"No {rule.category} documents found to review",
                reason_fr=f"Aucun document de type {rule.category} trouvé à examiner",
                details=ValidationDetails(required=1, current=0),
            )

        unreviewed = [d for d in documents if d.status not in REVIEWED_DOCUMENT_STATUSES]
        reviewed_count = len(documents) - len(unreviewed)

        if rule.all_must_be_reviewed:
            is_valid = not unreviewed
            required = len(documents)
        else:
            is_valid = reviewed_count > 0
            required = 1

        names = ", ".join(d.name for d in unreviewed)

        return _verdict(
            is_valid,
            f"{len(unreviewed)} document(s) still need review: {names}",
            f"{len(unreviewed)} document(s) doivent encore être examinés : {names}",
            ValidationDetails(
                required=required,
                current=reviewed_count,
                missing=[d.name for d in unreviewed],
            ),
        )

    # =========================================================================
    # Findings
    # =========================================================================

    async def _validate_findings_exist(
        self,
        review_id: str,
        item_code: str,
        rule: FindingsExistRule
    ) -> ValidationResult:
        count = await self.store.count_findings(
            review_id,
            statuses=rule.status_required or None
        )

        return _verdict(
            count >= rule.min_count,
            f"Requires at least {rule.min_count} finding(s) to be recorded",
            f"Nécessite au moins {rule.min_count} constatation(s) enregistrée(s)",
            ValidationDetails(required=rule.min_count, current=count),
        )

    async def _validate_findings_have_evidence(
        self,
        review_id: str,
        item_code: str,
        rule: FindingsHaveEvidenceRule
    ) -> ValidationResult:
        findings = await self.store.list_findings(review_id)

        # Nothing to validate is a pass, unlike DOCUMENTS_REVIEWED
        if not findings:
            return _passed("No findings to validate", "Aucune constatation à valider")

        without_evidence = [f for f in findings if f.evidence_count == 0]

        if not rule.all_findings_must_have_evidence:
            return _verdict(
                len(without_evidence) < len(findings),
                "At least one finding needs evidence",
                "Au moins une constatation nécessite une preuve",
            )

        return _verdict(
            not without_evidence,
            f"{len(without_evidence)} finding(s) missing evidence",
            f"{len(without_evidence)} constatation(s) sans preuve",
            ValidationDetails(
                required=len(findings),
                current=len(findings) - len(without_evidence),
                missing=[f.reference_number or f.id for f in without_evidence],
            ),
        )

    # =========================================================================
    # Checklist, Phase, Approval
    # =========================================================================

    async def _validate_prerequisite_items(
        self,
        review_id: str,
        item_code: str,
        rule: PrerequisiteItemsRule
    ) -> ValidationResult:
        required = rule.required_items
        if not required:
            return _passed()

        items = await self.store.list_checklist_items(review_id, item_codes=required)
        by_code = {item.item_code: item for item in items}

        # A prerequisite missing from the checklist cannot have been completed
        missing = [
            code for code in required
            if code not in by_code
            or not (by_code[code].is_completed or by_code[code].is_overridden)
        ]

        labels_en = ", ".join(by_code[c].label_en if c in by_code else c for c in missing)
        labels_fr = ", ".join(by_code[c].label_fr if c in by_code else c for c in missing)

        return _verdict(
            not missing,
            f"Complete prerequisite items first: {labels_en}",
            f"Complétez d'abord les éléments préalables : {labels_fr}",
            ValidationDetails(
                required=len(required),
                current=len(required) - len(missing),
                missing=missing,
            ),
        )

    async def _validate_phase_check(
        self,
        review_id: str,
        item_code: str,
        rule: PhaseCheckRule
    ) -> ValidationResult:
        phase = await self.store.get_review_phase(review_id)

        if phase is None:
            return ValidationResult(
                is_valid=False,
                can_complete=rule.allow_manual,
                reason="Review not found",
                reason_fr="Revue introuvable",
            )

        is_valid = phase == rule.required_phase

        # allow_manual lets the item complete even when the phase check fails
        return ValidationResult(
            is_valid=is_valid,
            can_complete=is_valid or rule.allow_manual,
            reason=None if is_valid else f"Review must be in {rule.required_phase} phase",
            reason_fr=None if is_valid else f"La revue doit être en phase {rule.required_phase}",
        )

    async def _validate_approval_required(
        self,
        review_id: str,
        item_code: str,
        rule: ApprovalRequiredRule
    ) -> ValidationResult:
        # Role enforcement belongs to the caller completing the item
        return _passed(
            f"Requires approval from: {' or '.join(rule.approver_roles)}",
            f"Nécessite l'approbation de : {' ou '.join(rule.approver_roles)}",
        )

    # =========================================================================
    # Manual / Document alternatives
    # =========================================================================

    async def _validate_manual_or_document(
        self,
        review_id: str,
        item_code: str,
        rule: ManualOrDocumentRule
    ) -> ValidationResult:
        if rule.allow_manual or not rule.category:
            return _passed()

        count = await self.store.count_documents(review_id, category=rule.category)

        return _verdict(
            count > 0,
            f"Upload {rule.category} document or confirm manually",
            f"Téléchargez un document {rule.category} ou confirmez manuellement",
        )

    async def _validate_document_or_comments(
        self,
        review_id: str,
        item_code: str,
        rule: DocumentOrCommentsRule
    ) -> ValidationResult:
        if await self.store.count_documents(review_id, category=rule.category) > 0:
            return _passed()

        if rule.or_finding_comments and await self.store.count_findings(review_id) > 0:
            return _passed()

        if rule.or_finding_comments:
            return _verdict(
                False,
                f"Upload {rule.category} document or receive host feedback",
                f"Téléchargez un document {rule.category} ou recevez les commentaires de l'hôte",
            )

        return _verdict(
            False,
            f"Upload {rule.category} document",
            f"Téléchargez un document {rule.category}",
        )

    # =========================================================================
    # Automatic checks
    # =========================================================================

    async def _validate_auto_check(
        self,
        review_id: str,
        item_code: str,
        rule: AutoCheckRule
    ) -> ValidationResult:
        check = self._auto_checks.get(rule.condition)
        if check is None:
            logger.debug(
                f"Unknown AUTO_CHECK condition '{rule.condition}' on item {item_code}, "
                f"allowing completion"
            )
            return _passed()

        return await check(review_id)

    async def _check_findings_entered(self, review_id: str) -> ValidationResult:
        count = await self.store.count_findings(review_id)
        return _verdict(
            count > 0,
            "Enter at least one finding",
            "Saisissez au moins une constatation",
            ValidationDetails(required=1, current=count),
        )

    async def _check_caps_submitted(self, review_id: str) -> ValidationResult:
        findings = await self.store.list_findings(review_id, cap_required_only=True)
        pending = [
            f for f in findings
            if f.cap_status is None or f.cap_status == CAPStatus.DRAFT.value
        ]

        return _verdict(
            not pending,
            f"{len(pending)} CAP(s) pending submission",
            f"{len(pending)} PAC en attente de soumission",
            ValidationDetails(
                required=len(findings),
                current=len(findings) - len(pending),
                missing=[f.reference_number or f.id for f in pending],
            ),
        )

    async def _check_report_generated(self, review_id: str) -> ValidationResult:
        exists = await self.store.report_exists(review_id)
        return _verdict(
            exists,
            "Generate review report first",
            "Générez d'abord le rapport de revue",
        )
