import pytest

from schemas.checklist import (
    ChecklistItemState,
    DocumentExistsRule,
    FieldworkPhase,
    UnknownRule,
)
from services.checklist_templates import STANDARD_FIELDWORK_CHECKLIST, get_checklist_template
from services.checklist_validation import (
    ChecklistRuleError,
    ChecklistValidationService,
    parse_validation_rule,
)
from tests.factories import FakeChecklistStore


REVIEW_ID = "review-1"


async def validate(store, rules, item_code="ITEM"):
    return await ChecklistValidationService(store).validate_item(REVIEW_ID, item_code, rules)


# ---------------------------------------------------------------------------
# Rule parsing
# ---------------------------------------------------------------------------

def test_parse_camel_case_rule():
    rule = parse_validation_rule({
        "type": "DOCUMENT_EXISTS",
        "category": "EVIDENCE",
        "minCount": 2,
        "requiredStatus": ["REVIEWED"],
    })

    assert isinstance(rule, DocumentExistsRule)
    assert rule.min_count == 2
    assert rule.required_status == ["REVIEWED"]


def test_parse_snake_case_rule():
    rule = parse_validation_rule({"type": "DOCUMENT_EXISTS", "category": "EVIDENCE", "min_count": 3})

    assert rule.min_count == 3


def test_parse_unknown_rule_type():
    rule = parse_validation_rule({"type": "SIGNATURE_REQUIRED", "signers": 2})

    assert isinstance(rule, UnknownRule)
    assert rule.type == "SIGNATURE_REQUIRED"
    assert rule.raw["signers"] == 2


@pytest.mark.parametrize("raw", [
    {"type": "DOCUMENT_EXISTS"},
    {"type": "DOCUMENT_EXISTS", "category": "EVIDENCE", "minCount": -1},
    {"type": "PHASE_CHECK"},
    {"type": "AUTO_CHECK"},
])
def test_parse_malformed_known_rule(raw):
    with pytest.raises(ChecklistRuleError):
        parse_validation_rule(raw)


# ---------------------------------------------------------------------------
# No rule / unknown rules
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_item_without_rule_is_manual(checklist_store):
    result = await validate(checklist_store, None)

    assert result.is_valid
    assert result.can_complete
    assert result.reason is None
    assert checklist_store.calls == []


@pytest.mark.asyncio
async def test_unknown_rule_type_is_permissive(checklist_store):
    result = await validate(checklist_store, {"type": "SIGNATURE_REQUIRED"})

    assert result.is_valid
    assert result.can_complete
    assert checklist_store.calls == []


@pytest.mark.asyncio
async def test_malformed_rule_raises(checklist_store):
    with pytest.raises(ChecklistRuleError):
        await validate(checklist_store, {"type": "DOCUMENTS_REVIEWED"})


@pytest.mark.asyncio
async def test_accepts_parsed_rule(checklist_store):
    checklist_store.add_document("notes.pdf", "INTERVIEW_NOTES")

    result = await validate(checklist_store, DocumentExistsRule(category="INTERVIEW_NOTES"))

    assert result.is_valid


@pytest.mark.asyncio
async def test_result_serialises_camel_case(checklist_store):
    result = await validate(checklist_store, {"type": "DOCUMENT_EXISTS", "category": "EVIDENCE"})

    dumped = result.model_dump(by_alias=True)
    assert dumped["isValid"] is False
    assert dumped["canComplete"] is False
    assert dumped["reasonFr"]
    assert dumped["details"] == {"required": 1, "current": 0, "missing": None}


@pytest.mark.asyncio
async def test_store_errors_propagate():
    class BrokenStore(FakeChecklistStore):
        async def count_documents(self, review_id, category=None, statuses=None):
            raise RuntimeError("connection lost")

    with pytest.raises(RuntimeError):
        await validate(BrokenStore(), {"type": "DOCUMENT_EXISTS", "category": "EVIDENCE"})


# ---------------------------------------------------------------------------
# DOCUMENT_EXISTS / DOCUMENTS_REVIEWED
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_document_exists_without_documents(checklist_store):
    result = await validate(checklist_store, {
        "type": "DOCUMENT_EXISTS",
        "category": "PRE_VISIT_REQUEST",
        "minCount": 1,
    })

    assert not result.is_valid
    assert not result.can_complete
    assert result.details.required == 1
    assert result.details.current == 0
    assert "PRE_VISIT_REQUEST" in result.reason
    assert "PRE_VISIT_REQUEST" in result.reason_fr


@pytest.mark.asyncio
async def test_document_exists_filters_status_and_deleted(checklist_store):
    checklist_store.add_document("submission-1.pdf", "HOST_SUBMISSION", "UPLOADED")
    checklist_store.add_document("submission-2.pdf", "HOST_SUBMISSION", "REVIEWED")
    checklist_store.add_document("submission-3.pdf", "HOST_SUBMISSION", "APPROVED", is_deleted=True)

    rule = {
        "type": "DOCUMENT_EXISTS",
        "category": "HOST_SUBMISSION",
        "minCount": 2,
        "requiredStatus": ["REVIEWED", "APPROVED"],
    }
    result = await validate(checklist_store, rule)

    assert not result.is_valid
    assert result.details.current == 1

    checklist_store.add_document("submission-4.pdf", "HOST_SUBMISSION", "APPROVED")
    result = await validate(checklist_store, rule)

    assert result.is_valid
    assert result.reason is None
    assert result.details.current == 2


@pytest.mark.asyncio
async def test_documents_reviewed_without_documents(checklist_store):
    result = await validate(checklist_store, {"type": "DOCUMENTS_REVIEWED", "category": "HOST_SUBMISSION"})

    assert not result.is_valid
    assert result.reason == "No HOST_SUBMISSION documents found to review"
    assert result.reason_fr
    assert result.details.required == 1
    assert result.details.current == 0


@pytest.mark.asyncio
async def test_documents_reviewed_lists_unreviewed(checklist_store):
    checklist_store.add_document("manual.pdf", "HOST_SUBMISSION", "APPROVED")
    checklist_store.add_document("procedures.pdf", "HOST_SUBMISSION", "UPLOADED")
    checklist_store.add_document("training.pdf", "HOST_SUBMISSION", "UNDER_REVIEW")

    result = await validate(checklist_store, {"type": "DOCUMENTS_REVIEWED", "category": "HOST_SUBMISSION"})

    assert not result.is_valid
    assert result.details.required == 3
    assert result.details.current == 1
    assert result.details.missing == ["procedures.pdf", "training.pdf"]
    assert "procedures.pdf" in result.reason


@pytest.mark.asyncio
async def test_documents_reviewed_all_reviewed(checklist_store):
    checklist_store.add_document("manual.pdf", "HOST_SUBMISSION", "APPROVED")
    checklist_store.add_document("procedures.pdf", "HOST_SUBMISSION", "REVIEWED")

    result = await validate(checklist_store, {"type": "DOCUMENTS_REVIEWED", "category": "HOST_SUBMISSION"})

    assert result.is_valid
    assert result.details.missing == []


@pytest.mark.asyncio
async def test_documents_reviewed_any_reviewed(checklist_store):
    checklist_store.add_document("manual.pdf", "HOST_SUBMISSION", "REVIEWED")
    checklist_store.add_document("procedures.pdf", "HOST_SUBMISSION", "UPLOADED")

    result = await validate(checklist_store, {
        "type": "DOCUMENTS_REVIEWED",
        "category": "HOST_SUBMISSION",
        "allMustBeReviewed": False,
    })

    assert result.is_valid


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_findings_exist_with_status_filter(checklist_store):
    checklist_store.add_finding("F-1", status="CLOSED")

    rule = {"type": "FINDINGS_EXIST", "minCount": 1, "statusRequired": ["OPEN", "CAP_REQUIRED"]}
    result = await validate(checklist_store, rule)

    assert not result.is_valid
    assert result.details.current == 0

    checklist_store.add_finding("F-2", status="OPEN")
    result = await validate(checklist_store, rule)

    assert result.is_valid
    assert result.details.current == 1


@pytest.mark.asyncio
async def test_findings_have_evidence_without_findings(checklist_store):
    result = await validate(checklist_store, {
        "type": "FINDINGS_HAVE_EVIDENCE",
        "allFindingsMustHaveEvidence": True,
    })

    assert result.is_valid
    assert result.can_complete
    assert result.reason == "No findings to validate"
    assert result.reason_fr == "Aucune constatation à valider"


@pytest.mark.asyncio
async def test_findings_have_evidence_all_required(checklist_store):
    checklist_store.add_finding("F-1", evidence_count=2)
    checklist_store.add_finding("F-2", evidence_count=0)

    result = await validate(checklist_store, {
        "type": "FINDINGS_HAVE_EVIDENCE",
        "allFindingsMustHaveEvidence": True,
    })

    assert not result.is_valid
    assert result.details.required == 2
    assert result.details.current == 1
    assert result.details.missing == ["F-2"]


@pytest.mark.asyncio
async def test_findings_have_evidence_any(checklist_store):
    checklist_store.add_finding("F-1", evidence_count=0)

    rule = {"type": "FINDINGS_HAVE_EVIDENCE"}
    assert not (await validate(checklist_store, rule)).is_valid

    checklist_store.add_finding("F-2", evidence_count=1)
    assert (await validate(checklist_store, rule)).is_valid


# ---------------------------------------------------------------------------
# Prerequisites / phase / approval
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_prerequisite_items(checklist_store):
    checklist_store.add_item("SITE_OPENING_MEETING", completed=True)
    checklist_store.add_item("SITE_INTERVIEWS", overridden=True)
    checklist_store.add_item("SITE_FACILITIES", label_en="Facilities inspection completed")

    result = await validate(checklist_store, {
        "type": "PREREQUISITE_ITEMS",
        "requiredItems": [
            "SITE_OPENING_MEETING",
            "SITE_INTERVIEWS",
            "SITE_FACILITIES",
            "SITE_DOC_REVIEW",
        ],
    })

    assert not result.is_valid
    assert result.details.required == 4
    assert result.details.current == 2
    assert result.details.missing == ["SITE_FACILITIES", "SITE_DOC_REVIEW"]
    assert "Facilities inspection completed" in result.reason


@pytest.mark.asyncio
async def test_prerequisite_items_single_missing(checklist_store):
    checklist_store.add_item("SITE_OPENING_MEETING", completed=True)
    checklist_store.add_item("SITE_INTERVIEWS", completed=True)
    checklist_store.add_item("SITE_FACILITIES")

    result = await validate(checklist_store, {
        "type": "PREREQUISITE_ITEMS",
        "requiredItems": ["SITE_OPENING_MEETING", "SITE_INTERVIEWS", "SITE_FACILITIES"],
    })

    assert not result.is_valid
    assert result.details.missing == ["SITE_FACILITIES"]


@pytest.mark.asyncio
async def test_prerequisite_items_all_done(checklist_store):
    checklist_store.add_item("SITE_OPENING_MEETING", completed=True)

    result = await validate(checklist_store, {
        "type": "PREREQUISITE_ITEMS",
        "requiredItems": ["SITE_OPENING_MEETING"],
    })

    assert result.is_valid
    assert result.details.missing == []


@pytest.mark.asyncio
async def test_phase_check_matches():
    store = FakeChecklistStore(phase="REPORTING")

    result = await validate(store, {"type": "PHASE_CHECK", "requiredPhase": "REPORTING"})

    assert result.is_valid
    assert result.can_complete


@pytest.mark.asyncio
async def test_phase_check_allow_manual_forces_completion():
    store = FakeChecklistStore(phase="FIELDWORK")

    strict = await validate(store, {"type": "PHASE_CHECK", "requiredPhase": "REPORTING"})
    manual = await validate(store, {
        "type": "PHASE_CHECK",
        "requiredPhase": "REPORTING",
        "allowManual": True,
    })

    assert not strict.is_valid
    assert not strict.can_complete
    assert not manual.is_valid
    assert manual.can_complete
    assert manual.reason == "Review must be in REPORTING phase"


@pytest.mark.asyncio
async def test_phase_check_missing_review():
    store = FakeChecklistStore(phase=None)

    result = await validate(store, {"type": "PHASE_CHECK", "requiredPhase": "REPORTING"})

    assert not result.is_valid
    assert not result.can_complete
    assert result.reason == "Review not found"


@pytest.mark.asyncio
async def test_approval_required_is_informational(checklist_store):
    result = await validate(checklist_store, {
        "type": "APPROVAL_REQUIRED",
        "approverRoles": ["LEAD_REVIEWER", "PROGRAMME_COORDINATOR"],
    })

    assert result.is_valid
    assert result.can_complete
    assert result.reason == "Requires approval from: LEAD_REVIEWER or PROGRAMME_COORDINATOR"
    assert checklist_store.calls == []


# ---------------------------------------------------------------------------
# Manual / document alternatives
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_manual_or_document(checklist_store):
    assert (await validate(checklist_store, {
        "type": "MANUAL_OR_DOCUMENT",
        "category": "INTERVIEW_NOTES",
        "allowManual": True,
    })).is_valid
    assert (await validate(checklist_store, {"type": "MANUAL_OR_DOCUMENT"})).is_valid
    assert checklist_store.calls == []

    rule = {"type": "MANUAL_OR_DOCUMENT", "category": "CORRESPONDENCE"}
    result = await validate(checklist_store, rule)
    assert not result.is_valid
    assert result.reason == "Upload CORRESPONDENCE document or confirm manually"

    checklist_store.add_document("letter.pdf", "CORRESPONDENCE")
    assert (await validate(checklist_store, rule)).is_valid


@pytest.mark.asyncio
async def test_document_or_comments(checklist_store):
    with_comments = {"type": "DOCUMENT_OR_COMMENTS", "category": "CORRESPONDENCE", "orFindingComments": True}
    document_only = {"type": "DOCUMENT_OR_COMMENTS", "category": "CORRESPONDENCE"}

    result = await validate(checklist_store, with_comments)
    assert not result.is_valid
    assert "host feedback" in result.reason

    result = await validate(checklist_store, document_only)
    assert not result.is_valid
    assert result.reason == "Upload CORRESPONDENCE document"

    checklist_store.add_finding("F-1")
    assert (await validate(checklist_store, with_comments)).is_valid
    assert not (await validate(checklist_store, document_only)).is_valid

    checklist_store.add_document("feedback.pdf", "CORRESPONDENCE")
    assert (await validate(checklist_store, document_only)).is_valid


# ---------------------------------------------------------------------------
# AUTO_CHECK
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_auto_check_findings_count(checklist_store):
    rule = {"type": "AUTO_CHECK", "condition": "FINDINGS_COUNT_GT_0"}

    result = await validate(checklist_store, rule)
    assert not result.is_valid
    assert result.details.required == 1
    assert result.details.current == 0

    checklist_store.add_finding("F-1").add_finding("F-2")
    result = await validate(checklist_store, rule)
    assert result.is_valid
    assert result.details.current == 2


@pytest.mark.asyncio
async def test_auto_check_caps_submitted(checklist_store):
    checklist_store.add_finding("F-1", cap_required=True, cap_status="SUBMITTED")
    checklist_store.add_finding("F-2", cap_required=True, cap_status=None)
    checklist_store.add_finding("F-3", cap_required=True, cap_status="DRAFT")
    checklist_store.add_finding("F-4", cap_required=False)

    result = await validate(checklist_store, {"type": "AUTO_CHECK", "condition": "ALL_CAPS_SUBMITTED"})

    assert not result.is_valid
    assert result.reason == "2 CAP(s) pending submission"
    assert result.details.required == 3
    assert result.details.current == 1
    assert result.details.missing == ["F-2", "F-3"]


@pytest.mark.asyncio
async def test_auto_check_caps_submitted_without_cap_findings(checklist_store):
    checklist_store.add_finding("F-1", cap_required=False)

    result = await validate(checklist_store, {"type": "AUTO_CHECK", "condition": "ALL_CAPS_SUBMITTED"})

    assert result.is_valid


@pytest.mark.asyncio
async def test_auto_check_report_generated(checklist_store):
    rule = {"type": "AUTO_CHECK", "condition": "REPORT_GENERATED"}

    result = await validate(checklist_store, rule)
    assert not result.is_valid
    assert result.reason == "Generate review report first"

    checklist_store.has_report = True
    assert (await validate(checklist_store, rule)).is_valid


@pytest.mark.asyncio
async def test_auto_check_unknown_condition(checklist_store):
    result = await validate(checklist_store, {"type": "AUTO_CHECK", "condition": "MOON_IS_FULL"})

    assert result.is_valid
    assert checklist_store.calls == []


# ---------------------------------------------------------------------------
# Whole checklist
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_validate_all_items(checklist_store):
    checklist_store.add_item("FIRST", rules={"type": "DOCUMENT_EXISTS", "category": "EVIDENCE"})
    checklist_store.add_item("SECOND")

    results = await ChecklistValidationService(checklist_store).validate_all_items(REVIEW_ID)

    assert list(results) == ["FIRST", "SECOND"]
    assert not results["FIRST"].is_valid
    assert results["SECOND"].is_valid


@pytest.mark.asyncio
async def test_completed_and_overridden_items_are_not_revalidated(checklist_store):
    failing = {"type": "DOCUMENT_EXISTS", "category": "EVIDENCE", "minCount": 5}
    checklist_store.add_item("DONE", rules=failing, completed=True)
    checklist_store.add_item("WAIVED", rules=failing, overridden=True)

    completion = await ChecklistValidationService(checklist_store).can_complete_fieldwork(REVIEW_ID)

    assert completion.can_complete
    assert completion.incomplete_items == []
    assert checklist_store.calls == ["list_checklist_items"]


@pytest.mark.asyncio
async def test_can_complete_fieldwork_lists_blocking_items(checklist_store):
    checklist_store.add_item(
        "SITE_FACILITIES",
        rules={"type": "DOCUMENT_EXISTS", "category": "EVIDENCE"},
        label_en="Facilities inspection completed",
    )
    checklist_store.add_item("SITE_OPENING_MEETING")
    checklist_store.add_item("POST_FINDINGS_ENTERED", rules={"type": "AUTO_CHECK", "condition": "FINDINGS_COUNT_GT_0"})

    completion = await ChecklistValidationService(checklist_store).can_complete_fieldwork(REVIEW_ID)

    assert not completion.can_complete
    assert [i.item_code for i in completion.incomplete_items] == [
        "SITE_FACILITIES",
        "POST_FINDINGS_ENTERED",
    ]
    assert completion.incomplete_items[0].label_en == "Facilities inspection completed"
    assert completion.incomplete_items[0].reason == "Requires at least 1 EVIDENCE document(s)"


@pytest.mark.asyncio
async def test_completion_status_without_items(checklist_store):
    status = await ChecklistValidationService(checklist_store).get_completion_status(REVIEW_ID)

    assert status.total_items == 0
    assert status.completed_items == 0
    assert status.progress == 0
    assert status.by_phase == {}
    assert not status.can_complete_fieldwork


@pytest.mark.asyncio
async def test_completion_status(checklist_store):
    checklist_store.add_item("PRE_DOC_REQUEST_SENT", phase="PRE_VISIT", completed=True)
    checklist_store.add_item("PRE_PLAN_APPROVED", phase="PRE_VISIT")
    checklist_store.add_item("SITE_INTERVIEWS", phase="ON_SITE", overridden=True)

    status = await ChecklistValidationService(checklist_store).get_completion_status(REVIEW_ID)

    assert status.total_items == 3
    assert status.completed_items == 2
    assert status.progress == 67
    assert status.by_phase["PRE_VISIT"].total == 2
    assert status.by_phase["PRE_VISIT"].completed == 1
    assert status.by_phase["ON_SITE"].completed == 1
    assert status.can_complete_fieldwork
    assert status.incomplete_items == []


# ---------------------------------------------------------------------------
# Standard checklist
# ---------------------------------------------------------------------------

def test_standard_checklist_shape():
    codes = [item.item_code for item in STANDARD_FIELDWORK_CHECKLIST]

    assert len(codes) == 14
    assert len(set(codes)) == 14
    assert [item.sort_order for item in STANDARD_FIELDWORK_CHECKLIST] == list(range(1, 15))
    assert all(item.label_en and item.label_fr for item in STANDARD_FIELDWORK_CHECKLIST)


def test_standard_checklist_rules_parse():
    for item in STANDARD_FIELDWORK_CHECKLIST:
        rule = parse_validation_rule(item.validation_rules)
        assert rule is not None
        assert not isinstance(rule, UnknownRule), item.item_code


def test_checklist_template_by_phase():
    pre_visit = get_checklist_template(FieldworkPhase.PRE_VISIT)
    on_site = get_checklist_template(FieldworkPhase.ON_SITE)
    post_visit = get_checklist_template(FieldworkPhase.POST_VISIT)

    assert [i.item_code for i in pre_visit] == [
        "PRE_DOC_REQUEST_SENT",
        "PRE_DOCS_RECEIVED",
        "PRE_COORDINATION_MEETING",
        "PRE_PLAN_APPROVED",
    ]
    assert len(on_site) == 6
    assert len(post_visit) == 4


def test_checklist_template_returns_copies():
    template = get_checklist_template()
    template[0].validation_rules["minCount"] = 99

    assert STANDARD_FIELDWORK_CHECKLIST[0].validation_rules["minCount"] == 1


@pytest.mark.asyncio
async def test_standard_checklist_on_empty_review(checklist_store):
    checklist_store.items = [
        ChecklistItemState(
            item_code=item.item_code,
            label_en=item.label_en,
            label_fr=item.label_fr,
            phase=item.phase.value,
            sort_order=item.sort_order,
            validation_rules=item.validation_rules,
        )
        for item in get_checklist_template()
    ]

    completion = await ChecklistValidationService(checklist_store).can_complete_fieldwork(REVIEW_ID)

    assert not completion.can_complete
    assert [i.item_code for i in completion.incomplete_items] == [
        "PRE_DOC_REQUEST_SENT",
        "PRE_DOCS_RECEIVED",
        "SITE_INTERVIEWS",
        "SITE_FACILITIES",
        "SITE_DOC_REVIEW",
        "SITE_FINDINGS_DISCUSSED",
        "SITE_CLOSING_MEETING",
        "POST_FINDINGS_ENTERED",
        "POST_DRAFT_REPORT",
    ]
