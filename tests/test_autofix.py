"""
Tests for autofix: fix builders, suggestion generation and the auto-fix
engine.
"""

import json
import logging

import pytest

from autofix import (
    AutoFixRequest,
    DocumentRef,
    FixStrategy,
    apply_autofixes,
    ensure_suggestions,
    fix_dose_inconsistent,
    fix_primary_endpoint_drift,
    fix_sap_method_mismatch,
    generate_autofix_suggestions,
    save_autofix_report,
)
from documents import (
    CrossDocBundle,
    DocumentType,
    DoseRecord,
    Endpoint,
    EndpointDataType,
    EntityLevel,
    SapEndpoint,
    StatisticalTest,
    StructuredIbDocument,
    StructuredProtocolDocument,
    StructuredSapDocument,
    TreatmentArm,
)
from rules.base import Issue, IssueLocation, Patch, Severity, Suggestion

PRIMARY = EntityLevel.PRIMARY


def _make_bundle():
    return CrossDocBundle(
        ib=StructuredIbDocument(
            id="ib-1",
            dosing_information=(
                DoseRecord("d1", "10 mg", "oral", "once daily"),
                DoseRecord("d2", "25 mg", "oral", "once daily"),
                DoseRecord("d3", "50 mg", "oral", "once daily"),
            ),
        ),
        protocol=StructuredProtocolDocument(
            id="prot-1",
            endpoints=(
                Endpoint("p-e1", PRIMARY, "HbA1c change", "Change from baseline in HbA1c", EndpointDataType.CONTINUOUS),
                Endpoint("p-e2", EntityLevel.SECONDARY, "Responder rate", "HbA1c below 7%", EndpointDataType.BINARY),
            ),
            arms=(TreatmentArm("a1", "Drug 10 mg", "10 mg", "oral", "once daily"),),
        ),
        sap=StructuredSapDocument(
            id="sap-1",
            primary_endpoints=(SapEndpoint("s-e1", "Overall survival", "Time to death"),),
            statistical_tests=(
                StatisticalTest("p-e1", "Chi-square test"),
                StatisticalTest("p-e2", "ANCOVA"),
            ),
        ),
    )


def _make_patch(document_id="sap-1", field="name", new_value="new", document_type=DocumentType.SAP):
    return Patch(document_type=document_type, document_id=document_id, field=field, new_value=new_value)


def _make_issue(code, *patches, auto_fixable=True, severity=Severity.ERROR, message="problem"):
    suggestions = [Suggestion(id=f"FIX_{code}", label="fix", auto_fixable=auto_fixable, patches=list(patches))]
    return Issue(code=code, severity=severity, message=message, suggestions=suggestions)


# ── Fix builders ─────────────────────────────────────────────────────

class TestFixBuilders:

    def test_primary_endpoint_drift(self):
        patches = fix_primary_endpoint_drift(_make_bundle())
        assert [(p.field, p.old_value, p.new_value) for p in patches] == [
            ("name", "Overall survival", "HbA1c change"),
            ("description", "Time to death", "Change from baseline in HbA1c"),
        ]
        assert all(p.block_id == "s-e1" and p.document_id == "sap-1" for p in patches)

    def test_primary_endpoint_drift_only_differences(self):
        bundle = _make_bundle()
        sap = StructuredSapDocument(
            id="sap-1",
            primary_endpoints=(SapEndpoint("s-e1", "HbA1c change", "Old description"),),
        )
        bundle = CrossDocBundle(ib=bundle.ib, protocol=bundle.protocol, sap=sap)
        patches = fix_primary_endpoint_drift(bundle)
        assert [p.field for p in patches] == ["description"]

    def test_primary_endpoint_drift_needs_sap(self):
        bundle = _make_bundle()
        assert fix_primary_endpoint_drift(CrossDocBundle(protocol=bundle.protocol)) == []

    def test_dose_inconsistent_single_patch(self):
        patches = fix_dose_inconsistent(_make_bundle())
        assert len(patches) == 1
        patch = patches[0]
        assert patch.document_type == DocumentType.PROTOCOL
        assert patch.field == "arms"
        arms = json.loads(patch.new_value)
        assert [arm["sourceDoseId"] for arm in arms] == ["d2", "d3"]
        assert arms[1] == {
            "name": "Treatment with 50 mg",
            "dose": "50 mg",
            "route": "oral",
            "frequency": "once daily",
            "sourceDoseId": "d3",
        }

    def test_dose_inconsistent_uses_issue_locations(self):
        issue = Issue(
            code="IB_PROTOCOL_DOSE_INCONSISTENT",
            severity=Severity.ERROR,
            message="missing",
            locations=[IssueLocation(DocumentType.IB, block_id="d3")],
        )
        arms = json.loads(fix_dose_inconsistent(_make_bundle(), issue)[0].new_value)
        assert [arm["sourceDoseId"] for arm in arms] == ["d3"]

    def test_sap_method_mismatch(self):
        patches = fix_sap_method_mismatch(_make_bundle())
        assert [(p.block_id, p.old_value, p.new_value) for p in patches] == [
            ("p-e1", "Chi-square test", "ANCOVA"),
            ("p-e2", "ANCOVA", "Chi-square test"),
        ]

    def test_sap_method_mismatch_limited_to_issue(self):
        issue = Issue(
            code="TEST_MISMATCH",
            severity=Severity.ERROR,
            message="mismatch",
            locations=[IssueLocation(DocumentType.SAP, block_id="p-e2")],
        )
        patches = fix_sap_method_mismatch(_make_bundle(), issue)
        assert [p.block_id for p in patches] == ["p-e2"]


class TestSuggestionGeneration:

    @pytest.mark.parametrize("code", [
        "PRIMARY_ENDPOINT_DRIFT",
        "IB_PROTOCOL_DOSE_INCONSISTENT",
        "DOSE_INCONSISTENT",
        "TEST_MISMATCH",
        "SAP_METHOD_MISMATCH",
    ])
    def test_known_codes(self, code):
        issue = Issue(code=code, severity=Severity.ERROR, message="x")
        assert generate_autofix_suggestions(issue, _make_bundle())

    def test_unknown_code(self):
        issue = Issue(code="ICF_RISK_MISSING", severity=Severity.CRITICAL, message="x")
        assert generate_autofix_suggestions(issue, _make_bundle()) == []

    def test_ensure_suggestions_does_not_mutate(self):
        original = Issue(code="PRIMARY_ENDPOINT_DRIFT", severity=Severity.CRITICAL, message="drift")
        [updated] = ensure_suggestions([original], _make_bundle())
        assert original.suggestions == []
        assert updated.auto_fixable
        assert updated.suggestions[-1].id == "AUTO_PRIMARY_ENDPOINT_DRIFT"
        assert updated.suggestions[-1].label == "Align SAP primary endpoint with Protocol"

    def test_ensure_suggestions_respects_codes(self):
        issue = Issue(code="PRIMARY_ENDPOINT_DRIFT", severity=Severity.CRITICAL, message="drift")
        [result] = ensure_suggestions([issue], _make_bundle(), codes=["TEST_MISMATCH"])
        assert result is issue

    def test_ensure_suggestions_keeps_fixable_issue(self):
        issue = _make_issue("TEST_MISMATCH", _make_patch())
        [result] = ensure_suggestions([issue], _make_bundle())
        assert result is issue


# ── Auto-fix engine ──────────────────────────────────────────────────

class TestApplyAutofixes:

    def test_partitions_issues(self):
        fixed = _make_issue("TEST_MISMATCH", _make_patch(field="test", new_value="ANCOVA"))
        untouched = _make_issue("PRIMARY_ENDPOINT_DRIFT", _make_patch())
        result = apply_autofixes([fixed, untouched], _make_bundle(), AutoFixRequest(["TEST_MISMATCH"]))
        assert result.remaining_issues == [untouched]
        assert [p.new_value for p in result.applied_patches] == ["ANCOVA"]
        assert result.updated_documents == [DocumentRef(DocumentType.SAP, "sap-1")]

    def test_requested_issue_without_fix_remains(self):
        issue = _make_issue("ICF_RISK_MISSING", auto_fixable=False)
        result = apply_autofixes([issue], _make_bundle(), AutoFixRequest(["ICF_RISK_MISSING"]))
        assert result.remaining_issues == [issue]
        assert result.applied_patches == []

    def test_first_autofixable_suggestion_wins(self):
        issue = Issue(
            code="TEST_MISMATCH",
            severity=Severity.ERROR,
            message="x",
            suggestions=[
                Suggestion("manual", "manual", auto_fixable=False, patches=[_make_patch(new_value="manual")]),
                Suggestion("first", "first", auto_fixable=True, patches=[_make_patch(new_value="first")]),
                Suggestion("second", "second", auto_fixable=True, patches=[_make_patch(new_value="second")]),
            ],
        )
        result = apply_autofixes([issue], _make_bundle(), AutoFixRequest(["TEST_MISMATCH"]))
        assert [p.new_value for p in result.applied_patches] == ["first"]

    def test_last_patch_wins_on_merge(self):
        first = _make_issue("A", _make_patch(field="name", new_value="one"))
        second = _make_issue("B", _make_patch(field="name", new_value="two"))
        result = apply_autofixes([first, second], _make_bundle(), AutoFixRequest(["A", "B"]))
        assert [p.new_value for p in result.applied_patches] == ["two"]
        assert [e.new_value for e in result.changelog] == ["two"]

    def test_invalid_patch_dropped(self, caplog):
        issue = _make_issue("A", _make_patch(document_id=None), _make_patch(field="other"))
        with caplog.at_level(logging.WARNING, logger="autofix.engine"):
            result = apply_autofixes([issue], _make_bundle(), AutoFixRequest(["A"]))
        assert result.rejected_patches == 1
        assert [p.field for p in result.applied_patches] == ["other"]
        assert any("Patch missing documentId" in r.getMessage() for r in caplog.records)

    def test_changelog_entries(self):
        patch = Patch(
            document_type=DocumentType.SAP,
            document_id="sap-1",
            block_id="p-e1",
            field="test",
            old_value="Chi-square test",
            new_value="ANCOVA",
        )
        issue = _make_issue("TEST_MISMATCH", patch, message="Wrong test")
        result = apply_autofixes([issue], _make_bundle(), AutoFixRequest(["TEST_MISMATCH"]))
        [entry] = result.changelog
        assert entry.document_type == DocumentType.SAP
        assert entry.field == "test"
        assert entry.old_value == "Chi-square test"
        assert entry.new_value == "ANCOVA"
        assert entry.reason == "Auto-fix for TEST_MISMATCH: Wrong test"

    def test_changelog_defaults(self):
        patch = Patch(document_type=DocumentType.PROTOCOL, document_id="prot-1", new_value="x")
        result = apply_autofixes([_make_issue("A", patch)], _make_bundle(), AutoFixRequest(["A"]))
        [entry] = result.changelog
        assert entry.field == "content"
        assert entry.old_value == ""

    def test_updated_documents_distinct(self):
        issue = _make_issue(
            "A",
            _make_patch(field="name"),
            _make_patch(field="description"),
            _make_patch(document_type=DocumentType.PROTOCOL, document_id="prot-1", field="arms"),
        )
        result = apply_autofixes([issue], _make_bundle(), AutoFixRequest(["A"]))
        assert result.updated_documents == [
            DocumentRef(DocumentType.SAP, "sap-1"),
            DocumentRef(DocumentType.PROTOCOL, "prot-1"),
        ]

    def test_strategy_recorded(self):
        request = AutoFixRequest(["A"], "align_to_sap")
        assert request.strategy == FixStrategy.ALIGN_TO_SAP
        result = apply_autofixes([], _make_bundle(), request)
        assert result.strategy == FixStrategy.ALIGN_TO_SAP
        assert result.to_dict()["strategy"] == "align_to_sap"

    def test_requires_bundle_and_request(self):
        with pytest.raises(ValueError):
            apply_autofixes([], None, AutoFixRequest([]))
        with pytest.raises(ValueError):
            apply_autofixes([], _make_bundle(), None)

    def test_generated_fixes_end_to_end(self):
        bundle = _make_bundle()
        issues = ensure_suggestions(
            [
                Issue(code="TEST_MISMATCH", severity=Severity.ERROR, message="t"),
                Issue(code="IB_PROTOCOL_DOSE_INCONSISTENT", severity=Severity.ERROR, message="d"),
            ],
            bundle,
        )
        result = apply_autofixes(issues, bundle, AutoFixRequest(["TEST_MISMATCH", "IB_PROTOCOL_DOSE_INCONSISTENT"]))
        assert result.remaining_issues == []
        fields = [(p.document_type, p.field) for p in result.applied_patches]
        assert fields == [
            (DocumentType.SAP, "statisticalTests.p-e1.test"),
            (DocumentType.SAP, "statisticalTests.p-e2.test"),
            (DocumentType.PROTOCOL, "arms"),
        ]

    def test_every_mismatched_test_is_applied(self):
        bundle = CrossDocBundle(
            protocol=StructuredProtocolDocument(
                id="prot-1",
                endpoints=(
                    Endpoint("e1", PRIMARY, "HbA1c change", "Change in HbA1c", EndpointDataType.CONTINUOUS),
                    Endpoint("e2", EntityLevel.SECONDARY, "Responders", "HbA1c below 7%", EndpointDataType.BINARY),
                ),
            ),
            sap=StructuredSapDocument(
                id="sap-1",
                statistical_tests=(StatisticalTest("e1", "Log-rank test"), StatisticalTest("e2", "Log-rank test")),
            ),
        )
        issues = ensure_suggestions(
            [
                Issue(code="TEST_MISMATCH", severity=Severity.ERROR, message="e1",
                      locations=[IssueLocation(DocumentType.SAP, block_id="e1")]),
                Issue(code="TEST_MISMATCH", severity=Severity.ERROR, message="e2",
                      locations=[IssueLocation(DocumentType.SAP, block_id="e2")]),
            ],
            bundle,
        )
        result = apply_autofixes(issues, bundle, AutoFixRequest(["TEST_MISMATCH"]))

        applied = [(p.block_id, p.new_value) for p in result.applied_patches]
        assert applied == [("e1", "ANCOVA"), ("e2", "Chi-square test")]
        logged = [(e.field, e.new_value) for e in result.changelog]
        assert logged == [(p.field, p.new_value) for p in result.applied_patches]


class TestSaveAutofixReport:

    def test_writes_json(self, tmp_path):
        issue = _make_issue("A", _make_patch())
        result = apply_autofixes([issue], _make_bundle(), AutoFixRequest(["A"]))
        path = save_autofix_report(result, str(tmp_path))
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        assert data["updatedDocuments"] == [{"type": "SAP", "id": "sap-1"}]
        assert data["appliedPatches"][0]["newValue"] == "new"
        assert data["rejectedPatches"] == 0
