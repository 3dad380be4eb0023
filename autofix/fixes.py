"""
Fix builders.

Each builder copies a value from the document treated as the source of truth
for that field and returns the patches that would realize it:

- endpoint drift          -> SAP primary endpoint name/description from Protocol
- dose inconsistency      -> new Protocol arms seeded from orphaned IB doses
- statistical test misfit -> SAP test name from the canonical test table
"""

import json
import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from alignment.dose_map import map_doses
from core.constants import CANONICAL_TESTS
from documents.schema import CrossDocBundle, DocumentType, EntityLevel
from rules.base import Issue, Patch, Suggestion

logger = logging.getLogger(__name__)


def fix_primary_endpoint_drift(bundle: CrossDocBundle, issue: Optional[Issue] = None) -> List[Patch]:
    """Overwrite the first SAP primary endpoint with the first Protocol primary endpoint."""
    if bundle.protocol is None or bundle.sap is None:
        return []

    protocol_primary = bundle.protocol.endpoints_of(EntityLevel.PRIMARY)
    sap_primary = bundle.sap.primary_endpoints
    if not protocol_primary or not sap_primary:
        return []

    source, target = protocol_primary[0], sap_primary[0]
    patches: List[Patch] = []

    if source.name and source.name != target.name:
        patches.append(Patch(
            document_type=DocumentType.SAP,
            document_id=bundle.sap.id,
            block_id=target.id,
            field='name',
            old_value=target.name,
            new_value=source.name,
        ))

    if source.description and source.description != target.description:
        patches.append(Patch(
            document_type=DocumentType.SAP,
            document_id=bundle.sap.id,
            block_id=target.id,
            field='description',
            old_value=target.description or '',
            new_value=source.description,
        ))

    return patches


def fix_dose_inconsistent(bundle: CrossDocBundle, issue: Optional[Issue] = None) -> List[Patch]:
    """
    Propose Protocol arms for IB doses that have no Protocol counterpart.

    All new arms go into one ``arms`` patch as a JSON list, so merging
    patches by field cannot drop any of them.
    """
    if bundle.ib is None or bundle.protocol is None:
        return []

    orphan_ids = _block_ids(issue, DocumentType.IB)
    if orphan_ids is None:
        orphan_ids = {
            link.ib_dose_id
            for link in map_doses(bundle.ib, bundle.protocol)
            if link.ib_dose_id and not link.protocol_arm_id
        }
    new_arms = [
        {
            'name': f"Treatment with {dose.dose}",
            'dose': dose.dose,
            'route': dose.route,
            'frequency': dose.frequency,
            'sourceDoseId': dose.id,
        }
        for dose in bundle.ib.dosing_information
        if dose.id in orphan_ids
    ]
    if not new_arms:
        return []

    return [Patch(
        document_type=DocumentType.PROTOCOL,
        document_id=bundle.protocol.id,
        field='arms',
        new_value=json.dumps(new_arms),
    )]


def _block_ids(issue: Optional[Issue], document_type: DocumentType) -> Optional[set]:
    """Block ids the issue points at in one document, or None."""
    if issue is None:
        return None
    ids = {
        loc.block_id for loc in issue.locations
        if loc.document_type == document_type and loc.block_id
    }
    return ids or None


def statistical_test_field(endpoint_id: str) -> str:
    """Patch field for the SAP test of one endpoint, e.g. ``statisticalTests.p-e1.test``."""
    return f"statisticalTests.{endpoint_id}.test"


def fix_sap_method_mismatch(bundle: CrossDocBundle, issue: Optional[Issue] = None) -> List[Patch]:
    """
    Replace SAP tests with the canonical test for the endpoint data type.

    When ``issue`` points at specific SAP blocks only those tests are patched.
    """
    if bundle.protocol is None or bundle.sap is None:
        return []

    only = _block_ids(issue, DocumentType.SAP)
    patches: List[Patch] = []

    for test in bundle.sap.statistical_tests:
        if only is not None and test.endpoint_id not in only:
            continue
        endpoint = bundle.protocol.endpoint(test.endpoint_id)
        if endpoint is None or endpoint.data_type is None:
            continue
        recommended = CANONICAL_TESTS.get(endpoint.data_type.value)
        if recommended and test.test != recommended:
            patches.append(Patch(
                document_type=DocumentType.SAP,
                document_id=bundle.sap.id,
                block_id=test.endpoint_id,
                field=statistical_test_field(test.endpoint_id),
                old_value=test.test,
                new_value=recommended,
            ))

    return patches


FIX_BUILDERS: Dict[str, Callable[[CrossDocBundle, Optional[Issue]], List[Patch]]] = {
    'PRIMARY_ENDPOINT_DRIFT': fix_primary_endpoint_drift,
    'IB_PROTOCOL_DOSE_INCONSISTENT': fix_dose_inconsistent,
    'DOSE_INCONSISTENT': fix_dose_inconsistent,
    'TEST_MISMATCH': fix_sap_method_mismatch,
    'SAP_METHOD_MISMATCH': fix_sap_method_mismatch,
}

FIX_LABELS = {
    'PRIMARY_ENDPOINT_DRIFT': 'Align SAP primary endpoint with Protocol',
    'IB_PROTOCOL_DOSE_INCONSISTENT': 'Add missing dose regimens to Protocol',
    'DOSE_INCONSISTENT': 'Add missing dose regimens to Protocol',
    'TEST_MISMATCH': 'Use the standard statistical test for the endpoint type',
    'SAP_METHOD_MISMATCH': 'Use the standard statistical test for the endpoint type',
}


def generate_autofix_suggestions(issue: Issue, bundle: CrossDocBundle) -> List[Patch]:
    """Patches for an issue, dispatched on its code. Unknown codes yield none."""
    builder = FIX_BUILDERS.get(issue.code)
    if builder is None:
        return []
    return builder(bundle, issue)


def ensure_suggestions(
    issues: Sequence[Issue],
    bundle: CrossDocBundle,
    codes: Optional[Sequence[str]] = None,
) -> List[Issue]:
    """
    Attach an auto-fixable suggestion to issues that lack one.

    Issues are not modified; an issue that gains a suggestion is replaced by
    a copy. Issues whose code is not in ``codes`` (when given) pass through.
    """
    result: List[Issue] = []
    for issue in issues:
        if issue.auto_fixable or (codes is not None and issue.code not in codes):
            result.append(issue)
            continue

        patches = generate_autofix_suggestions(issue, bundle)
        if not patches:
            result.append(issue)
            continue

        suggestion = Suggestion(
            id=f"AUTO_{issue.code}",
            label=FIX_LABELS.get(issue.code, f"Auto-fix {issue.code}"),
            auto_fixable=True,
            patches=patches,
        )
        logger.debug(f"Attached {len(patches)} patch(es) to {issue.code}")
        result.append(replace(issue, suggestions=list(issue.suggestions) + [suggestion]))

    return result
