"""
Protocol <-> SAP rules.
"""

from typing import List

from alignment.links import Alignments
from autofix.fixes import fix_primary_endpoint_drift, fix_sap_method_mismatch
from core.constants import APPROPRIATE_TESTS, ESSENTIAL_POPULATIONS
from documents.schema import CrossDocBundle, DocumentType, EntityLevel
from .base import Category, Issue, IssueLocation, Severity, Suggestion


async def primary_endpoint_drift(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """Fires when no Protocol primary endpoint is aligned with a SAP endpoint."""
    if bundle.protocol is None or bundle.sap is None:
        return []

    primary = [
        link for link in alignments.endpoints
        if link.type == EntityLevel.PRIMARY and link.protocol_endpoint_id
    ]
    if not primary or any(link.aligned and link.sap_endpoint_id for link in primary):
        return []

    issue = Issue(
        code='PRIMARY_ENDPOINT_DRIFT',
        severity=Severity.CRITICAL,
        category=Category.PROTOCOL_SAP,
        message='Primary endpoint differs between Protocol and SAP',
        details=(
            'The primary endpoint defined in the Statistical Analysis Plan does not match the '
            'primary endpoint in the Protocol. This must be resolved before study start.'
        ),
        locations=[
            IssueLocation(DocumentType.PROTOCOL, section_id='ENDPOINTS',
                          block_id=primary[0].protocol_endpoint_id),
            IssueLocation(DocumentType.SAP, section_id='PRIMARY_ANALYSIS'),
        ],
    )
    patches = fix_primary_endpoint_drift(bundle, issue)
    issue.suggestions.append(Suggestion(
        id='ALIGN_SAP_PRIMARY_ENDPOINT',
        label='Align SAP primary endpoint with Protocol',
        auto_fixable=bool(patches),
        patches=patches,
    ))
    return [issue]


def is_appropriate_test(test_name: str, data_type: str) -> bool:
    """True when the test suits the data type, or the data type has no table entry."""
    accepted = APPROPRIATE_TESTS.get(data_type, [])
    if not accepted:
        return True
    name = test_name.lower()
    return any(candidate in name for candidate in accepted)


async def statistical_test_mismatch(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """Each SAP test must suit the data type of the Protocol endpoint it analyses."""
    if bundle.protocol is None or bundle.sap is None:
        return []

    issues: List[Issue] = []
    for test in bundle.sap.statistical_tests:
        endpoint = bundle.protocol.endpoint(test.endpoint_id)
        if endpoint is None or endpoint.data_type is None:
            continue
        data_type = endpoint.data_type.value
        if is_appropriate_test(test.test, data_type):
            continue

        issue = Issue(
            code='TEST_MISMATCH',
            severity=Severity.ERROR,
            category=Category.PROTOCOL_SAP,
            message=f'Statistical test "{test.test}" may not be appropriate for {data_type} endpoint',
            details=(
                f'The endpoint "{endpoint.name}" is {data_type}, but the SAP specifies "{test.test}". '
                f"Consider using: {', '.join(APPROPRIATE_TESTS[data_type])}."
            ),
            locations=[
                IssueLocation(DocumentType.PROTOCOL, section_id='ENDPOINTS', block_id=endpoint.id),
                IssueLocation(DocumentType.SAP, section_id='STATISTICAL_METHODS', block_id=test.endpoint_id),
            ],
        )
        patches = fix_sap_method_mismatch(bundle, issue)
        issue.suggestions.append(Suggestion(
            id='USE_CANONICAL_TEST',
            label='Use the standard statistical test for the endpoint type',
            auto_fixable=bool(patches),
            patches=patches,
        ))
        issues.append(issue)

    return issues


async def sample_size_driver_mismatch(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """The SAP sample size must be driven by a Protocol primary endpoint."""
    if bundle.protocol is None or bundle.sap is None:
        return []

    primary = bundle.protocol.endpoints_of(EntityLevel.PRIMARY)
    driver = bundle.sap.sample_size_driver_endpoint
    if not primary or not driver:
        return []

    driver_lower = driver.lower()
    for endpoint in primary:
        name = endpoint.name.lower()
        if endpoint.id == driver or driver_lower in name or name in driver_lower:
            return []

    return [Issue(
        code='SAMPLE_SIZE_DRIVER_MISMATCH',
        severity=Severity.ERROR,
        category=Category.PROTOCOL_SAP,
        message='Sample size calculation not based on primary endpoint',
        details=(
            f'The SAP indicates sample size was calculated for "{driver}", which does not match '
            f'the Protocol primary endpoint(s).'
        ),
        locations=[
            IssueLocation(DocumentType.PROTOCOL, section_id='ENDPOINTS'),
            IssueLocation(DocumentType.SAP, section_id='SAMPLE_SIZE'),
        ],
    )]


async def analysis_population_inconsistent(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """FAS, PPS and SAF must be defined in both Protocol and SAP, or in neither."""
    if bundle.protocol is None or bundle.sap is None:
        return []

    protocol_sets = {p.abbreviation.upper() for p in bundle.protocol.analysis_populations}
    sap_sets = {p.abbreviation.upper() for p in bundle.sap.analysis_populations}

    issues: List[Issue] = []
    for population in ESSENTIAL_POPULATIONS:
        in_protocol = population in protocol_sets
        in_sap = population in sap_sets

        if in_protocol and not in_sap:
            issues.append(Issue(
                code='ANALYSIS_POPULATION_MISSING_IN_SAP',
                severity=Severity.WARNING,
                category=Category.PROTOCOL_SAP,
                message=f'Analysis population "{population}" defined in Protocol but missing in SAP',
                locations=[
                    IssueLocation(DocumentType.PROTOCOL, section_id='ANALYSIS_POPULATIONS'),
                    IssueLocation(DocumentType.SAP, section_id='ANALYSIS_SETS'),
                ],
            ))
        elif in_sap and not in_protocol:
            issues.append(Issue(
                code='ANALYSIS_POPULATION_MISSING_IN_PROTOCOL',
                severity=Severity.WARNING,
                category=Category.PROTOCOL_SAP,
                message=f'Analysis population "{population}" defined in SAP but missing in Protocol',
                locations=[
                    IssueLocation(DocumentType.SAP, section_id='ANALYSIS_SETS'),
                    IssueLocation(DocumentType.PROTOCOL, section_id='ANALYSIS_POPULATIONS'),
                ],
            ))

    return issues


async def multiplicity_strategy_missing(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    if bundle.protocol is None or bundle.sap is None:
        return []

    primary = bundle.protocol.endpoints_of(EntityLevel.PRIMARY)
    if len(primary) <= 1 or bundle.sap.multiplicity_strategy:
        return []

    return [Issue(
        code='MULTIPLICITY_STRATEGY_MISSING',
        severity=Severity.ERROR,
        category=Category.PROTOCOL_SAP,
        message=f"{len(primary)} primary endpoints but no multiplicity adjustment strategy defined",
        details=(
            'When multiple primary endpoints are tested, a multiplicity adjustment strategy '
            '(e.g. Bonferroni, Holm, hierarchical testing) must control the Type I error rate.'
        ),
        locations=[
            IssueLocation(DocumentType.PROTOCOL, section_id='ENDPOINTS'),
            IssueLocation(DocumentType.SAP, section_id='MULTIPLICITY'),
        ],
    )]


PROTOCOL_SAP_RULES = [
    primary_endpoint_drift,
    statistical_test_mismatch,
    sample_size_driver_mismatch,
    analysis_population_inconsistent,
    multiplicity_strategy_missing,
]
