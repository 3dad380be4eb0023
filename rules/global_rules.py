"""
Rules spanning the whole bundle.
"""

from typing import List

from alignment.links import Alignments
from documents.schema import CrossDocBundle, DocumentType, EntityLevel
from .base import Category, Issue, IssueLocation, Severity

MIN_POPULATION_LENGTH = 50


async def global_purpose_drift(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """Any unaligned primary objective link means the study purpose drifts."""
    unaligned = [
        link for link in alignments.objectives
        if link.type == EntityLevel.PRIMARY and not link.aligned
    ]
    if not unaligned:
        return []

    return [Issue(
        code='GLOBAL_PURPOSE_DRIFT',
        severity=Severity.CRITICAL,
        category=Category.GLOBAL,
        message='Study purpose is not consistent across documents',
        details=(
            'The primary objective of the study must be stated consistently in all key documents. '
            'Inconsistencies may cause regulatory concerns.'
        ),
        locations=[
            IssueLocation(DocumentType.IB, section_id='OBJECTIVES'),
            IssueLocation(DocumentType.PROTOCOL, section_id='OBJECTIVES'),
        ],
    )]


async def global_population_incoherent(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """The study population must be defined somewhere and carried into the SAP."""
    has_ib_population = bool(
        bundle.ib and bundle.ib.target_population
        and len(bundle.ib.target_population) > MIN_POPULATION_LENGTH
    )
    has_criteria = bool(bundle.protocol and bundle.protocol.inclusion_criteria)
    has_sap_populations = bool(bundle.sap and bundle.sap.analysis_populations)

    issues: List[Issue] = []

    if (bundle.ib or bundle.protocol) and not has_ib_population and not has_criteria:
        issues.append(Issue(
            code='GLOBAL_POPULATION_INCOHERENT',
            severity=Severity.ERROR,
            category=Category.GLOBAL,
            message='Target population not adequately defined',
            details=(
                'The study population must be defined in the IB and Protocol with specific '
                'inclusion/exclusion criteria.'
            ),
            locations=[
                IssueLocation(DocumentType.IB, section_id='TARGET_POPULATION'),
                IssueLocation(DocumentType.PROTOCOL, section_id='ELIGIBILITY_CRITERIA'),
            ],
        ))

    if has_criteria and bundle.sap is not None and not has_sap_populations:
        issues.append(Issue(
            code='GLOBAL_ANALYSIS_POPULATIONS_MISSING',
            severity=Severity.WARNING,
            category=Category.GLOBAL,
            message='Analysis populations not defined in SAP',
            details='The SAP should define analysis populations (FAS, PP, Safety) based on the Protocol eligibility criteria.',
            locations=[
                IssueLocation(DocumentType.PROTOCOL, section_id='ELIGIBILITY_CRITERIA'),
                IssueLocation(DocumentType.SAP, section_id='ANALYSIS_SETS'),
            ],
        ))

    return issues


async def global_version_missing(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    unversioned = [doc_type for doc_type, doc in bundle.documents() if not doc.version]
    if not unversioned:
        return []

    return [Issue(
        code='GLOBAL_VERSION_MISSING',
        severity=Severity.INFO,
        category=Category.GLOBAL,
        message=f"{len(unversioned)} document(s) missing version information",
        details=(
            f"Documents without version: {', '.join(t.value for t in unversioned)}. "
            f"Controlled documents should carry version numbers for traceability."
        ),
        locations=[IssueLocation(doc_type, section_id='HEADER') for doc_type in unversioned],
    )]


GLOBAL_RULES = [
    global_purpose_drift,
    global_population_incoherent,
    global_version_missing,
]
