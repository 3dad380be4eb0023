"""
Protocol/SAP <-> CSR rules.
"""

from typing import List

from alignment.links import Alignments
from documents.schema import CrossDocBundle, DocumentType, EntityLevel
from .base import Category, Issue, IssueLocation, Severity


async def csr_method_mismatch(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """The CSR must document the statistical methods the SAP planned."""
    if bundle.sap is None or bundle.csr is None:
        return []
    if not bundle.sap.statistical_tests or bundle.csr.actual_methods:
        return []

    return [Issue(
        code='CSR_METHOD_MISMATCH',
        severity=Severity.ERROR,
        category=Category.PROTOCOL_CSR,
        message='Statistical methods not documented in CSR',
        details='The CSR must document the statistical methods actually used, as specified in the SAP.',
        locations=[
            IssueLocation(DocumentType.SAP, section_id='STATISTICAL_METHODS'),
            IssueLocation(DocumentType.CSR, section_id='METHODS'),
        ],
    )]


async def csr_endpoint_mismatch(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """Every Protocol primary endpoint must be reported in the CSR."""
    if bundle.protocol is None or bundle.csr is None:
        return []

    missing = [
        link for link in alignments.endpoints
        if link.type == EntityLevel.PRIMARY and link.protocol_endpoint_id and not link.csr_endpoint_id
    ]
    if not missing:
        return []

    return [Issue(
        code='CSR_ENDPOINT_MISMATCH',
        severity=Severity.CRITICAL,
        category=Category.PROTOCOL_CSR,
        message=f"{len(missing)} primary endpoint(s) from Protocol not reported in CSR",
        details=(
            'All primary endpoints defined in the Protocol must be reported in the CSR, even if '
            'results are negative or inconclusive.'
        ),
        locations=[IssueLocation(DocumentType.PROTOCOL, section_id='ENDPOINTS', block_id=link.protocol_endpoint_id)
                   for link in missing]
                  + [IssueLocation(DocumentType.CSR, section_id='RESULTS')],
    )]


async def csr_deviations_missing(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    if bundle.protocol is None or bundle.csr is None:
        return []
    if bundle.csr.deviations_overview:
        return []

    return [Issue(
        code='CSR_DEVIATIONS_MISSING',
        severity=Severity.INFO,
        category=Category.PROTOCOL_CSR,
        message='Protocol deviations not documented in CSR',
        details='The CSR should include a summary of protocol deviations, even if none occurred.',
        locations=[IssueLocation(DocumentType.CSR, section_id='DEVIATIONS')],
    )]


PROTOCOL_CSR_RULES = [
    csr_method_mismatch,
    csr_endpoint_mismatch,
    csr_deviations_missing,
]
