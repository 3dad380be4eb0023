"""
SAP <-> CSR rules.
"""

from typing import List

from alignment.links import Alignments
from documents.schema import CrossDocBundle, DocumentType
from .base import Category, Issue, IssueLocation, Severity


async def csr_analysis_sets_missing(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """Every analysis set planned in the SAP must be reported in the CSR."""
    if bundle.sap is None or bundle.csr is None:
        return []

    reported = {p.abbreviation.upper() for p in bundle.csr.analysis_sets if p.abbreviation}
    reported |= {p.name.lower() for p in bundle.csr.analysis_sets if p.name}

    missing = [
        p for p in bundle.sap.analysis_populations
        if (p.abbreviation and p.abbreviation.upper() not in reported)
        or (not p.abbreviation and p.name.lower() not in reported)
    ]
    if not missing:
        return []

    labels = ', '.join(p.abbreviation or p.name for p in missing)
    return [Issue(
        code='SAP_CSR_ANALYSIS_SET_MISSING',
        severity=Severity.WARNING,
        category=Category.SAP_CSR,
        message=f"{len(missing)} analysis set(s) planned in SAP not reported in CSR",
        details=f"Analysis sets not reported: {labels}.",
        locations=[IssueLocation(DocumentType.SAP, section_id='ANALYSIS_SETS', block_id=p.id) for p in missing]
                  + [IssueLocation(DocumentType.CSR, section_id='ANALYSIS_SETS')],
    )]


SAP_CSR_RULES = [
    csr_analysis_sets_missing,
]
