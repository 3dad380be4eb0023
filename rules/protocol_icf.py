"""
Protocol <-> ICF rules.
"""

from typing import List

from alignment.links import Alignments
from documents.schema import CrossDocBundle, DocumentType
from .base import Category, Issue, IssueLocation, Severity


async def icf_schedule_mismatch(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """Protocol visits must be described as procedures in the ICF."""
    if bundle.protocol is None or bundle.icf is None:
        return []
    if not bundle.protocol.visit_schedule or bundle.icf.procedure_descriptions:
        return []

    return [Issue(
        code='ICF_SCHEDULE_MISMATCH',
        severity=Severity.ERROR,
        category=Category.PROTOCOL_ICF,
        message='Protocol visit schedule not described in ICF',
        details=(
            'The Informed Consent Form must describe all study visits and procedures so '
            'participants understand their participation burden.'
        ),
        locations=[
            IssueLocation(DocumentType.PROTOCOL, section_id='VISIT_SCHEDULE'),
            IssueLocation(DocumentType.ICF, section_id='PROCEDURES'),
        ],
    )]


async def icf_risk_missing(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """Invasive procedures require a risk description."""
    if bundle.protocol is None or bundle.icf is None:
        return []

    invasive = [p for p in bundle.icf.procedure_descriptions if p.invasive]
    if not invasive or bundle.icf.risks:
        return []

    return [Issue(
        code='ICF_RISK_MISSING',
        severity=Severity.CRITICAL,
        category=Category.PROTOCOL_ICF,
        message='Invasive procedures described but risks not explained in ICF',
        details=(
            f"{len(invasive)} invasive procedure(s) are mentioned, but the ICF does not contain "
            f"risk information."
        ),
        locations=[IssueLocation(DocumentType.ICF, section_id='PROCEDURES', block_id=p.id) for p in invasive]
                  + [IssueLocation(DocumentType.ICF, section_id='RISKS')],
    )]


async def icf_treatment_incomplete(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    if bundle.protocol is None or bundle.icf is None:
        return []
    if not bundle.protocol.arms or bundle.icf.treatment_descriptions:
        return []

    return [Issue(
        code='ICF_TREATMENT_INCOMPLETE',
        severity=Severity.WARNING,
        category=Category.PROTOCOL_ICF,
        message='Treatment arms not adequately described in ICF',
        details=(
            'The ICF should describe every treatment option, including placebo if applicable, '
            'so participants understand what they may receive.'
        ),
        locations=[
            IssueLocation(DocumentType.PROTOCOL, section_id='TREATMENT_ARMS'),
            IssueLocation(DocumentType.ICF, section_id='TREATMENTS'),
        ],
    )]


PROTOCOL_ICF_RULES = [
    icf_schedule_mismatch,
    icf_risk_missing,
    icf_treatment_incomplete,
]
