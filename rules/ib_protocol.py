"""
IB <-> Protocol rules.
"""

from typing import List

from alignment.links import Alignments
from autofix.fixes import fix_dose_inconsistent
from core.constants import LOW_SIMILARITY_THRESHOLD
from documents.schema import CrossDocBundle, DocumentType, EntityLevel
from .base import Category, Issue, IssueLocation, Severity, Suggestion

# Minimum length for a mechanism-of-action description to count as adequate
MIN_MECHANISM_LENGTH = 50

# Share of IB population key terms that must appear in the eligibility criteria
POPULATION_TERM_RATIO = 0.3


async def ib_protocol_objective_mismatch(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """Primary objective must align between IB and Protocol."""
    if bundle.ib is None or bundle.protocol is None:
        return []

    issues: List[Issue] = []
    primary = [link for link in alignments.objectives if link.type == EntityLevel.PRIMARY]
    aligned = [link for link in primary if link.aligned]

    if primary and not aligned:
        issues.append(Issue(
            code='IB_PROTOCOL_OBJECTIVE_MISMATCH',
            severity=Severity.ERROR,
            category=Category.IB_PROTOCOL,
            message='Primary objective differs between IB and Protocol',
            details=(
                "The primary study objective described in the Investigator's Brochure does not "
                "match the primary objective stated in the Protocol."
            ),
            locations=[
                IssueLocation(DocumentType.IB, section_id='OBJECTIVES'),
                IssueLocation(DocumentType.PROTOCOL, section_id='OBJECTIVES'),
            ],
            suggestions=[Suggestion(
                id='ALIGN_PRIMARY_OBJECTIVE',
                label='Align Protocol primary objective with IB',
            )],
        ))

    for link in aligned:
        if link.similarity_score < LOW_SIMILARITY_THRESHOLD:
            issues.append(Issue(
                code='IB_PROTOCOL_OBJECTIVE_LOW_SIMILARITY',
                severity=Severity.WARNING,
                category=Category.IB_PROTOCOL,
                message=f"Primary objective similarity is low ({link.similarity_score * 100:.0f}%)",
                details=(
                    'The primary objectives are considered aligned but their wording differs '
                    'significantly. Consider using more consistent language.'
                ),
                locations=[
                    IssueLocation(DocumentType.IB, section_id='OBJECTIVES', block_id=link.ib_objective_id),
                    IssueLocation(DocumentType.PROTOCOL, section_id='OBJECTIVES',
                                  block_id=link.protocol_objective_id),
                ],
            ))

    return issues


async def ib_protocol_population_drift(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """IB target population should be reflected in the Protocol eligibility criteria."""
    if bundle.ib is None or bundle.protocol is None:
        return []

    ib_population = bundle.ib.target_population
    criteria = ' '.join(bundle.protocol.inclusion_criteria + bundle.protocol.exclusion_criteria)
    if not ib_population or not criteria:
        return []

    ib_terms = [word for word in ib_population.lower().split() if len(word) > 3]
    if not ib_terms:
        return []

    criteria_words = set(criteria.lower().split())
    ratio = sum(1 for word in ib_terms if word in criteria_words) / len(ib_terms)
    if ratio >= POPULATION_TERM_RATIO:
        return []

    return [Issue(
        code='IB_PROTOCOL_POPULATION_DRIFT',
        severity=Severity.WARNING,
        category=Category.IB_PROTOCOL,
        message='Target population description differs significantly between IB and Protocol',
        details=(
            f"Only {ratio * 100:.0f}% of key terms from the IB target population appear in the "
            f"Protocol inclusion/exclusion criteria."
        ),
        locations=[
            IssueLocation(DocumentType.IB, section_id='TARGET_POPULATION'),
            IssueLocation(DocumentType.PROTOCOL, section_id='ELIGIBILITY_CRITERIA'),
        ],
    )]


async def ib_protocol_dose_inconsistent(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    """Every IB dose regimen needs a Protocol arm and vice versa."""
    if bundle.ib is None or bundle.protocol is None:
        return []

    issues: List[Issue] = []
    orphaned_doses = [link for link in alignments.doses if link.ib_dose_id and not link.protocol_arm_id]
    orphaned_arms = [link for link in alignments.doses if link.protocol_arm_id and not link.ib_dose_id]

    if orphaned_doses:
        issue = Issue(
            code='IB_PROTOCOL_DOSE_INCONSISTENT',
            severity=Severity.ERROR,
            category=Category.IB_PROTOCOL,
            message=f"{len(orphaned_doses)} dose regimen(s) from IB not found in Protocol",
            details=(
                "Dosing information described in the Investigator's Brochure must be reflected "
                "in the Protocol treatment arms."
            ),
            locations=[IssueLocation(DocumentType.IB, section_id='DOSING', block_id=link.ib_dose_id)
                       for link in orphaned_doses]
                      + [IssueLocation(DocumentType.PROTOCOL, section_id='TREATMENT_ARMS')],
        )
        patches = fix_dose_inconsistent(bundle, issue)
        issue.suggestions.append(Suggestion(
            id='ADD_MISSING_DOSES',
            label='Add missing dose regimens to Protocol',
            auto_fixable=bool(patches),
            patches=patches,
        ))
        issues.append(issue)

    if orphaned_arms:
        issues.append(Issue(
            code='IB_PROTOCOL_DOSE_NOT_IN_IB',
            severity=Severity.WARNING,
            category=Category.IB_PROTOCOL,
            message=f"{len(orphaned_arms)} Protocol treatment arm(s) not described in IB",
            details=(
                "All treatment regimens used in the Protocol should be supported by information "
                "in the Investigator's Brochure."
            ),
            locations=[IssueLocation(DocumentType.PROTOCOL, section_id='TREATMENT_ARMS',
                                     block_id=link.protocol_arm_id)
                       for link in orphaned_arms]
                      + [IssueLocation(DocumentType.IB, section_id='DOSING')],
        ))

    return issues


async def ib_mechanism_incomplete(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    if bundle.ib is None or bundle.protocol is None:
        return []

    mechanism = bundle.ib.mechanism_of_action or ''
    if len(mechanism) >= MIN_MECHANISM_LENGTH:
        return []

    return [Issue(
        code='IB_MECHANISM_INCOMPLETE',
        severity=Severity.INFO,
        category=Category.IB_PROTOCOL,
        message='Mechanism of action not adequately described in IB',
        details=(
            "The Investigator's Brochure should describe the mechanism of action clearly enough "
            "to support the Protocol rationale."
        ),
        locations=[IssueLocation(DocumentType.IB, section_id='MECHANISM_OF_ACTION')],
    )]


async def ib_safety_profile_missing(bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
    if bundle.ib is None or bundle.protocol is None:
        return []
    if bundle.ib.key_risk_profile:
        return []

    return [Issue(
        code='IB_SAFETY_PROFILE_MISSING',
        severity=Severity.WARNING,
        category=Category.IB_PROTOCOL,
        message='Key risk profile not defined in IB',
        details=(
            "The Investigator's Brochure should describe known and potential risks to support "
            "Protocol safety assessments and informed consent."
        ),
        locations=[IssueLocation(DocumentType.IB, section_id='SAFETY')],
    )]


IB_PROTOCOL_RULES = [
    ib_protocol_objective_mismatch,
    ib_protocol_population_drift,
    ib_protocol_dose_inconsistent,
    ib_mechanism_incomplete,
    ib_safety_profile_missing,
]
