"""
Dose alignment between IB dose records and Protocol treatment arms.

Pair score = 0.5 * dose value + 0.3 * route + 0.2 * frequency (weights come
from ``EngineConfig``). A component contributes only when both sides carry
that field. Pairs at or above the candidate threshold are claimed greedily;
``aligned`` is decided separately at the (higher) aligned threshold.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from core.config import EngineConfig
from core.similarity import combined_similarity, normalize_text
from documents.schema import DoseRecord, StructuredIbDocument, StructuredProtocolDocument, TreatmentArm
from .links import DoseLink
from .matching import greedy_match

logger = logging.getLogger(__name__)


# =============================================================================
# Normalization
# =============================================================================

# Anchored on letters only so "10milligrams" folds like "10 milligrams"
UNIT_SYNONYMS = [
    (r'(?<![a-z])micrograms?(?![a-z])', 'mcg'),
    (r'(?<![a-z])[µμu]g(?![a-z])', 'mcg'),
    (r'(?<![a-z])milligrams?(?![a-z])', 'mg'),
    (r'(?<![a-z])grams?(?![a-z])', 'g'),
    (r'(?<![a-z])millilit(?:er|re)s?(?![a-z])', 'ml'),
    (r'(?<![a-z])lit(?:er|re)s?(?![a-z])', 'l'),
    (r'(?<![a-z])international units?(?![a-z])', 'iu'),
]

# Conversion factors to a base unit within one dimension
MASS_UNITS = {'g': 1000.0, 'mg': 1.0, 'mcg': 0.001}
VOLUME_UNITS = {'l': 1000.0, 'ml': 1.0}

DOSE_PATTERN = re.compile(r'(\d+(?:\.\d+)?)\s*([a-z]+(?:/[a-z]+)?)')

ROUTE_ABBREVIATIONS = {
    'po': 'oral',
    'iv': 'intravenous',
    'sc': 'subcutaneous',
    'sq': 'subcutaneous',
    'im': 'intramuscular',
}

FREQUENCY_ABBREVIATIONS = {
    'qd': 'once daily',
    'od': 'once daily',
    'bid': 'twice daily',
    'tid': 'three times daily',
    'qid': 'four times daily',
    'qw': 'once weekly',
}


def normalize_dose(dose: Optional[str]) -> str:
    """
    Canonical compact form of a dose string.

    "10 Milligrams" -> "10mg", "2.5 µg" -> "2.5mcg", "1,000 mg" -> "1000mg"
    """
    if not dose:
        return ''
    text = dose.lower().strip()
    text = re.sub(r'(?<=\d),(?=\d{3})', '', text)
    for pattern, replacement in UNIT_SYNONYMS:
        text = re.sub(pattern, replacement, text)
    return re.sub(r'[^a-z0-9./]', '', text)


def parse_dose(dose: Optional[str]) -> Optional[Tuple[float, str]]:
    """Extract (value, unit) from a dose string, or None."""
    match = DOSE_PATTERN.search(normalize_dose(dose))
    if not match:
        return None
    return float(match.group(1)), match.group(2)


def _to_base_unit(value: float, unit: str) -> Optional[Tuple[float, str]]:
    if unit in MASS_UNITS:
        return value * MASS_UNITS[unit], 'mass'
    if unit in VOLUME_UNITS:
        return value * VOLUME_UNITS[unit], 'volume'
    return None


def _expand_abbreviations(text: Optional[str], table) -> str:
    return ' '.join(table.get(word, word) for word in normalize_text(text).split())


# =============================================================================
# Comparison
# =============================================================================

def compare_doses(dose1: Optional[str], dose2: Optional[str]) -> float:
    """
    Dose value score in [0, 1].

    1.0  identical after normalization, or equal values in compatible units
    0.9  compatible units, values within 10% relative difference
    0.5  compatible units, values further apart
    Otherwise half of the raw-text similarity, for unparseable strings or
    incompatible units.
    """
    normalized1 = normalize_dose(dose1)
    normalized2 = normalize_dose(dose2)
    if normalized1 and normalized1 == normalized2:
        return 1.0

    parsed1 = parse_dose(dose1)
    parsed2 = parse_dose(dose2)
    if parsed1 is None or parsed2 is None:
        return 0.5 * combined_similarity(dose1, dose2)

    (value1, unit1), (value2, unit2) = parsed1, parsed2
    base1 = _to_base_unit(value1, unit1)
    base2 = _to_base_unit(value2, unit2)
    if base1 and base2 and base1[1] == base2[1]:
        value1, value2 = base1[0], base2[0]
    elif unit1 != unit2:
        return 0.5 * combined_similarity(dose1, dose2)

    if value1 == value2:
        return 1.0

    largest = max(abs(value1), abs(value2))
    if abs(value1 - value2) / largest < 0.1:
        return 0.9
    return 0.5


def compare_routes(route1: Optional[str], route2: Optional[str]) -> float:
    """Route similarity with PO/IV/SC/IM folded to their full names."""
    return combined_similarity(
        _expand_abbreviations(route1, ROUTE_ABBREVIATIONS),
        _expand_abbreviations(route2, ROUTE_ABBREVIATIONS),
    )


def compare_frequencies(frequency1: Optional[str], frequency2: Optional[str]) -> float:
    """Frequency similarity with QD/BID/TID/QID/QW folded to plain words."""
    return combined_similarity(
        _expand_abbreviations(frequency1, FREQUENCY_ABBREVIATIONS),
        _expand_abbreviations(frequency2, FREQUENCY_ABBREVIATIONS),
    )


def score_dose_arm(
    ib_dose: DoseRecord,
    arm: TreatmentArm,
    config: Optional[EngineConfig] = None,
) -> float:
    """Weighted pair score for one IB dose record and one Protocol arm."""
    config = config or EngineConfig()
    score = 0.0
    if ib_dose.dose and arm.dose:
        score += compare_doses(ib_dose.dose, arm.dose) * config.dose_value_weight
    if ib_dose.route and arm.route:
        score += compare_routes(ib_dose.route, arm.route) * config.dose_route_weight
    if ib_dose.frequency and arm.frequency:
        score += compare_frequencies(ib_dose.frequency, arm.frequency) * config.dose_frequency_weight
    return score


# =============================================================================
# Mapping
# =============================================================================

def map_doses(
    ib: Optional[StructuredIbDocument],
    protocol: Optional[StructuredProtocolDocument],
    config: Optional[EngineConfig] = None,
) -> List[DoseLink]:
    """
    Align IB dose records with Protocol treatment arms.

    Returns:
        One link per IB dose in IB order, then one orphan link per
        unclaimed arm. Empty when either document is absent.
    """
    if ib is None or protocol is None:
        return []

    config = config or EngineConfig()
    matches, unclaimed_arms = greedy_match(
        ib.dosing_information,
        protocol.arms,
        lambda dose, arm: score_dose_arm(dose, arm, config),
        config.dose_candidate_threshold,
    )

    links: List[DoseLink] = []
    for match in matches:
        if match.target is None:
            links.append(DoseLink(ib_dose_id=match.source.id))
        else:
            links.append(DoseLink(
                ib_dose_id=match.source.id,
                protocol_arm_id=match.target.id,
                similarity_score=match.score,
                aligned=match.score >= config.dose_aligned_threshold,
            ))
    links.extend(DoseLink(protocol_arm_id=arm.id) for arm in unclaimed_arms)

    logger.debug(
        f"Dose alignment: {len(links)} links, "
        f"{sum(1 for link in links if link.aligned)} aligned"
    )
    return links


def validate_dose_alignment(links: Sequence[DoseLink]) -> Tuple[bool, List[str]]:
    """
    Summarize problems in a set of dose links.

    Returns:
        (valid, messages)
    """
    messages: List[str] = []

    if links and not any(link.aligned for link in links):
        messages.append("No doses are aligned between IB and Protocol")

    weak = [link for link in links if link.ib_dose_id and link.protocol_arm_id and not link.aligned]
    if weak:
        messages.append(f"{len(weak)} dose pairing(s) below the aligned threshold")

    orphaned_ib = [link for link in links if link.ib_dose_id and not link.protocol_arm_id]
    if orphaned_ib:
        messages.append(f"{len(orphaned_ib)} IB dose(s) not found in Protocol")

    orphaned_arms = [link for link in links if link.protocol_arm_id and not link.ib_dose_id]
    if orphaned_arms:
        messages.append(f"{len(orphaned_arms)} Protocol arm(s) not found in IB")

    return not messages, messages
