"""
Objective alignment between the IB and the Protocol.

Objectives are grouped by level on each side. The primary group is paired
according to ``EngineConfig.primary_objective_policy``; secondary and
exploratory groups always use greedy best-match search. Every objective that
ends up without a counterpart yields one orphan link.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from core.config import EngineConfig, PrimaryObjectivePolicy
from core.constants import LOW_SIMILARITY_THRESHOLD
from core.similarity import combined_similarity
from documents.schema import (
    EntityLevel,
    Objective,
    StructuredIbDocument,
    StructuredProtocolDocument,
)
from .links import ObjectiveLink
from .matching import greedy_match

logger = logging.getLogger(__name__)


def map_objectives(
    ib: Optional[StructuredIbDocument],
    protocol: Optional[StructuredProtocolDocument],
    config: Optional[EngineConfig] = None,
) -> List[ObjectiveLink]:
    """
    Align IB objectives with Protocol objectives.

    Returns:
        Links ordered primary, secondary, exploratory. Empty when either
        document is absent.
    """
    if ib is None or protocol is None:
        return []

    config = config or EngineConfig()
    links: List[ObjectiveLink] = []

    for level in EntityLevel:
        ib_group = [obj for obj in ib.objectives if obj.type == level]
        protocol_group = [obj for obj in protocol.objectives if obj.type == level]
        if not ib_group and not protocol_group:
            continue

        if level == EntityLevel.PRIMARY and \
                config.primary_objective_policy == PrimaryObjectivePolicy.FIRST_TO_FIRST:
            links.extend(_pair_first_to_first(ib_group, protocol_group, config.objective_threshold))
        else:
            links.extend(_pair_best_match(ib_group, protocol_group, level, config.objective_threshold))

    logger.debug(
        f"Objective alignment: {len(links)} links, "
        f"{sum(1 for link in links if link.aligned)} aligned"
    )
    return links


def _pair_first_to_first(
    ib_group: Sequence[Objective],
    protocol_group: Sequence[Objective],
    threshold: float,
) -> List[ObjectiveLink]:
    """Pair index 0 with index 0 unconditionally; the rest are orphans."""
    links: List[ObjectiveLink] = []
    ib_rest, protocol_rest = list(ib_group), list(protocol_group)

    if ib_group and protocol_group:
        ib_obj, protocol_obj = ib_group[0], protocol_group[0]
        score = combined_similarity(ib_obj.text, protocol_obj.text)
        links.append(ObjectiveLink(
            type=EntityLevel.PRIMARY,
            ib_objective_id=ib_obj.id,
            protocol_objective_id=protocol_obj.id,
            similarity_score=score,
            aligned=score >= threshold,
        ))
        ib_rest, protocol_rest = ib_rest[1:], protocol_rest[1:]

    links.extend(_orphans(ib_rest, protocol_rest, EntityLevel.PRIMARY))
    return links


def _pair_best_match(
    ib_group: Sequence[Objective],
    protocol_group: Sequence[Objective],
    level: EntityLevel,
    threshold: float,
) -> List[ObjectiveLink]:
    matches, unclaimed = greedy_match(
        ib_group,
        protocol_group,
        lambda ib_obj, protocol_obj: combined_similarity(ib_obj.text, protocol_obj.text),
        threshold,
    )

    links: List[ObjectiveLink] = []
    for match in matches:
        if match.target is None:
            links.append(ObjectiveLink(type=level, ib_objective_id=match.source.id))
        else:
            links.append(ObjectiveLink(
                type=level,
                ib_objective_id=match.source.id,
                protocol_objective_id=match.target.id,
                similarity_score=match.score,
                aligned=True,
            ))

    links.extend(_orphans([], unclaimed, level))
    return links


def _orphans(
    ib_objectives: Sequence[Objective],
    protocol_objectives: Sequence[Objective],
    level: EntityLevel,
) -> List[ObjectiveLink]:
    links = [ObjectiveLink(type=level, ib_objective_id=obj.id) for obj in ib_objectives]
    links.extend(ObjectiveLink(type=level, protocol_objective_id=obj.id) for obj in protocol_objectives)
    return links


def validate_objective_alignment(links: Sequence[ObjectiveLink]) -> Tuple[bool, List[str]]:
    """
    Summarize problems in a set of objective links.

    Returns:
        (valid, messages)
    """
    messages: List[str] = []

    primary = [link for link in links if link.type == EntityLevel.PRIMARY]
    if primary and not any(link.aligned for link in primary):
        messages.append("Primary objectives are not aligned between IB and Protocol")

    for link in links:
        if link.aligned and link.similarity_score < LOW_SIMILARITY_THRESHOLD:
            messages.append(
                f"Low similarity ({link.similarity_score * 100:.0f}%) for {link.type.value} objective"
            )

    ib_orphans = sum(1 for link in links if link.ib_objective_id and not link.protocol_objective_id)
    if ib_orphans:
        messages.append(f"{ib_orphans} IB objective(s) not found in Protocol")

    protocol_orphans = sum(1 for link in links if link.protocol_objective_id and not link.ib_objective_id)
    if protocol_orphans:
        messages.append(f"{protocol_orphans} Protocol objective(s) not found in IB")

    return not messages, messages
