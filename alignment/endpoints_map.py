"""
Endpoint alignment across Protocol, SAP and CSR.

Protocol endpoints drive the search. Protocol<->SAP pairs are scored on a
weighted blend of name and description similarity; Protocol<->CSR pairs on
name similarity alone, since CSR entries model reported results loosely.
Both searches run independently per level and are merged into one link per
Protocol endpoint.

When a SAP is present the link score and ``aligned`` flag describe the
Protocol<->SAP pair; otherwise they describe the Protocol<->CSR pair.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from core.config import EngineConfig
from core.constants import LOW_SIMILARITY_THRESHOLD
from core.similarity import combined_similarity
from documents.schema import (
    CsrEndpoint,
    Endpoint,
    EntityLevel,
    SapEndpoint,
    StructuredCsrDocument,
    StructuredProtocolDocument,
    StructuredSapDocument,
)
from .links import EndpointLink
from .matching import greedy_match

logger = logging.getLogger(__name__)


def sap_endpoint_score(
    protocol_endpoint: Endpoint,
    sap_endpoint: SapEndpoint,
    config: Optional[EngineConfig] = None,
) -> float:
    """Weighted name/description similarity (60/40 by default)."""
    config = config or EngineConfig()
    name_score = combined_similarity(protocol_endpoint.name, sap_endpoint.name)
    description_score = combined_similarity(protocol_endpoint.description, sap_endpoint.description)
    return (
        name_score * config.endpoint_name_weight
        + description_score * config.endpoint_description_weight
    )


def csr_endpoint_score(protocol_endpoint: Endpoint, csr_endpoint: CsrEndpoint) -> float:
    return combined_similarity(protocol_endpoint.name, csr_endpoint.name)


def map_endpoints(
    protocol: Optional[StructuredProtocolDocument],
    sap: Optional[StructuredSapDocument] = None,
    csr: Optional[StructuredCsrDocument] = None,
    config: Optional[EngineConfig] = None,
) -> List[EndpointLink]:
    """
    Align Protocol endpoints with SAP and CSR endpoints.

    Returns:
        Links grouped by level. Within a level: one link per Protocol
        endpoint in Protocol order, then unclaimed SAP endpoints, then
        unclaimed CSR endpoints. Empty without a Protocol or without both
        SAP and CSR.
    """
    if protocol is None or (sap is None and csr is None):
        return []

    config = config or EngineConfig()
    threshold = config.endpoint_threshold
    links: List[EndpointLink] = []

    for level in EntityLevel:
        protocol_group = protocol.endpoints_of(level)

        # protocol endpoint id -> field overrides for the merged link
        merged: Dict[str, Dict] = {ep.id: {} for ep in protocol_group}
        sap_orphans: Sequence[SapEndpoint] = ()
        csr_orphans: Sequence[CsrEndpoint] = ()

        if sap is not None:
            matches, sap_orphans = greedy_match(
                protocol_group,
                sap.endpoints_of(level),
                lambda p, s: sap_endpoint_score(p, s, config),
                threshold,
            )
            for match in matches:
                merged[match.source.id].update(
                    sap_endpoint_id=match.target.id if match.target else None,
                    similarity_score=match.score,
                    aligned=match.target is not None and match.score >= threshold,
                )

        if csr is not None:
            matches, csr_orphans = greedy_match(
                protocol_group,
                csr.endpoints_of(level),
                csr_endpoint_score,
                threshold,
            )
            for match in matches:
                fields = merged[match.source.id]
                fields["csr_endpoint_id"] = match.target.id if match.target else None
                if sap is None:
                    fields["similarity_score"] = match.score
                    fields["aligned"] = match.target is not None and match.score >= threshold

        for ep in protocol_group:
            links.append(EndpointLink(type=level, protocol_endpoint_id=ep.id, **merged[ep.id]))
        links.extend(EndpointLink(type=level, sap_endpoint_id=ep.id) for ep in sap_orphans)
        links.extend(EndpointLink(type=level, csr_endpoint_id=ep.id) for ep in csr_orphans)

    logger.debug(
        f"Endpoint alignment: {len(links)} links, "
        f"{sum(1 for link in links if link.aligned)} aligned"
    )
    return links


def validate_endpoint_alignment(links: Sequence[EndpointLink]) -> Tuple[bool, List[str]]:
    """
    Summarize problems in a set of endpoint links.

    Returns:
        (valid, messages)
    """
    messages: List[str] = []

    primary = [link for link in links if link.type == EntityLevel.PRIMARY]
    if primary and not any(link.aligned for link in primary):
        messages.append("Primary endpoints are not aligned across documents")

    for link in links:
        if link.aligned and link.similarity_score < LOW_SIMILARITY_THRESHOLD:
            messages.append(
                f"Low similarity ({link.similarity_score * 100:.0f}%) for {link.type.value} endpoint "
                f"{link.protocol_endpoint_id}"
            )

    missing_in_sap = [link for link in primary if link.protocol_endpoint_id and not link.sap_endpoint_id]
    if missing_in_sap:
        messages.append(f"{len(missing_in_sap)} primary endpoint(s) missing in SAP")

    missing_in_csr = [link for link in primary if link.protocol_endpoint_id and not link.csr_endpoint_id]
    if missing_in_csr:
        messages.append(f"{len(missing_in_csr)} primary endpoint(s) missing in CSR")

    extra = [link for link in links if not link.protocol_endpoint_id]
    if extra:
        messages.append(f"{len(extra)} SAP/CSR endpoint(s) not defined in Protocol")

    return not messages, messages
