"""
Alignment orchestrator.

Pure composition: runs each aligner on whichever documents the bundle holds.
Population and visit links are reserved for future rule categories and are
always empty for now.
"""

import logging
from typing import Optional

from core.config import EngineConfig
from documents.schema import CrossDocBundle
from .dose_map import map_doses
from .endpoints_map import map_endpoints
from .links import Alignments
from .objectives_map import map_objectives

logger = logging.getLogger(__name__)


def build_alignments(bundle: CrossDocBundle, config: Optional[EngineConfig] = None) -> Alignments:
    """Build all alignment links for a bundle. Missing documents are not an error."""
    config = config or EngineConfig()

    alignments = Alignments(
        objectives=map_objectives(bundle.ib, bundle.protocol, config),
        endpoints=map_endpoints(bundle.protocol, bundle.sap, bundle.csr, config),
        doses=map_doses(bundle.ib, bundle.protocol, config),
        populations=[],
        visits=[],
    )

    logger.debug(f"Built alignments: {alignments.counts()}")
    return alignments
