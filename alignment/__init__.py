"""
Entity alignment across the document bundle.

Three greedy aligners (objectives, endpoints, doses) and the orchestrator
that assembles their links into one ``Alignments`` structure.
"""

from .links import (
    ObjectiveLink,
    EndpointLink,
    DoseLink,
    PopulationLink,
    VisitLink,
    Alignments,
)
from .matching import greedy_match, MatchResult
from .objectives_map import map_objectives, validate_objective_alignment
from .endpoints_map import (
    sap_endpoint_score,
    csr_endpoint_score,
    map_endpoints,
    validate_endpoint_alignment,
)
from .dose_map import (
    compare_doses,
    compare_routes,
    compare_frequencies,
    normalize_dose,
    parse_dose,
    score_dose_arm,
    map_doses,
    validate_dose_alignment,
)
from .builder import build_alignments

__all__ = [
    'ObjectiveLink',
    'EndpointLink',
    'DoseLink',
    'PopulationLink',
    'VisitLink',
    'Alignments',
    'greedy_match',
    'MatchResult',
    'map_objectives',
    'validate_objective_alignment',
    'sap_endpoint_score',
    'csr_endpoint_score',
    'map_endpoints',
    'validate_endpoint_alignment',
    'compare_doses',
    'compare_routes',
    'compare_frequencies',
    'normalize_dose',
    'parse_dose',
    'score_dose_arm',
    'map_doses',
    'validate_dose_alignment',
    'build_alignments',
]
