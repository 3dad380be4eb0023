"""
Core utilities for the cross-document consistency engine.

Shared by every other package:
- Typed errors and structured logging
- Engine configuration and constants
- Lexical text similarity
"""

from .constants import (
    SYSTEM_NAME,
    ENGINE_VERSION,
    CANONICAL_TESTS,
    APPROPRIATE_TESTS,
    ESSENTIAL_POPULATIONS,
)
from .errors import (
    CrossDocError,
    ConfigurationError,
    BundleLoadError,
    RuleExecutionError,
    PatchValidationError,
)
from .config import (
    EngineConfig,
    PrimaryObjectivePolicy,
    load_config,
    save_config,
)
from .similarity import (
    normalize_text,
    remove_stopwords,
    jaccard_similarity,
    cosine_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    combined_similarity,
    are_similar,
    find_best_match,
    BestMatch,
)

__all__ = [
    'SYSTEM_NAME',
    'ENGINE_VERSION',
    'CANONICAL_TESTS',
    'APPROPRIATE_TESTS',
    'ESSENTIAL_POPULATIONS',
    'CrossDocError',
    'ConfigurationError',
    'BundleLoadError',
    'RuleExecutionError',
    'PatchValidationError',
    'EngineConfig',
    'PrimaryObjectivePolicy',
    'load_config',
    'save_config',
    'normalize_text',
    'remove_stopwords',
    'jaccard_similarity',
    'cosine_similarity',
    'levenshtein_distance',
    'levenshtein_similarity',
    'combined_similarity',
    'are_similar',
    'find_best_match',
    'BestMatch',
]
