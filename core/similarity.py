"""
Text Similarity Utilities

Lexical similarity scoring used by the entity aligners. Three complementary
metrics are combined into one score in [0, 1]:

- Jaccard overlap of unique content words
- Cosine similarity of term-frequency vectors
- Character-level Levenshtein similarity

Stopword removal applies to the word-level metrics only; the edit distance is
computed on the normalized string with stopwords still present.
"""

import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from rapidfuzz.distance import Levenshtein


STOPWORDS = frozenset([
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for',
    'of', 'with', 'by', 'from', 'as', 'is', 'was', 'are', 'were', 'been',
    'be', 'have', 'has', 'had', 'do', 'does', 'did', 'will', 'would', 'should',
    'could', 'may', 'might', 'must', 'can', 'this', 'that', 'these', 'those',
])

JACCARD_WEIGHT = 0.4
COSINE_WEIGHT = 0.4
LEVENSHTEIN_WEIGHT = 0.2


# =============================================================================
# Normalization
# =============================================================================

def normalize_text(text: Optional[str]) -> str:
    """Lowercase, replace punctuation with spaces, collapse whitespace."""
    if not text:
        return ''
    text = text.lower()
    text = re.sub(r'[^\w\s]', ' ', text)
    return ' '.join(text.split())


def remove_stopwords(text: str) -> str:
    """Drop function words from an already-normalized string."""
    return ' '.join(word for word in text.split() if word not in STOPWORDS)


def _content_words(text: Optional[str]) -> List[str]:
    return remove_stopwords(normalize_text(text)).split()


# =============================================================================
# Metrics
# =============================================================================

def jaccard_similarity(text1: Optional[str], text2: Optional[str]) -> float:
    """Shared unique content words over the union of unique content words."""
    words1 = set(_content_words(text1))
    words2 = set(_content_words(text2))

    if not words1 and not words2:
        return 1.0
    if not words1 or not words2:
        return 0.0

    return len(words1 & words2) / len(words1 | words2)


def cosine_similarity(text1: Optional[str], text2: Optional[str]) -> float:
    """Cosine of the term-frequency vectors of the content words."""
    freq1 = Counter(_content_words(text1))
    freq2 = Counter(_content_words(text2))

    magnitude1 = sum(count * count for count in freq1.values())
    magnitude2 = sum(count * count for count in freq2.values())
    if magnitude1 == 0 or magnitude2 == 0:
        return 0.0

    dot_product = sum(count * freq2.get(word, 0) for word, count in freq1.items())
    return dot_product / math.sqrt(magnitude1 * magnitude2)


def levenshtein_distance(text1: Optional[str], text2: Optional[str]) -> int:
    """Character edit distance between the normalized strings."""
    return Levenshtein.distance(normalize_text(text1), normalize_text(text2))


def levenshtein_similarity(text1: Optional[str], text2: Optional[str]) -> float:
    """1 - distance / longer length; two empty strings are identical."""
    max_len = max(len(normalize_text(text1)), len(normalize_text(text2)))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(text1, text2) / max_len


def combined_similarity(text1: Optional[str], text2: Optional[str]) -> float:
    """
    Weighted blend of Jaccard (40%), Cosine (40%) and Levenshtein (20%).

    Symmetric, reflexive for non-empty input, and never raises: None is
    treated as the empty string.
    """
    text1 = text1 or ''
    text2 = text2 or ''

    if text1 and (text1 == text2 or normalize_text(text1) == normalize_text(text2) != ''):
        return 1.0

    score = (
        jaccard_similarity(text1, text2) * JACCARD_WEIGHT
        + cosine_similarity(text1, text2) * COSINE_WEIGHT
        + levenshtein_similarity(text1, text2) * LEVENSHTEIN_WEIGHT
    )
    return min(1.0, max(0.0, score))


def are_similar(text1: Optional[str], text2: Optional[str], threshold: float = 0.7) -> bool:
    """Check if two texts are similar at or above threshold."""
    return combined_similarity(text1, text2) >= threshold


# =============================================================================
# Best match search
# =============================================================================

@dataclass(frozen=True)
class BestMatch:
    """Winning candidate of a best-match search."""
    index: int
    text: str
    score: float
    candidate: Any = None


def find_best_match(
    query: str,
    candidates: Sequence[Any],
    threshold: float = 0.5,
    key: Optional[Callable[[Any], str]] = None,
) -> Optional[BestMatch]:
    """
    Return the highest-scoring candidate at or above threshold.

    Args:
        query: Text to match
        candidates: Strings, or arbitrary objects when ``key`` is given
        threshold: Minimum combined similarity
        key: Extracts the comparison text from a candidate

    Returns:
        BestMatch, or None when no candidate qualifies. Ties keep the
        first-encountered candidate.
    """
    best: Optional[BestMatch] = None

    for index, candidate in enumerate(candidates):
        text = key(candidate) if key else candidate
        score = combined_similarity(query, text)
        if score < threshold:
            continue
        if best is None or score > best.score:
            best = BestMatch(index=index, text=text or '', score=score, candidate=candidate)

    return best
