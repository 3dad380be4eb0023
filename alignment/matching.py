"""
Greedy one-to-one matching shared by the entity aligners.

Each source entity, in source order, claims the best-scoring target that is
still unclaimed and scores at or above the threshold. This is not a globally
optimal assignment; entity counts per document are small enough that the
greedy result is acceptable.
"""

from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

S = TypeVar('S')
T = TypeVar('T')


@dataclass
class MatchResult(Generic[S, T]):
    """One source entity and the target it claimed, if any."""
    source: S
    target: Optional[T] = None
    score: float = 0.0


def greedy_match(
    sources: Sequence[S],
    targets: Sequence[T],
    score_fn: Callable[[S, T], float],
    threshold: float,
) -> Tuple[List[MatchResult[S, T]], List[T]]:
    """
    Match sources to targets greedily.

    Args:
        sources: Entities driving the search, matched in order
        targets: Candidate pool; a claimed target leaves the pool
        score_fn: Pair score in [0, 1]
        threshold: Minimum score for a pair to be claimed

    Returns:
        (one MatchResult per source, targets never claimed in original order)
    """
    claimed = set()
    results: List[MatchResult] = []

    for source in sources:
        best_index: Optional[int] = None
        best_score = 0.0

        for index, target in enumerate(targets):
            if index in claimed:
                continue
            score = score_fn(source, target)
            if score < threshold:
                continue
            # Strict comparison keeps the first target on ties
            if best_index is None or score > best_score:
                best_index = index
                best_score = score

        if best_index is None:
            results.append(MatchResult(source=source))
        else:
            claimed.add(best_index)
            results.append(MatchResult(source=source, target=targets[best_index], score=best_score))

    unclaimed = [target for index, target in enumerate(targets) if index not in claimed]
    return results, unclaimed
