"""Fuzzy matching of model identifiers against registry entries.

Every rule that applies to a candidate adds its weight to the candidate's
score; the best-scoring candidate wins if it clears the acceptance threshold.
The weights are empirical and kept as named, overridable values.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional, Tuple

from .identifiers import NormalizedIdentifier
from .records import RegistryEntry

if TYPE_CHECKING:
    from .registry_cache import RegistryCache


@dataclass(frozen=True)
class MatchWeights:
    """Points awarded per matching rule and the minimum accepted score."""

    exact_id: float = 1000.0
    exact_suffix: float = 500.0
    id_containment: float = 150.0
    suffix_containment: float = 75.0
    token_jaccard: float = 100.0
    name_contains_suffix: float = 25.0
    threshold: float = 250.0


DEFAULT_WEIGHTS = MatchWeights()


def _contains_either_way(a: str, b: str) -> bool:
    return bool(a) and bool(b) and (a in b or b in a)


def _jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    left, right = set(a), set(b)
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def score(
    identifier: str,
    candidate: RegistryEntry,
    weights: MatchWeights = DEFAULT_WEIGHTS,
    _query: Optional[NormalizedIdentifier] = None,
) -> float:
    """Score how well a registry entry matches a model identifier.

    Args:
        identifier: Raw model id from the provider
        candidate: Registry entry to compare against
        weights: Points per rule

    Returns:
        Additive score; higher is better
    """
    query = _query or NormalizedIdentifier.from_raw(identifier)
    other = NormalizedIdentifier.from_raw(candidate.id)
    total = 0.0

    if query.canonical and query.canonical == other.canonical:
        total += weights.exact_id
    if query.suffix and query.suffix == other.suffix:
        total += weights.exact_suffix
    if _contains_either_way(query.canonical, other.canonical):
        total += weights.id_containment
    if _contains_either_way(query.suffix, other.suffix):
        total += weights.suffix_containment

    total += _jaccard(query.tokens, other.tokens) * weights.token_jaccard

    if query.suffix:
        labels = [label.lower() for label in (candidate.name, candidate.canonical_slug) if label]
        if any(query.suffix in label for label in labels):
            total += weights.name_contains_suffix

    return total


def best_candidate(
    identifier: str,
    candidates: Iterable[RegistryEntry],
    weights: MatchWeights = DEFAULT_WEIGHTS,
) -> Optional[Tuple[RegistryEntry, float]]:
    """Return the top-scoring candidate and its score, ignoring the threshold.

    Ties keep the earliest candidate.
    """
    query = NormalizedIdentifier.from_raw(identifier)
    best: Optional[Tuple[RegistryEntry, float]] = None
    for candidate in candidates:
        points = score(identifier, candidate, weights, _query=query)
        if best is None or points > best[1]:
            best = (candidate, points)
    return best


def match(
    identifier: str,
    candidates: Iterable[RegistryEntry],
    weights: MatchWeights = DEFAULT_WEIGHTS,
) -> Optional[RegistryEntry]:
    """Find the registry entry that best matches a model identifier.

    Args:
        identifier: Raw model id from the provider
        candidates: Registry entries in registry order
        weights: Points per rule and acceptance threshold

    Returns:
        The matching entry, or None when no candidate reaches the threshold
    """
    best = best_candidate(identifier, candidates, weights)
    if best is None or best[1] < weights.threshold:
        return None
    return best[0]


def match_registry(
    identifier: str,
    cache: "RegistryCache",
    weights: MatchWeights = DEFAULT_WEIGHTS,
) -> Optional[RegistryEntry]:
    """Match an identifier against the registry, fetching it on first use.

    Args:
        identifier: Raw model id from the provider
        cache: Shared registry cache
        weights: Points per rule and acceptance threshold

    Returns:
        The matching entry, or None when no candidate reaches the threshold

    Raises:
        RegistryFetchError: If the registry could not be fetched
    """
    return match(identifier, cache.get_entries(), weights)
