"""
Multi-Intent Decomposer

"How much did I spend this month and compare with last month" asks two
things. Compound questions are split on the locale's conjunctions and
each fragment is classified on its own. A question that does not split
is classified whole, then scanned for trigger words that imply a second
intent ("...and predict next month" style phrasing without a conjunction).
"""

import re
from typing import Optional

from finchat.intents.classifier import classify
from finchat.intents.registry import AmbiguityPolicy, PatternRegistry
from finchat.models.intent import ClassificationCandidate


FRAGMENT_MIN_CONFIDENCE = 0.5
SECONDARY_TRIGGER_CONFIDENCE = 0.6


def split_fragments(query: str, conjunctions: tuple[str, ...] | list[str]) -> list[str]:
    """
    Split a query on each conjunction in turn.

    Every marker is applied to every fragment produced so far.
    Fragments are trimmed; empty ones are dropped.
    """
    fragments = [query]
    for marker in conjunctions:
        splitter = re.compile(re.escape(marker), re.IGNORECASE)
        next_fragments = []
        for fragment in fragments:
            next_fragments.extend(part.strip() for part in splitter.split(fragment))
        fragments = [fragment for fragment in next_fragments if fragment]
    return fragments


def _dedupe(candidates: list[ClassificationCandidate]) -> list[ClassificationCandidate]:
    """Keep the best confidence per intent, best first. UNKNOWN only survives alone."""
    if any(not candidate.is_unknown for candidate in candidates):
        candidates = [candidate for candidate in candidates if not candidate.is_unknown]
    best: dict = {}
    for candidate in candidates:
        current = best.get(candidate.intent)
        if current is None or candidate.confidence > current.confidence:
            best[candidate.intent] = candidate
    return sorted(best.values(), key=lambda candidate: candidate.confidence, reverse=True)


def decompose(
    registry: PatternRegistry,
    query: str,
    contextual_query: Optional[str] = None,
    policy: Optional[AmbiguityPolicy] = None,
    min_confidence: float = FRAGMENT_MIN_CONFIDENCE,
) -> list[ClassificationCandidate]:
    """
    Detect every intent a query expresses.

    Args:
        registry: Pattern registry for the query's locale
        query: Normalized query as the user typed it
        contextual_query: Query with conversation context folded in
        policy: Ambiguity policy passed through to the classifier
        min_confidence: Fragments must score strictly above this to count

    Returns:
        Candidates best first, one per intent. May be empty when a
        compound query has no confident fragment.
    """
    fragments = split_fragments(query, registry.conjunctions)

    if len(fragments) > 1:
        candidates = []
        for fragment in fragments:
            candidate = classify(registry, fragment, fragment, policy)
            if not candidate.is_unknown and candidate.confidence > min_confidence:
                candidates.append(candidate)
        return _dedupe(candidates)

    primary = classify(registry, query, contextual_query, policy)
    candidates = [primary]
    lowered = query.lower()
    for keyword, intent in registry.secondary_triggers:
        if keyword in lowered and intent is not primary.intent:
            candidates.append(
                ClassificationCandidate(intent=intent, confidence=SECONDARY_TRIGGER_CONFIDENCE)
            )
    return _dedupe(candidates)
