"""
Intent Classifier

DESIGN DECISION: Deterministic, confidence-scored pattern matching.
A pattern that matches structurally scores 1.0. A pattern that does not
match still earns partial credit for each of its literal keywords that
appears in the query, scaled by 0.7, so a near-miss never outranks a
real match.

When the two best intents are both weak and close together, the policy
table decides: a specific intent (a category, a loan scenario) beats a
generic one, because the specific handler can still answer the generic
question but not the other way round.

Everything here is a pure function of (registry, policy, query).
"""

from typing import Optional

from finchat.intents.registry import (
    AmbiguityPolicy,
    PatternRegistry,
    compile_pattern,
    keywords_for,
)
from finchat.intents.text import tokenize
from finchat.models.intent import ClassificationCandidate


EXACT_MATCH_SCORE = 1.0
PARTIAL_MATCH_WEIGHT = 0.7


def score_pattern(pattern: str, contextual_query: str, query_tokens: set[str]) -> float:
    """Score one pattern: 1.0 on a structural match, else weighted keyword overlap."""
    if compile_pattern(pattern).search(contextual_query):
        return EXACT_MATCH_SCORE

    keywords = keywords_for(pattern)
    if not keywords:
        return 0.0
    present = sum(1 for keyword in keywords if keyword in query_tokens)
    return present / len(keywords) * PARTIAL_MATCH_WEIGHT


def score_labels(
    registry: PatternRegistry,
    query: str,
    contextual_query: Optional[str] = None,
) -> list[ClassificationCandidate]:
    """
    Score every intent in the registry against a query.

    Args:
        registry: Pattern registry for the query's locale
        query: Normalized query; used for keyword overlap
        contextual_query: Query with conversation context folded in;
            used for structural matching (defaults to `query`)

    Returns:
        Intents scoring above zero, best first. Equal scores keep
        registry order.
    """
    contextual_query = contextual_query if contextual_query is not None else query
    query_tokens = set(tokenize(query))

    scored = []
    for entry in registry.iter_entries():
        best = max(score_pattern(p, contextual_query, query_tokens) for p in entry.patterns)
        if best > 0:
            scored.append(ClassificationCandidate(intent=entry.intent, confidence=best))

    # sorted() is stable, so ties stay in registry order
    return sorted(scored, key=lambda candidate: candidate.confidence, reverse=True)


def is_ambiguous(ranked: list[ClassificationCandidate], policy: AmbiguityPolicy) -> bool:
    if len(ranked) < 2:
        return False
    top, runner_up = ranked[0].confidence, ranked[1].confidence
    return top < policy.top_score_threshold and (top - runner_up) < policy.min_gap


def classify(
    registry: PatternRegistry,
    query: str,
    contextual_query: Optional[str] = None,
    policy: Optional[AmbiguityPolicy] = None,
) -> ClassificationCandidate:
    """
    Pick the single best intent for a query.

    Returns the UNKNOWN candidate with confidence 0 when nothing scores.
    """
    policy = policy or AmbiguityPolicy()
    ranked = score_labels(registry, query, contextual_query)
    if not ranked:
        return ClassificationCandidate.unknown()

    if is_ambiguous(ranked, policy):
        for candidate in ranked[:policy.window]:
            if candidate.intent in policy.specific_intents:
                return candidate

    return ranked[0]
