"""
Fuzzy Matcher

Fallback for misspelled questions ("expendture", "budjet"). A query word
covers a pattern keyword when they are equal, one contains the other, or
they are within a small edit distance. Fuzzy scores are scaled by 0.6 so
they always rank below a structural match.
"""

from finchat.intents.registry import PatternRegistry, keywords_for
from finchat.intents.text import STOP_WORDS, tokenize
from finchat.models.intent import ClassificationCandidate


FUZZY_WEIGHT = 0.6
MAX_EDIT_DISTANCE = 2


def levenshtein(source: str, target: str) -> int:
    """Classic edit distance; insert, delete and substitute each cost 1."""
    if source == target:
        return 0
    if not source:
        return len(target)
    if not target:
        return len(source)

    previous = list(range(len(target) + 1))
    for i, source_char in enumerate(source, start=1):
        current = [i] + [0] * len(target)
        for j, target_char in enumerate(target, start=1):
            cost = 0 if source_char == target_char else 1
            current[j] = min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            )
        previous = current
    return previous[-1]


class FuzzyMatcher:
    """Edit-distance matcher over a pattern registry."""

    def __init__(self, max_distance: int = MAX_EDIT_DISTANCE, weight: float = FUZZY_WEIGHT):
        self.max_distance = max_distance
        self.weight = weight

    def covers(self, word: str, keyword: str) -> bool:
        return (
            word == keyword
            or keyword in word
            or word in keyword
            or levenshtein(word, keyword) <= self.max_distance
        )

    def similarity(self, words: list[str], keywords: tuple[str, ...]) -> float:
        """Fraction of keywords covered by at least one query word."""
        if not keywords:
            return 0.0
        covered = sum(1 for keyword in keywords if any(self.covers(w, keyword) for w in words))
        return covered / len(keywords)

    def match(self, registry: PatternRegistry, query: str) -> ClassificationCandidate:
        """
        Best fuzzy intent for a query.

        The caller decides whether the score is good enough to use.
        Equal scores keep registry order.
        """
        words = [word for word in tokenize(query) if word not in STOP_WORDS]
        if not words:
            return ClassificationCandidate.unknown()

        best = ClassificationCandidate.unknown()
        for entry in registry.iter_entries():
            score = max(self.similarity(words, keywords_for(p)) for p in entry.patterns) * self.weight
            if score > best.confidence:
                best = ClassificationCandidate(intent=entry.intent, confidence=score)
        return best
