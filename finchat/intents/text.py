"""Tokenizing helpers shared by the classifier, fuzzy matcher and context enhancer."""

import re


# Words that never carry intent on their own.
STOP_WORDS = frozenset({
    "the", "this", "that", "what", "how", "when", "where", "which", "who", "why",
    "can", "could", "would", "should", "will", "with", "from", "about",
    "have", "has", "had", "are", "was", "were", "been", "being",
    "did", "does", "do", "get", "got", "give", "gave", "show", "tell",
    "see", "know", "think", "want", "need", "make", "made", "take", "took",
    "go", "went", "come", "came", "say", "said", "ask", "asked",
})

_QUERY_DELIMITERS = re.compile(r"[ .,!?:;]+")
_REGEX_SYNTAX = re.compile(r"[\\()\[\]{}+*?^$|.]")
_PATTERN_SPLIT = re.compile(r"[ _]+")


def normalize(query: str) -> str:
    """Lowercase and trim a raw query."""
    return (query or "").strip().lower()


def tokenize(query: str) -> list[str]:
    """Split a query on spaces and sentence punctuation."""
    return [token for token in _QUERY_DELIMITERS.split(query.lower()) if token]


def pattern_keywords(pattern: str) -> list[str]:
    """
    Reduce a regex pattern to its literal keywords.

    Regex syntax becomes whitespace, then tokens of two characters or
    fewer and stop words are dropped. Order is preserved, duplicates are not.
    """
    plain = _REGEX_SYNTAX.sub(" ", pattern.lower())
    keywords: list[str] = []
    for token in _PATTERN_SPLIT.split(plain):
        if len(token) <= 2 or token in STOP_WORDS or token in keywords:
            continue
        keywords.append(token)
    return keywords
