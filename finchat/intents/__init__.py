"""
Intent Understanding Package

Turns a free-text question into ranked financial intents:
pattern registry -> context enhancer -> decomposer/classifier -> fuzzy fallback.
"""

from finchat.intents.classifier import classify, score_labels
from finchat.intents.context import enhance_query
from finchat.intents.decomposer import decompose, split_fragments
from finchat.intents.engine import IntentEngine, QueryAnalysis
from finchat.intents.fuzzy import FuzzyMatcher, levenshtein
from finchat.intents.registry import (
    AmbiguityPolicy,
    PatternEntry,
    PatternRegistry,
    RegistryError,
    load_ambiguity_policy,
    load_registry,
)

__all__ = [
    "AmbiguityPolicy",
    "FuzzyMatcher",
    "IntentEngine",
    "PatternEntry",
    "PatternRegistry",
    "QueryAnalysis",
    "RegistryError",
    "classify",
    "decompose",
    "enhance_query",
    "levenshtein",
    "load_ambiguity_policy",
    "load_registry",
    "score_labels",
    "split_fragments",
]
