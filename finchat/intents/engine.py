"""
Intent Engine

DESIGN DECISION: One entry point for understanding a question.
The engine chains normalization, context enhancement, decomposition and
the fuzzy fallback, and reports each step so the caller can audit it.
It holds no per-request state: the same engine instance serves every
request concurrently.
"""

from typing import Iterable, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from finchat.config.settings import ChatSettings, SUPPORTED_LOCALES
from finchat.intents.context import enhance_query
from finchat.intents.decomposer import decompose
from finchat.intents.fuzzy import FuzzyMatcher
from finchat.intents.registry import (
    AmbiguityPolicy,
    PatternRegistry,
    load_ambiguity_policy,
    load_registry,
)
from finchat.intents.text import normalize
from finchat.models.conversation import ConversationTurn, ConversationWindow
from finchat.models.intent import ClassificationCandidate


logger = structlog.get_logger(__name__)

History = Union[ConversationWindow, Iterable[ConversationTurn], None]


class QueryAnalysis(BaseModel):
    """How a single question was interpreted."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(..., description="Normalized query")
    locale: str
    contextual_query: str
    added_keywords: tuple[str, ...] = ()
    candidates: tuple[ClassificationCandidate, ...]
    fuzzy_used: bool = False

    @property
    def primary(self) -> ClassificationCandidate:
        return self.candidates[0]


class IntentEngine:
    """
    Classifies free-text financial questions.

    Usage:
        engine = IntentEngine()
        candidates = engine.classify("how much did I spend on food?", "en")
    """

    def __init__(
        self,
        settings: Optional[ChatSettings] = None,
        policy: Optional[AmbiguityPolicy] = None,
        fuzzy: Optional[FuzzyMatcher] = None,
        registries: Optional[dict[str, PatternRegistry]] = None,
    ):
        self.settings = settings or ChatSettings()
        self.policy = policy or load_ambiguity_policy(self.settings.patterns_dir)
        self.fuzzy = fuzzy or FuzzyMatcher()
        self._registries = dict(registries or {})

    def registry(self, locale: str) -> PatternRegistry:
        if locale in self._registries:
            return self._registries[locale]
        return load_registry(locale, self.settings.patterns_dir)

    def resolve_locale(self, locale: Optional[str]) -> str:
        """Unsupported or missing locales fall back to the configured default."""
        if not locale:
            return self.settings.default_locale
        locale = locale.strip().lower()
        if locale not in SUPPORTED_LOCALES and locale not in self._registries:
            logger.warning(
                "unsupported_locale",
                requested=locale,
                fallback=self.settings.default_locale,
            )
            return self.settings.default_locale
        return locale

    def analyze(
        self,
        query: str,
        locale: Optional[str] = None,
        history: History = None,
    ) -> QueryAnalysis:
        """
        Interpret a question and report every step.

        Never raises for content reasons: a question nothing matches comes
        back as a single UNKNOWN candidate with confidence 0.
        """
        locale = self.resolve_locale(locale)
        registry = self.registry(locale)
        normalized = normalize(query)

        if isinstance(history, ConversationWindow):
            window = history
        else:
            window = ConversationWindow.of(history, self.settings.history_window)

        contextual, added = enhance_query(normalized, window)
        candidates = decompose(
            registry,
            normalized,
            contextual,
            self.policy,
            self.settings.multi_intent_min_confidence,
        )
        if not candidates:
            candidates = [ClassificationCandidate.unknown()]

        fuzzy_used = False
        primary = candidates[0]
        if primary.is_unknown or primary.confidence < self.settings.fuzzy_trigger_confidence:
            match = self.fuzzy.match(registry, normalized)
            accepted = (
                match.confidence > self.settings.fuzzy_accept_confidence
                and (primary.is_unknown or match.confidence > primary.confidence)
            )
            if accepted:
                fuzzy_used = True
                candidates = [match] + [
                    c for c in candidates if c.intent is not match.intent and not c.is_unknown
                ]

        logger.debug(
            "query_classified",
            locale=locale,
            primary=candidates[0].intent.value,
            confidence=candidates[0].confidence,
            candidates=len(candidates),
            fuzzy_used=fuzzy_used,
        )

        return QueryAnalysis(
            query=normalized,
            locale=locale,
            contextual_query=contextual,
            added_keywords=tuple(added),
            candidates=tuple(candidates),
            fuzzy_used=fuzzy_used,
        )

    def classify(
        self,
        query: str,
        locale: Optional[str] = None,
        history: History = None,
    ) -> list[ClassificationCandidate]:
        """Ranked intents for a question, best first."""
        return list(self.analyze(query, locale, history).candidates)
