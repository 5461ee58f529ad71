"""
Pattern Registry

DESIGN DECISION: Pattern tables are data, not code.
Each locale ships one versioned JSON file holding its intent patterns,
the conjunctions used to split compound questions, the secondary-intent
triggers, and the phrase tables used for extraction and clarification.
Adding a locale means adding one file; no algorithm changes.

A registry is loaded once per locale and shared read-only by every
request. Nothing in the engine mutates it after load.
"""

import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterator, Optional, Pattern

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from finchat.config.settings import SUPPORTED_LOCALES
from finchat.exceptions import FinchatError
from finchat.intents.text import pattern_keywords
from finchat.models.intent import IntentKind


logger = structlog.get_logger(__name__)

DATA_DIR = Path(__file__).parent / "data"


class RegistryError(FinchatError):
    """A pattern table is missing, malformed, or for an unsupported locale."""
    pass


@lru_cache(maxsize=None)
def compile_pattern(pattern: str) -> Pattern[str]:
    """Compile a pattern once; the registry reuses the compiled form."""
    return re.compile(pattern, re.IGNORECASE)


@lru_cache(maxsize=None)
def keywords_for(pattern: str) -> tuple[str, ...]:
    """Literal keywords of a pattern (cached, patterns never change)."""
    return tuple(pattern_keywords(pattern))


class PatternEntry(BaseModel):
    """All patterns for one intent in one locale."""

    model_config = ConfigDict(frozen=True)

    intent: IntentKind
    patterns: tuple[str, ...] = Field(..., min_length=1)
    locale: str

    @field_validator('patterns')
    @classmethod
    def validate_patterns(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in v:
            try:
                compile_pattern(pattern)
            except re.error as e:
                raise ValueError(f"Invalid pattern '{pattern}': {e}")
        return v


class PatternRegistry(BaseModel):
    """
    Immutable lookup from intent to patterns for a single locale.

    iter_entries() follows IntentKind declaration order, which is the
    tie-break order used by the classifier.
    """

    model_config = ConfigDict(frozen=True)

    locale: str
    version: str = "0"
    entries: dict[IntentKind, PatternEntry] = Field(default_factory=dict)
    conjunctions: tuple[str, ...] = ()
    secondary_triggers: tuple[tuple[str, IntentKind], ...] = ()
    time_periods: tuple[tuple[str, str], ...] = ()
    clarification_topics: tuple[tuple[str, str], ...] = ()
    suggested_questions: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    def iter_entries(self) -> Iterator[PatternEntry]:
        for kind in IntentKind.routable():
            entry = self.entries.get(kind)
            if entry is not None:
                yield entry

    def __contains__(self, kind: IntentKind) -> bool:
        return kind in self.entries

    def patterns_for(self, kind: IntentKind) -> tuple[str, ...]:
        entry = self.entries.get(kind)
        return entry.patterns if entry else ()

    def missing_intents(self) -> list[IntentKind]:
        """Routable intents with no patterns in this locale."""
        return [kind for kind in IntentKind.routable() if not self.patterns_for(kind)]

    @classmethod
    def from_dict(cls, data: dict, locale: Optional[str] = None) -> "PatternRegistry":
        """
        Build a registry from a parsed pattern table.

        Raises:
            RegistryError: If the table names an unknown intent, has an
                empty or invalid pattern list, or fails validation
        """
        locale = locale or data.get("locale")
        if not locale:
            raise RegistryError("Pattern table does not declare a locale")

        entries: dict[IntentKind, PatternEntry] = {}
        try:
            for label, patterns in (data.get("intents") or {}).items():
                kind = IntentKind.parse(label)
                if kind is IntentKind.UNKNOWN:
                    raise RegistryError(f"Unknown intent '{label}' in '{locale}' patterns")
                entries[kind] = PatternEntry(intent=kind, patterns=tuple(patterns), locale=locale)

            triggers = []
            for keyword, label in (data.get("secondary_triggers") or {}).items():
                kind = IntentKind.parse(label)
                if kind is IntentKind.UNKNOWN:
                    raise RegistryError(f"Unknown trigger intent '{label}' in '{locale}' patterns")
                triggers.append((keyword.lower(), kind))

            return cls(
                locale=locale,
                version=str(data.get("version", "0")),
                entries=entries,
                conjunctions=tuple(data.get("conjunctions") or ()),
                secondary_triggers=tuple(triggers),
                time_periods=tuple(tuple(pair) for pair in data.get("time_periods") or ()),
                clarification_topics=tuple(
                    tuple(pair) for pair in data.get("clarification_topics") or ()
                ),
                suggested_questions={
                    group: tuple(questions)
                    for group, questions in (data.get("suggested_questions") or {}).items()
                },
            )
        except ValidationError as e:
            raise RegistryError(f"Invalid pattern table for '{locale}': {e}") from e


@lru_cache(maxsize=None)
def load_registry(locale: str, data_dir: Optional[str] = None) -> PatternRegistry:
    """
    Load the pattern registry for a locale (cached per locale and directory).

    Raises:
        RegistryError: If the locale is unsupported or its file is missing or malformed
    """
    if locale not in SUPPORTED_LOCALES:
        raise RegistryError(
            f"Unsupported locale '{locale}'. Expected one of: {', '.join(SUPPORTED_LOCALES)}"
        )

    path = Path(data_dir or DATA_DIR) / f"patterns.{locale}.json"
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as e:
        raise RegistryError(f"Pattern table not found: {path}") from e
    except json.JSONDecodeError as e:
        raise RegistryError(f"Pattern table is not valid JSON: {path}: {e}") from e

    registry = PatternRegistry.from_dict(data, locale=locale)
    logger.info(
        "pattern_registry_loaded",
        locale=locale,
        version=registry.version,
        intents=len(registry.entries),
    )
    return registry


# =============================================================================
# AMBIGUITY POLICY
# =============================================================================

class AmbiguityPolicy(BaseModel):
    """
    When two intents score close together and neither is a strong match,
    prefer a more specific intent from the top few.
    """

    model_config = ConfigDict(frozen=True)

    top_score_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    min_gap: float = Field(default=0.2, ge=0.0, le=1.0)
    window: int = Field(default=3, ge=1)
    specific_intents: frozenset[IntentKind] = frozenset({
        IntentKind.CATEGORY_SPENDING,
        IntentKind.BUDGET_CATEGORIES,
        IntentKind.LOAN_PAYOFF_SCENARIO,
    })


@lru_cache(maxsize=None)
def load_ambiguity_policy(data_dir: Optional[str] = None) -> AmbiguityPolicy:
    """Load the ambiguity policy table; fall back to defaults only if the file is absent."""
    path = Path(data_dir or DATA_DIR) / "ambiguity_policy.json"
    if not path.exists():
        logger.warning("ambiguity_policy_missing", path=str(path))
        return AmbiguityPolicy()
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        data.pop("version", None)
        return AmbiguityPolicy(**data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise RegistryError(f"Invalid ambiguity policy: {path}: {e}") from e
