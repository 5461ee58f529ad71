"""Tests for intent classification, fuzzy fallback, context and compound questions."""

from datetime import datetime, timedelta, timezone

import pytest

from finchat.config import ChatSettings
from finchat.intents.classifier import classify, is_ambiguous, score_labels
from finchat.intents.context import MAX_ADDED_KEYWORDS, enhance_query
from finchat.intents.decomposer import decompose, split_fragments
from finchat.intents.engine import IntentEngine
from finchat.intents.fuzzy import FuzzyMatcher, levenshtein
from finchat.intents.registry import AmbiguityPolicy, PatternRegistry, load_registry
from finchat.models.conversation import ConversationTurn, ConversationWindow, Role
from finchat.models.intent import ClassificationCandidate, IntentKind


@pytest.fixture
def registry():
    return load_registry("en")


@pytest.fixture
def tied_registry():
    """Two intents whose patterns share every keyword but one."""
    return PatternRegistry.from_dict({
        "locale": "en",
        "intents": {
            "total_spending": ["total spending report"],
            "category_spending": ["category spending report"],
        },
    })


def user_turns(*texts):
    start = datetime(2024, 3, 1, 9, 0)
    return [
        ConversationTurn(role=Role.USER, text=text, timestamp=start + timedelta(minutes=i))
        for i, text in enumerate(texts)
    ]


class TestClassifier:
    """Tests for the pattern classifier."""

    def test_structural_match_scores_one(self, registry):
        """Test that a matching pattern scores 1.0."""
        candidate = classify(registry, "how much did i spend")
        assert candidate.intent == IntentKind.TOTAL_SPENDING
        assert candidate.confidence == 1.0

    def test_no_match_is_unknown(self, registry):
        """Test that gibberish classifies as UNKNOWN with zero confidence."""
        candidate = classify(registry, "zzzz qqqq")
        assert candidate.is_unknown
        assert candidate.confidence == 0.0

    def test_partial_keyword_credit(self, tied_registry):
        """Test that keyword overlap earns 0.7 times the covered fraction."""
        ranked = score_labels(tied_registry, "spending report")
        assert [c.intent for c in ranked] == [IntentKind.TOTAL_SPENDING, IntentKind.CATEGORY_SPENDING]
        assert ranked[0].confidence == pytest.approx(2 / 3 * 0.7)

    def test_ambiguity_prefers_specific_intent(self, tied_registry):
        """Test that a close weak tie resolves to the more specific intent."""
        ranked = score_labels(tied_registry, "spending report")
        assert is_ambiguous(ranked, AmbiguityPolicy())
        assert classify(tied_registry, "spending report").intent == IntentKind.CATEGORY_SPENDING

    def test_no_tie_break_without_specific_intents(self, tied_registry):
        """Test that an empty specific set keeps registry order on ties."""
        policy = AmbiguityPolicy(specific_intents=frozenset())
        assert classify(tied_registry, "spending report", policy=policy).intent == IntentKind.TOTAL_SPENDING

    def test_strong_match_is_not_ambiguous(self):
        """Test that a confident top score skips the tie-break."""
        ranked = [
            ClassificationCandidate(intent=IntentKind.TOTAL_SPENDING, confidence=1.0),
            ClassificationCandidate(intent=IntentKind.CATEGORY_SPENDING, confidence=1.0),
        ]
        assert not is_ambiguous(ranked, AmbiguityPolicy())

    def test_deterministic(self, registry):
        """Test that the same query always gives the same ranking."""
        first = score_labels(registry, "what is my budget status for food")
        for _ in range(5):
            assert score_labels(registry, "what is my budget status for food") == first

    def test_greek_query(self):
        """Test classification with the Greek table."""
        candidate = classify(load_registry("el"), "πόσο ξόδεψα αυτόν τον μήνα")
        assert candidate.intent == IntentKind.TOTAL_SPENDING


class TestFuzzyMatcher:
    """Tests for the misspelling fallback."""

    def test_levenshtein(self):
        """Test the edit distance on simple cases."""
        assert levenshtein("kitten", "sitting") == 3
        assert levenshtein("", "abc") == 3
        assert levenshtein("same", "same") == 0

    def test_misspelled_keyword(self, registry):
        """Test that a misspelling finds its intent at the fuzzy weight."""
        candidate = FuzzyMatcher().match(registry, "expendture")
        assert candidate.intent == IntentKind.TOTAL_SPENDING
        assert candidate.confidence == pytest.approx(0.6)

    def test_stop_words_only(self, registry):
        """Test that a query of stop words matches nothing."""
        assert FuzzyMatcher().match(registry, "what the how").is_unknown


class TestContextEnhancer:
    """Tests for folding conversation keywords into follow-ups."""

    def test_short_follow_up_gets_keywords(self):
        """Test that a short query gains keywords from earlier user turns."""
        window = ConversationWindow.of(user_turns("how much did i spend on groceries"))
        contextual, added = enhance_query("and last month?", window)
        assert added == ["much", "spend", "groceries"]
        assert contextual == "and last month? much spend groceries"

    def test_added_keywords_are_bounded(self):
        """Test that at most three keywords are added, however long the history."""
        window = ConversationWindow.of(user_turns(
            "show groceries spending history please",
            "compare transport budget limits today",
        ))
        _, added = enhance_query("what about it", window)
        assert len(added) == MAX_ADDED_KEYWORDS

    def test_long_query_unchanged(self):
        """Test that self-contained queries are left alone."""
        window = ConversationWindow.of(user_turns("how much did i spend on groceries"))
        query = "what is my current balance now"
        assert enhance_query(query, window) == (query, [])

    def test_assistant_turns_ignored(self):
        """Test that only the user's own words are used."""
        window = ConversationWindow.of([
            ConversationTurn(role=Role.ASSISTANT, text="total_spending groceries",
                             timestamp=datetime(2024, 3, 1)),
        ])
        assert enhance_query("and food?", window) == ("and food?", [])

    def test_no_history(self):
        """Test that no history leaves the query unchanged."""
        assert enhance_query("and food?", None) == ("and food?", [])


class TestDecomposer:
    """Tests for compound questions."""

    def test_split_fragments(self):
        """Test splitting on every conjunction."""
        fragments = split_fragments("spending and income plus loans, budgets", [" and ", " plus ", ", "])
        assert fragments == ["spending", "income", "loans", "budgets"]

    def test_compound_question(self, registry):
        """Test that both halves of a compound question are detected."""
        candidates = decompose(registry, "how much did i spend this month and compare with last month")
        assert [c.intent for c in candidates] == [IntentKind.TOTAL_SPENDING, IntentKind.COMPARE_MONTHS]
        assert all(c.confidence == 1.0 for c in candidates)

    def test_unconfident_fragments_dropped(self, registry):
        """Test that a compound query with no confident fragment yields nothing."""
        assert decompose(registry, "blah and blah") == []

    def test_secondary_trigger(self, registry):
        """Test that trigger words add a secondary intent to a single question."""
        candidates = decompose(registry, "show my loan status so i can save")
        assert candidates[0] == ClassificationCandidate(intent=IntentKind.LOAN_STATUS, confidence=1.0)
        assert ClassificationCandidate(intent=IntentKind.SAVE_MONEY, confidence=0.6) in candidates

    def test_one_candidate_per_intent(self, registry):
        """Test that repeated intents collapse to the best score."""
        candidates = decompose(registry, "how much did i spend and how much did i spend")
        assert [c.intent for c in candidates] == [IntentKind.TOTAL_SPENDING]


class TestIntentEngine:
    """Tests for the end-to-end analysis."""

    def test_analyze_normalizes(self):
        """Test that the query is trimmed and lowercased."""
        analysis = IntentEngine().analyze("  HOW MUCH did I spend?  ", "en")
        assert analysis.query == "how much did i spend?"
        assert analysis.primary.intent == IntentKind.TOTAL_SPENDING
        assert not analysis.fuzzy_used

    def test_fuzzy_fallback(self):
        """Test that misspelled queries are rescued by the fuzzy matcher."""
        analysis = IntentEngine().analyze("expendture", "en")
        assert analysis.fuzzy_used
        assert analysis.primary.intent == IntentKind.TOTAL_SPENDING
        assert analysis.primary.confidence == pytest.approx(0.6)

    def test_unknown_query(self):
        """Test that nothing recognizable gives a single UNKNOWN candidate."""
        candidates = IntentEngine().classify("zzzz qqqq", "en")
        assert candidates == [ClassificationCandidate.unknown()]

    def test_unsupported_locale_falls_back(self):
        """Test that an unsupported locale uses the default."""
        analysis = IntentEngine().analyze("how much did i spend", "fr")
        assert analysis.locale == "en"

    def test_history_is_windowed(self):
        """Test that context comes from history and is reported."""
        engine = IntentEngine(ChatSettings(history_window=1))
        history = user_turns("show my loan status", "how much did i spend on groceries")
        analysis = engine.analyze("and food?", "en", history)
        assert analysis.added_keywords == ("much", "spend", "groceries")

    def test_mixed_naive_and_aware_history(self):
        """Test that naive and timezone-aware turns can share one history."""
        engine = IntentEngine(ChatSettings(history_window=1))
        history = [
            ConversationTurn(role=Role.USER, text="show my loan status",
                             timestamp=datetime(2024, 3, 1, 9, tzinfo=timezone.utc)),
            ConversationTurn(role=Role.USER, text="what is my balance", timestamp=datetime(2024, 3, 1, 10)),
            ConversationTurn(role=Role.USER, text="how much did i spend on groceries"),
        ]
        analysis = engine.analyze("and food?", "en", history)
        assert analysis.added_keywords == ("much", "spend", "groceries")

    def test_history_not_mutated(self):
        """Test that the caller's history list is left as it was."""
        history = user_turns("how much did i spend on groceries")
        before = list(history)
        IntentEngine().analyze("and food?", "en", history)
        assert history == before
