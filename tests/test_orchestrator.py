"""
Integration tests for the chat flow, run against in-memory data.
"""

import asyncio
import json
from datetime import date, datetime

import pytest

from finchat.audit import AuditLogger
from finchat.config import ChatSettings
from finchat.intents.registry import RegistryError, load_registry
from finchat.models.audit import AuditEventType
from finchat.models.conversation import ConversationTurn, Role
from finchat.models.intent import IntentKind
from finchat.models.response import ResponseType
from finchat.orchestrator import (
    MAX_SUGGESTIONS,
    ChatFlow,
    create_app_components,
    demo_data_source,
)
from finchat.services.storage import (
    DataSourceConnectionError,
    FinanceDataSource,
    InMemoryFinanceDataSource,
)


class UnreachableSource(FinanceDataSource):
    """Every read fails the way an offline spreadsheet would."""

    async def fetch_transactions(self, user_id, date_from=None, date_to=None):
        raise DataSourceConnectionError("spreadsheet offline")

    async def fetch_loans(self, user_id):
        raise DataSourceConnectionError("spreadsheet offline")

    async def fetch_savings_goals(self, user_id):
        raise DataSourceConnectionError("spreadsheet offline")

    async def fetch_budgets(self, user_id):
        raise DataSourceConnectionError("spreadsheet offline")


class BrokenSource(InMemoryFinanceDataSource):
    """Transactions blow up with a programming error; everything else works."""

    async def fetch_transactions(self, user_id, date_from=None, date_to=None):
        raise RuntimeError("unexpected column")


@pytest.fixture
def audit_logger():
    audit = AuditLogger()
    audit.record_events()
    return audit


@pytest.fixture
def flow(household, today, audit_logger):
    return ChatFlow(audit_logger=audit_logger, data_source=household, today=today)


def event_types(audit_logger):
    return [event.event_type for event in audit_logger.events]


class TestChatFlow:
    """Tests for answering chat messages end to end."""

    def test_compound_question(self, flow):
        """Test that both intents of a compound question are answered."""
        response = asyncio.run(flow.process(
            "u1", "How much did I spend this month and compare with last month", "en",
        ))
        assert [b.intent for b in response.bundles] == [IntentKind.TOTAL_SPENDING, IntentKind.COMPARE_MONTHS]
        assert response.bundles[0].data["total"] == 1315
        assert response.bundles[1].data["last_month"] == 1165
        assert response.response_type == ResponseType.INSIGHT

    def test_answers_are_capped(self, household, today):
        """Test that only the configured number of intents is answered."""
        flow = ChatFlow(settings=ChatSettings(max_combined_intents=1), data_source=household, today=today)
        response = asyncio.run(flow.process(
            "u1", "how much did i spend this month and compare with last month", "en",
        ))
        assert len(response.candidates) == 2
        assert len(response.bundles) == 1

    def test_audit_trail_shares_correlation_id(self, flow, audit_logger):
        """Test that every event of one request carries its correlation id."""
        response = asyncio.run(flow.process("u1", "what is my loan status", "en"))
        assert event_types(audit_logger) == [
            AuditEventType.QUERY_RECEIVED,
            AuditEventType.INTENTS_DETECTED,
            AuditEventType.HANDLER_EXECUTED,
        ]
        assert {event.correlation_id for event in audit_logger.events} == {response.query_id}

    def test_query_text_not_audited(self, flow, audit_logger):
        """Test that the question itself never reaches the audit trail."""
        asyncio.run(flow.process("u1", "how much did i spend on groceries", "en"))
        received = audit_logger.events[0]
        assert received.details == {"locale": "en", "query_length": 33}

    def test_fuzzy_fallback_audited(self, flow, audit_logger):
        """Test that a misspelled question is answered and the fallback recorded."""
        response = asyncio.run(flow.process("u1", "expendture", "en"))
        assert response.primary_intent == IntentKind.TOTAL_SPENDING
        assert AuditEventType.FUZZY_FALLBACK_USED in event_types(audit_logger)

    def test_context_audited(self, flow, audit_logger):
        """Test that folding in history is recorded."""
        history = [ConversationTurn(
            role=Role.USER, text="how much did i spend on groceries", timestamp=datetime(2024, 3, 15, 9),
        )]
        asyncio.run(flow.process("u1", "and food?", "en", history=history))
        assert AuditEventType.CONTEXT_ENHANCED in event_types(audit_logger)

    def test_unknown_question_gets_clarification(self, flow):
        """Test that an unrecognized question still gets a helpful bundle."""
        response = asyncio.run(flow.process("u1", "zzzz qqqq", "en"))
        assert response.primary_intent == IntentKind.UNKNOWN
        assert response.bundles[0].response_type == ResponseType.SUGGESTION

    def test_unsupported_locale(self, flow):
        """Test that an unsupported locale is answered in the default one."""
        response = asyncio.run(flow.process("u1", "what is my loan status", "fr"))
        assert response.locale == "en"
        assert response.bundles[0].locale == "en"


class TestFailureHandling:
    """Tests for data-source and handler failures."""

    def test_data_source_failure_becomes_error_bundle(self, today, audit_logger):
        """Test that an unreachable source yields an error bundle, not an exception."""
        flow = ChatFlow(audit_logger=audit_logger, data_source=UnreachableSource(), today=today)
        response = asyncio.run(flow.process("u1", "what is my loan status", "en"))
        bundle = response.bundles[0]
        assert not bundle.success
        assert bundle.response_type == ResponseType.ERROR
        assert "spreadsheet offline" in bundle.error_message
        assert AuditEventType.DATA_SOURCE_ERROR in event_types(audit_logger)

    def test_one_failure_keeps_other_answers(self, today, audit_logger):
        """Test that a failing intent does not drop the other one."""
        flow = ChatFlow(audit_logger=audit_logger, data_source=BrokenSource(), today=today)
        response = asyncio.run(flow.process("u1", "how much did i spend and what is my loan status", "en"))
        by_intent = {b.intent: b for b in response.bundles}
        assert not by_intent[IntentKind.TOTAL_SPENDING].success
        assert by_intent[IntentKind.LOAN_STATUS].success
        assert AuditEventType.HANDLER_FAILED in event_types(audit_logger)


class TestSuggestedQuestions:
    """Tests for the tailored example questions."""

    def test_tailored_to_records(self, flow):
        """Test that questions follow what the user has on file."""
        suggestions = asyncio.run(flow.suggested_questions("u1", "en"))
        questions = load_registry("en").suggested_questions
        assert suggestions[:len(questions["base"])] == list(questions["base"])
        assert len(suggestions) <= MAX_SUGGESTIONS

    def test_no_records(self, today):
        """Test that a user without records gets base and general questions."""
        flow = ChatFlow(data_source=InMemoryFinanceDataSource(), today=today)
        questions = load_registry("en").suggested_questions
        expected = (list(questions["base"]) + list(questions["general"]))[:MAX_SUGGESTIONS]
        assert asyncio.run(flow.suggested_questions("nobody", "en")) == expected

    def test_unreachable_source_falls_back(self, today):
        """Test the generic list when the source cannot be read."""
        flow = ChatFlow(data_source=UnreachableSource(), today=today)
        questions = load_registry("en").suggested_questions
        assert asyncio.run(flow.suggested_questions("u1")) == list(questions["fallback"])


class TestAppComponents:
    """Tests for wiring the application together."""

    def test_explicit_data_source(self, household):
        """Test that a given data source is used as is."""
        chat_flow, data_source, audit_logger = create_app_components(data_source=household)
        assert data_source is household
        assert isinstance(chat_flow, ChatFlow)
        assert isinstance(audit_logger, AuditLogger)

    def test_demo_data(self):
        """Test that the demo household has something to talk about."""
        source = demo_data_source(today=date(2024, 3, 15))
        assert asyncio.run(source.fetch_transactions("demo"))
        assert len(asyncio.run(source.fetch_loans("demo"))) == 2

    def test_incomplete_patterns_refuse_to_start(self, household, tmp_path):
        """Test that startup fails when a locale is missing intent patterns."""
        for locale in ("en", "el"):
            table = {"version": "1", "locale": locale, "intents": {"help": ["help"]}}
            (tmp_path / f"patterns.{locale}.json").write_text(json.dumps(table), encoding="utf-8")
        with pytest.raises(RegistryError):
            create_app_components(data_source=household, settings=ChatSettings(patterns_dir=str(tmp_path)))
