"""
Tests for finchat

Test strategy:
1. Unit tests for individual components (models, classifier, simulators)
2. Integration tests for flows (with the in-memory data source)
3. No real API calls in tests (fakes stand in for Google Sheets)
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from uuid import uuid4

from pydantic import ValidationError

from finchat.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finchat.models.conversation import ConversationTurn, ConversationWindow, Role
from finchat.models.finance import (
    Budget,
    Loan,
    LoanPosition,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from finchat.models.intent import ClassificationCandidate, IntentKind
from finchat.models.response import ChatResponse, ResponseType, ResultBundle


class TestFinanceModels:
    """Tests for the financial record models."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        t = Transaction(
            user_id="u1",
            type=TransactionType.EXPENSE,
            amount=42.5,
            category="Groceries",
            date=date(2024, 3, 5),
        )
        assert t.amount == 42.5
        assert t.category == "groceries"
        assert t.is_expense

    def test_transaction_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            Transaction(user_id="u1", type="expense", amount=-1, date=date(2024, 3, 5))

    def test_transaction_is_frozen(self):
        """Test that fetched records cannot be mutated."""
        t = Transaction(user_id="u1", type="income", amount=10, date=date(2024, 3, 5))
        with pytest.raises(ValidationError):
            t.amount = 20

    def test_savings_goal_progress(self):
        """Test goal remaining amount and progress."""
        goal = SavingsGoal(user_id="u1", name="Car", target_amount=1000, current_amount=250)
        assert goal.remaining == 750
        assert goal.progress_percent == 25

    def test_savings_goal_zero_target(self):
        """Test that a zero target does not divide by zero."""
        goal = SavingsGoal(user_id="u1", name="Empty", target_amount=0)
        assert goal.progress_percent == 0.0

    def test_budget_progress(self):
        """Test budget progress percentage."""
        budget = Budget(user_id="u1", category="dining", amount=200, spent_amount=250)
        assert budget.progress_percent == 125

    def test_loan_position_defaults_payment(self):
        """Test that a loan without an installment uses the default payment."""
        loan = Loan(user_id="u1", remaining_amount=5000, interest_rate=12)
        position = LoanPosition.from_loan(loan, default_payment=100, extra=50)
        assert position.periodic_payment == 150
        assert position.monthly_rate == pytest.approx(0.01)


class TestConversationModels:
    """Tests for conversation history."""

    def test_window_keeps_newest_turns(self):
        """Test that only the newest turns are kept, oldest first."""
        start = datetime(2024, 1, 1, 12, 0)
        turns = [
            ConversationTurn(role=Role.USER, text=f"q{i}", timestamp=start + timedelta(minutes=i))
            for i in range(10)
        ]
        window = ConversationWindow.of(reversed(turns), size=3)
        assert [t.text for t in window.turns] == ["q7", "q8", "q9"]
        assert len(window) == 3

    def test_window_rejects_unordered_turns(self):
        """Test that the constructor validates chronological order."""
        later = ConversationTurn(role=Role.USER, text="b", timestamp=datetime(2024, 1, 2))
        earlier = ConversationTurn(role=Role.USER, text="a", timestamp=datetime(2024, 1, 1))
        with pytest.raises(ValidationError):
            ConversationWindow(turns=(later, earlier))

    def test_naive_timestamps_are_utc(self):
        """Test that naive timestamps are read as UTC and sort with aware ones."""
        naive = ConversationTurn(role=Role.USER, text="a", timestamp=datetime(2024, 1, 1, 12))
        assert naive.timestamp.tzinfo == timezone.utc
        assert ConversationTurn(role=Role.USER, text="b").timestamp.tzinfo == timezone.utc

        aware = ConversationTurn(
            role=Role.USER, text="c", timestamp=datetime(2024, 1, 1, 11, tzinfo=timezone.utc),
        )
        window = ConversationWindow.of([naive, aware])
        assert [t.text for t in window.turns] == ["c", "a"]

    def test_empty_history(self):
        """Test that no history gives an empty window."""
        assert ConversationWindow.of(None).is_empty


class TestIntentModels:
    """Tests for intents and responses."""

    def test_parse_unknown_label(self):
        """Test that unrecognized labels map to UNKNOWN."""
        assert IntentKind.parse("not_a_label") is IntentKind.UNKNOWN
        assert IntentKind.parse("loan_status") is IntentKind.LOAN_STATUS

    def test_routable_excludes_unknown(self):
        """Test that UNKNOWN is not a routable intent."""
        assert IntentKind.UNKNOWN not in IntentKind.routable()
        assert len(IntentKind.routable()) == 37

    def test_candidate_confidence_bounds(self):
        """Test that confidence must be between 0 and 1."""
        with pytest.raises(ValidationError):
            ClassificationCandidate(intent=IntentKind.HELP, confidence=1.5)

    def test_error_bundle(self):
        """Test ResultBundle.error."""
        bundle = ResultBundle.error(IntentKind.LOAN_STATUS, "en", "sheet offline")
        assert bundle.success is False
        assert bundle.response_type == ResponseType.ERROR
        assert bundle.error_message == "sheet offline"

    def test_combined_response_type_prefers_warning(self):
        """Test that a warning among several bundles wins."""
        response = ChatResponse(
            query="q",
            bundles=[
                ResultBundle(intent=IntentKind.TOTAL_SPENDING, response_type=ResponseType.TEXT),
                ResultBundle(intent=IntentKind.BUDGET_STATUS, response_type=ResponseType.WARNING),
            ],
        )
        assert response.response_type == ResponseType.WARNING

    def test_combined_response_type_defaults_to_insight(self):
        """Test that several non-warning bundles combine into an insight."""
        response = ChatResponse(
            query="q",
            bundles=[
                ResultBundle(intent=IntentKind.TOTAL_SPENDING),
                ResultBundle(intent=IntentKind.COMPARE_MONTHS, action_link="/transactions"),
            ],
        )
        assert response.response_type == ResponseType.INSIGHT
        assert response.action_link == "/transactions"

    def test_primary_intent_without_candidates(self):
        """Test that an empty response reports UNKNOWN."""
        assert ChatResponse(query="q").primary_intent is IntentKind.UNKNOWN


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.QUERY_RECEIVED,
            description="Query received",
        )
        assert event.event_type == AuditEventType.QUERY_RECEIVED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.HANDLER_EXECUTED,
            description="Handler executed",
            details={"intent": "loan_status"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "handler_executed"
        assert log_dict["details"]["intent"] == "loan_status"

    def test_query_received_does_not_log_text(self):
        """Test that only the query length is recorded."""
        event = AuditEventBuilder.query_received("en", 42, uuid4())
        assert event.details == {"locale": "en", "query_length": 42}

    def test_audit_event_builder_intents_detected(self):
        """Test AuditEventBuilder.intents_detected."""
        correlation_id = uuid4()
        event = AuditEventBuilder.intents_detected(
            candidates=[("total_spending", 1.0), ("compare_months", 0.6)],
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.INTENTS_DETECTED
        assert event.correlation_id == correlation_id
        assert event.details["candidates"][1] == {"intent": "compare_months", "confidence": 0.6}
