"""
Data Models Package

This package contains all Pydantic models used in finchat.
All data flowing through the system must conform to these schemas.
"""

from finchat.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finchat.models.conversation import (
    ConversationTurn,
    ConversationWindow,
    Role,
)
from finchat.models.finance import (
    AmortizationResult,
    Budget,
    GrowthProjection,
    Loan,
    LoanPosition,
    SavingsGoal,
    Transaction,
    TransactionType,
)
from finchat.models.intent import ClassificationCandidate, IntentKind
from finchat.models.response import ChatResponse, ResponseType, ResultBundle

__all__ = [
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Conversation
    "ConversationTurn",
    "ConversationWindow",
    "Role",
    # Finance records and simulation values
    "AmortizationResult",
    "Budget",
    "GrowthProjection",
    "Loan",
    "LoanPosition",
    "SavingsGoal",
    "Transaction",
    "TransactionType",
    # Intents and responses
    "ChatResponse",
    "ClassificationCandidate",
    "IntentKind",
    "ResponseType",
    "ResultBundle",
]
