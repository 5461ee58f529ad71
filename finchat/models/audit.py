"""
Audit Models for finchat

Every step of answering a question is logged as an event:
1. What the user asked
2. How the question was interpreted (intents and confidences)
3. Which handlers ran and whether they failed

DESIGN DECISION: Events are written to the structured log only.
The assistant is read-only, so there is no audit store to append to.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Interpretation
    QUERY_RECEIVED = "query_received"
    CONTEXT_ENHANCED = "context_enhanced"
    INTENTS_DETECTED = "intents_detected"
    FUZZY_FALLBACK_USED = "fuzzy_fallback_used"

    # Answering
    HANDLER_EXECUTED = "handler_executed"
    HANDLER_FAILED = "handler_failed"

    # Data source
    DATA_SOURCE_ERROR = "data_source_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Correlation - all events for one query share this id
    correlation_id: Optional[UUID] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.query_received("en", 42, correlation_id)
        event = AuditEventBuilder.handler_failed("loan_status", "timeout", correlation_id)
    """

    @staticmethod
    def query_received(
        locale: str,
        query_length: int,
        correlation_id: UUID
    ) -> AuditEvent:
        # Only the length is logged; question text can carry personal details
        return AuditEvent(
            event_type=AuditEventType.QUERY_RECEIVED,
            correlation_id=correlation_id,
            description=f"Query received ({locale})",
            details={
                "locale": locale,
                "query_length": query_length,
            },
        )

    @staticmethod
    def context_enhanced(
        added_keywords: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTEXT_ENHANCED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Query enhanced with {len(added_keywords)} context keywords",
            details={"added_keywords": added_keywords},
        )

    @staticmethod
    def intents_detected(
        candidates: list[tuple[str, float]],
        correlation_id: UUID
    ) -> AuditEvent:
        top = candidates[0][0] if candidates else "unknown"
        return AuditEvent(
            event_type=AuditEventType.INTENTS_DETECTED,
            correlation_id=correlation_id,
            description=f"Detected {len(candidates)} intent(s), primary: {top}",
            details={
                "candidates": [
                    {"intent": intent, "confidence": round(confidence, 3)}
                    for intent, confidence in candidates
                ],
            },
        )

    @staticmethod
    def fuzzy_fallback_used(
        intent: str,
        confidence: float,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FUZZY_FALLBACK_USED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Fuzzy match accepted: {intent} at {confidence:.0%}",
            details={"intent": intent, "confidence": confidence},
        )

    @staticmethod
    def handler_executed(
        intent: str,
        response_type: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HANDLER_EXECUTED,
            correlation_id=correlation_id,
            description=f"Handler executed: {intent}",
            details={"intent": intent, "response_type": response_type},
        )

    @staticmethod
    def handler_failed(
        intent: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.HANDLER_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Handler failed: {intent}",
            error_message=error_message,
            details={"intent": intent},
        )

    @staticmethod
    def data_source_error(
        source: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_SOURCE_ERROR,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Data source error: {source}",
            error_message=error_message,
            details={"source": source},
        )

