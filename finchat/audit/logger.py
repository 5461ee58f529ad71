"""
Audit Logger

DESIGN DECISION: Every query leaves a trail in the structured log:
what was asked (length only), which intents were detected with what
confidence, which handlers ran and which failed. All events for one
query share a correlation id.

The audit logger never raises. A logging failure must not turn a
correct answer into an error.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from finchat.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """Central audit logging service."""

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or structlog.get_logger("finchat.audit")
        self._events: list[AuditEvent] = []
        self._keep_events = False

    def record_events(self, enabled: bool = True) -> None:
        """Keep emitted events in memory (used by tests and the demo UI)."""
        self._keep_events = enabled

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the structured logger itself failed.
        """
        if self._keep_events:
            self._events.append(event)

        log_dict = event.to_log_dict()
        try:
            if event.severity == AuditSeverity.ERROR:
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            return False
        return True

    async def log_query_received(
        self,
        locale: str,
        query_length: int,
        correlation_id: UUID,
    ) -> None:
        """Log an incoming question."""
        await self.log(AuditEventBuilder.query_received(
            locale=locale,
            query_length=query_length,
            correlation_id=correlation_id,
        ))

    async def log_context_enhanced(
        self,
        added_keywords: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log context keywords folded into a short follow-up."""
        await self.log(AuditEventBuilder.context_enhanced(
            added_keywords=added_keywords,
            correlation_id=correlation_id,
        ))

    async def log_intents_detected(
        self,
        candidates: list[tuple[str, float]],
        correlation_id: UUID,
    ) -> None:
        """Log the ranked intents for a question."""
        await self.log(AuditEventBuilder.intents_detected(
            candidates=candidates,
            correlation_id=correlation_id,
        ))

    async def log_fuzzy_fallback(
        self,
        intent: str,
        confidence: float,
        correlation_id: UUID,
    ) -> None:
        """Log an accepted fuzzy match."""
        await self.log(AuditEventBuilder.fuzzy_fallback_used(
            intent=intent,
            confidence=confidence,
            correlation_id=correlation_id,
        ))

    async def log_handler_executed(
        self,
        intent: str,
        response_type: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.handler_executed(
            intent=intent,
            response_type=response_type,
            correlation_id=correlation_id,
        ))

    async def log_handler_failed(
        self,
        intent: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.handler_failed(
            intent=intent,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_data_source_error(
        self,
        source: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed fetch from the data source."""
        await self.log(AuditEventBuilder.data_source_error(
            source=source,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this once per incoming question and pass it through every step.
    """
    return uuid4()
