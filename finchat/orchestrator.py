"""
Main Orchestrator for finchat

This module ties together the intent engine, the response router and the
audit trail, and defines the end-to-end chat flow:
question → normalize → context → decompose/classify → route → bundles

DESIGN DECISION: The orchestrator enforces the boundaries:
- No answer without a data lookup (handlers only read stored records)
- One failing intent never drops the others in a compound question
- Every step is audited under one correlation id

This is the "glue" that keeps the system well-behaved even when the
data source is not.
"""

from datetime import date, timedelta
from typing import Callable, Optional
from uuid import UUID

import structlog

from finchat.audit import AuditLogger, create_correlation_id
from finchat.config import ChatSettings, get_settings
from finchat.intents.engine import History, IntentEngine
from finchat.models.finance import Budget, Loan, SavingsGoal, Transaction
from finchat.models.intent import ClassificationCandidate
from finchat.models.response import ChatResponse, ResultBundle
from finchat.routing import ResponseRouter
from finchat.services.storage import (
    DataSourceError,
    FinanceDataSource,
    GoogleSheetsFinanceDataSource,
    InMemoryFinanceDataSource,
)
from finchat.validation import check_registry_coverage


logger = structlog.get_logger(__name__)

MAX_SUGGESTIONS = 8
RECENT_ACTIVITY_DAYS = 30


class ChatFlow:
    """
    Orchestrates answering one chat message.

    Flow:
    1. Analyze → normalize, fold in context, split compound questions
    2. Fallback → fuzzy match when nothing (or little) matched
    3. Route → run the handler for each of the top intents
    4. Combine → one ChatResponse with a bundle per intent

    Handler failures become error bundles for that intent only.
    """

    def __init__(
        self,
        engine: Optional[IntentEngine] = None,
        router: Optional[ResponseRouter] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[ChatSettings] = None,
        data_source: Optional[FinanceDataSource] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self._settings = settings or ChatSettings()
        self._engine = engine or IntentEngine(self._settings)
        self._data_source = data_source or InMemoryFinanceDataSource()
        self._router = router or ResponseRouter(self._data_source, today=today, settings=self._settings)
        self._audit_logger = audit_logger or AuditLogger()
        self._today = today or date.today

    @property
    def engine(self) -> IntentEngine:
        return self._engine

    async def process(
        self,
        user_id: str,
        query: str,
        locale: Optional[str] = None,
        history: History = None,
        correlation_id: Optional[UUID] = None,
    ) -> ChatResponse:
        """
        Answer a chat message.

        Returns:
            The ranked intents and one ResultBundle per answered intent.
            Never raises for data-source failures.
        """
        correlation_id = correlation_id or create_correlation_id()

        analysis = self._engine.analyze(query, locale, history)
        locale = analysis.locale

        await self._audit_logger.log_query_received(
            locale=locale,
            query_length=len(query),
            correlation_id=correlation_id,
        )
        if analysis.added_keywords:
            await self._audit_logger.log_context_enhanced(
                added_keywords=list(analysis.added_keywords),
                correlation_id=correlation_id,
            )
        if analysis.fuzzy_used:
            await self._audit_logger.log_fuzzy_fallback(
                intent=analysis.primary.intent.value,
                confidence=analysis.primary.confidence,
                correlation_id=correlation_id,
            )
        await self._audit_logger.log_intents_detected(
            candidates=[(c.intent.value, c.confidence) for c in analysis.candidates],
            correlation_id=correlation_id,
        )

        selected = list(analysis.candidates[: self._settings.max_combined_intents])
        bundles = []
        for candidate in selected:
            bundles.append(
                await self._answer(candidate, user_id, analysis.query, locale, correlation_id)
            )

        return ChatResponse(
            query_id=correlation_id,
            query=query,
            locale=locale,
            candidates=list(analysis.candidates),
            bundles=bundles,
        )

    async def _answer(
        self,
        candidate: ClassificationCandidate,
        user_id: str,
        query: str,
        locale: str,
        correlation_id: UUID,
    ) -> ResultBundle:
        intent = candidate.intent
        try:
            bundle = await self._router.route(intent, user_id, query, locale)
        except DataSourceError as e:
            await self._audit_logger.log_data_source_error(
                source=type(self._data_source).__name__,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return ResultBundle.error(intent, locale, f"Could not read your financial data: {e}")
        except Exception as e:
            await self._audit_logger.log_handler_failed(
                intent=intent.value,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            logger.exception("handler_failed", intent=intent.value)
            return ResultBundle.error(intent, locale, f"Could not answer '{intent.value}': {e}")

        await self._audit_logger.log_handler_executed(
            intent=intent.value,
            response_type=bundle.response_type.value,
            correlation_id=correlation_id,
        )
        return bundle

    async def suggested_questions(self, user_id: str, locale: Optional[str] = None) -> list[str]:
        """
        Example questions tailored to what the user actually has on file.

        Falls back to the generic list if the data source cannot be read.
        """
        locale = self._engine.resolve_locale(locale)
        questions = self._engine.registry(locale).suggested_questions

        try:
            today = self._today()
            recent = await self._data_source.fetch_transactions(
                user_id, today - timedelta(days=RECENT_ACTIVITY_DAYS), today
            )
            loans = [loan for loan in await self._data_source.fetch_loans(user_id) if not loan.is_settled]
            budgets = [b for b in await self._data_source.fetch_budgets(user_id) if b.is_active]
        except DataSourceError as e:
            await self._audit_logger.log_data_source_error(
                source=type(self._data_source).__name__,
                error_message=str(e),
            )
            return list(questions.get("fallback", ()))

        suggestions = list(questions.get("base", ()))
        if recent:
            suggestions.extend(questions.get("transactions", ()))
        if loans:
            suggestions.extend(questions.get("loans", ()))
        if budgets:
            suggestions.extend(questions.get("budgets", ()))
        suggestions.extend(questions.get("general", ()))
        return suggestions[:MAX_SUGGESTIONS]


def demo_data_source(user_id: str = "demo", today: Optional[date] = None) -> InMemoryFinanceDataSource:
    """A small household with a few months of history, for the demo app."""
    today = today or date.today()
    first = today.replace(day=1)

    def day(months_back: int, day_of_month: int) -> date:
        month_first = first
        for _ in range(months_back):
            month_first = (month_first - timedelta(days=1)).replace(day=1)
        return month_first.replace(day=min(day_of_month, 28))

    transactions = []
    for back in range(0, 6):
        last_day = today.day if back == 0 else 28
        transactions.append(Transaction(
            user_id=user_id, type="income", amount=3200, category="salary",
            description="Salary", date=day(back, 1), paid_by="Alex",
        ))
        for d, amount, category, description, payer in (
            (2, 950, "rent", "Rent", "Alex"),
            (4, 120 + back * 5, "groceries", "Supermarket", "Sam"),
            (6, 15.99, "entertainment", "Streaming", "Sam"),
            (9, 60, "transport", "Fuel", "Alex"),
            (12, 85, "utilities", "Electricity", "Alex"),
            (15, 140, "groceries", "Supermarket", "Sam"),
            (18, 45, "dining", "Dinner out", "Alex"),
            (22, 39.99, "bills", "Phone plan", "Sam"),
        ):
            if d <= last_day:
                transactions.append(Transaction(
                    user_id=user_id, type="expense", amount=amount, category=category,
                    description=description, date=day(back, d), paid_by=payer,
                ))

    loans = [
        Loan(user_id=user_id, description="Car loan", amount=15000, remaining_amount=8200,
             interest_rate=6.5, installment_amount=310, next_payment_date=first + timedelta(days=40)),
        Loan(user_id=user_id, description="Credit card", amount=3000, remaining_amount=1900,
             interest_rate=19.9, installment_amount=120, next_payment_date=today + timedelta(days=5)),
    ]
    goals = [
        SavingsGoal(user_id=user_id, name="Emergency fund", target_amount=10000, current_amount=4200,
                    target_date=today + timedelta(days=365)),
        SavingsGoal(user_id=user_id, name="Holiday", target_amount=2500, current_amount=900,
                    target_date=today + timedelta(days=150)),
    ]
    budgets = [
        Budget(user_id=user_id, category="groceries", amount=500, spent_amount=420),
        Budget(user_id=user_id, category="dining", amount=150, spent_amount=165),
        Budget(user_id=user_id, category="entertainment", amount=80, spent_amount=16),
    ]
    return InMemoryFinanceDataSource(transactions, loans, goals, budgets)


def create_app_components(
    data_source: Optional[FinanceDataSource] = None,
    settings: Optional[ChatSettings] = None,
) -> tuple[ChatFlow, FinanceDataSource, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        data_source: Data source to answer from. When omitted, the app
                     settings decide: Google Sheets, or the demo data.
        settings: Chat settings (loaded from the environment if omitted)

    Returns:
        (chat_flow, data_source, audit_logger)

    Raises:
        RegistryError: If a pattern table is missing intents or cannot be loaded
    """
    settings = settings or get_settings().chat
    check_registry_coverage(data_dir=settings.patterns_dir)
    audit_logger = AuditLogger()

    if data_source is None:
        if get_settings().app.data_source == "sheets":
            try:
                data_source = GoogleSheetsFinanceDataSource()
            except Exception as e:
                # Sheets not configured - continue with demo data
                logger.warning("sheets_not_configured", error=str(e))
                data_source = demo_data_source()
        else:
            data_source = demo_data_source()

    chat_flow = ChatFlow(
        engine=IntentEngine(settings),
        audit_logger=audit_logger,
        settings=settings,
        data_source=data_source,
    )
    return chat_flow, data_source, audit_logger
