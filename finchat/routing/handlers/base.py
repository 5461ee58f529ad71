"""
Shared plumbing for intent handlers.

Every handler is a coroutine `(user_id, query, locale) -> ResultBundle`.
Handlers only read from the data source and never keep state between
calls; "today" is injected so answers are reproducible in tests.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import date
from typing import Any, Awaitable, Callable, Iterable, Optional

from finchat.config.settings import ChatSettings
from finchat.intents.extraction import month_start, shift_months
from finchat.intents.registry import PatternRegistry, load_registry
from finchat.models.finance import Budget, Loan, SavingsGoal, Transaction, TransactionType
from finchat.models.intent import IntentKind
from finchat.models.response import ResponseType, ResultBundle
from finchat.services.storage.interface import FinanceDataSource


Handler = Callable[[str, str, str], Awaitable[ResultBundle]]


def money(value: float) -> float:
    """Round a currency amount for output."""
    return round(value, 2)


def percent(part: float, whole: float) -> float:
    """part / whole as a percentage; 0 when there is nothing to divide by."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def total(transactions: Iterable[Transaction]) -> float:
    return sum(t.amount for t in transactions)


def by_category(transactions: Iterable[Transaction]) -> list[tuple[str, float]]:
    """Category totals, largest first."""
    totals: dict[str, float] = defaultdict(float)
    for t in transactions:
        totals[t.category] += t.amount
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def by_month(transactions: Iterable[Transaction]) -> dict[str, float]:
    """Totals keyed by "YYYY-MM"."""
    totals: dict[str, float] = defaultdict(float)
    for t in transactions:
        totals[t.date.strftime("%Y-%m")] += t.amount
    return dict(totals)


def in_category(transaction: Transaction, category: str) -> bool:
    return category.lower() in transaction.category.lower()


class HandlerSupport(ABC):
    """Data access and bundle helpers shared by all handler groups."""

    def __init__(
        self,
        data_source: FinanceDataSource,
        today: Optional[Callable[[], date]] = None,
        settings: Optional[ChatSettings] = None,
    ):
        self.data = data_source
        self._today = today or date.today
        self.settings = settings or ChatSettings()

    def today(self) -> date:
        return self._today()

    def registry(self, locale: str) -> PatternRegistry:
        return load_registry(locale, self.settings.patterns_dir)

    # -------------------------------------------------------------------------
    # Data access
    # -------------------------------------------------------------------------

    async def transactions(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        kind: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        records = await self.data.fetch_transactions(user_id, start, end)
        if kind is None:
            return records
        return [t for t in records if t.type == kind]

    async def expenses(self, user_id: str, start: Optional[date] = None, end: Optional[date] = None) -> list[Transaction]:
        return await self.transactions(user_id, start, end, TransactionType.EXPENSE)

    async def income(self, user_id: str, start: Optional[date] = None, end: Optional[date] = None) -> list[Transaction]:
        return await self.transactions(user_id, start, end, TransactionType.INCOME)

    async def month_to_date(self, user_id: str) -> tuple[list[Transaction], list[Transaction]]:
        """(income, expenses) from the first of the month to today."""
        today = self.today()
        records = await self.transactions(user_id, month_start(today), today)
        income = [t for t in records if t.type == TransactionType.INCOME]
        expenses = [t for t in records if t.type == TransactionType.EXPENSE]
        return income, expenses

    async def previous_month_totals(self, user_id: str, months: int) -> list[float]:
        """Expense totals of the `months` complete months before this one, oldest first."""
        today = self.today()
        start = shift_months(today, -months)
        end = shift_months(today, 0)
        records = await self.expenses(user_id, start, end)
        monthly = by_month(t for t in records if t.date < end)
        return [
            monthly.get(shift_months(today, offset).strftime("%Y-%m"), 0.0)
            for offset in range(-months, 0)
        ]

    async def active_loans(self, user_id: str) -> list[Loan]:
        return [loan for loan in await self.data.fetch_loans(user_id) if not loan.is_settled]

    async def open_goals(self, user_id: str) -> list[SavingsGoal]:
        return [goal for goal in await self.data.fetch_savings_goals(user_id) if not goal.is_achieved]

    async def saved_total(self, user_id: str) -> float:
        """Money already put aside across all savings goals."""
        return sum(goal.current_amount for goal in await self.data.fetch_savings_goals(user_id))

    async def active_budgets(self, user_id: str) -> list[Budget]:
        return [budget for budget in await self.data.fetch_budgets(user_id) if budget.is_active]

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    @staticmethod
    def bundle(
        intent: IntentKind,
        locale: str,
        data: dict[str, Any],
        response_type: ResponseType = ResponseType.TEXT,
        action_link: Optional[str] = None,
    ) -> ResultBundle:
        return ResultBundle(
            intent=intent,
            locale=locale,
            response_type=response_type,
            data=data,
            action_link=action_link,
        )

    @abstractmethod
    def handlers(self) -> dict[IntentKind, Handler]:
        """Intent -> coroutine for every intent this group answers."""
        pass
