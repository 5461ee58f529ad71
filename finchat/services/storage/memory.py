"""In-memory data source for tests and the demo app."""

from datetime import date
from typing import Iterable, Optional

from finchat.models.finance import Budget, Loan, SavingsGoal, Transaction
from finchat.services.storage.interface import FinanceDataSource


class InMemoryFinanceDataSource(FinanceDataSource):
    """
    Serves records held in plain lists.

    Records are frozen models, so handing out the stored instances is safe.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        loans: Iterable[Loan] = (),
        goals: Iterable[SavingsGoal] = (),
        budgets: Iterable[Budget] = (),
    ):
        self._transactions = list(transactions)
        self._loans = list(loans)
        self._goals = list(goals)
        self._budgets = list(budgets)

    async def fetch_transactions(
        self,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        return [
            t for t in self._transactions
            if t.user_id == user_id
            and (date_from is None or t.date >= date_from)
            and (date_to is None or t.date <= date_to)
        ]

    async def fetch_loans(self, user_id: str) -> list[Loan]:
        return [loan for loan in self._loans if loan.user_id == user_id]

    async def fetch_savings_goals(self, user_id: str) -> list[SavingsGoal]:
        return [goal for goal in self._goals if goal.user_id == user_id]

    async def fetch_budgets(self, user_id: str) -> list[Budget]:
        return [budget for budget in self._budgets if budget.user_id == user_id]
