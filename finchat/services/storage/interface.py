"""
Abstract Finance Data Source

DESIGN DECISION: The assistant reads household data through an abstract
interface. This allows us to:
1. Back the assistant with Google Sheets today and a database later
2. Use in-memory data for testing and demos
3. Keep every handler decoupled from where the numbers live

The interface is read-only on purpose. Answering a question never
changes the user's data.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from finchat.exceptions import FinchatError
from finchat.models.finance import Budget, Loan, SavingsGoal, Transaction


class FinanceDataSource(ABC):
    """
    Abstract interface for reading a user's financial records.

    Any backend (Google Sheets, PostgreSQL, in-memory) must implement
    these methods. All of them are coroutines; they are the only
    suspension points while answering a question.
    """

    @abstractmethod
    async def fetch_transactions(
        self,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        """
        Get income and expense entries.

        Args:
            user_id: Whose records to read
            date_from: Inclusive start date (None = no lower bound)
            date_to: Inclusive end date (None = no upper bound)

        Returns:
            Matching transactions, in no particular order

        Raises:
            DataSourceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def fetch_loans(self, user_id: str) -> list[Loan]:
        """
        Get all loans, settled or not.

        Raises:
            DataSourceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def fetch_savings_goals(self, user_id: str) -> list[SavingsGoal]:
        """
        Get all savings goals, achieved or not.

        Raises:
            DataSourceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def fetch_budgets(self, user_id: str) -> list[Budget]:
        """
        Get all budgets, active or not.

        Raises:
            DataSourceError: If the backend cannot be read
        """
        pass


class DataSourceError(FinchatError):
    """Base exception for data source errors."""
    pass


class DataSourceConnectionError(DataSourceError):
    """Raised when the backend cannot be reached."""
    pass


class RecordParseError(DataSourceError):
    """Raised when a stored record cannot be turned into a model."""
    pass
