"""Shared fixtures: a small household with two months of records."""

from datetime import date

import pytest

from finchat.models.finance import Budget, Loan, SavingsGoal, Transaction
from finchat.services.storage import InMemoryFinanceDataSource


TODAY = date(2024, 3, 15)


def expense(day, amount, category, description, paid_by="Sam", user_id="u1"):
    return Transaction(
        user_id=user_id, type="expense", amount=amount, category=category,
        description=description, date=day, paid_by=paid_by,
    )


def income(day, amount, user_id="u1"):
    return Transaction(
        user_id=user_id, type="income", amount=amount, category="salary",
        description="Salary", date=day, paid_by="Alex",
    )


@pytest.fixture
def today():
    return lambda: TODAY


@pytest.fixture
def household():
    """
    March so far: income 3000, expenses 1315 (rent 1000, groceries 200,
    dining 100, streaming 15). February: income 3000, expenses 1165.
    """
    transactions = [
        income(date(2024, 2, 1), 3000),
        expense(date(2024, 2, 2), 1000, "rent", "Rent", paid_by="Alex"),
        expense(date(2024, 2, 10), 150, "groceries", "Supermarket"),
        expense(date(2024, 2, 20), 15, "entertainment", "Streaming"),
        income(date(2024, 3, 1), 3000),
        expense(date(2024, 3, 2), 1000, "rent", "Rent", paid_by="Alex"),
        expense(date(2024, 3, 5), 200, "groceries", "Supermarket"),
        expense(date(2024, 3, 10), 100, "dining", "Bistro"),
        expense(date(2024, 3, 14), 15, "entertainment", "Streaming"),
        # another household in the same sheet
        expense(date(2024, 3, 3), 999, "shopping", "Mall", user_id="u2"),
    ]
    loans = [
        Loan(user_id="u1", description="Car", amount=5000, remaining_amount=1200,
             interest_rate=0, installment_amount=100, next_payment_date=date(2024, 3, 20)),
        Loan(user_id="u1", description="Card", amount=1000, remaining_amount=600,
             interest_rate=24, installment_amount=100, next_payment_date=date(2024, 4, 1)),
        Loan(user_id="u1", description="Old", remaining_amount=0, is_settled=True),
    ]
    goals = [
        SavingsGoal(user_id="u1", name="Trip", target_amount=3000, current_amount=1000,
                    target_date=date(2024, 12, 31)),
    ]
    budgets = [
        Budget(user_id="u1", category="groceries", amount=300, spent_amount=200),
        Budget(user_id="u1", category="dining", amount=80, spent_amount=100),
        Budget(user_id="u1", category="travel", amount=500, spent_amount=0, is_active=False),
    ]
    return InMemoryFinanceDataSource(transactions, loans, goals, budgets)
