"""Tests for reading records from Google Sheets, with a fake client standing in for the API."""

import asyncio
from datetime import date
from types import SimpleNamespace
from uuid import UUID

import pytest

from finchat.services.storage import (
    DataSourceConnectionError,
    DataSourceError,
    GoogleSheetsFinanceDataSource,
    RecordParseError,
)
from finchat.services.storage.google_sheets import row_to_loan


SHEET_SETTINGS = SimpleNamespace(
    transactions_sheet_name="Transactions",
    loans_sheet_name="Loans",
    goals_sheet_name="Goals",
    budgets_sheet_name="Budgets",
)


class FakeWorksheet:
    def __init__(self, values):
        self._values = values

    def get_all_values(self):
        return self._values


class FakeSheetsClient:
    """Serves fixed cell values per worksheet title."""

    def __init__(self, sheets):
        self.settings = SHEET_SETTINGS
        self._sheets = sheets

    def get_worksheet(self, name):
        if name not in self._sheets:
            raise DataSourceConnectionError(f"Worksheet not found: {name}")
        values = self._sheets[name]
        if isinstance(values, Exception):
            raise values
        return FakeWorksheet(values)


TRANSACTIONS = [
    ["id", "user_id", "type", "amount", "category", "description", "date", "paid_by"],
    ["", "u1", "expense", "1,200.50", "Rent", "March rent", "2024-03-02", "Alex"],
    ["", "u1", "income", "$3000", "salary", "", "2024-03-01", ""],
    ["", "u1", "expense", "40", "groceries", "Market", "2024-02-20", "Sam"],
    ["", "u2", "expense", "not a number", "misc", "", "garbage", ""],
]


def source_with(**sheets):
    return GoogleSheetsFinanceDataSource(client=FakeSheetsClient(sheets))


class TestGoogleSheetsFinanceDataSource:
    """Tests for row parsing and filtering."""

    def test_parses_transactions(self):
        """Test cell parsing for amounts, dates and optional fields."""
        records = asyncio.run(source_with(Transactions=TRANSACTIONS).fetch_transactions("u1"))
        assert len(records) == 3
        rent = records[0]
        assert rent.amount == 1200.5
        assert rent.category == "rent"
        assert rent.date == date(2024, 3, 2)
        assert rent.paid_by == "Alex"
        assert records[1].amount == 3000
        assert records[1].description is None

    def test_filters_dates(self):
        """Test the inclusive date range."""
        records = asyncio.run(source_with(Transactions=TRANSACTIONS).fetch_transactions(
            "u1", date(2024, 3, 1), date(2024, 3, 31),
        ))
        assert {t.description for t in records} == {"March rent", None}

    def test_other_users_rows_are_not_parsed(self):
        """Test that another user's malformed row does not break this user's answers."""
        records = asyncio.run(source_with(Transactions=TRANSACTIONS).fetch_transactions("u1"))
        assert all(t.user_id == "u1" for t in records)
        with pytest.raises(RecordParseError):
            asyncio.run(source_with(Transactions=TRANSACTIONS).fetch_transactions("u2"))

    def test_missing_column(self):
        """Test that a worksheet without a required column is rejected."""
        sheet = [["user_id", "type", "amount"], ["u1", "expense", "10"]]
        with pytest.raises(RecordParseError):
            asyncio.run(source_with(Transactions=sheet).fetch_transactions("u1"))

    def test_empty_worksheet(self):
        """Test that an empty worksheet has no records."""
        assert asyncio.run(source_with(Budgets=[]).fetch_budgets("u1")) == []

    def test_parses_loans_goals_and_budgets(self):
        """Test the remaining record types, including boolean cells."""
        source = source_with(
            Loans=[
                ["user_id", "description", "amount", "remaining_amount", "interest_rate",
                 "installment_amount", "next_payment_date", "is_settled"],
                ["u1", "Car", "5000", "1200", "6.5", "", "2024-04-01", "no"],
            ],
            Goals=[
                ["user_id", "name", "target_amount", "current_amount", "target_date", "is_achieved"],
                ["u1", "Trip", "3000", "1000", "", "yes"],
            ],
            Budgets=[
                ["user_id", "category", "amount", "spent_amount", "period", "is_active"],
                ["u1", "dining", "150", "165", "", "TRUE"],
            ],
        )
        loan = asyncio.run(source.fetch_loans("u1"))[0]
        assert loan.installment_amount is None
        assert loan.interest_rate == 6.5
        assert not loan.is_settled

        goal = asyncio.run(source.fetch_savings_goals("u1"))[0]
        assert goal.is_achieved
        assert goal.target_date is None

        budget = asyncio.run(source.fetch_budgets("u1"))[0]
        assert budget.period == "monthly"
        assert budget.is_active

    def test_keeps_uuid_ids(self):
        """Test that a UUID in the id column is kept and other ids are ignored."""
        row = {"id": "12345678-1234-5678-1234-567812345678", "user_id": "u1", "remaining_amount": "10"}
        assert row_to_loan(row).id == UUID("12345678-1234-5678-1234-567812345678")
        assert row_to_loan({**row, "id": "L-1"}).id != UUID("12345678-1234-5678-1234-567812345678")

    def test_unreachable_worksheet(self):
        """Test that API failures surface as data source errors."""
        with pytest.raises(DataSourceError):
            asyncio.run(source_with(Loans=RuntimeError("quota exceeded")).fetch_loans("u1"))
        with pytest.raises(DataSourceConnectionError):
            asyncio.run(source_with().fetch_loans("u1"))
