"""Tests for period, category and amount extraction."""

from datetime import date

import pytest

from finchat.intents.extraction import (
    date_range,
    extract_amount,
    extract_category,
    extract_time_period,
    mentions_percent,
    month_end,
    shift_months,
)
from finchat.intents.registry import load_registry


TODAY = date(2024, 3, 15)  # a Friday


@pytest.fixture
def registry():
    return load_registry("en")


class TestTimePeriods:
    """Tests for naming the period a question is about."""

    @pytest.mark.parametrize("query, period", [
        ("how much did i spend last month", "last month"),
        ("spending this week", "this week"),
        ("what did i spend yesterday", "yesterday"),
        ("income last year", "last year"),
        ("spent on 12/03/2024", "specific_date"),
        ("spending 3 days ago", "this week"),
        ("how much did i spend", "this month"),
    ])
    def test_extract_time_period(self, registry, query, period):
        """Test period detection including the default."""
        assert extract_time_period(query, registry) == period

    def test_week_starts_on_sunday(self):
        """Test the current and previous week ranges."""
        assert date_range("this week", TODAY) == (date(2024, 3, 10), TODAY)
        assert date_range("last week", TODAY) == (date(2024, 3, 3), date(2024, 3, 9))

    def test_last_month_range(self):
        """Test that last month covers the whole month, leap day included."""
        assert date_range("last month", TODAY) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_unknown_period_is_month_to_date(self):
        """Test that specific dates resolve to the current month so far."""
        assert date_range("specific_date", TODAY) == (date(2024, 3, 1), TODAY)

    def test_shift_months_crosses_years(self):
        """Test month arithmetic across a year boundary."""
        assert shift_months(date(2024, 1, 31), -1) == date(2023, 12, 1)
        assert shift_months(date(2024, 11, 5), 3) == date(2025, 2, 1)
        assert month_end(date(2023, 2, 10)) == date(2023, 2, 28)


class TestCategories:
    """Tests for mapping questions to categories."""

    def test_alias(self):
        """Test a direct alias match."""
        assert extract_category("how much on the supermarket") == "groceries"

    def test_misspelling(self):
        """Test the loose fallback on a misspelled word."""
        assert extract_category("transprt") == "transport"

    def test_greek_alias(self):
        """Test a Greek alias."""
        assert extract_category("πόσο για ενοίκιο") == "housing"

    def test_default(self):
        """Test the fallback category."""
        assert extract_category("xyz") == "expenses"


class TestAmounts:
    """Tests for amount extraction."""

    @pytest.mark.parametrize("query, amount", [
        ("pay $1,200 more", 1200.0),
        ("an extra 50 euros", 50.0),
        ("cut dining by 20%", 20.0),
        ("reduce by 15 percent", 15.0),
        ("add 250 every month", 250.0),
    ])
    def test_extract_amount(self, query, amount):
        """Test currency, percentage and bare-number amounts."""
        assert extract_amount(query) == amount

    def test_currency_beats_percent(self):
        """Test that a currency amount is preferred over a percentage."""
        assert extract_amount("save $300 or 10%") == 300.0

    def test_default_when_missing(self):
        """Test the caller's default, and that single digits are ignored."""
        assert extract_amount("cut a bit", default=10.0) == 10.0
        assert extract_amount("in 5 steps") is None

    def test_mentions_percent(self):
        """Test spotting a percentage in a question."""
        assert mentions_percent("cut 20%")
        assert not mentions_percent("cut $20")
