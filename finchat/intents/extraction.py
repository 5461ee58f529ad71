"""
Free-text extraction: time period, category and amount.

Every extractor has a fixed fallback so a handler always gets a usable
value: "this month" for periods, "expenses" for categories and the
caller's default for amounts.
"""

import calendar
import re
from datetime import date, timedelta
from typing import Optional

from finchat.intents.fuzzy import levenshtein
from finchat.intents.registry import PatternRegistry, compile_pattern
from finchat.intents.text import tokenize


DEFAULT_PERIOD = "this month"
DEFAULT_CATEGORY = "expenses"

_SPECIFIC_DATE = re.compile(r"(\d{1,2})[/-](\d{1,2})[/-](\d{2,4})")
_RELATIVE_AGO = re.compile(r"\b(\d+)\s*(days?|weeks?|months?|years?)\s*(ago|back)\b", re.IGNORECASE)

# category -> aliases; first match wins, so order matters
CATEGORY_ALIASES: dict[str, tuple[str, ...]] = {
    "groceries": ("grocery", "groceries", "supermarket", "food shopping", "grocery store",
                  "market", "τρόφιμα", "σούπερ μάρκετ", "τροφές"),
    "food": ("food", "eating", "meals", "restaurant", "restaurants", "dining out", "takeout",
             "φαγητό"),
    "dining": ("dining", "dine", "restaurant", "restaurants", "cafe", "café", "bistro", "eatery",
               "εστιατόριο", "καφετέρια"),
    "transport": ("transport", "transportation", "travel", "commute", "gas", "fuel", "uber",
                  "taxi", "bus", "train", "metro", "subway", "μεταφορικά", "βενζίνη", "ταξί"),
    "entertainment": ("entertainment", "fun", "movies", "cinema", "theater", "theatre", "games",
                      "gaming", "hobby", "hobbies", "leisure", "ψυχαγωγία", "σινεμά"),
    "bills": ("bills", "utilities", "electricity", "water", "gas bill", "internet", "phone",
              "phone bill", "utility", "utilities bill", "λογαριασμοί", "κοινόχρηστα", "ρεύμα"),
    "shopping": ("shopping", "store", "stores", "retail", "purchase", "purchases", "buy",
                 "buying", "mall", "ψώνια"),
    "health": ("health", "medical", "medicine", "pharmacy", "doctor", "hospital", "clinic",
               "dental", "healthcare", "φαρμακείο", "γιατρός"),
    "housing": ("housing", "rent", "mortgage", "home", "apartment", "house", "accommodation",
                "living", "ενοίκιο", "στεγαστικό"),
    "education": ("education", "school", "tuition", "books", "course", "courses", "learning",
                  "study", "εκπαίδευση", "φροντιστήριο"),
    "personal": ("personal", "care", "clothing", "clothes", "apparel", "beauty", "grooming",
                 "ρούχα"),
    "subscription": ("subscription", "subscriptions", "membership", "memberships", "netflix",
                     "spotify", "streaming", "συνδρομές", "συνδρομή"),
}

_NUMBER = r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?"
_CURRENCY_PREFIX = re.compile(rf"[$€]\s*({_NUMBER})")
_CURRENCY_SUFFIX = re.compile(rf"({_NUMBER})\s*(?:(?:dollars?|euros?|usd|eur|ευρώ)\b|€)", re.IGNORECASE)
_PERCENT = re.compile(r"(\d+(?:\.\d+)?)\s*%|(\d+(?:\.\d+)?)\s*(?:percent|τοις εκατό)", re.IGNORECASE)
_PLAIN_NUMBER = re.compile(r"\b(\d{2,}(?:\.\d{2})?)\b")

MIN_PLAIN_AMOUNT = 1
MAX_PLAIN_AMOUNT = 1_000_000


def extract_time_period(query: str, registry: PatternRegistry) -> str:
    """
    Name the period a question is about.

    Returns one of: today, yesterday, this/last week, this/last month,
    this/last year, specific_date. Defaults to "this month".
    """
    if _SPECIFIC_DATE.search(query):
        return "specific_date"

    for period, pattern in registry.time_periods:
        if compile_pattern(pattern).search(query):
            return period

    match = _RELATIVE_AGO.search(query)
    if match:
        value, unit = int(match.group(1)), match.group(2).lower()
        if unit.startswith("day") and value <= 7:
            return "this week"
        if unit.startswith("week") and value <= 4:
            return "this month"
        if unit.startswith("month") and value <= 12:
            return "this year"

    return DEFAULT_PERIOD


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def shift_months(day: date, months: int) -> date:
    """First day of the month `months` away from `day` (negative goes back)."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def days_in_month(day: date) -> int:
    return calendar.monthrange(day.year, day.month)[1]


def date_range(period: str, today: date) -> tuple[date, date]:
    """
    Inclusive (start, end) dates for a named period.

    Weeks start on Sunday. Unknown periods, including "specific_date",
    resolve to the current month so far.
    """
    if period == "today":
        return today, today
    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return yesterday, yesterday

    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    if period == "this week":
        return week_start, today
    if period == "last week":
        return week_start - timedelta(days=7), week_start - timedelta(days=1)

    if period == "last month":
        start = shift_months(today, -1)
        return start, month_end(start)
    if period == "this year":
        return date(today.year, 1, 1), today
    if period == "last year":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)

    return month_start(today), today


def extract_category(query: str) -> str:
    """
    Map a question to a spending category.

    Aliases are tried as substrings first, then each word longer than
    three characters is compared loosely (containment or edit distance
    up to 2). Falls back to "expenses".
    """
    lowered = query.lower()
    for category, aliases in CATEGORY_ALIASES.items():
        if any(alias in lowered for alias in aliases):
            return category

    words = [word for word in tokenize(lowered) if len(word) > 3]
    for category, aliases in CATEGORY_ALIASES.items():
        for alias in aliases:
            for word in words:
                if alias in word or word in alias or levenshtein(word, alias) <= 2:
                    return category

    return DEFAULT_CATEGORY


def _to_float(raw: str) -> Optional[float]:
    try:
        return float(raw.replace(",", ""))
    except ValueError:
        return None


def extract_amount(query: str, default: Optional[float] = None) -> Optional[float]:
    """
    Pull a money amount or percentage out of a question.

    Tried in order: an amount with a currency marker ("$100", "50 euros"),
    a percentage ("20%", "15 percent"), then a bare number of at least two
    digits between 1 and 1,000,000. Returns `default` when nothing parses.
    """
    for pattern in (_CURRENCY_PREFIX, _CURRENCY_SUFFIX):
        match = pattern.search(query)
        if match:
            value = _to_float(match.group(1))
            if value is not None:
                return value

    match = _PERCENT.search(query)
    if match:
        value = _to_float(match.group(1) or match.group(2))
        if value is not None:
            return value

    match = _PLAIN_NUMBER.search(query)
    if match:
        value = _to_float(match.group(1))
        if value is not None and MIN_PLAIN_AMOUNT <= value <= MAX_PLAIN_AMOUNT:
            return value

    return default


def mentions_percent(query: str) -> bool:
    lowered = query.lower()
    return "%" in lowered or "percent" in lowered or "τοις εκατό" in lowered
