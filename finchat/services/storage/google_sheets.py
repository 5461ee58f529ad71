"""
Google Sheets Data Source

DESIGN DECISION: Households already keep their books in a spreadsheet,
so the assistant can read one directly:
1. Non-technical users can see and fix the data the assistant uses
2. No database setup required
3. One worksheet per record type, first row is the header

TRADEOFFS:
- Every question re-reads the worksheet (fine for personal volumes)
- No server-side filtering (we filter in Python)
- Cells are strings; parsing happens here and bad rows fail loudly

Access is read-only: the service account is only granted the
spreadsheets.readonly scope.
"""

import asyncio
from datetime import date
from typing import Callable, Optional, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from finchat.config import GoogleSheetsSettings, get_settings
from finchat.models.finance import Budget, Loan, SavingsGoal, Transaction, TransactionType
from finchat.services.storage.interface import (
    DataSourceConnectionError,
    DataSourceError,
    FinanceDataSource,
    RecordParseError,
)


logger = structlog.get_logger(__name__)

READONLY_SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/drive.readonly",
]

# Expected headers per worksheet (order in the sheet does not matter)
TRANSACTION_COLUMNS = ["id", "user_id", "type", "amount", "category", "description", "date", "paid_by"]
LOAN_COLUMNS = [
    "id", "user_id", "description", "amount", "remaining_amount",
    "interest_rate", "installment_amount", "next_payment_date", "is_settled",
]
GOAL_COLUMNS = ["id", "user_id", "name", "target_amount", "current_amount", "target_date", "is_achieved"]
BUDGET_COLUMNS = ["id", "user_id", "category", "amount", "spent_amount", "period", "is_active"]

_TRUE_VALUES = {"true", "yes", "1", "y", "x"}

RecordT = TypeVar("RecordT")


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self.settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self.settings.credentials_path,
                    scopes=READONLY_SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise DataSourceConnectionError(
                    f"Google credentials file not found: {self.settings.credentials_path}"
                )
            except Exception as e:
                raise DataSourceConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self.settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise DataSourceConnectionError(
                    f"Spreadsheet not found: {self.settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, name: str) -> gspread.Worksheet:
        """Get a worksheet by title."""
        try:
            return self.get_spreadsheet().worksheet(name)
        except gspread.WorksheetNotFound:
            raise DataSourceConnectionError(f"Worksheet not found: {name}")


# =============================================================================
# CELL PARSING
# =============================================================================

def _parse_float(value: str, default: Optional[float] = None) -> Optional[float]:
    value = (value or "").strip().replace(",", "").lstrip("$€")
    if not value:
        return default
    return float(value)


def _parse_date(value: str) -> Optional[date]:
    value = (value or "").strip()
    return date.fromisoformat(value[:10]) if value else None


def _parse_bool(value: str) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def _optional(value: str) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def row_to_transaction(row: dict) -> Transaction:
    return Transaction(
        user_id=row["user_id"],
        type=TransactionType(row["type"].strip().lower()),
        amount=_parse_float(row["amount"], 0.0),
        category=row.get("category") or "other",
        description=_optional(row.get("description", "")),
        date=_parse_date(row["date"]),
        paid_by=_optional(row.get("paid_by", "")),
        **_id_field(row),
    )


def row_to_loan(row: dict) -> Loan:
    return Loan(
        user_id=row["user_id"],
        description=_optional(row.get("description", "")),
        amount=_parse_float(row.get("amount", ""), 0.0),
        remaining_amount=_parse_float(row["remaining_amount"], 0.0),
        interest_rate=_parse_float(row.get("interest_rate", "")),
        installment_amount=_parse_float(row.get("installment_amount", "")),
        next_payment_date=_parse_date(row.get("next_payment_date", "")),
        is_settled=_parse_bool(row.get("is_settled", "")),
        **_id_field(row),
    )


def row_to_goal(row: dict) -> SavingsGoal:
    return SavingsGoal(
        user_id=row["user_id"],
        name=row["name"],
        target_amount=_parse_float(row["target_amount"], 0.0),
        current_amount=_parse_float(row.get("current_amount", ""), 0.0),
        target_date=_parse_date(row.get("target_date", "")),
        is_achieved=_parse_bool(row.get("is_achieved", "")),
        **_id_field(row),
    )


def row_to_budget(row: dict) -> Budget:
    return Budget(
        user_id=row["user_id"],
        category=row["category"],
        amount=_parse_float(row["amount"], 0.0),
        spent_amount=_parse_float(row.get("spent_amount", ""), 0.0),
        period=row.get("period") or "monthly",
        is_active=_parse_bool(row.get("is_active", "true")),
        **_id_field(row),
    )


def _id_field(row: dict) -> dict:
    """Keep the sheet's id when it is a UUID; otherwise the model generates one."""
    try:
        return {"id": UUID(row.get("id", "").strip())}
    except ValueError:
        return {}


class GoogleSheetsFinanceDataSource(FinanceDataSource):
    """
    Google Sheets implementation of the finance data source.

    Each record type lives in its own worksheet. Rows belonging to other
    users are skipped before parsing, so one user's malformed row never
    breaks another user's answers.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _read_rows(self, sheet_name: str, columns: list[str], user_id: str) -> list[tuple[int, dict]]:
        """Rows of a worksheet as header->cell dicts, numbered as in the sheet."""
        try:
            values = self._client.get_worksheet(sheet_name).get_all_values()
        except DataSourceError:
            raise
        except Exception as e:
            raise DataSourceError(f"Failed to read worksheet '{sheet_name}': {e}")

        if not values:
            return []

        header = [cell.strip().lower() for cell in values[0]]
        missing = [column for column in columns if column not in header and column != "id"]
        if missing:
            raise RecordParseError(
                f"Worksheet '{sheet_name}' is missing columns: {', '.join(missing)}"
            )

        rows = []
        for number, raw in enumerate(values[1:], start=2):  # row 1 is the header
            row = {column: (raw[i] if i < len(raw) else "") for i, column in enumerate(header)}
            if row.get("user_id", "").strip() == user_id:
                rows.append((number, row))
        return rows

    async def _load(
        self,
        sheet_name: str,
        columns: list[str],
        user_id: str,
        parse: Callable[[dict], RecordT],
    ) -> list[RecordT]:
        rows = await asyncio.to_thread(self._read_rows, sheet_name, columns, user_id)
        records = []
        for number, row in rows:
            try:
                records.append(parse(row))
            except (KeyError, ValueError, ValidationError) as e:
                logger.warning("sheet_row_invalid", sheet=sheet_name, row=number, error=str(e))
                raise RecordParseError(f"Invalid row {number} in '{sheet_name}': {e}") from e
        return records

    async def fetch_transactions(
        self,
        user_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        transactions = await self._load(
            self._client.settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
            user_id,
            row_to_transaction,
        )
        return [
            t for t in transactions
            if (date_from is None or t.date >= date_from)
            and (date_to is None or t.date <= date_to)
        ]

    async def fetch_loans(self, user_id: str) -> list[Loan]:
        return await self._load(
            self._client.settings.loans_sheet_name, LOAN_COLUMNS, user_id, row_to_loan
        )

    async def fetch_savings_goals(self, user_id: str) -> list[SavingsGoal]:
        return await self._load(
            self._client.settings.goals_sheet_name, GOAL_COLUMNS, user_id, row_to_goal
        )

    async def fetch_budgets(self, user_id: str) -> list[Budget]:
        return await self._load(
            self._client.settings.budgets_sheet_name, BUDGET_COLUMNS, user_id, row_to_budget
        )
