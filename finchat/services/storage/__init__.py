"""Read-only data sources for household financial records."""

from finchat.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsFinanceDataSource,
)
from finchat.services.storage.interface import (
    DataSourceConnectionError,
    DataSourceError,
    FinanceDataSource,
    RecordParseError,
)
from finchat.services.storage.memory import InMemoryFinanceDataSource

__all__ = [
    "DataSourceConnectionError",
    "DataSourceError",
    "FinanceDataSource",
    "GoogleSheetsClient",
    "GoogleSheetsFinanceDataSource",
    "InMemoryFinanceDataSource",
    "RecordParseError",
]
