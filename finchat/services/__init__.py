"""External services used by finchat."""

from finchat.services.storage import (
    DataSourceError,
    FinanceDataSource,
    GoogleSheetsFinanceDataSource,
    InMemoryFinanceDataSource,
)

__all__ = [
    "DataSourceError",
    "FinanceDataSource",
    "GoogleSheetsFinanceDataSource",
    "InMemoryFinanceDataSource",
]
