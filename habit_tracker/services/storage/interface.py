"""
Abstract Storage Interface

DESIGN DECISION: The engine never talks to a spreadsheet directly.
It is handed a TabularStore: named tables of rows of string cells.
This allows us to:
1. Swap Google Sheets for a database later
2. Use in-memory storage for testing
3. Keep formatting concerns (colors, fonts, validation dropdowns)
   out of the engine entirely

There are no transactions. Writers rebuild whole tables, so a retried
write converges to the same content.
"""

from abc import ABC, abstractmethod

from habit_tracker.models.audit import AuditEvent


Row = list[str]


class TabularStore(ABC):
    """
    Generic row/column storage.

    A table is addressed by name. Row 0 of every table is its header.
    """

    @abstractmethod
    def read_rows(self, range_id: str) -> list[Row]:
        """
        Read every row of a table, header included.

        Raises:
            TableNotFoundError: If the table does not exist
        """
        pass

    @abstractmethod
    def write_rows(self, range_id: str, rows: list[list]) -> None:
        """
        Replace the whole content of a table with rows.

        Raises:
            TableNotFoundError: If the table does not exist
        """
        pass

    @abstractmethod
    def append_row(self, table_id: str, row: list) -> None:
        """Append one row after the last non-empty row."""
        pass

    @abstractmethod
    def list_tables(self) -> list[str]:
        """Names of all tables, in store order."""
        pass

    @abstractmethod
    def create_table(self, table_id: str, header: list[str]) -> None:
        """
        Create a table whose first row is header.

        Raises:
            StorageError: If the table already exists
        """
        pass

    @abstractmethod
    def delete_table(self, table_id: str) -> None:
        pass

    def table_exists(self, table_id: str) -> bool:
        return table_id in self.list_tables()


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class TableNotFoundError(StorageError):
    """Table does not exist in the store."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
