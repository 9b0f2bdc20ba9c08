"""
Storage Services Package

Provides the abstract table store, its in-memory and Google Sheets
implementations, and the repository that maps tracker data onto tables.
"""

from habit_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    StorageError,
    TableNotFoundError,
    TabularStore,
)
from habit_tracker.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsTabularStore,
)
from habit_tracker.services.storage.memory import InMemoryTabularStore
from habit_tracker.services.storage.repository import (
    SUMMARY_COLUMNS,
    HabitRepository,
    TabularAuditStorage,
    users_header,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "TabularStore",
    # Exceptions
    "ConnectionError",
    "StorageError",
    "TableNotFoundError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsTabularStore",
    "InMemoryTabularStore",
    "HabitRepository",
    "TabularAuditStorage",
    "SUMMARY_COLUMNS",
    "users_header",
]
