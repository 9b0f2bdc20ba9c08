"""Services package."""

from habit_tracker.services.prompt import UserPrompt
from habit_tracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsTabularStore,
    HabitRepository,
    InMemoryTabularStore,
    StorageError,
    TableNotFoundError,
    TabularAuditStorage,
    TabularStore,
)

__all__ = [
    # Prompt
    "UserPrompt",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsTabularStore",
    "HabitRepository",
    "InMemoryTabularStore",
    "StorageError",
    "TableNotFoundError",
    "TabularAuditStorage",
    "TabularStore",
]
