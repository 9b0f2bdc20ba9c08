"""
In-Memory Table Store

Behaves like the Google Sheets store (cells come back as strings, tables
keep insertion order) without any network access. Used in tests and for
dry runs.
"""

from habit_tracker.services.storage.interface import (
    Row,
    StorageError,
    TableNotFoundError,
    TabularStore,
)


def _cell(value) -> str:
    if value is None:
        return ""
    return str(value)


class InMemoryTabularStore(TabularStore):

    def __init__(self):
        self._tables: dict[str, list[Row]] = {}

    def _table(self, table_id: str) -> list[Row]:
        try:
            return self._tables[table_id]
        except KeyError:
            raise TableNotFoundError(f"Table not found: {table_id}") from None

    def read_rows(self, range_id: str) -> list[Row]:
        return [list(row) for row in self._table(range_id)]

    def write_rows(self, range_id: str, rows: list[list]) -> None:
        self._table(range_id)
        self._tables[range_id] = [[_cell(value) for value in row] for row in rows]

    def append_row(self, table_id: str, row: list) -> None:
        self._table(table_id).append([_cell(value) for value in row])

    def list_tables(self) -> list[str]:
        return list(self._tables)

    def create_table(self, table_id: str, header: list[str]) -> None:
        if table_id in self._tables:
            raise StorageError(f"Table already exists: {table_id}")
        self._tables[table_id] = [[_cell(value) for value in header]]

    def delete_table(self, table_id: str) -> None:
        self._table(table_id)
        del self._tables[table_id]
