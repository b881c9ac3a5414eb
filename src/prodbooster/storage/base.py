from abc import ABC, abstractmethod
from typing import Any

from pyresults import Result

from prodbooster.core.errors import StorageError

Row = dict[str, Any]

# table -> writable columns (id is always assigned by the backend)
SCHEMA: dict[str, tuple[str, ...]] = {
    "tasks": (
        "title",
        "description",
        "completed",
        "priority",
        "due_at",
        "created_at",
        "updated_at",
    ),
    "notes": (
        "title",
        "content",
        "created_at",
        "updated_at",
    ),
    "events": (
        "title",
        "description",
        "location",
        "start_at",
        "end_at",
        "created_at",
        "updated_at",
    ),
}


class Storage(ABC):
    """Row-level durable storage consumed by the collection stores.

    Public API:
        - init_schema(): create tables if missing
        - insert(): add a row, returning the identity assigned by the backend
        - update(): overwrite some columns of one row
        - delete(): remove one row
        - select_all(): read every row of a table ordered by one column
        - close(): release the underlying handle

    Every operation is atomic per row and reports IO failures as Err(StorageError);
    nothing is raised to the caller.
    """

    @abstractmethod
    def init_schema(self) -> Result[None, StorageError]:
        raise NotImplementedError

    @abstractmethod
    def insert(self, table: str, fields: Row) -> Result[int, StorageError]:
        raise NotImplementedError

    @abstractmethod
    def update(self, table: str, identity: int, fields: Row) -> Result[None, StorageError]:
        raise NotImplementedError

    @abstractmethod
    def delete(self, table: str, identity: int) -> Result[None, StorageError]:
        raise NotImplementedError

    @abstractmethod
    def select_all(self, table: str, order_key: str) -> Result[list[Row], StorageError]:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    @staticmethod
    def check_columns(table: str, columns: list[str]) -> None:
        """Raise ValueError for unknown table/column names.

        Names end up inside SQL text, so only the fixed schema is accepted.
        """
        if table not in SCHEMA:
            _msg = f"Unknown table: {table}"
            raise ValueError(_msg)
        unknown = [c for c in columns if c != "id" and c not in SCHEMA[table]]
        if unknown:
            _msg = f"Unknown column(s) for {table}: {', '.join(unknown)}"
            raise ValueError(_msg)
