from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from pyresults import Err, Result

from prodbooster.core.errors import StorageError
from prodbooster.storage.base import Row, Storage
from prodbooster.storage.sqlite3_store import SQLiteStorage

# Wednesday noon: "today" spans 2025-06-18 00:00 .. 2025-06-19 00:00
FIXED_NOW = datetime(2025, 6, 18, 12, 0, 0)


def fixed_clock() -> datetime:
    return FIXED_NOW


def make_sqlite(dir_path: str, name: str = "test.db") -> SQLiteStorage:
    storage = SQLiteStorage((Path(dir_path) / name).as_posix())
    r = storage.init_schema()
    assert r.is_ok()
    return storage


class BrokenStorage(Storage):
    """Storage wrapper whose selected operations always fail."""

    def __init__(self, inner: Storage, fail: Iterable[str] = ()) -> None:
        self.inner = inner
        self.fail = set(fail)
        self.calls: list[str] = []

    def _err(self, op: str) -> Result:  # type: ignore[type-arg]
        return Err(StorageError(f"simulated {op} failure"))

    def init_schema(self) -> Result[None, StorageError]:
        if "init_schema" in self.fail:
            return self._err("init_schema")
        return self.inner.init_schema()

    def insert(self, table: str, fields: Row) -> Result[int, StorageError]:
        self.calls.append("insert")
        if "insert" in self.fail:
            return self._err("insert")
        return self.inner.insert(table, fields)

    def update(self, table: str, identity: int, fields: Row) -> Result[None, StorageError]:
        self.calls.append("update")
        if "update" in self.fail:
            return self._err("update")
        return self.inner.update(table, identity, fields)

    def delete(self, table: str, identity: int) -> Result[None, StorageError]:
        self.calls.append("delete")
        if "delete" in self.fail:
            return self._err("delete")
        return self.inner.delete(table, identity)

    def select_all(self, table: str, order_key: str) -> Result[list[Row], StorageError]:
        self.calls.append("select_all")
        if "select_all" in self.fail:
            return self._err("select_all")
        return self.inner.select_all(table, order_key)

    def close(self) -> None:
        self.inner.close()
