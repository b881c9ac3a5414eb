import sqlite3
from pathlib import Path

from pyresults import Err, Ok, Result

from prodbooster.core.errors import StorageError
from prodbooster.storage.base import Row, Storage
from prodbooster.util.logger import setup_logger

logger = setup_logger("prodbooster", is_stream=False, is_file=True)


class SQLiteStorage(Storage):
    """SQLite3 backend.

    - tasks table: to-do items
    - notes table: free-text notes
    - events table: calendar events

    Every write is committed immediately, so a row is either fully written or
    untouched (rolled back) when the call returns.
    """

    def __init__(self, data_path: str) -> None:
        self.data_path = data_path
        self._conn: sqlite3.Connection | None = None

    # ---- low-level helpers ---------------------------------------------

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            if self.data_path != ":memory:":
                Path(self.data_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.data_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def init_schema(self) -> Result[None, StorageError]:
        """Create the tables if they do not exist yet."""
        try:
            c = self.conn
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    completed INTEGER NOT NULL DEFAULT 0,
                    priority INTEGER NOT NULL DEFAULT 1,
                    due_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """,
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS notes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL DEFAULT '',
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """,
            )
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    location TEXT NOT NULL DEFAULT '',
                    start_at TEXT NOT NULL,
                    end_at TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """,
            )
            c.commit()
            return Ok(None)
        except sqlite3.Error as e:
            msg = f"Error (init_schema): {e!s}"
            logger.exception(msg)
            return Err(StorageError(msg))

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        except sqlite3.Error as e:
            msg = f"Error on close(): {e!s}"
            logger.exception(msg)
        finally:
            self._conn = None

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error as e:
            msg = f"Error on rollback(): {e!s}"
            logger.exception(msg)

    # ---- row operations -------------------------------------------------

    def insert(self, table: str, fields: Row) -> Result[int, StorageError]:
        columns = list(fields.keys())
        try:
            self.check_columns(table, columns)
            ph = ", ".join("?" for _ in columns)
            cur = self.conn.execute(
                f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({ph})",  # noqa: S608
                [fields[c] for c in columns],
            )
            self.conn.commit()
        except (sqlite3.Error, ValueError) as e:
            msg = f"Error (insert/{table}): {e!s}"
            logger.exception(msg)
            self._rollback()
            return Err(StorageError(msg))
        if cur.lastrowid is None:
            msg = f"Error (insert/{table}): no row id assigned"
            logger.error(msg)
            return Err(StorageError(msg))
        logger.debug("inserted %s#%d", table, cur.lastrowid)
        return Ok(cur.lastrowid)

    def update(self, table: str, identity: int, fields: Row) -> Result[None, StorageError]:
        columns = list(fields.keys())
        if not columns:
            return Ok(None)
        try:
            self.check_columns(table, columns)
            assignments = ", ".join(f"{c} = ?" for c in columns)
            cur = self.conn.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",  # noqa: S608
                [*(fields[c] for c in columns), identity],
            )
            self.conn.commit()
        except (sqlite3.Error, ValueError) as e:
            msg = f"Error (update/{table}#{identity}): {e!s}"
            logger.exception(msg)
            self._rollback()
            return Err(StorageError(msg))
        if cur.rowcount == 0:
            # last-write-wins: updating a missing row is not an IO failure
            logger.warning("update on missing row %s#%d", table, identity)
        return Ok(None)

    def delete(self, table: str, identity: int) -> Result[None, StorageError]:
        try:
            self.check_columns(table, [])
            self.conn.execute(f"DELETE FROM {table} WHERE id = ?", (identity,))  # noqa: S608
            self.conn.commit()
        except (sqlite3.Error, ValueError) as e:
            msg = f"Error (delete/{table}#{identity}): {e!s}"
            logger.exception(msg)
            self._rollback()
            return Err(StorageError(msg))
        return Ok(None)

    def select_all(self, table: str, order_key: str) -> Result[list[Row], StorageError]:
        try:
            self.check_columns(table, [order_key])
            rows = self.conn.execute(
                f"SELECT * FROM {table} ORDER BY {order_key}, id",  # noqa: S608
            ).fetchall()
        except (sqlite3.Error, ValueError) as e:
            msg = f"Error (select_all/{table}): {e!s}"
            logger.exception(msg)
            return Err(StorageError(msg))
        return Ok([dict(row) for row in rows])
