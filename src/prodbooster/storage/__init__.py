from prodbooster.storage.base import SCHEMA, Row, Storage
from prodbooster.storage.sqlite3_store import SQLiteStorage
from prodbooster.util.dirs import load_env

__all__ = [
    "SCHEMA",
    "Row",
    "SQLiteStorage",
    "Storage",
]


def get_storage(data_path: str | None = None) -> Storage:
    env = load_env()
    db_path = data_path or env["DB_PATH"]
    if db_path == ":memory:" or db_path.endswith((".db", ".sqlite", ".sqlite3")):
        return SQLiteStorage(db_path)
    _msg = f"Invalid database path: {db_path}"
    raise ValueError(_msg)
