"""SQLite storage for the funnel key-value medium."""

import os
import sqlite3
from pathlib import Path

from funnel_backbone.adapters.storage import KeyValueStore
from funnel_backbone.errors import StorageError
from funnel_backbone.utils.identifiers import utc_timestamp


DEFAULT_DB_PATH = Path(__file__).parent / "data" / "funnel.db"
FUNNEL_DB_PATH = Path(os.getenv("FUNNEL_DB_PATH", str(DEFAULT_DB_PATH)))


def _connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path = FUNNEL_DB_PATH) -> None:
    with _connect(db_path) as conn:
        conn.execute(
            """
            create table if not exists kv_store (
                key text primary key,
                value text not null,
                updated_at text not null
            )
            """
        )
        conn.commit()


def get_value(key: str, db_path: Path = FUNNEL_DB_PATH) -> str | None:
    with _connect(db_path) as conn:
        row = conn.execute(
            "select value from kv_store where key = ?",
            (key,),
        ).fetchone()
    if not row:
        return None
    return row["value"]


def set_value(key: str, value: str, db_path: Path = FUNNEL_DB_PATH) -> None:
    """insert or overwrite a value."""
    with _connect(db_path) as conn:
        conn.execute(
            """
            insert into kv_store (key, value, updated_at)
            values (?, ?, ?)
            on conflict(key) do update set
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value, utc_timestamp()),
        )
        conn.commit()


def delete_value(key: str, db_path: Path = FUNNEL_DB_PATH) -> None:
    with _connect(db_path) as conn:
        conn.execute("delete from kv_store where key = ?", (key,))
        conn.commit()


class SqliteKeyValueStore(KeyValueStore):
    """Key-value medium backed by a SQLite table."""

    def __init__(self, db_path: Path | str = FUNNEL_DB_PATH) -> None:
        self.db_path = Path(db_path)
        try:
            init_db(self.db_path)
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"cannot open funnel database {self.db_path}: {exc}") from exc

    def get(self, key: str) -> str | None:
        try:
            return get_value(key, self.db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"cannot read {key!r}: {exc}") from exc

    def set(self, key: str, value: str) -> None:
        try:
            set_value(key, value, self.db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"cannot write {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            delete_value(key, self.db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"cannot delete {key!r}: {exc}") from exc

    def __repr__(self) -> str:
        return f"SqliteKeyValueStore(db_path={str(self.db_path)!r})"
