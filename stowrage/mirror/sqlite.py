"""SQLite-backed mirror: one table in a single database file."""

import sqlite3
from pathlib import Path
from typing import Iterable

from .base import Mirror


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class SQLiteMirror(Mirror):
    """Mirror backed by a table in an SQLite file.

    The connection is held open between ``open()`` and ``close()``
    and every write is committed immediately.
    """

    def __init__(self, db_path: str | Path, table: str = "stowrage") -> None:
        self.db_path = Path(db_path)
        self.table = table
        self._conn: sqlite3.Connection | None = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError(f"SQLite mirror {self.db_path} is not open")
        return self._conn

    def _write(self, sql: str, params: tuple = ()) -> None:
        conn = self._connection()
        conn.execute(sql, params)
        conn.commit()

    def open(self) -> None:
        if self._conn is not None:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.db_path)
        self._write(
            f"CREATE TABLE IF NOT EXISTS {_quote(self.table)} "
            "(id INTEGER PRIMARY KEY, name TEXT, data TEXT)"
        )

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def rows(self) -> Iterable[tuple[int, str, str]]:
        cursor = self._connection().execute(
            f"SELECT id, name, data FROM {_quote(self.table)} ORDER BY id"
        )
        return [(int(id), name, data) for id, name, data in cursor]

    def insert(self, id: int, name: str, data: str) -> None:
        self._write(
            f"INSERT INTO {_quote(self.table)} (id, name, data) VALUES (?, ?, ?)",
            (id, name, data),
        )

    def replace(self, id: int, name: str, data: str) -> None:
        self._write(
            f"REPLACE INTO {_quote(self.table)} (id, name, data) VALUES (?, ?, ?)",
            (id, name, data),
        )

    def delete(self, id: int) -> None:
        self._write(f"DELETE FROM {_quote(self.table)} WHERE id = ?", (id,))

    def delete_name(self, name: str) -> None:
        self._write(f"DELETE FROM {_quote(self.table)} WHERE name = ?", (name,))

    def delete_range(self, start: int, end: int) -> None:
        self._write(
            f"DELETE FROM {_quote(self.table)} WHERE id BETWEEN ? AND ?",
            (start, end),
        )

    def clear(self) -> None:
        self._write(f"DELETE FROM {_quote(self.table)}")
