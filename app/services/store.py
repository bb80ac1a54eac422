"""Relational record store for extracted content.

The core only relies on the :class:`RecordStore` protocol.  The bundled
:class:`SQLiteRecordStore` keeps one SQLite file per document with one table
per collection or singleton.  Values are checked at this boundary: keys that
are not columns of the table are dropped and values are coerced to the
column's declared type.
"""

import logging
import sqlite3
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Sequence

from app.models.database import ColumnInfo, TableInfo
from app.models.schema import FieldType, SchemaField
from app.services.errors import UnknownTableError
from app.services.fields import parse_boolean, parse_number
from app.services.naming import RESERVED_NAMES, is_identifier, is_reserved

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

# Fixed primary key of the single row backing a singleton
SINGLETON_ID = 1

_COLUMN_TYPES = {
    FieldType.TEXT: "TEXT",
    FieldType.RICH_TEXT: "TEXT",
    FieldType.IMAGE: "TEXT",
    FieldType.NUMBER: "INTEGER",
    FieldType.BOOLEAN: "BOOLEAN",
    FieldType.DATE: "DATETIME",
}


class RecordStore(Protocol):
    def create_table(self, name: str, fields: Sequence[SchemaField], singleton: bool = False) -> None: ...

    def insert(self, name: str, record: Mapping[str, Any]) -> int: ...

    def replace(self, name: str, record: Mapping[str, Any]) -> None: ...

    def select_all(self, name: str) -> List[Record]: ...

    def select_one(self, name: str) -> Optional[Record]: ...


def _quote(identifier: str) -> str:
    if not is_identifier(identifier):
        raise ValueError(f"Unsafe identifier: {identifier!r}")
    return f'"{identifier}"'


def _coerce(value: Any, column_type: str) -> Any:
    if value is None:
        return None
    column_type = column_type.upper()
    if column_type == "INTEGER":
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return int(value)
        return parse_number(str(value))
    if column_type == "BOOLEAN":
        if isinstance(value, (bool, int, float)):
            return 1 if value else 0
        return parse_boolean(str(value))
    return str(value)


class SQLiteRecordStore:
    """SQLite implementation of :class:`RecordStore`, one connection per call."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with closing(sqlite3.connect(self.path)) as conn:
            conn.row_factory = sqlite3.Row
            with conn:
                yield conn

    def _column_types(self, conn: sqlite3.Connection, name: str) -> Dict[str, str]:
        rows = conn.execute(f"PRAGMA table_info({_quote(name)})").fetchall()
        if not rows:
            raise UnknownTableError(f"Unknown table: {name}")
        return {row["name"]: row["type"] for row in rows}

    def _writable(self, conn: sqlite3.Connection, name: str, record: Mapping[str, Any]) -> Record:
        types = self._column_types(conn, name)
        return {
            key: _coerce(value, types[key])
            for key, value in record.items()
            if key in types and key not in RESERVED_NAMES
        }

    # -- schema ---------------------------------------------------------------

    def create_table(self, name: str, fields: Sequence[SchemaField], singleton: bool = False) -> None:
        columns = [
            "id INTEGER PRIMARY KEY" if singleton else "id INTEGER PRIMARY KEY AUTOINCREMENT",
            "created_at DATETIME DEFAULT CURRENT_TIMESTAMP",
            "updated_at DATETIME DEFAULT CURRENT_TIMESTAMP",
        ]
        seen = set()
        for field in fields:
            if is_reserved(field.name) or field.name in seen:
                continue
            seen.add(field.name)
            # required is informational: no NOT NULL so imperfect selectors still seed
            columns.append(f"{_quote(field.name)} {_COLUMN_TYPES[FieldType.coerce(field.type)]}")

        with self._connect() as conn:
            conn.execute(f"CREATE TABLE IF NOT EXISTS {_quote(name)} ({', '.join(columns)})")
        logger.info("Created table %s with %d field column(s)", name, len(seen))

    def tables(self) -> List[str]:
        if not self.path.exists():
            return []
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' "
                "AND name NOT LIKE 'sqlite_%' ORDER BY rowid"
            ).fetchall()
        return [row["name"] for row in rows]

    def describe(self) -> List[TableInfo]:
        """Return every table with its columns, in creation order."""
        infos: List[TableInfo] = []
        for table in self.tables():
            with self._connect() as conn:
                rows = conn.execute(f"PRAGMA table_info({_quote(table)})").fetchall()
            infos.append(
                TableInfo(
                    name=table,
                    columns=[
                        ColumnInfo(
                            name=row["name"],
                            type=row["type"],
                            nullable=not row["notnull"],
                            default=row["dflt_value"],
                        )
                        for row in rows
                    ],
                )
            )
        return infos

    # -- records --------------------------------------------------------------

    def insert(self, name: str, record: Mapping[str, Any]) -> int:
        with self._connect() as conn:
            values = self._writable(conn, name, record)
            if values:
                columns = ", ".join(_quote(key) for key in values)
                placeholders = ", ".join("?" for _ in values)
                cursor = conn.execute(
                    f"INSERT INTO {_quote(name)} ({columns}) VALUES ({placeholders})",
                    list(values.values()),
                )
            else:
                cursor = conn.execute(f"INSERT INTO {_quote(name)} DEFAULT VALUES")
            return int(cursor.lastrowid)

    def replace(self, name: str, record: Mapping[str, Any]) -> None:
        """Store *record* as the single row of singleton table *name*."""
        with self._connect() as conn:
            values = self._writable(conn, name, record)
            values["id"] = SINGLETON_ID
            columns = ", ".join(_quote(key) for key in values)
            placeholders = ", ".join("?" for _ in values)
            conn.execute(
                f"INSERT OR REPLACE INTO {_quote(name)} ({columns}) VALUES ({placeholders})",
                list(values.values()),
            )

    def update(self, name: str, record_id: int, values: Mapping[str, Any]) -> int:
        """Update the given columns of one row; returns the number of rows changed."""
        with self._connect() as conn:
            writable = self._writable(conn, name, values)
            if not writable:
                return 0
            assignments = ", ".join(f"{_quote(key)} = ?" for key in writable)
            cursor = conn.execute(
                f"UPDATE {_quote(name)} SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ?",
                [*writable.values(), record_id],
            )
            return cursor.rowcount

    def delete(self, name: str, record_id: int) -> int:
        with self._connect() as conn:
            self._column_types(conn, name)
            cursor = conn.execute(f"DELETE FROM {_quote(name)} WHERE id = ?", (record_id,))
            return cursor.rowcount

    def select_all(self, name: str) -> List[Record]:
        with self._connect() as conn:
            self._column_types(conn, name)
            rows = conn.execute(f"SELECT * FROM {_quote(name)} ORDER BY id").fetchall()
        return [dict(row) for row in rows]

    def select_one(self, name: str) -> Optional[Record]:
        with self._connect() as conn:
            self._column_types(conn, name)
            row = conn.execute(f"SELECT * FROM {_quote(name)} ORDER BY id LIMIT 1").fetchone()
        return dict(row) if row is not None else None
