from __future__ import annotations

import re
import sqlite3
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path


SITE_MAP_TABLE = "site_map"
INDEX_TABLE = "prefs_index"

SITE_MAP_COLUMNS = (
    "parent_class",
    "parent_title",
    "child_class",
    "child_title",
    "highlightable_menu_key",
)

INDEX_COLUMNS = (
    "data_key",
    "class_name",
    "screen_title",
    "updated_title",
    "package_name",
    "authority",
    "intent_target_package",
)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;
PRAGMA temp_store=MEMORY;

-- Parent/child screen relationships. One row per edge; duplicates allowed,
-- readers resolve ties by rowid (first inserted wins).
CREATE TABLE IF NOT EXISTS site_map (
    parent_class TEXT,
    parent_title TEXT,
    child_class TEXT,
    child_title TEXT,
    highlightable_menu_key TEXT
);

-- Searchable screen records (subset of the host's search index).
CREATE TABLE IF NOT EXISTS prefs_index (
    data_key TEXT,
    class_name TEXT,
    screen_title TEXT,
    updated_title TEXT,
    package_name TEXT,
    authority TEXT,
    intent_target_package TEXT
);
"""

_SAFE_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def safe_ident(name: str) -> str:
    s = str(name or "").strip()
    if not _SAFE_IDENT.match(s):
        raise ValueError(f"invalid SQL identifier: {name!r}")
    return s


def connect(db_path: Path, *, timeout: float = 5.0) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path), timeout=timeout)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA_SQL)
    _ensure_columns(conn)
    _ensure_indexes(conn)
    conn.commit()


def _ensure_columns(conn: sqlite3.Connection) -> None:
    """Best-effort schema migration for existing databases.

    Older index databases predate highlightable menu keys. Adding columns is
    safe in SQLite; keep this additive.
    """

    def _cols(table: str) -> set[str]:
        return {r[1] for r in conn.execute(f"PRAGMA table_info({safe_ident(table)})").fetchall()}

    for table, columns in ((SITE_MAP_TABLE, SITE_MAP_COLUMNS), (INDEX_TABLE, INDEX_COLUMNS)):
        existing = _cols(table)
        for name in columns:
            if name not in existing:
                conn.execute(f"ALTER TABLE {table} ADD COLUMN {name} TEXT")


def _ensure_indexes(conn: sqlite3.Connection) -> None:
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_site_map_child ON site_map(child_class, child_title)"
    )


def count_rows(conn: sqlite3.Connection, table: str) -> int:
    row = conn.execute(f"SELECT COUNT(*) FROM {safe_ident(table)}").fetchone()
    return int(row[0]) if row else 0


def fetch_site_map_rows(conn: sqlite3.Connection) -> list[dict]:
    """Read the whole site map relation in insertion order."""
    rows = conn.execute(
        f"SELECT {', '.join(SITE_MAP_COLUMNS)} FROM {SITE_MAP_TABLE} ORDER BY rowid"
    ).fetchall()
    return [dict(r) for r in rows]


def clear_site_map(conn: sqlite3.Connection) -> None:
    conn.execute(f"DELETE FROM {SITE_MAP_TABLE}")


def _values(row: Mapping[str, object], columns: tuple[str, ...]) -> tuple:
    out = []
    for c in columns:
        v = row.get(c)
        out.append(None if v is None else str(v))
    return tuple(out)


def insert_site_map_rows(conn: sqlite3.Connection, rows: Iterable[Mapping[str, object]]) -> int:
    placeholders = ", ".join("?" for _ in SITE_MAP_COLUMNS)
    params = [_values(r, SITE_MAP_COLUMNS) for r in rows]
    conn.executemany(
        f"INSERT INTO {SITE_MAP_TABLE}({', '.join(SITE_MAP_COLUMNS)}) VALUES({placeholders})",
        params,
    )
    return len(params)


def insert_index_rows(conn: sqlite3.Connection, rows: Iterable[Mapping[str, object]]) -> int:
    placeholders = ", ".join("?" for _ in INDEX_COLUMNS)
    params = [_values(r, INDEX_COLUMNS) for r in rows]
    conn.executemany(
        f"INSERT INTO {INDEX_TABLE}({', '.join(INDEX_COLUMNS)}) VALUES({placeholders})",
        params,
    )
    return len(params)


def iter_index_rows(conn: sqlite3.Connection) -> Iterator[dict]:
    cur = conn.execute(f"SELECT {', '.join(INDEX_COLUMNS)} FROM {INDEX_TABLE} ORDER BY rowid")
    for r in cur:
        yield dict(r)
