from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol

from .db import connect, fetch_site_map_rows
from .errors import SourceUnavailable


class RelationSource(Protocol):
    """Read side of the five-column site map relation."""

    def fetch_rows(self) -> Iterable[Mapping[str, str | None]]: ...


class SqliteRelationSource:
    """Reads `site_map` from a SQLite index database, one connection per fetch."""

    def __init__(self, db_path: Path, *, timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.timeout = timeout

    def fetch_rows(self) -> list[dict]:
        if not self.db_path.exists():
            raise SourceUnavailable(f"site map database not found: {self.db_path}")
        try:
            conn = connect(self.db_path, timeout=self.timeout)
        except sqlite3.Error as e:
            raise SourceUnavailable(f"cannot open {self.db_path}: {e}") from e
        try:
            return fetch_site_map_rows(conn)
        except sqlite3.Error as e:
            raise SourceUnavailable(f"cannot read site map from {self.db_path}: {e}") from e
        finally:
            conn.close()

    def __repr__(self) -> str:
        return f"SqliteRelationSource({str(self.db_path)!r})"


class StaticRelationSource:
    """Serves a fixed list of rows; `rows` may be swapped to simulate a table update."""

    def __init__(self, rows: Iterable[Mapping[str, str | None]] = ()):
        self.rows = list(rows)
        self.fetch_count = 0

    def fetch_rows(self) -> list[Mapping[str, str | None]]:
        self.fetch_count += 1
        return list(self.rows)
