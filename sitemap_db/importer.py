from __future__ import annotations

import csv
import sqlite3
from dataclasses import dataclass

from .db import (
    INDEX_COLUMNS,
    SITE_MAP_COLUMNS,
    clear_site_map,
    insert_index_rows,
    insert_site_map_rows,
)


@dataclass
class ImportStats:
    inserted: int = 0
    skipped: int = 0


def _read_csv(path: str) -> list[dict]:
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return list(csv.DictReader(f))


def _clean(row: dict, columns: tuple[str, ...]) -> dict:
    # Blank cells become NULL; anything else is kept byte-for-byte, since
    # lookups compare titles exactly.
    out = {}
    for c in columns:
        v = row.get(c)
        s = "" if v is None else str(v)
        out[c] = s if s.strip() else None
    return out


def import_site_map(conn: sqlite3.Connection, csv_path: str, *, replace: bool = False) -> ImportStats:
    """Append (or with `replace`, swap in) site map edges from a CSV.

    Rows keep their file order, which is the order lookups break ties in.
    Edges with neither a child class nor a child title can never match and
    are skipped.
    """
    stats = ImportStats()
    rows = []
    for raw in _read_csv(csv_path):
        row = _clean(raw, SITE_MAP_COLUMNS)
        if not row["child_class"] and not row["child_title"]:
            stats.skipped += 1
            continue
        rows.append(row)

    if replace:
        clear_site_map(conn)
    stats.inserted = insert_site_map_rows(conn, rows)
    conn.commit()
    return stats


def import_index(conn: sqlite3.Connection, csv_path: str) -> ImportStats:
    stats = ImportStats()
    rows = []
    for raw in _read_csv(csv_path):
        row = _clean(raw, INDEX_COLUMNS)
        if not any(row.values()):
            stats.skipped += 1
            continue
        rows.append(row)

    stats.inserted = insert_index_rows(conn, rows)
    conn.commit()
    return stats
