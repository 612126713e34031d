"""Shared SQLite helpers (WAL mode, row factory, JSON columns)."""

import json
import sqlite3
from pathlib import Path
from typing import Any


def wal_connect(db_path: str | Path, row_factory: bool = False) -> sqlite3.Connection:
    """Open SQLite connection with WAL journal mode.

    Args:
        db_path: Path to database file.
        row_factory: If True, set conn.row_factory = sqlite3.Row.
    """
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    if row_factory:
        conn.row_factory = sqlite3.Row
    return conn


def dump_json(value: Any) -> str:
    """Serialize a JSON column; dates and other non-JSON scalars become strings."""
    return json.dumps(value, default=str)


def load_json(raw: str | None, default: Any = None) -> Any:
    if raw is None or raw == "":
        return default
    return json.loads(raw)
