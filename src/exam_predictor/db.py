"""DuckDB helpers for local data bootstrapping."""

from __future__ import annotations

from pathlib import Path

import duckdb

IN_MEMORY = ":memory:"


def get_connection(db_path: str | Path) -> duckdb.DuckDBPyConnection:
    """Open the history database; file paths get their parent folder created."""
    if str(db_path) == IN_MEMORY:
        return duckdb.connect(IN_MEMORY)
    path = Path(db_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return duckdb.connect(str(path))


def init_schema(conn: duckdb.DuckDBPyConnection) -> None:
    """Create the key/value table that backs persisted client state."""
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS local_storage (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT current_timestamp
        )
        """
    )
