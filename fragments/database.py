"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Optional


def init_database(database_path: str) -> None:
    """
    Initialize database and create tables if they don't exist.

    Args:
        database_path: Path to the SQLite file
    """
    db_path = Path(database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection(database_path) as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS fragments (
                owner_id TEXT NOT NULL,
                id TEXT NOT NULL,
                type TEXT NOT NULL,
                size INTEGER NOT NULL,
                created TEXT NOT NULL,
                updated TEXT NOT NULL,
                PRIMARY KEY(owner_id, id)
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_fragments_owner ON fragments(owner_id)
        """)

        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS idx_fragments_id_unique ON fragments(id)
        """)

        conn.commit()


@contextmanager
def get_db_connection(database_path: str) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(database_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def row_to_dict(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    """
    Convert a sqlite3.Row to a plain dict, passing None through.
    """
    if row is None:
        return None
    return {key: row[key] for key in row.keys()}
