"""
SQLite database configuration and schema management.

Used for local development and offline leaderboards when no PostgreSQL
or Supabase backend is configured.
"""

import os
import logging
import sqlite3
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()
logger = logging.getLogger(__name__)

RANK_INDEX_NAME = "idx_scores_score_created_at"

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS scores (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL CHECK(length(username) BETWEEN 1 AND 20),
        score INTEGER NOT NULL CHECK(score >= 0),
        created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
    )
    """,
    f"""
    CREATE INDEX IF NOT EXISTS {RANK_INDEX_NAME}
        ON scores (score DESC, created_at ASC)
    """,
]


def get_database_path() -> str:
    """
    Determine the SQLite database path.

    Returns:
        SQLITE_DATABASE_PATH if set, otherwise backend/snake_scores.db
    """
    configured = os.getenv('SQLITE_DATABASE_PATH')
    if configured:
        parent = os.path.dirname(configured)
        if parent:
            os.makedirs(parent, exist_ok=True)
        return configured

    backend_dir = Path(__file__).parent
    return str(backend_dir / 'snake_scores.db')


def get_connection(db_path: str = None) -> sqlite3.Connection:
    """
    Get a database connection with appropriate settings.

    Returns:
        sqlite3.Connection: Database connection with row factory enabled.
    """
    conn = sqlite3.connect(db_path or get_database_path())
    conn.row_factory = sqlite3.Row  # Enable column access by name
    return conn


def init_database(db_path: str = None) -> None:
    """
    Initialize the scores table and rank index.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    path = db_path or get_database_path()
    logger.info(f"Initializing SQLite database at: {path}")

    conn = get_connection(path)
    cursor = conn.cursor()
    try:
        for statement in SCHEMA_STATEMENTS:
            cursor.execute(statement)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()
        conn.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_database()
    print(f"[OK] SQLite leaderboard ready at {get_database_path()}")
