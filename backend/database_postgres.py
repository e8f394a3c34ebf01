"""
PostgreSQL database connection and schema management.

Connects to PostgreSQL using DATABASE_URL (preferred) or individual
PGHOST/PGPORT/PGUSER/PGPASSWORD/PGDATABASE environment variables.

This module is provider-agnostic and works with Railway, Render, Heroku,
or any PostgreSQL instance.
"""

import os
import logging
import psycopg2
from psycopg2.extras import RealDictCursor
from dotenv import load_dotenv

load_dotenv()
logger = logging.getLogger(__name__)

RANK_INDEX_NAME = "idx_scores_score_created_at"

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS scores (
        id BIGSERIAL PRIMARY KEY,
        username VARCHAR(20) NOT NULL CHECK (char_length(username) >= 1),
        score INTEGER NOT NULL CHECK (score >= 0),
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    f"""
    CREATE INDEX IF NOT EXISTS {RANK_INDEX_NAME}
        ON scores (score DESC, created_at ASC)
    """,
]


def is_configured() -> bool:
    """True if DATABASE_URL or a complete set of PG* variables is present."""
    try:
        get_connection_string()
    except ValueError:
        return False
    return True


def get_connection_string() -> str:
    """
    Get the PostgreSQL connection string.

    Priority:
    1. DATABASE_URL environment variable (standard for Railway, Heroku, etc.)
    2. Individual PG* environment variables (PGHOST, PGPORT, PGUSER, PGPASSWORD, PGDATABASE)

    Returns:
        Connection string for PostgreSQL

    Raises:
        ValueError: If no valid connection configuration is found
    """
    database_url = os.getenv('DATABASE_URL')
    if database_url:
        return database_url

    pghost = os.getenv('PGHOST')
    pgport = os.getenv('PGPORT', '5432')
    pguser = os.getenv('PGUSER')
    pgpassword = os.getenv('PGPASSWORD')
    pgdatabase = os.getenv('PGDATABASE')

    if pghost and pguser and pgpassword and pgdatabase:
        return f"postgresql://{pguser}:{pgpassword}@{pghost}:{pgport}/{pgdatabase}"

    raise ValueError(
        "Database connection not configured. "
        "Set DATABASE_URL or PGHOST/PGUSER/PGPASSWORD/PGDATABASE environment variables."
    )


def get_connection():
    """
    Get a database connection to PostgreSQL.

    Returns:
        psycopg2 connection with RealDictCursor (returns rows as dictionaries)
    """
    try:
        conn_string = get_connection_string()
        conn = psycopg2.connect(conn_string, cursor_factory=RealDictCursor)
        return conn
    except Exception as e:
        logger.error(f"Failed to connect to PostgreSQL: {e}")
        raise


def init_database() -> None:
    """
    Create the scores table and the rank index.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn = get_connection()
    cursor = conn.cursor()
    try:
        for statement in SCHEMA_STATEMENTS:
            cursor.execute(statement)
        conn.commit()
        logger.info("PostgreSQL schema ready (scores table + rank index)")
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()
        conn.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Initializing PostgreSQL schema...")
    init_database()
    print("[OK] scores table and rank index are in place")
