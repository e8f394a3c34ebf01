"""
Score repository for leaderboard database operations.

ScoreRepository targets PostgreSQL through psycopg2; SQLiteScoreRepository
reuses the same queries against a local SQLite file.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, List, Optional

import psycopg2

import database
import database_postgres
from domain.errors import IndexMissing, LeaderboardError, StoreUnavailable, TransientIOError
from domain.score_record import (
    ScoreRecord,
    as_utc,
    parse_timestamp,
    validate_score,
    validate_username,
)
from .base import BaseRepository

logger = logging.getLogger(__name__)


class ScoreRepository(BaseRepository):
    """
    Repository for the scores table.

    Rank counts are only issued once the rank index has been seen in
    the catalog; without it they raise IndexMissing so callers switch to
    the full-scan fallback instead of scanning on every request.
    """

    backend_name = "postgres"
    placeholder = "%s"
    rank_index_name = database_postgres.RANK_INDEX_NAME
    # DB-API base class: lost connections, a missing table and out-of-range values alike
    transient_errors = (psycopg2.Error,)
    index_lookup_sql = """
        SELECT 1 AS present
        FROM pg_indexes
        WHERE tablename = 'scores' AND indexname = %s
    """

    def __init__(self, connect=None):
        super().__init__(connect)
        self._rank_index_ready = False

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _sql(self, query: str) -> str:
        return query.replace("{p}", self.placeholder)

    @contextmanager
    def _guard(self, operation: str) -> Generator[None, None, None]:
        """
        Translate driver failures into the leaderboard error taxonomy.
        """
        try:
            yield
        except LeaderboardError:
            raise
        except self.transient_errors as e:
            logger.error(f"[{self.backend_name}] {operation} failed: {e}")
            raise TransientIOError(f"{operation} failed: {e}") from e
        except ValueError as e:
            # Raised by connection-string resolution when nothing is configured
            logger.warning(f"[{self.backend_name}] {operation}: store not configured ({e})")
            raise StoreUnavailable(str(e)) from e

    def _row_to_record(self, row: Dict[str, Any]) -> ScoreRecord:
        return ScoreRecord(
            username=row['username'],
            score=int(row['score']),
            created_at=parse_timestamp(row['created_at']),
            record_id=str(row['id']) if row['id'] is not None else None,
        )

    def _format_timestamp(self, created_at: datetime) -> Any:
        return as_utc(created_at)

    def _require_rank_index(self, cursor) -> None:
        if self._rank_index_ready:
            return
        cursor.execute(self.index_lookup_sql, (self.rank_index_name,))
        if cursor.fetchone() is None:
            raise IndexMissing(
                f"Rank index '{self.rank_index_name}' is missing on table 'scores'"
            )
        self._rank_index_ready = True

    # -------------------------------------------------------------------------
    # Score store interface
    # -------------------------------------------------------------------------

    def save(self, username: str, score: int) -> ScoreRecord:
        """
        Insert a score and read back the store-assigned timestamp.

        Raises:
            ValidationError: before any I/O if username/score are invalid
            TransientIOError: on driver/network failure
        """
        name = validate_username(username)
        value = validate_score(score)

        with self._guard("save"):
            with self.connection() as (conn, cursor):
                cursor.execute(self._sql("""
                    INSERT INTO scores (username, score)
                    VALUES ({p}, {p})
                    RETURNING id, username, score, created_at
                """), (name, value))
                row = cursor.fetchone()

        record = self._row_to_record(row)
        logger.info(
            f"[{self.backend_name}] Saved score {record.score} for '{record.username}' "
            f"(id={record.record_id}, created_at={record.created_at.isoformat()})"
        )
        return record

    def query_top(self, n: int) -> List[ScoreRecord]:
        """
        Get the best n records, score descending then earliest first.
        """
        if n <= 0:
            return []

        with self._guard("query_top"):
            with self.read_connection() as (conn, cursor):
                cursor.execute(self._sql("""
                    SELECT id, username, score, created_at
                    FROM scores
                    ORDER BY score DESC, created_at ASC
                    LIMIT {p}
                """), (n,))
                rows = cursor.fetchall()

        return [self._row_to_record(row) for row in rows]

    def count_greater(self, score: int) -> int:
        """
        Count records with a strictly greater score.

        Raises:
            IndexMissing: if the rank index does not exist
        """
        with self._guard("count_greater"):
            with self.read_connection() as (conn, cursor):
                self._require_rank_index(cursor)
                cursor.execute(self._sql("""
                    SELECT COUNT(*) AS count
                    FROM scores
                    WHERE score > {p}
                """), (score,))
                row = cursor.fetchone()

        return int(row['count']) if row else 0

    def count_equal_earlier(self, score: int, created_at: datetime) -> int:
        """
        Count records with the same score achieved strictly earlier.

        Raises:
            IndexMissing: if the rank index does not exist
        """
        with self._guard("count_equal_earlier"):
            with self.read_connection() as (conn, cursor):
                self._require_rank_index(cursor)
                cursor.execute(self._sql("""
                    SELECT COUNT(*) AS count
                    FROM scores
                    WHERE score = {p} AND created_at < {p}
                """), (score, self._format_timestamp(created_at)))
                row = cursor.fetchone()

        return int(row['count']) if row else 0

    def query_all(self) -> List[ScoreRecord]:
        """
        Get every record in canonical order. Only used by the rank fallback.
        """
        with self._guard("query_all"):
            with self.read_connection() as (conn, cursor):
                cursor.execute("""
                    SELECT id, username, score, created_at
                    FROM scores
                    ORDER BY score DESC, created_at ASC
                """)
                rows = cursor.fetchall()

        return [self._row_to_record(row) for row in rows]

    def get_total_count(self) -> int:
        with self._guard("get_total_count"):
            with self.read_connection() as (conn, cursor):
                cursor.execute("SELECT COUNT(*) AS count FROM scores")
                row = cursor.fetchone()

        return int(row['count']) if row else 0


class SQLiteScoreRepository(ScoreRepository):
    """
    ScoreRepository backed by a local SQLite file.

    Timestamps are stored as ISO-8601 UTC text with millisecond precision,
    which sorts lexicographically in time order.
    """

    backend_name = "sqlite"
    placeholder = "?"
    rank_index_name = database.RANK_INDEX_NAME
    transient_errors = (sqlite3.Error,)
    index_lookup_sql = """
        SELECT 1 AS present
        FROM sqlite_master
        WHERE type = 'index' AND tbl_name = 'scores' AND name = ?
    """

    def __init__(self, db_path: Optional[str] = None, initialize: bool = True):
        self.db_path = db_path or database.get_database_path()
        super().__init__(connect=lambda: database.get_connection(self.db_path))
        if initialize:
            database.init_database(self.db_path)

    def _format_timestamp(self, created_at: datetime) -> Any:
        # Match the column format written by strftime('%Y-%m-%dT%H:%M:%f')
        utc = as_utc(created_at)
        return utc.strftime('%Y-%m-%dT%H:%M:%S.') + f"{utc.microsecond // 1000:03d}"
