"""
Score store backed by a Supabase (PostgREST) table.

Expected table (create it from the Supabase SQL editor):

    create table scores (
        id bigint generated by default as identity primary key,
        username varchar(20) not null,
        score integer not null check (score >= 0),
        created_at timestamptz not null default now()
    );
    create index idx_scores_score_created_at on scores (score desc, created_at asc);
"""

import os
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generator, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from domain.errors import IndexMissing, LeaderboardError, StoreUnavailable, TransientIOError
from domain.score_record import (
    ScoreRecord,
    as_utc,
    parse_timestamp,
    validate_score,
    validate_username,
)

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "scores"
PAGE_SIZE = 1000  # PostgREST default max rows per request
COLUMNS = "id, username, score, created_at"


def is_configured() -> bool:
    return bool(os.getenv('SUPABASE_URL') and os.getenv('SUPABASE_SERVICE_ROLE'))


def create_supabase_client() -> Client:
    """
    Build a client from SUPABASE_URL and SUPABASE_SERVICE_ROLE.

    Raises:
        StoreUnavailable: If either variable is missing
    """
    url = os.getenv('SUPABASE_URL')
    key = os.getenv('SUPABASE_SERVICE_ROLE')

    if not url or not key:
        raise StoreUnavailable("SUPABASE_URL and SUPABASE_SERVICE_ROLE are required")

    client = create_client(url, key)
    logger.info(f"Supabase client initialized for project: {url}")
    return client


class SupabaseScoreStore:
    """
    Leaderboard store on a Supabase table.

    PostgREST reports a missing index only through its error text, so any
    API error mentioning an index is treated as IndexMissing.
    """

    backend_name = "supabase"

    def __init__(self, client: Optional[Client] = None, table: Optional[str] = None):
        self.client = client or create_supabase_client()
        self.table_name = table or os.getenv('SUPABASE_SCORES_TABLE', DEFAULT_TABLE)

    def _table(self):
        return self.client.table(self.table_name)

    @contextmanager
    def _guard(self, operation: str, rank_query: bool = False) -> Generator[None, None, None]:
        try:
            yield
        except LeaderboardError:
            raise
        except APIError as e:
            message = str(getattr(e, "message", None) or e)
            if rank_query and "index" in message.lower():
                logger.warning(f"[supabase] {operation}: index required ({message})")
                raise IndexMissing(message) from e
            logger.error(f"[supabase] {operation} failed: {message}")
            raise TransientIOError(f"{operation} failed: {message}") from e
        except httpx.HTTPError as e:
            logger.error(f"[supabase] {operation} failed: {e}")
            raise TransientIOError(f"{operation} failed: {e}") from e

    @staticmethod
    def _row_to_record(row: Dict[str, Any]) -> ScoreRecord:
        return ScoreRecord(
            username=row["username"],
            score=int(row["score"]),
            created_at=parse_timestamp(row["created_at"]),
            record_id=str(row["id"]) if row.get("id") is not None else None,
        )

    def save(self, username: str, score: int) -> ScoreRecord:
        name = validate_username(username)
        value = validate_score(score)

        with self._guard("save"):
            response = self._table().insert({"username": name, "score": value}).execute()

        if not response.data:
            raise TransientIOError("save failed: insert returned no row")

        record = self._row_to_record(response.data[0])
        logger.info(
            f"[supabase] Saved score {record.score} for '{record.username}' "
            f"(id={record.record_id})"
        )
        return record

    def query_top(self, n: int) -> List[ScoreRecord]:
        if n <= 0:
            return []

        with self._guard("query_top"):
            response = (
                self._table()
                .select(COLUMNS)
                .order("score", desc=True)
                .order("created_at", desc=False)
                .limit(n)
                .execute()
            )
        return [self._row_to_record(row) for row in response.data or []]

    def count_greater(self, score: int) -> int:
        with self._guard("count_greater", rank_query=True):
            response = (
                self._table()
                .select("id", count="exact")
                .gt("score", score)
                .limit(1)
                .execute()
            )
        return response.count or 0

    def count_equal_earlier(self, score: int, created_at: datetime) -> int:
        with self._guard("count_equal_earlier", rank_query=True):
            response = (
                self._table()
                .select("id", count="exact")
                .eq("score", score)
                .lt("created_at", as_utc(created_at).isoformat())
                .limit(1)
                .execute()
            )
        return response.count or 0

    def query_all(self) -> List[ScoreRecord]:
        """
        Page through the whole table in canonical order.
        """
        records: List[ScoreRecord] = []
        start = 0
        with self._guard("query_all"):
            while True:
                response = (
                    self._table()
                    .select(COLUMNS)
                    .order("score", desc=True)
                    .order("created_at", desc=False)
                    .range(start, start + PAGE_SIZE - 1)
                    .execute()
                )
                rows = response.data or []
                records.extend(self._row_to_record(row) for row in rows)
                if len(rows) < PAGE_SIZE:
                    break
                start += PAGE_SIZE
        return records
