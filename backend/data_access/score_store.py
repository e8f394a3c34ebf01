"""
Score store interface and backend selection.

SCORE_STORE_BACKEND picks the backend explicitly (postgres, sqlite,
supabase, none). When it is unset the first configured backend wins:
DATABASE_URL / PG* -> postgres, SUPABASE_URL -> supabase, otherwise the
game runs offline and get_score_store() returns None.
"""

import os
import logging
from datetime import datetime
from typing import List, Optional, Protocol

from dotenv import load_dotenv

import database_postgres
from domain.errors import StoreUnavailable
from domain.score_record import ScoreRecord

load_dotenv()
logger = logging.getLogger(__name__)

BACKENDS = ("postgres", "sqlite", "supabase", "none")


class ScoreStore(Protocol):
    backend_name: str

    def save(self, username: str, score: int) -> ScoreRecord: ...

    def query_top(self, n: int) -> List[ScoreRecord]: ...

    def count_greater(self, score: int) -> int: ...

    def count_equal_earlier(self, score: int, created_at: datetime) -> int: ...

    def query_all(self) -> List[ScoreRecord]: ...


_store: Optional[ScoreStore] = None
_resolved = False


def resolve_backend_name() -> Optional[str]:
    """
    Decide which backend the environment asks for.

    Raises:
        StoreUnavailable: If SCORE_STORE_BACKEND names an unknown backend
    """
    from data_access import supabase_score_store

    explicit = (os.getenv('SCORE_STORE_BACKEND') or '').strip().lower()
    if explicit:
        if explicit not in BACKENDS:
            raise StoreUnavailable(
                f"Unknown SCORE_STORE_BACKEND '{explicit}'. Expected one of: {', '.join(BACKENDS)}"
            )
        return None if explicit == "none" else explicit

    if database_postgres.is_configured():
        return "postgres"
    if supabase_score_store.is_configured():
        return "supabase"
    return None


def create_score_store(backend: Optional[str]) -> Optional[ScoreStore]:
    if backend is None:
        return None

    if backend == "postgres":
        from data_access.repositories import ScoreRepository
        return ScoreRepository()
    if backend == "sqlite":
        from data_access.repositories import SQLiteScoreRepository
        return SQLiteScoreRepository()
    if backend == "supabase":
        from data_access.supabase_score_store import SupabaseScoreStore
        return SupabaseScoreStore()

    raise StoreUnavailable(f"Unknown score store backend '{backend}'")


def get_score_store() -> Optional[ScoreStore]:
    """
    Get the process-wide score store, or None when running offline.

    Configuration problems are logged once and treated as offline mode.
    """
    global _store, _resolved

    if _resolved:
        return _store

    try:
        backend = resolve_backend_name()
        _store = create_score_store(backend)
    except Exception as e:
        logger.warning(f"Score store unavailable, running in offline mode: {e}")
        _store = None

    _resolved = True
    if _store is None:
        logger.info("No score store configured - leaderboard disabled")
    else:
        logger.info(f"Using '{_store.backend_name}' score store")
    return _store


def set_score_store(store: Optional[ScoreStore]) -> None:
    """Install a store explicitly (tests, embedding applications)."""
    global _store, _resolved
    _store = store
    _resolved = True


def reset_score_store() -> None:
    """Forget the cached store so the next call re-reads the environment."""
    global _store, _resolved
    _store = None
    _resolved = False
