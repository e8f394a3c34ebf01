"""
Leaderboard query functions for the Flask API and CLI tools.

These functions delegate to the configured score store and never raise
for a missing backend: saves report failure, listings come back empty
and ranks come back as RANK_UNAVAILABLE.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List

from domain.constants import DEFAULT_TOP_N
from domain.errors import StoreUnavailable, TransientIOError
from domain.score_record import ScoreRecord, validate_score, validate_username
from services.ranking_engine import Rank, RankingEngine
from .score_store import get_score_store

logger = logging.getLogger(__name__)


def save_score(username: str, score: int) -> Dict[str, Any]:
    """
    Save a player's score.

    Args:
        username: Player name (1-20 characters after trimming)
        score: Non-negative integer

    Returns:
        {"success": True, "record_id", "username", "score", "created_at"} or
        {"success": False, "error", "retryable"}

    Raises:
        ValidationError: if username or score are invalid
    """
    name = validate_username(username)
    value = validate_score(score)

    store = get_score_store()
    if store is None:
        logger.warning("Score store not available - cannot save score")
        return {
            "success": False,
            "error": "Leaderboard not available. Game running in offline mode.",
            "retryable": False,
        }

    try:
        record = store.save(name, value)
    except TransientIOError as e:
        return {"success": False, "error": str(e), "retryable": True}
    except StoreUnavailable as e:
        return {"success": False, "error": str(e), "retryable": False}

    result = {"success": True}
    result.update(record.to_dict())
    return result


def get_top_scores(limit: int = DEFAULT_TOP_N) -> List[ScoreRecord]:
    """
    Get the best scores, score descending then earliest first.

    Returns:
        Up to `limit` records; empty when the store is unavailable
    """
    store = get_score_store()
    if store is None or limit <= 0:
        return []

    try:
        return store.query_top(limit)
    except (StoreUnavailable, TransientIOError) as e:
        logger.error(f"Error getting top scores: {e}")
        return []


def get_rank(score: int, created_at: datetime) -> Rank:
    """
    Get the 1-based rank of a score achieved at created_at.

    Returns:
        Rank, or RANK_UNAVAILABLE when the leaderboard cannot answer
    """
    return RankingEngine(get_score_store()).compute_rank(score, created_at)
