"""
Leaderboard rank computation.

Canonical ordering is score descending, then earliest created_at first.
The rank of a (score, created_at) pair is

    count(score > s) + count(score == s and created_at < t) + 1

computed with two index-backed count queries. When the store reports
IndexMissing, every record is fetched and ranked locally instead.
"""

import logging
from datetime import datetime, timedelta
from typing import Sequence, Union

from domain.constants import RANK_MATCH_TOLERANCE_SECONDS
from domain.errors import IndexMissing, StoreUnavailable, TransientIOError
from domain.score_record import ScoreRecord, as_utc, canonical_sort_key, validate_score

logger = logging.getLogger(__name__)

# Returned instead of a rank when the leaderboard cannot answer
RANK_UNAVAILABLE = "N/A"

Rank = Union[int, str]


def fallback_rank(
    records: Sequence[ScoreRecord],
    score: int,
    created_at: datetime,
    tolerance: timedelta = timedelta(seconds=RANK_MATCH_TOLERANCE_SECONDS),
) -> int:
    """
    Rank by full scan.

    Sorts records canonically and returns the 1-based position of the
    first record with the same score whose timestamp lies within
    tolerance of created_at. Without a match the candidate is placed
    after every known record.
    """
    target = as_utc(created_at)
    ordered = sorted(records, key=canonical_sort_key)

    for index, record in enumerate(ordered):
        if record.score == score and abs(as_utc(record.created_at) - target) < tolerance:
            return index + 1

    return len(ordered) + 1


class RankingEngine:
    """
    Computes leaderboard ranks against a score store.

    Args:
        store: Object implementing the ScoreStore protocol, or None when
               the game runs offline.
    """

    def __init__(self, store=None):
        self.store = store

    def compute_rank(self, score: int, created_at: datetime) -> Rank:
        """
        Return the 1-based rank of score achieved at created_at.

        Returns RANK_UNAVAILABLE when the store is missing or failing.
        Raises ValidationError only for malformed arguments.
        """
        validate_score(score)
        target = as_utc(created_at)

        if self.store is None:
            logger.warning("No score store configured - cannot calculate rank")
            return RANK_UNAVAILABLE

        try:
            return self._primary_rank(score, target)
        except IndexMissing as e:
            logger.warning(f"Rank index unavailable, using fallback ranking: {e}")
            return self._fallback(score, target)
        except (StoreUnavailable, TransientIOError) as e:
            logger.error(f"Error calculating rank: {e}")
            return RANK_UNAVAILABLE

    def _primary_rank(self, score: int, created_at: datetime) -> int:
        higher = self.store.count_greater(score)
        equal_earlier = self.store.count_equal_earlier(score, created_at)
        rank = higher + equal_earlier + 1

        logger.info(
            f"Rank calculation result: score={score}, higher={higher}, "
            f"equal_earlier={equal_earlier}, rank={rank}"
        )
        return rank

    def _fallback(self, score: int, created_at: datetime) -> Rank:
        try:
            records = self.store.query_all()
        except (StoreUnavailable, TransientIOError) as e:
            logger.error(f"Error in fallback rank calculation: {e}")
            return RANK_UNAVAILABLE

        rank = fallback_rank(records, score, created_at)
        logger.info(f"Fallback rank result: total={len(records)}, rank={rank}")
        return rank

    def compute_fallback_rank(self, score: int, created_at: datetime) -> Rank:
        """Run the full-scan strategy directly, bypassing the count queries."""
        validate_score(score)
        if self.store is None:
            return RANK_UNAVAILABLE
        return self._fallback(score, as_utc(created_at))

