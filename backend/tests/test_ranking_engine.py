import os
import sys
import random
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domain.errors import IndexMissing, StoreUnavailable, TransientIOError, ValidationError
from domain.score_record import ScoreRecord
from services.ranking_engine import RANK_UNAVAILABLE, RankingEngine, fallback_rank

T0 = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class ListStore:
    """In-memory store answering the count queries from a plain list."""

    backend_name = "memory"

    def __init__(self, records=None, index_present=True):
        self.records = list(records or [])
        self.index_present = index_present
        self.query_all_calls = 0

    def add(self, username, score, created_at):
        record = ScoreRecord(username, score, created_at, str(len(self.records) + 1))
        self.records.append(record)
        return record

    def count_greater(self, score):
        if not self.index_present:
            raise IndexMissing("idx_scores_score_created_at")
        return sum(1 for r in self.records if r.score > score)

    def count_equal_earlier(self, score, created_at):
        if not self.index_present:
            raise IndexMissing("idx_scores_score_created_at")
        return sum(1 for r in self.records if r.score == score and r.created_at < created_at)

    def query_all(self):
        self.query_all_calls += 1
        return list(self.records)


def test_empty_store_ranks_first():
    engine = RankingEngine(ListStore())
    assert engine.compute_rank(0, T0) == 1
    assert engine.compute_rank(100, T0) == 1


def test_ties_broken_by_earliest_timestamp():
    store = ListStore()
    store.add("A", 50, T0)
    store.add("B", 30, T0 + timedelta(seconds=10))
    c = store.add("C", 50, T0 + timedelta(seconds=20))

    engine = RankingEngine(store)
    assert engine.compute_rank(c.score, c.created_at) == 2
    assert engine.compute_rank(50, T0) == 1
    assert engine.compute_rank(30, T0 + timedelta(seconds=10)) == 3


def test_new_score_below_everything_ranks_last():
    store = ListStore()
    for i in range(4):
        store.add(f"p{i}", 10 + i, T0 + timedelta(minutes=i))
    assert RankingEngine(store).compute_rank(1, T0 + timedelta(hours=1)) == 5


def test_naive_timestamp_treated_as_utc():
    store = ListStore()
    store.add("A", 5, T0)
    naive = T0.replace(tzinfo=None) + timedelta(seconds=1)
    assert RankingEngine(store).compute_rank(5, naive) == 2


def test_index_missing_uses_fallback():
    store = ListStore(index_present=False)
    store.add("A", 50, T0)
    store.add("B", 30, T0 + timedelta(seconds=10))
    c = store.add("C", 50, T0 + timedelta(seconds=20))

    rank = RankingEngine(store).compute_rank(c.score, c.created_at)

    assert rank == 2
    assert store.query_all_calls == 1


def test_primary_and_fallback_agree_on_stored_records():
    rng = random.Random(42)
    store = ListStore()
    for i in range(60):
        # Scores drawn from a narrow range to force plenty of ties
        store.add(f"p{i}", rng.randint(0, 8), T0 + timedelta(seconds=5 * i))

    engine = RankingEngine(store)
    for record in store.records:
        primary = engine.compute_rank(record.score, record.created_at)
        fallback = engine.compute_fallback_rank(record.score, record.created_at)
        assert primary == fallback


def test_canonical_order_matches_ranks():
    store = ListStore()
    store.add("A", 7, T0 + timedelta(seconds=3))
    store.add("B", 9, T0 + timedelta(seconds=2))
    store.add("C", 7, T0 + timedelta(seconds=1))

    engine = RankingEngine(store)
    ranks = {r.username: engine.compute_rank(r.score, r.created_at) for r in store.records}
    assert ranks == {"B": 1, "C": 2, "A": 3}


def test_no_store_returns_unavailable():
    assert RankingEngine(None).compute_rank(10, T0) == RANK_UNAVAILABLE
    assert RankingEngine(None).compute_fallback_rank(10, T0) == RANK_UNAVAILABLE


@pytest.mark.parametrize("error", [StoreUnavailable("down"), TransientIOError("timeout")])
def test_store_errors_return_unavailable(error):
    store = MagicMock()
    store.count_greater.side_effect = error

    assert RankingEngine(store).compute_rank(10, T0) == RANK_UNAVAILABLE
    store.query_all.assert_not_called()


def test_fallback_failure_returns_unavailable():
    store = MagicMock()
    store.count_greater.side_effect = IndexMissing("no index")
    store.query_all.side_effect = TransientIOError("connection reset")

    assert RankingEngine(store).compute_rank(10, T0) == RANK_UNAVAILABLE


def test_primary_rank_uses_both_counts():
    store = MagicMock()
    store.count_greater.return_value = 4
    store.count_equal_earlier.return_value = 2

    assert RankingEngine(store).compute_rank(10, T0) == 7
    store.count_greater.assert_called_once_with(10)
    store.count_equal_earlier.assert_called_once_with(10, T0)


@pytest.mark.parametrize("score", [-1, 1.5, "10", True, None, 2**31])
def test_invalid_score_raises(score):
    with pytest.raises(ValidationError):
        RankingEngine(ListStore()).compute_rank(score, T0)


def test_fallback_rank_tolerance_is_strict():
    records = [
        ScoreRecord("A", 50, T0),
        ScoreRecord("B", 50, T0 + timedelta(seconds=5)),
    ]
    # Within one second of B's timestamp: matches B
    assert fallback_rank(records, 50, T0 + timedelta(seconds=5, milliseconds=400)) == 2
    # Exactly one second away is not a match
    assert fallback_rank(records, 50, T0 + timedelta(seconds=6)) == 3


def test_fallback_rank_without_match_is_len_plus_one():
    records = [ScoreRecord("A", 50, T0), ScoreRecord("B", 40, T0)]
    assert fallback_rank(records, 45, T0) == 3
    assert fallback_rank([], 45, T0) == 1


def test_fallback_rank_ignores_input_order():
    records = [
        ScoreRecord("C", 10, T0 + timedelta(seconds=30)),
        ScoreRecord("A", 20, T0),
        ScoreRecord("B", 10, T0 + timedelta(seconds=10)),
    ]
    assert fallback_rank(records, 10, T0 + timedelta(seconds=30)) == 3
    assert fallback_rank(records, 10, T0 + timedelta(seconds=10)) == 2
