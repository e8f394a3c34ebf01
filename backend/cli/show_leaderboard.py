#!/usr/bin/env python3
"""
Print the leaderboard from the configured score store.

Usage:
    python backend/cli/show_leaderboard.py [--limit 10] [--rank-score 42 [--at 2025-01-01T12:00:00Z]]
"""

import os
import sys
import argparse
import logging
from datetime import datetime, timezone

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from data_access import get_rank, get_score_store, get_top_scores
from domain.constants import DEFAULT_TOP_N
from domain.errors import ValidationError
from domain.score_record import parse_timestamp


def show_leaderboard(limit: int = DEFAULT_TOP_N) -> int:
    """
    Print the top scores.

    Returns:
        Number of rows printed
    """
    store = get_score_store()
    if store is None:
        print("⚠️  Leaderboard offline - no score store configured")
        print("Set DATABASE_URL, SUPABASE_URL or SCORE_STORE_BACKEND=sqlite")
        return 0

    scores = get_top_scores(limit)
    print("=" * 56)
    print(f"🏆 TOP {limit} ({store.backend_name})")
    print("=" * 56)

    if not scores:
        print("No scores yet. Be the first!")
        return 0

    for position, record in enumerate(scores, start=1):
        when = record.created_at.strftime('%Y-%m-%d %H:%M:%S')
        print(f"{position:>3}. {record.username:<20} {record.score:>6}   {when} UTC")
    return len(scores)


def main():
    parser = argparse.ArgumentParser(description="Show the Snake leaderboard")
    parser.add_argument("--limit", type=int, default=DEFAULT_TOP_N,
                        help="Number of entries to show")
    parser.add_argument("--rank-score", type=int, default=None,
                        help="Also print the rank this score would have")
    parser.add_argument("--at", type=str, default=None,
                        help="ISO-8601 time the score was achieved (default: now)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)

    show_leaderboard(args.limit)

    if args.rank_score is not None:
        try:
            created_at = parse_timestamp(args.at) if args.at else datetime.now(timezone.utc)
            rank = get_rank(args.rank_score, created_at)
        except ValidationError as e:
            print(f"❌ {e}")
            sys.exit(1)
        print(f"\nScore {args.rank_score} at {created_at.isoformat()} ranks: {rank}")


if __name__ == "__main__":
    main()
