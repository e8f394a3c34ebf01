"""
Data access layer for the Snake leaderboard.

This module provides the score store backends and the leaderboard
functions used by the API and the command line tools.
"""

from .score_store import (
    ScoreStore,
    get_score_store,
    set_score_store,
    reset_score_store,
)
from .leaderboard import save_score, get_top_scores, get_rank

__all__ = [
    'ScoreStore',
    'get_score_store',
    'set_score_store',
    'reset_score_store',
    'save_score',
    'get_top_scores',
    'get_rank',
]
