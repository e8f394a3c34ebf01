"""
Domain entities for the Snake game and its leaderboard.

This module contains the core game entities that are independent of
infrastructure concerns (database, HTTP, etc.).
"""

from .constants import (
    UP, DOWN, LEFT, RIGHT, VALID_MOVES, DIRECTION_VECTORS, GRID_SIZE,
    INITIAL_TAIL_LENGTH, INITIAL_SPEED, SPEED_THRESHOLDS,
)
from .errors import (
    LeaderboardError,
    ValidationError,
    StoreUnavailable,
    IndexMissing,
    TransientIOError,
    SaveInProgress,
)
from .events import EventEmitter
from .game_state import GamePhase, GameState
from .score_record import ScoreRecord, validate_username, validate_score, canonical_sort_key
from .snake import Snake

__all__ = [
    'UP', 'DOWN', 'LEFT', 'RIGHT', 'VALID_MOVES', 'DIRECTION_VECTORS', 'GRID_SIZE',
    'INITIAL_TAIL_LENGTH', 'INITIAL_SPEED', 'SPEED_THRESHOLDS',
    'LeaderboardError', 'ValidationError', 'StoreUnavailable', 'IndexMissing',
    'TransientIOError', 'SaveInProgress',
    'EventEmitter',
    'GamePhase', 'GameState',
    'ScoreRecord', 'validate_username', 'validate_score', 'canonical_sort_key',
    'Snake',
]
