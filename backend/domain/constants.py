"""
Game constants for the Snake engine.
"""

# Movement directions (screen coordinates, y grows downward)
UP = "UP"
DOWN = "DOWN"
LEFT = "LEFT"
RIGHT = "RIGHT"
VALID_MOVES = {UP, DOWN, LEFT, RIGHT}

DIRECTION_VECTORS = {
    UP: (0, -1),
    DOWN: (0, 1),
    LEFT: (-1, 0),
    RIGHT: (1, 0),
}
STILL = (0, 0)

# Board
GRID_SIZE = 20
START_HEAD = (10, 10)

# Snake growth and pacing
INITIAL_TAIL_LENGTH = 2
INITIAL_SPEED = 9  # ticks per second
SPEED_THRESHOLDS = (2, 5, 10, 20)

# Seconds between eating an apple and the next one appearing
APPLE_RESPAWN_DELAY = 0.08

# Leaderboard
USERNAME_MIN_LENGTH = 1
USERNAME_MAX_LENGTH = 20
SCORE_MAX = 2147483647  # INTEGER column limit
DEFAULT_TOP_N = 5
RANK_MATCH_TOLERANCE_SECONDS = 1.0
