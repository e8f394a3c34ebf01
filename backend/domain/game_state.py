"""
GameState entity - a snapshot of the game at a point in time.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class GamePhase(str, Enum):
    PRE_START = "pre-start"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game-over"


class GameState:
    """
    A snapshot of the game at a specific point in time.

    Attributes:
        phase: current GamePhase
        username: player name for this session ('' before start)
        head: (x, y) of the snake head
        body: list of (x, y), oldest segment first
        apple: (x, y) of the apple, or None while it is being relocated
        velocity: current (dx, dy)
        score, speed, tail_length: progression counters
        tick_count: number of non-idle ticks processed
        width, height: board dimensions
        won: True if the game ended because the board filled up
    """

    def __init__(
        self,
        phase: GamePhase,
        username: str,
        head: Tuple[int, int],
        body: List[Tuple[int, int]],
        apple: Optional[Tuple[int, int]],
        velocity: Tuple[int, int],
        score: int,
        speed: int,
        tail_length: int,
        tick_count: int,
        width: int,
        height: int,
        won: bool = False
    ):
        self.phase = phase
        self.username = username
        self.head = head
        self.body = body
        self.apple = apple
        self.velocity = velocity
        self.score = score
        self.speed = speed
        self.tail_length = tail_length
        self.tick_count = tick_count
        self.width = width
        self.height = height
        self.won = won

    def print_board(self) -> str:
        """
        Returns a string representation of the board with:
        . = empty space
        A = apple
        o = snake body
        H = snake head
        Row 0 is printed first (y grows downward).
        """
        board = [['.' for _ in range(self.width)] for _ in range(self.height)]

        if self.apple is not None:
            ax, ay = self.apple
            board[ay][ax] = 'A'

        for x, y in self.body:
            if 0 <= x < self.width and 0 <= y < self.height:
                board[y][x] = 'o'

        hx, hy = self.head
        if 0 <= hx < self.width and 0 <= hy < self.height:
            board[hy][hx] = 'H'

        result = [f"{y:2d} {' '.join(row)}" for y, row in enumerate(board)]
        result.append("   " + " ".join(str(i % 10) for i in range(self.width)))
        return "\n".join(result)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "username": self.username,
            "head": list(self.head),
            "body": [list(p) for p in self.body],
            "apple": list(self.apple) if self.apple is not None else None,
            "velocity": list(self.velocity),
            "score": self.score,
            "speed": self.speed,
            "tail_length": self.tail_length,
            "tick_count": self.tick_count,
            "width": self.width,
            "height": self.height,
            "won": self.won,
        }

    def __repr__(self):
        return (
            f"<GameState phase={self.phase.value}, score={self.score}, "
            f"head={self.head}, apple={self.apple}>"
        )
