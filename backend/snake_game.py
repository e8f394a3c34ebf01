"""
Single-player Snake engine.

SnakeGame owns all simulation state and the phase machine
pre-start -> playing <-> paused -> game-over -> pre-start.
It is polled every display frame and advances the simulation at
1/speed second intervals. UI code subscribes to its events.
"""

import logging
import random
import time
from typing import Callable, Optional, Tuple, Union

from domain import events
from domain.constants import (
    APPLE_RESPAWN_DELAY,
    DIRECTION_VECTORS,
    GRID_SIZE,
    INITIAL_SPEED,
    INITIAL_TAIL_LENGTH,
    SPEED_THRESHOLDS,
    START_HEAD,
    STILL,
)
from domain.events import EventEmitter
from domain.game_state import GamePhase, GameState
from domain.score_record import validate_username
from domain.snake import Position, Snake, Velocity

logger = logging.getLogger(__name__)

Direction = Union[str, Velocity]


class SnakeGame:
    """
    Manages:
      - Board (grid_size x grid_size)
      - The snake and its growth
      - The apple
      - Score and speed
      - Phase transitions and the events they emit
    """

    def __init__(
        self,
        grid_size: int = GRID_SIZE,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        apple_respawn_delay: float = APPLE_RESPAWN_DELAY,
        emitter: Optional[EventEmitter] = None
    ):
        self.grid_size = grid_size
        self.rng = rng or random.Random()
        self.clock = clock
        self.apple_respawn_delay = apple_respawn_delay
        self.events = emitter or EventEmitter()

        self.phase = GamePhase.PRE_START
        self.username = ""
        self._reset_board()

    # ------------------------------------------------------------------
    # Board setup
    # ------------------------------------------------------------------

    def _reset_board(self) -> None:
        self.snake = Snake(head=START_HEAD, tail_length=INITIAL_TAIL_LENGTH)
        self.score = 0
        self.speed = INITIAL_SPEED
        self.tick_count = 0
        self.won = False
        self.last_tick_time: Optional[float] = None
        self.apple_due_at: Optional[float] = None
        self.apple: Optional[Position] = self.place_apple()

    def in_bounds(self, position: Position) -> bool:
        x, y = position
        return 0 <= x < self.grid_size and 0 <= y < self.grid_size

    def place_apple(self) -> Optional[Position]:
        """
        Return a random cell not occupied by the snake head or body.

        Rejection sampling is bounded; after that the free cells are scanned
        so a nearly full board still terminates. Returns None when no cell is
        free.
        """
        max_attempts = self.grid_size * self.grid_size * 4
        for _ in range(max_attempts):
            cell = (
                self.rng.randrange(self.grid_size),
                self.rng.randrange(self.grid_size),
            )
            if not self.snake.occupies(cell):
                return cell

        free_cells = [
            (x, y)
            for y in range(self.grid_size)
            for x in range(self.grid_size)
            if not self.snake.occupies((x, y))
        ]
        if not free_cells:
            return None
        return self.rng.choice(free_cells)

    # ------------------------------------------------------------------
    # Commands (UI event interface)
    # ------------------------------------------------------------------

    def start(self, username: str) -> bool:
        """
        pre-start -> playing. Raises ValidationError for a bad username.
        """
        name = validate_username(username)
        if self.phase != GamePhase.PRE_START:
            logger.warning(f"Ignoring start in phase {self.phase.value}")
            return False

        self._reset_board()
        self.username = name
        self.phase = GamePhase.PLAYING
        logger.info(f"Game started for player: {name}")
        self.events.emit(events.GAME_STARTED, name)
        return True

    def request_direction(self, direction: Direction) -> bool:
        """
        Change heading. Reversals, input while paused and input outside
        play are dropped without error.
        """
        velocity = self._to_velocity(direction)
        if velocity is None or velocity == STILL:
            return False
        if self.phase != GamePhase.PLAYING:
            return False
        if self.snake.is_reverse(velocity):
            return False

        if velocity != self.snake.velocity:
            self.snake.velocity = velocity
            self.events.emit(events.DIRECTION_CHANGED, velocity)
        return True

    def toggle_pause(self) -> bool:
        """Only a moving game can be paused."""
        if not self.snake.is_moving:
            return False

        if self.phase == GamePhase.PLAYING:
            self.phase = GamePhase.PAUSED
            self.events.emit(events.PAUSED)
            return True
        if self.phase == GamePhase.PAUSED:
            self.phase = GamePhase.PLAYING
            self.events.emit(events.RESUMED)
            return True
        return False

    def restart(self) -> bool:
        """Back to pre-start with a fresh board. No-op if already there."""
        if self.phase == GamePhase.PRE_START:
            return False

        self.phase = GamePhase.PRE_START
        self._reset_board()
        logger.info("Game reset to pre-start")
        self.events.emit(events.RESTARTED)
        return True

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    @property
    def tick_interval(self) -> float:
        return 1.0 / self.speed

    def poll(self, now: Optional[float] = None) -> bool:
        """
        Called once per display frame. Places a due apple and runs a tick
        once 1/speed seconds have elapsed since the previous one.

        Returns True if a tick was processed.
        """
        if self.phase != GamePhase.PLAYING:
            return False

        if now is None:
            now = self.clock()

        if self.apple is None and self.apple_due_at is not None and now >= self.apple_due_at:
            self._relocate_apple()
            if self.phase != GamePhase.PLAYING:
                return False

        if self.last_tick_time is not None and now - self.last_tick_time < self.tick_interval:
            return False

        self.last_tick_time = now
        self.tick(now)
        return True

    def tick(self, now: Optional[float] = None) -> None:
        """
        Execute one simulation step:
          1) Advance the head (idle while velocity is zero)
          2) Check wall and body collisions
          3) Eat the apple, grow, maybe speed up
          4) Append the head and trim the body
        """
        if self.phase != GamePhase.PLAYING or not self.snake.is_moving:
            return

        if now is None:
            now = self.clock()

        head = self.snake.advance()
        self.tick_count += 1

        if self.is_game_over():
            self._end_game()
            return

        if head == self.apple:
            self._eat_apple(now)

        self.snake.commit_head()

        if self.apple is None and self.apple_due_at is not None and self.apple_respawn_delay <= 0:
            self._relocate_apple()

    def is_game_over(self) -> bool:
        if not self.snake.is_moving:
            return False
        head = self.snake.head
        if not self.in_bounds(head):
            return True
        return head in self.snake.body

    def _eat_apple(self, now: float) -> None:
        eaten_at = self.apple
        self.apple = None
        self.apple_due_at = now + self.apple_respawn_delay
        self.snake.grow()
        self.score += 1
        if self.score in SPEED_THRESHOLDS:
            self.speed += 1

        self.events.emit(events.APPLE_EATEN, eaten_at)
        self.events.emit(events.SCORE_CHANGED, self.score, self.speed)

    def _relocate_apple(self) -> None:
        self.apple_due_at = None
        self.apple = self.place_apple()
        if self.apple is None:
            # Board is full: nothing left to eat
            self.won = True
            self._end_game()

    def _end_game(self) -> None:
        self.phase = GamePhase.GAME_OVER
        outcome = "won" if self.won else "lost"
        logger.info(f"Game over ({outcome}). Score: {self.score}, Player: {self.username}")
        self.events.emit(events.GAME_OVER, self.score)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def get_current_state(self) -> GameState:
        return GameState(
            phase=self.phase,
            username=self.username,
            head=self.snake.head,
            body=list(self.snake.body),
            apple=self.apple,
            velocity=self.snake.velocity,
            score=self.score,
            speed=self.speed,
            tail_length=self.snake.tail_length,
            tick_count=self.tick_count,
            width=self.grid_size,
            height=self.grid_size,
            won=self.won,
        )

    @staticmethod
    def _to_velocity(direction: Direction) -> Optional[Tuple[int, int]]:
        if isinstance(direction, str):
            return DIRECTION_VECTORS.get(direction.upper())
        if isinstance(direction, tuple) and len(direction) == 2:
            vector = (int(direction[0]), int(direction[1]))
            if vector in DIRECTION_VECTORS.values():
                return vector
        return None
