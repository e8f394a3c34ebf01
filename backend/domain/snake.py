"""
Snake entity for the game engine.
"""

from collections import deque
from typing import Deque, Optional, Tuple

from .constants import INITIAL_TAIL_LENGTH, START_HEAD, STILL

Position = Tuple[int, int]
Velocity = Tuple[int, int]


class Snake:
    """
    Represents the player's snake on the board.

    Attributes:
        head: current head position (may be out of bounds on the fatal tick)
        body: deque of the most recent head positions, oldest first.
              After a tick the current head is the last element.
        tail_length: maximum number of positions kept in body
        velocity: one of (0, 0), (+-1, 0), (0, +-1)
        last_step: velocity used by the most recent non-idle tick
    """

    def __init__(
        self,
        head: Position = START_HEAD,
        tail_length: int = INITIAL_TAIL_LENGTH,
        velocity: Velocity = STILL,
    ):
        self.head: Position = head
        self.body: Deque[Position] = deque()
        self.tail_length = tail_length
        self.velocity: Velocity = velocity
        self.last_step: Optional[Velocity] = None

    @property
    def is_moving(self) -> bool:
        return self.velocity != STILL

    def next_head(self) -> Position:
        """Return the head translated by the current velocity."""
        hx, hy = self.head
        vx, vy = self.velocity
        return hx + vx, hy + vy

    def occupies(self, position: Position) -> bool:
        return position == self.head or position in self.body

    def is_reverse(self, velocity: Velocity) -> bool:
        """
        True if velocity points straight back along the current heading.
        Checked against both the pending velocity and the last step taken,
        so two quick turns inside one tick cannot fold the snake onto itself.
        """
        for heading in (self.velocity, self.last_step):
            if heading is None or heading == STILL:
                continue
            if velocity == (-heading[0], -heading[1]):
                return True
        return False

    def advance(self) -> Position:
        """Move the head one step along the current velocity."""
        self.head = self.next_head()
        self.last_step = self.velocity
        return self.head

    def grow(self) -> None:
        self.tail_length += 1

    def commit_head(self) -> None:
        """Append the head to the body and trim from the oldest end."""
        self.body.append(self.head)
        while len(self.body) > self.tail_length:
            self.body.popleft()
