"""
Base player interface for the headless runner.
"""

from domain.constants import DIRECTION_VECTORS
from domain.game_state import GameState


class Player:
    """
    Base class/interface for autopilot logic.

    A player looks at a GameState snapshot and names the direction
    the snake should take next.
    """

    name = "player"

    def get_move(self, game_state: GameState) -> str:
        """
        Return a move direction given the current game state.

        Args:
            game_state: Current state of the game

        Returns:
            One of: "UP", "DOWN", "LEFT", "RIGHT"
        """
        raise NotImplementedError


def safe_moves(game_state: GameState) -> dict:
    """
    Map each direction that neither leaves the board, hits the body,
    nor reverses the current heading to the cell it leads to.
    """
    head_x, head_y = game_state.head
    vx, vy = game_state.velocity
    body_cells = set(game_state.body)

    moves = {}
    for move, (dx, dy) in DIRECTION_VECTORS.items():
        # Reversing into the neck is always fatal
        if (vx, vy) != (0, 0) and (dx, dy) == (-vx, -vy):
            continue

        new_x, new_y = head_x + dx, head_y + dy
        if (new_x < 0 or new_x >= game_state.width or
                new_y < 0 or new_y >= game_state.height):
            continue

        if (new_x, new_y) in body_cells:
            continue

        moves[move] = (new_x, new_y)
    return moves
