"""
Greedy player implementation - walks toward the apple using safe moves.
"""

import random
from typing import Optional

from domain.game_state import GameState
from .base import Player, safe_moves
from .random_player import RandomPlayer


class GreedyPlayer(Player):
    """
    Picks the safe move that minimises Manhattan distance to the apple.
    Falls back to a random safe move while the apple is being relocated.
    """

    name = "greedy"

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._fallback = RandomPlayer(self.rng)

    def get_move(self, game_state: GameState) -> str:
        moves = safe_moves(game_state)
        if game_state.apple is None or not moves:
            return self._fallback.get_move(game_state)

        ax, ay = game_state.apple
        return min(
            sorted(moves),
            key=lambda move: abs(moves[move][0] - ax) + abs(moves[move][1] - ay)
        )
