"""
Registry for autopilot players.
Maps player keys (e.g., 'random', 'greedy') to player classes.
"""

from typing import Callable, Dict, Optional, Type

from .base import Player


def _get_random_player() -> Type[Player]:
    from .random_player import RandomPlayer
    return RandomPlayer


def _get_greedy_player() -> Type[Player]:
    from .greedy_player import GreedyPlayer
    return GreedyPlayer


# Registry: maps player key -> callable that returns the player class
PLAYER_VARIANT_LOADERS: Dict[str, Callable[[], Type[Player]]] = {
    "random": _get_random_player,
    "greedy": _get_greedy_player,
}

AVAILABLE_VARIANTS = list(PLAYER_VARIANT_LOADERS.keys())


def get_player_class(variant_key: Optional[str] = None) -> Type[Player]:
    """
    Get the player class for a given key.

    Args:
        variant_key: One of 'random', 'greedy'. If None or empty, returns greedy.

    Raises:
        ValueError: If variant_key is not recognized.
    """
    if not variant_key or variant_key.strip() == "":
        variant_key = "greedy"

    variant_key = variant_key.strip().lower()

    if variant_key not in PLAYER_VARIANT_LOADERS:
        available = ", ".join(AVAILABLE_VARIANTS)
        raise ValueError(
            f"Unknown player '{variant_key}'. Available players: {available}"
        )

    return PLAYER_VARIANT_LOADERS[variant_key]()


def list_variants() -> list:
    return [
        {"key": "random", "description": "Random safe moves"},
        {"key": "greedy", "description": "Heads for the apple along safe moves"},
    ]
