"""
Headless Snake runner.

Plays one game with an autopilot player, driving the engine the same way
a display loop would (poll once per frame), then optionally saves the
score to the configured leaderboard and prints its rank.
"""

import argparse
import json
import logging
import random
import time
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from data_access import get_score_store
from domain import events
from domain.game_state import GamePhase, GameState
from players import AVAILABLE_VARIANTS, Player, get_player_class
from services.session_controller import SessionController
from snake_game import SnakeGame

load_dotenv()
logger = logging.getLogger(__name__)

FRAME_SECONDS = 1.0 / 60


def run_simulation(
    username: str,
    player: Player,
    game_params: argparse.Namespace,
    store=None
) -> Dict[str, Any]:
    """
    Runs a single game with an autopilot player.

    Args:
        username: Player name recorded with the score.
        player: Autopilot choosing the directions.
        game_params: An object (like argparse.Namespace) with seed, max_ticks,
                     realtime, show_every and save settings.
        store: Score store used when game_params.save is set.

    Returns:
        A dictionary summarizing the game (username, score, ticks, outcome, rank).
    """
    seed = getattr(game_params, 'seed', None)
    game = SnakeGame(rng=random.Random(seed))

    final_state: Dict[str, GameState] = {}
    game.events.on(events.GAME_OVER, lambda score: final_state.setdefault('state', game.get_current_state()))

    session = SessionController(game=game, store=store if getattr(game_params, 'save', False) else None)
    session.on_game_start(username)

    max_ticks = getattr(game_params, 'max_ticks', 5000)
    show_every = getattr(game_params, 'show_every', 0)
    realtime = getattr(game_params, 'realtime', False)

    now = 0.0
    last_decided_tick = -1
    while game.phase == GamePhase.PLAYING and game.tick_count < max_ticks:
        if game.tick_count != last_decided_tick:
            state = game.get_current_state()
            session.on_direction_requested(player.get_move(state))
            last_decided_tick = game.tick_count

            if show_every and game.tick_count % show_every == 0:
                print("\n" + state.print_board() + "\n")

        session.poll(now)
        now += FRAME_SECONDS
        if realtime:
            time.sleep(FRAME_SECONDS)

    state = final_state.get('state') or game.get_current_state()
    if 'state' in final_state:
        outcome = "won" if state.won else "lost"
    else:
        outcome = "stopped"

    print("\n" + state.print_board() + "\n")
    print(f"Game Over: {outcome}. Score: {state.score}, ticks: {state.tick_count}")

    result: Dict[str, Any] = {
        "username": username,
        "player": player.name,
        "score": state.score,
        "speed": state.speed,
        "ticks": state.tick_count,
        "outcome": outcome,
        "rank": None,
    }

    if getattr(game_params, 'save', False) and outcome != "stopped":
        if not session.online:
            print("Leaderboard not configured - score not saved (offline mode)")
        else:
            save = session.save_score()
            if save.success:
                print(f"Saved score {state.score} for {username}. Rank: {save.rank}")
                result["rank"] = save.rank
                result["record_id"] = save.record.record_id
            else:
                print(f"Could not save score: {save.error}")
                result["error"] = save.error

    session.close()
    return result


def main(argv: Optional[list] = None):
    parser = argparse.ArgumentParser(
        description="Play a headless Snake game with an autopilot player."
    )
    parser.add_argument("--username", type=str, default="autopilot",
                        help="Name recorded on the leaderboard (1-20 characters)")
    parser.add_argument("--player", type=str, default="greedy", choices=AVAILABLE_VARIANTS,
                        help="Autopilot to use")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for apples and the autopilot")
    parser.add_argument("--max_ticks", type=int, default=5000,
                        help="Stop after this many ticks if the game is still running")
    parser.add_argument("--show_every", type=int, default=0,
                        help="Print the board every N ticks (0 disables)")
    parser.add_argument("--realtime", action="store_true",
                        help="Sleep between frames instead of running as fast as possible")
    parser.add_argument("--save", action="store_true",
                        help="Save the final score to the configured leaderboard")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    player_class = get_player_class(args.player)
    player = player_class(random.Random(args.seed))
    store = get_score_store() if args.save else None

    result = run_simulation(args.username, player, args, store=store)

    print("\nSimulation Result Summary:")
    print(json.dumps(result, indent=2))
    return result


if __name__ == "__main__":
    main()
