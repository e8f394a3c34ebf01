"""
Tests for snake_game.py - the single-player engine.
"""

import random
import sys
import os
from collections import deque

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from domain import events
from domain.constants import (
    UP, DOWN, LEFT, RIGHT,
    GRID_SIZE, INITIAL_SPEED, INITIAL_TAIL_LENGTH, SPEED_THRESHOLDS, START_HEAD,
)
from domain.errors import ValidationError
from domain.game_state import GamePhase
from snake_game import SnakeGame


def make_game(**kwargs):
    kwargs.setdefault("rng", random.Random(1234))
    kwargs.setdefault("apple_respawn_delay", 0)
    return SnakeGame(**kwargs)


def started_game(**kwargs):
    game = make_game(**kwargs)
    game.start("alice")
    return game


def park_apple(game, position=(0, 0)):
    """Put the apple somewhere the test path will not cross."""
    game.apple = position


class TestStateMachine:

    def test_new_game_is_pre_start(self):
        game = make_game()
        assert game.phase == GamePhase.PRE_START
        assert game.snake.head == START_HEAD
        assert game.score == 0
        assert game.speed == INITIAL_SPEED
        assert game.snake.tail_length == INITIAL_TAIL_LENGTH

    def test_start_with_valid_username(self):
        game = make_game()
        started = []
        game.events.on(events.GAME_STARTED, started.append)

        assert game.start("  alice  ") is True
        assert game.phase == GamePhase.PLAYING
        assert game.username == "alice"
        assert started == ["alice"]

    @pytest.mark.parametrize("username", ["", "   ", "x" * 21, None, 42])
    def test_start_rejects_invalid_username(self, username):
        game = make_game()
        with pytest.raises(ValidationError):
            game.start(username)
        assert game.phase == GamePhase.PRE_START

    def test_start_ignored_outside_pre_start(self):
        game = started_game()
        assert game.start("bob") is False
        assert game.username == "alice"

    def test_pause_rejected_before_first_move(self):
        game = started_game()
        assert game.toggle_pause() is False
        assert game.phase == GamePhase.PLAYING

    def test_pause_rejected_in_pre_start(self):
        game = make_game()
        assert game.toggle_pause() is False

    def test_pause_and_resume(self):
        game = started_game()
        game.request_direction(RIGHT)

        assert game.toggle_pause() is True
        assert game.phase == GamePhase.PAUSED
        assert game.toggle_pause() is True
        assert game.phase == GamePhase.PLAYING

    def test_paused_game_does_not_tick(self):
        game = started_game()
        game.request_direction(RIGHT)
        game.toggle_pause()

        assert game.poll(now=100.0) is False
        game.tick()
        assert game.snake.head == START_HEAD

    def test_direction_ignored_while_paused(self):
        game = started_game()
        game.request_direction(RIGHT)
        game.toggle_pause()

        assert game.request_direction(UP) is False
        assert game.snake.velocity == (1, 0)

    def test_restart_from_game_over(self):
        game = started_game()
        game.request_direction(LEFT)
        for _ in range(START_HEAD[0] + 1):
            game.tick()
        assert game.phase == GamePhase.GAME_OVER

        restarted = []
        game.events.on(events.RESTARTED, lambda: restarted.append(True))
        assert game.restart() is True
        assert game.phase == GamePhase.PRE_START
        assert game.score == 0
        assert game.snake.head == START_HEAD
        assert list(game.snake.body) == []
        assert restarted == [True]

    def test_restart_noop_in_pre_start(self):
        game = make_game()
        assert game.restart() is False


class TestDirectionPolicy:

    def test_reversal_rejected_while_moving(self):
        game = started_game()
        game.request_direction(RIGHT)
        assert game.request_direction(LEFT) is False
        assert game.snake.velocity == (1, 0)

    def test_any_direction_accepted_when_still(self):
        game = started_game()
        assert game.request_direction(LEFT) is True
        assert game.snake.velocity == (-1, 0)

    def test_perpendicular_turn_accepted(self):
        game = started_game()
        game.request_direction(RIGHT)
        assert game.request_direction(UP) is True
        assert game.snake.velocity == (0, -1)

    def test_two_quick_turns_cannot_reverse_within_one_tick(self):
        game = started_game()
        park_apple(game)
        game.request_direction(RIGHT)
        game.tick()

        # LEFT is perpendicular to the pending UP but reverses the last step
        assert game.request_direction(UP) is True
        assert game.request_direction(LEFT) is False
        game.tick()
        assert game.phase == GamePhase.PLAYING

    def test_vector_and_lowercase_inputs(self):
        game = started_game()
        assert game.request_direction("down") is True
        assert game.snake.velocity == (0, 1)
        assert game.request_direction((1, 0)) is True
        assert game.snake.velocity == (1, 0)

    def test_invalid_direction_dropped(self):
        game = started_game()
        assert game.request_direction("SIDEWAYS") is False
        assert game.request_direction((2, 0)) is False
        assert game.snake.velocity == (0, 0)

    def test_random_inputs_never_reverse_into_neck(self):
        rng = random.Random(7)
        game = started_game(rng=random.Random(7))
        directions = [UP, DOWN, LEFT, RIGHT]
        for _ in range(500):
            if game.phase != GamePhase.PLAYING:
                game.restart()
                game.start("alice")
            before = game.snake.last_step
            game.request_direction(rng.choice(directions))
            velocity = game.snake.velocity
            if before is not None:
                assert velocity != (-before[0], -before[1])
            game.tick()


class TestTick:

    def test_idle_tick_does_nothing(self):
        game = started_game()
        game.tick()
        assert game.snake.head == START_HEAD
        assert game.tick_count == 0
        assert game.phase == GamePhase.PLAYING

    def test_head_moves_by_velocity(self):
        game = started_game()
        park_apple(game)
        game.request_direction(DOWN)
        game.tick()
        assert game.snake.head == (START_HEAD[0], START_HEAD[1] + 1)
        assert list(game.snake.body) == [(10, 11)]

    def test_body_trimmed_to_tail_length(self):
        game = started_game()
        park_apple(game)
        game.request_direction(RIGHT)
        for _ in range(5):
            game.tick()
        assert list(game.snake.body) == [(14, 10), (15, 10)]

    @pytest.mark.parametrize("y", [0, 5, GRID_SIZE - 1])
    def test_wall_collision_right_edge(self, y):
        game = started_game()
        park_apple(game, (0, 0) if y != 0 else (0, 5))
        game.snake.head = (GRID_SIZE - 1, y)
        game.request_direction(RIGHT)

        over = []
        game.events.on(events.GAME_OVER, over.append)
        game.tick()

        assert game.snake.head == (GRID_SIZE, y)
        assert game.phase == GamePhase.GAME_OVER
        assert over == [0]

    def test_wall_collision_negative_edge(self):
        game = started_game()
        park_apple(game, (5, 5))
        game.snake.head = (0, 3)
        game.request_direction(LEFT)
        game.tick()
        assert game.phase == GamePhase.GAME_OVER

    def test_body_collision(self):
        game = started_game()
        park_apple(game, (0, 0))
        game.snake.tail_length = 5
        game.snake.body = deque([(5, 5), (6, 5), (6, 6), (5, 6)])
        game.snake.head = (5, 6)
        game.snake.velocity = (0, -1)
        game.tick()
        assert game.snake.head == (5, 5)
        assert game.phase == GamePhase.GAME_OVER

    def test_apple_never_triggers_game_over(self):
        game = started_game()
        game.apple = (11, 10)
        game.request_direction(RIGHT)
        game.tick()
        assert game.phase == GamePhase.PLAYING
        assert game.score == 1

    def test_game_over_fires_once_and_freezes(self):
        game = started_game()
        park_apple(game, (0, 0))
        game.snake.head = (GRID_SIZE - 1, 10)
        game.request_direction(RIGHT)

        over = []
        game.events.on(events.GAME_OVER, over.append)
        game.tick()
        game.tick()
        game.poll(now=999.0)

        assert over == [0]
        assert game.snake.head == (GRID_SIZE, 10)

    def test_eating_grows_and_scores(self):
        game = started_game()
        game.apple = (11, 10)
        eaten, scores = [], []
        game.events.on(events.APPLE_EATEN, eaten.append)
        game.events.on(events.SCORE_CHANGED, lambda s, sp: scores.append((s, sp)))

        game.request_direction(RIGHT)
        game.tick()

        assert game.score == 1
        assert game.snake.tail_length == INITIAL_TAIL_LENGTH + 1
        assert eaten == [(11, 10)]
        assert scores == [(1, INITIAL_SPEED)]
        assert game.apple is not None
        assert not game.snake.occupies(game.apple)

    def test_growth_invariant(self):
        """Body length equals min(ticks survived, 2 + apples eaten)."""
        game = started_game()
        game.request_direction(RIGHT)
        eaten = 0
        for ticks in range(1, 9):
            # Line the apple up in front of the head on every other tick
            if ticks % 2 == 0:
                hx, hy = game.snake.head
                game.apple = (hx + 1, hy)
            else:
                park_apple(game, (0, 19))
            before = game.score
            game.tick()
            eaten += game.score - before
            assert len(game.snake.body) == min(ticks, INITIAL_TAIL_LENGTH + eaten)


class TestSpeed:

    def test_speed_increases_only_at_thresholds(self):
        # Wide board so a straight run right can eat 25 apples
        game = started_game(grid_size=60)
        game.request_direction(RIGHT)

        for _ in range(25):
            hx, hy = game.snake.head
            game.apple = (hx + 1, hy)
            game.tick()
            reached = len([t for t in SPEED_THRESHOLDS if t <= game.score])
            assert game.speed == INITIAL_SPEED + reached

        assert game.phase == GamePhase.PLAYING
        assert game.score == 25
        assert game.speed == INITIAL_SPEED + len(SPEED_THRESHOLDS)

    def test_tick_interval_follows_speed(self):
        game = started_game()
        assert game.tick_interval == pytest.approx(1.0 / INITIAL_SPEED)
        game.speed = 12
        assert game.tick_interval == pytest.approx(1.0 / 12)


class TestPolling:

    def test_poll_throttles_to_speed(self):
        game = started_game()
        park_apple(game)
        game.request_direction(RIGHT)

        assert game.poll(now=0.0) is True
        assert game.poll(now=0.05) is False
        assert game.poll(now=1.0 / INITIAL_SPEED) is True
        assert game.tick_count == 2

    def test_poll_uses_injected_clock(self):
        times = iter([10.0, 10.01, 10.5])
        game = started_game(clock=lambda: next(times))
        park_apple(game)
        game.request_direction(RIGHT)

        assert game.poll() is True
        assert game.poll() is False
        assert game.poll() is True

    def test_poll_outside_play_is_noop(self):
        game = make_game()
        assert game.poll(now=5.0) is False

    def test_apple_relocation_is_deferred(self):
        game = started_game(apple_respawn_delay=0.08)
        game.apple = (11, 10)
        game.request_direction(RIGHT)

        game.poll(now=0.0)
        assert game.score == 1
        assert game.apple is None

        game.poll(now=0.05)
        assert game.apple is None
        game.poll(now=0.09)
        assert game.apple is not None
        assert not game.snake.occupies(game.apple)


class TestApplePlacement:

    def test_never_on_snake_when_board_nearly_full(self):
        game = make_game(grid_size=5)
        cells = [(x, y) for y in range(5) for x in range(5)]
        free = cells[-1]
        game.snake.head = cells[-2]
        game.snake.body = deque(cells[:-2])
        game.snake.tail_length = len(cells)

        for _ in range(20):
            assert game.place_apple() == free

    def test_random_positions_avoid_snake(self):
        game = make_game()
        game.snake.body = deque((x, 10) for x in range(GRID_SIZE))
        game.snake.tail_length = GRID_SIZE
        for _ in range(200):
            apple = game.place_apple()
            assert apple is not None
            assert not game.snake.occupies(apple)
            assert game.in_bounds(apple)

    def test_full_board_returns_none(self):
        game = make_game(grid_size=3)
        cells = [(x, y) for y in range(3) for x in range(3)]
        game.snake.head = cells[-1]
        game.snake.body = deque(cells)
        game.snake.tail_length = len(cells)
        assert game.place_apple() is None

    def test_full_board_ends_game_as_win(self):
        game = make_game(grid_size=2)
        game.start("alice")
        # Snake fills three cells; eating the apple on the fourth fills the board
        game.snake.head = (0, 1)
        game.snake.body = deque([(0, 0), (1, 0), (0, 1)])
        game.snake.tail_length = 3
        game.snake.velocity = (1, 0)
        game.snake.last_step = (0, 1)
        game.apple = (1, 1)

        over = []
        game.events.on(events.GAME_OVER, over.append)
        game.tick()

        assert game.phase == GamePhase.GAME_OVER
        assert game.won is True
        assert over == [1]


class TestSnapshot:

    def test_state_snapshot_and_board(self):
        game = started_game()
        game.apple = (0, 0)
        game.request_direction(RIGHT)
        game.tick()

        state = game.get_current_state()
        assert state.phase == GamePhase.PLAYING
        assert state.head == (11, 10)
        assert state.body == [(11, 10)]
        assert state.to_dict()["apple"] == [0, 0]

        board = state.print_board().splitlines()
        assert board[0].split()[1] == 'A'
        assert board[10].split()[12] == 'H'
