"""
Session controller: the player's identity plus the glue between the
engine's game-over event and the leaderboard.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from domain import events
from domain.constants import DEFAULT_TOP_N
from domain.errors import SaveInProgress, StoreUnavailable, TransientIOError, ValidationError
from domain.events import EventEmitter
from domain.game_state import GamePhase
from domain.score_record import ScoreRecord, validate_username
from services.ranking_engine import RANK_UNAVAILABLE, Rank, RankingEngine
from snake_game import Direction, SnakeGame

logger = logging.getLogger(__name__)


@dataclass
class SaveOutcome:
    """
    Result of a save attempt.

    Attributes:
        success: whether the record was persisted
        record: the persisted record (None on failure)
        rank: 1-based rank, or RANK_UNAVAILABLE
        error: human readable failure reason
        retryable: True when a user-initiated retry may succeed
    """

    success: bool
    record: Optional[ScoreRecord] = None
    rank: Rank = RANK_UNAVAILABLE
    error: Optional[str] = None
    retryable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "rank": self.rank}
        if self.record is not None:
            data.update(self.record.to_dict())
        if self.error is not None:
            data["error"] = self.error
            data["retryable"] = self.retryable
        return data


class SessionController:
    """
    Owns the current username and mediates between SnakeGame events and
    the score store / ranking engine.

    Args:
        game: engine to drive; a new SnakeGame is created if omitted
        store: ScoreStore implementation, or None to play offline
        ranking: RankingEngine; built on store if omitted
        executor: used by submit_save(); a single worker thread by default
    """

    def __init__(
        self,
        game: Optional[SnakeGame] = None,
        store=None,
        ranking: Optional[RankingEngine] = None,
        executor: Optional[ThreadPoolExecutor] = None
    ):
        self.game = game or SnakeGame()
        self.store = store
        self.ranking = ranking or RankingEngine(store)
        self._executor = executor
        self._owns_executor = executor is None

        self.username: str = ""
        self.pending_score: Optional[int] = None
        self.last_outcome: Optional[SaveOutcome] = None

        self._generation = 0
        self._save_lock = threading.Lock()
        self._save_in_flight = False
        self._restart_pending = False

        self.game.events.on(events.GAME_OVER, self._handle_game_over)

    @property
    def events(self) -> EventEmitter:
        return self.game.events

    @property
    def online(self) -> bool:
        return self.store is not None

    @property
    def save_in_flight(self) -> bool:
        return self._save_in_flight

    def on(self, event: str, callback: Callable[..., Any]) -> Callable[..., Any]:
        return self.events.on(event, callback)

    # ------------------------------------------------------------------
    # UI event interface
    # ------------------------------------------------------------------

    def on_game_start(self, username: Optional[str] = None) -> bool:
        """
        Start a game. Without a username the previous one is reused.

        Raises:
            ValidationError: if no valid username is available
        """
        name = validate_username(username if username is not None else self.username)
        if self._restart_pending:
            self.restart()

        # The engine ignores start outside pre-start; keep the pending score then
        if not self.game.start(name):
            return False
        self.username = name
        self.pending_score = None
        return True

    def on_restart_requested(self) -> bool:
        return self.restart()

    def on_pause_toggle_requested(self) -> bool:
        return self.game.toggle_pause()

    def on_direction_requested(self, direction: Direction) -> bool:
        return self.game.request_direction(direction)

    # ------------------------------------------------------------------
    # Game over handling
    # ------------------------------------------------------------------

    def _handle_game_over(self, final_score: int) -> None:
        self.pending_score = final_score
        logger.info(f"Game Over! Score: {final_score}, Player: {self.username}")

        if not self.online:
            # Reset on the next poll() so every game_over listener sees the final board
            logger.info("Playing in offline mode - score cannot be saved, restarting")
            self._restart_pending = True
            return

        self.events.emit(events.SCORE_ELIGIBLE, final_score, self.username)

    def skip(self) -> bool:
        """Decline to save the pending score and go back to pre-start."""
        return self.restart()

    def restart(self) -> bool:
        """
        Reset the engine to pre-start. A save still in flight completes in
        the background but its result is not delivered to this session.
        """
        self._generation += 1
        self.pending_score = None
        self._restart_pending = False
        return self.game.restart()

    def poll(self, now: Optional[float] = None) -> bool:
        """
        Per-frame entry point for the UI loop. Applies a pending offline
        restart, otherwise polls the engine.

        Returns True if the engine processed a tick.
        """
        if self._restart_pending:
            self.restart()
            return False
        return self.game.poll(now)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_score(self, score: Optional[int] = None) -> SaveOutcome:
        """
        Save the pending (or given) score, then compute its rank.

        Raises:
            ValidationError: if username or score are invalid (before I/O)
        """
        value = self.pending_score if score is None else score
        if value is None:
            raise ValidationError("No score to save")
        name = validate_username(self.username)

        if self.store is None:
            return SaveOutcome(
                success=False,
                error="Leaderboard not available. Game running in offline mode.",
                retryable=False,
            )

        try:
            record = self.store.save(name, value)
        except TransientIOError as e:
            logger.error(f"Error saving score: {e}")
            return SaveOutcome(success=False, error=str(e), retryable=True)
        except StoreUnavailable as e:
            logger.error(f"Score store unavailable: {e}")
            return SaveOutcome(success=False, error=str(e), retryable=False)

        rank = self.ranking.compute_rank(record.score, record.created_at)
        return SaveOutcome(success=True, record=record, rank=rank)

    def submit_save(self, score: Optional[int] = None) -> Future:
        """
        Run save_score() in the background.

        Raises:
            SaveInProgress: if a previous save has not finished yet
            ValidationError: if username or score are invalid
        """
        value = self.pending_score if score is None else score
        if value is None:
            raise ValidationError("No score to save")
        validate_username(self.username)

        with self._save_lock:
            if self._save_in_flight:
                raise SaveInProgress("A save is already in progress")
            self._save_in_flight = True

        generation = self._generation
        future = self._get_executor().submit(self.save_score, value)
        future.add_done_callback(lambda f: self._finish_save(f, generation))
        return future

    def _finish_save(self, future: Future, generation: int) -> None:
        with self._save_lock:
            self._save_in_flight = False

        if generation != self._generation:
            logger.info("Discarding save result from a previous session")
            return

        error = future.exception()
        if error is not None:
            logger.error(f"Background save failed: {error}")
            outcome = SaveOutcome(success=False, error=str(error), retryable=False)
        else:
            outcome = future.result()

        self.last_outcome = outcome
        if outcome.success:
            self.events.emit(events.SCORE_SAVED, outcome)
        else:
            self.events.emit(events.SAVE_FAILED, outcome)

    def get_top(self, n: int = DEFAULT_TOP_N) -> List[ScoreRecord]:
        """
        Records in canonical order, at most n. Empty when offline or failing.
        """
        if self.store is None:
            logger.warning("No score store configured - returning empty leaderboard")
            return []
        if n <= 0:
            return []

        try:
            return self.store.query_top(n)
        except (StoreUnavailable, TransientIOError) as e:
            logger.error(f"Error getting top scores: {e}")
            return []

    def compute_rank(self, score: int, created_at: datetime) -> Rank:
        return self.ranking.compute_rank(score, created_at)

    @property
    def awaiting_decision(self) -> bool:
        """True while a finished game's score is waiting for save or skip."""
        return (
            self.online
            and self.game.phase == GamePhase.GAME_OVER
            and self.pending_score is not None
        )

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="score-save")
        return self._executor

    def close(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
