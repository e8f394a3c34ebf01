"""
Minimal event emitter used between the engine, the session layer and the UI.

The engine emits, presentation code subscribes.
"""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

# Engine events
GAME_STARTED = "game_started"
DIRECTION_CHANGED = "direction_changed"
APPLE_EATEN = "apple_eaten"
SCORE_CHANGED = "score_changed"
PAUSED = "paused"
RESUMED = "resumed"
GAME_OVER = "game_over"
RESTARTED = "restarted"

# Session events
SCORE_ELIGIBLE = "score_eligible"
SCORE_SAVED = "score_saved"
SAVE_FAILED = "save_failed"

Listener = Callable[..., Any]


class EventEmitter:
    """Callback registry keyed by event name."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: str, callback: Listener) -> Listener:
        self._listeners.setdefault(event, []).append(callback)
        return callback

    def off(self, event: str, callback: Listener) -> None:
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event: str, *args: Any) -> None:
        """
        Call every listener for event in registration order.

        A failing listener is logged and the remaining listeners still run.
        """
        for callback in list(self._listeners.get(event, [])):
            try:
                callback(*args)
            except Exception:
                logger.exception(f"Listener for '{event}' failed")
