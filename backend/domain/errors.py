"""
Error taxonomy for the leaderboard.

Gameplay never raises these; they describe persistence and input failures
that the session layer turns into degraded results.
"""


class LeaderboardError(Exception):
    """Base class for leaderboard failures."""


class ValidationError(LeaderboardError, ValueError):
    """Username or score failed validation. Raised before any store I/O."""


class StoreUnavailable(LeaderboardError):
    """No persistence backend is configured or it could not be set up."""


class IndexMissing(LeaderboardError):
    """The store cannot run index-backed rank counts; use the full-scan fallback."""


class TransientIOError(LeaderboardError):
    """A network or driver failure during a save or query. Safe to retry."""


class SaveInProgress(LeaderboardError):
    """A save for this session is still outstanding."""
