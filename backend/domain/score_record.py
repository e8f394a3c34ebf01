"""
ScoreRecord entity and the validation rules applied before it is persisted.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .constants import SCORE_MAX, USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from .errors import ValidationError


@dataclass(frozen=True)
class ScoreRecord:
    """
    A persisted leaderboard entry.

    Attributes:
        username: Player name, 1-20 characters after trimming
        score: Non-negative number of apples eaten
        created_at: Store-assigned timestamp (timezone-aware, UTC)
        record_id: Backend identifier, if the store exposes one
    """

    username: str
    score: int
    created_at: datetime
    record_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "username": self.username,
            "score": self.score,
            "created_at": self.created_at.isoformat(),
        }


def validate_username(username: Any) -> str:
    """
    Return the trimmed username or raise ValidationError.
    """
    if not isinstance(username, str) or not username:
        raise ValidationError("Username is required and must be a string")

    trimmed = username.strip()
    if not USERNAME_MIN_LENGTH <= len(trimmed) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters"
        )
    return trimmed


def validate_score(score: Any) -> int:
    # bool is an int subclass but never a valid score
    if isinstance(score, bool) or not isinstance(score, int) or score < 0:
        raise ValidationError("Score must be a non-negative integer")
    if score > SCORE_MAX:
        raise ValidationError(f"Score must not exceed {SCORE_MAX}")
    return score


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if not isinstance(value, datetime):
        raise ValidationError("created_at must be a datetime")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """
    Normalize a timestamp coming back from a store (datetime or ISO string).
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if "T" not in text:
            text = text.replace(" ", "T", 1)
        # A '+' offset arrives as a space when taken from a query string
        text = re.sub(r" (\d{2}:?\d{2})$", r"+\1", text)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError as exc:
            raise ValidationError(f"Invalid timestamp: {value!r}") from exc
    raise ValidationError(f"Invalid timestamp: {value!r}")


def canonical_sort_key(record: ScoreRecord) -> Tuple[int, datetime]:
    """Score descending, then earliest achievement first."""
    return (-record.score, as_utc(record.created_at))
