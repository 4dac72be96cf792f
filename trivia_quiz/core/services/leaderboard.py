"""Service for presenting saved scores as leaderboard rows."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from trivia_quiz.constants.quiz_constants import ANONYMOUS_PLAYER_NAME
from trivia_quiz.constants.storage_constants import DEFAULT_LEADERBOARD_LIMIT
from trivia_quiz.core.models import utc_now
from trivia_quiz.core.services.score_repository import ScoreRepository, as_int


@dataclass(frozen=True, slots=True)
class LeaderboardRow:
    """Immutable snapshot returned to consumers."""

    position: int
    player_name: str
    score_text: str
    formatted_date: str


def _extract_date(value: Any, now: datetime) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return now
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return now
    return now


def format_leaderboard_entry(
    entry: Mapping[str, Any] | None, index: int, now: datetime | None = None
) -> LeaderboardRow:
    """Turn a stored score record into a display row, tolerating bad data."""
    entry = entry or {}
    player_name = entry.get("player_name")
    if not isinstance(player_name, str) or not player_name.strip():
        player_name = ANONYMOUS_PLAYER_NAME

    created_at = _extract_date(entry.get("created_at"), now or utc_now())
    return LeaderboardRow(
        position=index + 1,
        player_name=player_name.strip(),
        score_text=f"{as_int(entry.get('score'))}/{as_int(entry.get('total_questions_in_quiz'))}",
        formatted_date=created_at.strftime("%d %b %Y"),
    )


class Leaderboard:
    """Reads ranked entries from a score repository."""

    def __init__(self, score_repository: ScoreRepository) -> None:
        self._repository = score_repository

    def top_rows(
        self, question_count: int | None = None, limit: int = DEFAULT_LEADERBOARD_LIMIT
    ) -> list[LeaderboardRow]:
        """Return the best runs for quizzes of ``question_count`` questions."""
        entries = self._repository.fetch_leaderboard(question_count=question_count, limit=limit)
        now = utc_now()
        return [format_leaderboard_entry(entry, index, now) for index, entry in enumerate(entries)]
