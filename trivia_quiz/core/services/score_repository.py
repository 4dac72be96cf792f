"""Leaderboard persistence."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import json
import logging
from pathlib import Path
from threading import Lock
from typing import Any, Protocol

from trivia_quiz.constants.storage_constants import DEFAULT_LEADERBOARD_LIMIT

logger = logging.getLogger(__name__)


class ScoreRepository(Protocol):
    def save_score(self, entry: Mapping[str, Any]) -> None: ...

    def fetch_leaderboard(
        self, question_count: int | None = None, limit: int = DEFAULT_LEADERBOARD_LIMIT
    ) -> list[dict[str, Any]]: ...


def as_int(value: Any) -> int:
    """Numeric field of a stored entry; anything non-numeric counts as 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def rank_entries(
    entries: Iterable[Mapping[str, Any]],
    question_count: int | None = None,
    limit: int = DEFAULT_LEADERBOARD_LIMIT,
) -> list[dict[str, Any]]:
    """Filter by quiz length and order by score desc, then by age."""
    matching = [
        dict(entry)
        for entry in entries
        if question_count is None or entry.get("total_questions_in_quiz") == question_count
    ]
    matching.sort(key=lambda entry: (-as_int(entry.get("score")), str(entry.get("created_at") or "")))
    return matching[: max(limit, 0)]


class InMemoryScoreRepository:
    def __init__(self) -> None:
        self._entries: list[dict[str, Any]] = []

    @property
    def entries(self) -> list[dict[str, Any]]:
        return list(self._entries)

    def save_score(self, entry: Mapping[str, Any]) -> None:
        self._entries.append(dict(entry))

    def fetch_leaderboard(
        self, question_count: int | None = None, limit: int = DEFAULT_LEADERBOARD_LIMIT
    ) -> list[dict[str, Any]]:
        return rank_entries(self._entries, question_count, limit)


class JsonFileScoreRepository:
    """Appends leaderboard entries to a JSON array on disk.

    Write failures propagate to the caller.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = Lock()

    def save_score(self, entry: Mapping[str, Any]) -> None:
        with self._lock:
            entries = self._read_entries()
            entries.append(dict(entry))
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(entries, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp_path.replace(self._path)
        logger.info("Saved score %s/%s for %s", entry.get("score"), entry.get("total_questions_in_quiz"), entry.get("player_name"))

    def fetch_leaderboard(
        self, question_count: int | None = None, limit: int = DEFAULT_LEADERBOARD_LIMIT
    ) -> list[dict[str, Any]]:
        with self._lock:
            entries = self._read_entries()
        return rank_entries(entries, question_count, limit)

    def _read_entries(self) -> list[dict[str, Any]]:
        if not self._path.exists():
            return []
        document = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(document, list):
            raise ValueError(f"{self._path} does not contain a list of scores.")
        return [entry for entry in document if isinstance(entry, dict)]
