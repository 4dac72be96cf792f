"""Persistence of the pool ids already served to the player."""

from __future__ import annotations

from collections.abc import Iterable
import logging
from pathlib import Path
from typing import Protocol

from trivia_quiz.constants.storage_constants import SEEN_QUESTIONS_KEY, STORAGE_KEY_PREFIX
from trivia_quiz.core.services.local_storage import JsonLocalStorage

logger = logging.getLogger(__name__)


class SeenQuestionsStorage(Protocol):
    def get_seen_question_ids(self) -> list[int]: ...

    def add_seen_question_ids(self, ids: Iterable[int]) -> None: ...

    def clear_seen_questions(self) -> None: ...


class InMemorySeenQuestionsStorage:
    """Seen-set kept for the lifetime of the process only."""

    def __init__(self, seen_ids: Iterable[int] = ()) -> None:
        self._seen: set[int] = set(seen_ids)

    def get_seen_question_ids(self) -> list[int]:
        return sorted(self._seen)

    def add_seen_question_ids(self, ids: Iterable[int]) -> None:
        self._seen.update(ids)

    def clear_seen_questions(self) -> None:
        self._seen.clear()


class JsonFileSeenQuestionsStorage:
    """Seen-set stored under one key of a :class:`JsonLocalStorage` file."""

    def __init__(self, path: Path, prefix: str = STORAGE_KEY_PREFIX) -> None:
        self._storage = JsonLocalStorage(path, prefix=prefix)

    def get_seen_question_ids(self) -> list[int]:
        stored = self._storage.get(SEEN_QUESTIONS_KEY)
        if stored is None:
            return []
        if not isinstance(stored, list):
            logger.warning("Ignoring malformed seen-question list in %s", self._storage.path)
            return []
        return sorted({value for value in stored if isinstance(value, int) and not isinstance(value, bool)})

    def add_seen_question_ids(self, ids: Iterable[int]) -> None:
        merged = set(self.get_seen_question_ids())
        merged.update(ids)
        self._storage.set(SEEN_QUESTIONS_KEY, sorted(merged))

    def clear_seen_questions(self) -> None:
        self._storage.remove(SEEN_QUESTIONS_KEY)
