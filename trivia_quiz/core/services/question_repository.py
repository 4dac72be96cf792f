"""Sources of raw question records for the engine."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from trivia_quiz.core.record_normalizer import normalize_records

logger = logging.getLogger(__name__)


class QuestionRepository(Protocol):
    def load_questions(self) -> list[dict[str, Any]]: ...


class InMemoryQuestionRepository:
    """Serves a fixed list of raw records."""

    def __init__(self, records: Iterable[Mapping[str, Any]]) -> None:
        self._records = [dict(record) for record in records]

    def load_questions(self) -> list[dict[str, Any]]:
        return normalize_records(self._records)


class JsonFileQuestionRepository:
    """Loads a JSON array of question records from disk.

    Records are normalized and unplayable ones are skipped. Every successful
    load refreshes ``cache_path``; when the main file cannot be read the cached
    copy is served instead. Without a usable cache the read error propagates.
    """

    def __init__(self, path: Path, cache_path: Path | None = None) -> None:
        self._path = Path(path)
        self._cache_path = Path(cache_path) if cache_path is not None else None

    def load_questions(self) -> list[dict[str, Any]]:
        try:
            records = normalize_records(read_record_list(self._path))
        except (OSError, ValueError) as exc:
            cached = self._load_cache()
            if cached is None:
                raise
            logger.warning("Failed to load %s (%s); using %d cached questions", self._path, exc, len(cached))
            return cached

        self._write_cache(records)
        logger.info("Loaded %d questions from %s", len(records), self._path)
        return records

    def _load_cache(self) -> list[dict[str, Any]] | None:
        if self._cache_path is None or not self._cache_path.exists():
            return None
        try:
            return normalize_records(read_record_list(self._cache_path))
        except (OSError, ValueError) as exc:
            logger.warning("Cache load failed for %s: %s", self._cache_path, exc)
            return None

    def _write_cache(self, records: list[dict[str, Any]]) -> None:
        if self._cache_path is None:
            return
        try:
            self._cache_path.parent.mkdir(parents=True, exist_ok=True)
            self._cache_path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            # Storage full or read-only; the questions themselves were loaded.
            logger.warning("Could not cache questions to %s: %s", self._cache_path, exc)


def read_record_list(path: Path) -> list[Any]:
    document = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(document, Mapping) and isinstance(document.get("questions"), list):
        document = document["questions"]
    if not isinstance(document, list):
        raise ValueError(f"{path} does not contain a list of questions.")
    return document
