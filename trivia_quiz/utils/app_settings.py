"""Runtime settings resolved from the environment."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path

from trivia_quiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from trivia_quiz.constants.quiz_constants import DEFAULT_QUESTION_COUNT
from trivia_quiz.constants.storage_constants import (
    DEFAULT_DATA_DIR,
    LEADERBOARD_FILE_NAME,
    LOCAL_STORAGE_FILE_NAME,
    QUESTIONS_CACHE_FILE_NAME,
    QUESTIONS_FILE_NAME,
)

ENV_PREFIX = "TRIVIA_QUIZ_"


@dataclass(frozen=True, slots=True)
class AppSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    data_dir: Path = Path(DEFAULT_DATA_DIR)
    question_count: int = DEFAULT_QUESTION_COUNT
    log_level: str = "INFO"

    @property
    def questions_path(self) -> Path:
        return self.data_dir / QUESTIONS_FILE_NAME

    @property
    def questions_cache_path(self) -> Path:
        return self.data_dir / QUESTIONS_CACHE_FILE_NAME

    @property
    def leaderboard_path(self) -> Path:
        return self.data_dir / LEADERBOARD_FILE_NAME

    @property
    def local_storage_path(self) -> Path:
        return self.data_dir / LOCAL_STORAGE_FILE_NAME

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> AppSettings:
        """Read ``TRIVIA_QUIZ_*`` variables, falling back to the defaults."""
        env = os.environ if environ is None else environ
        return cls(
            host=env.get(f"{ENV_PREFIX}HOST", DEFAULT_HOST),
            port=_positive_int(env, "PORT", DEFAULT_PORT),
            data_dir=Path(env.get(f"{ENV_PREFIX}DATA_DIR", DEFAULT_DATA_DIR)),
            question_count=_positive_int(env, "QUESTION_COUNT", DEFAULT_QUESTION_COUNT),
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO"),
        )


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw_value = env.get(f"{ENV_PREFIX}{name}")
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw_value!r}.") from exc
    if value <= 0:
        raise ValueError(f"{ENV_PREFIX}{name} must be positive.")
    return value
