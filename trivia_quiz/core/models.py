"""Domain models for the trivia quiz."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
import random

from trivia_quiz.constants.quiz_constants import (
    MIN_OPTIONS_PER_QUESTION,
    NO_EXPLANATION_PLACEHOLDER,
)
from trivia_quiz.core.errors import ValidationError
from trivia_quiz.core.record_normalizer import normalize_record


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AppState(str, Enum):
    """Lifecycle states of the quiz engine."""

    IDLE = "IDLE"
    READY = "READY"
    PLAYING = "PLAYING"
    COMPLETE = "COMPLETE"


@dataclass(frozen=True, slots=True)
class QuestionOption:
    """One selectable answer of a question."""

    key: str
    text: str

    @classmethod
    def coerce(cls, value: QuestionOption | Mapping[str, object]) -> QuestionOption:
        if isinstance(value, QuestionOption):
            return value
        if isinstance(value, Mapping):
            return cls(key=str(value.get("key", "")), text=str(value.get("text", "")))
        raise ValidationError(f"Unsupported option value: {value!r}")

    def to_record(self) -> dict[str, str]:
        return {"key": self.key, "text": self.text}


@dataclass(frozen=True, slots=True)
class RevealedAnswer:
    correct_key: str
    explanation: str


@dataclass(frozen=True, slots=True)
class Question:
    """Immutable multiple-choice question.

    ``question_id`` is the stable position of the question in the loaded pool.
    It survives option shuffling so selection never has to match on text.
    """

    text: str
    options: tuple[QuestionOption, ...]
    correct_key: str
    explanation: str = ""
    question_id: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.text, str) or not self.text.strip():
            raise ValidationError("Question text is required.")
        if isinstance(self.options, (str, bytes)) or not isinstance(self.options, Iterable):
            raise ValidationError("Question options must be a sequence.")
        options = tuple(QuestionOption.coerce(option) for option in self.options)
        if len(options) < MIN_OPTIONS_PER_QUESTION:
            raise ValidationError(
                f"Question must have at least {MIN_OPTIONS_PER_QUESTION} options."
            )
        if not self.correct_key:
            raise ValidationError("Question must have a correct answer.")
        if not any(option.key == self.correct_key for option in options):
            raise ValidationError("Correct answer key must match one of the options.")

        # Frozen dataclass: normalized values are written through object.__setattr__.
        object.__setattr__(self, "text", self.text.strip())
        object.__setattr__(self, "options", options)
        object.__setattr__(self, "explanation", (self.explanation or "").strip())

    @classmethod
    def from_external(cls, record: Mapping[str, object]) -> Question:
        """Build a question from any known raw record shape."""
        normalized = normalize_record(record)
        return cls(
            text=normalized["question_text"],
            options=tuple(QuestionOption(**option) for option in normalized["options"]),
            correct_key=normalized["correct_answer_key"],
            explanation=normalized["explanation"],
        )

    def is_correct(self, candidate_key: str) -> bool:
        return candidate_key == self.correct_key

    def option_for(self, key: str) -> QuestionOption | None:
        """Return the first option with the given key."""
        return next((option for option in self.options if option.key == key), None)

    def reveal_answer(self) -> RevealedAnswer:
        return RevealedAnswer(
            correct_key=self.correct_key,
            explanation=self.explanation or NO_EXPLANATION_PLACEHOLDER,
        )

    def with_shuffled_options(self, rng: random.Random | None = None) -> Question:
        """Return a copy whose options are in a uniformly random order."""
        shuffled = list(self.options)
        # random.shuffle is an in-place Fisher-Yates pass.
        (rng or random).shuffle(shuffled)
        return replace(self, options=tuple(shuffled))

    def with_id(self, question_id: int) -> Question:
        return replace(self, question_id=question_id)

    def to_record(self) -> dict[str, object]:
        return {
            "question_text": self.text,
            "options": [option.to_record() for option in self.options],
            "correct_answer_key": self.correct_key,
            "explanation": self.explanation,
        }


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    """A single answer given during a session."""

    question: Question
    selected_key: str
    is_correct: bool
    answered_at: datetime


@dataclass(frozen=True, slots=True)
class Progress:
    current: int
    total: int
    percentage: int


@dataclass(frozen=True, slots=True)
class AnswerResult:
    """Outcome of answering the current question."""

    is_correct: bool
    correct_answer: RevealedAnswer
    progress: Progress
    is_session_complete: bool


@dataclass(frozen=True, slots=True)
class Score:
    correct: int
    incorrect: int
    total: int
    percentage: float
    grade: str


@dataclass(frozen=True, slots=True)
class StreakMilestone:
    streak: int
    at: int


@dataclass(frozen=True, slots=True)
class Streaks:
    current: int
    longest: int
    milestones: tuple[StreakMilestone, ...] = ()


@dataclass(frozen=True, slots=True)
class AnsweredQuestion:
    """Row of the results screen for one answered question."""

    question_text: str
    selected_key: str
    correct_key: str
    explanation: str
    is_correct: bool
    options: tuple[QuestionOption, ...]


@dataclass(frozen=True, slots=True)
class SessionSummary:
    player_name: str
    score: Score
    streaks: Streaks
    answers: tuple[AnsweredQuestion, ...] = ()
    duration: timedelta = field(default_factory=timedelta)


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    """Finished run as submitted to the score repository."""

    player_name: str
    score: int
    total_questions_in_quiz: int
    created_at: datetime

    def to_record(self) -> dict[str, object]:
        return {
            "player_name": self.player_name,
            "score": self.score,
            "total_questions_in_quiz": self.total_questions_in_quiz,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class StartResult:
    question: Question | None
    progress: Progress
