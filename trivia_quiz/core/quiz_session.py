"""A single playthrough of a fixed list of questions by one player."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime
import math

from trivia_quiz.core.errors import InvalidStateError, ValidationError
from trivia_quiz.core.models import (
    AnsweredQuestion,
    AnswerRecord,
    AnswerResult,
    LeaderboardEntry,
    Progress,
    Question,
    Score,
    SessionSummary,
    Streaks,
    utc_now,
)
from trivia_quiz.core.score_calculator import ScoreCalculator


class QuizSession:
    """Owns the question order, the answers and the position of one quiz run.

    The session is active while ``current_index < total_questions()`` and
    complete afterwards; there is no way back.
    """

    def __init__(
        self,
        player_name: str,
        questions: Sequence[Question],
        started_at: datetime | None = None,
        score_calculator: ScoreCalculator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if not isinstance(player_name, str) or not player_name.strip():
            raise ValidationError("Player name is required.")
        if isinstance(questions, (str, bytes)) or not questions:
            raise ValidationError("Session must have at least one question.")
        if not all(isinstance(question, Question) for question in questions):
            raise ValidationError("All questions must be Question instances.")

        self._clock = clock
        self._calculator = score_calculator or ScoreCalculator()
        self._player_name = player_name.strip()
        self._questions: tuple[Question, ...] = tuple(questions)
        self._answers: list[AnswerRecord] = []
        self._current_index = 0
        self._started_at = started_at or clock()
        self._completed_at: datetime | None = None

    @property
    def player_name(self) -> str:
        return self._player_name

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    @property
    def answers(self) -> tuple[AnswerRecord, ...]:
        return tuple(self._answers)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def completed_at(self) -> datetime | None:
        return self._completed_at

    def total_questions(self) -> int:
        return len(self._questions)

    def is_complete(self) -> bool:
        return self._current_index >= len(self._questions)

    def current_question(self) -> Question | None:
        if self.is_complete():
            return None
        return self._questions[self._current_index]

    def answer(self, selected_key: str) -> AnswerResult:
        """Record an answer for the current question and advance."""
        question = self.current_question()
        if question is None:
            raise InvalidStateError("Cannot answer - quiz is complete.")

        is_correct = question.is_correct(selected_key)
        self._answers.append(
            AnswerRecord(
                question=question,
                selected_key=selected_key,
                is_correct=is_correct,
                answered_at=self._clock(),
            )
        )
        self._current_index += 1
        if self.is_complete():
            self._completed_at = self._clock()

        return AnswerResult(
            is_correct=is_correct,
            correct_answer=question.reveal_answer(),
            progress=self.progress(),
            is_session_complete=self.is_complete(),
        )

    def progress(self) -> Progress:
        total = self.total_questions()
        return Progress(
            current=min(self._current_index + 1, total),
            total=total,
            percentage=math.floor(self._current_index / total * 100 + 0.5),
        )

    def calculate_score(self) -> Score:
        return self._calculator.calculate(self._answers)

    def calculate_streaks(self) -> Streaks:
        return self._calculator.calculate_streaks(self._answers)

    def summary(self, now: datetime | None = None) -> SessionSummary:
        end = self._completed_at or now or self._clock()
        return SessionSummary(
            player_name=self._player_name,
            score=self.calculate_score(),
            streaks=self.calculate_streaks(),
            answers=tuple(
                AnsweredQuestion(
                    question_text=record.question.text,
                    selected_key=record.selected_key,
                    correct_key=record.question.correct_key,
                    explanation=record.question.reveal_answer().explanation,
                    is_correct=record.is_correct,
                    options=record.question.options,
                )
                for record in self._answers
            ),
            duration=end - self._started_at,
        )

    def to_leaderboard_entry(self, now: datetime | None = None) -> LeaderboardEntry:
        return LeaderboardEntry(
            player_name=self._player_name,
            score=self.calculate_score().correct,
            total_questions_in_quiz=self.total_questions(),
            created_at=self._completed_at or now or self._clock(),
        )
