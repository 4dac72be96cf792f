"""Score and streak aggregation shared by sessions, the engine and the server."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import math
from typing import Any

from trivia_quiz.constants.quiz_constants import (
    FAILING_GRADE,
    GRADE_THRESHOLDS,
    STREAK_MILESTONE_INTERVAL,
    STREAK_MILESTONES,
    STREAK_NOTIFICATION_DURATION_MS,
)
from trivia_quiz.core.models import Score, StreakMilestone, Streaks


@dataclass(frozen=True, slots=True)
class StreakNotification:
    """Toast metadata shown when a player reaches a milestone streak."""

    message: str
    level: str
    duration_ms: int


def _is_correct(answer: Any) -> bool:
    if isinstance(answer, Mapping):
        return bool(answer.get("is_correct"))
    return bool(answer.is_correct)


def is_milestone(streak: int) -> bool:
    return streak in STREAK_MILESTONES or (streak > 0 and streak % STREAK_MILESTONE_INTERVAL == 0)


def round_half_up(value: float, digits: int = 2) -> float:
    """Round with ties going up (3.125 -> 3.13), unlike the banker's rounding of round()."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def grade_for(percentage: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return FAILING_GRADE


def progress_percentage(answered: int, total: int) -> float:
    """Percentage of ``total`` covered by ``answered``, clamped to 0..100."""
    if total <= 0:
        return 0.0
    clamped = min(max(answered, 0), total)
    return round_half_up(clamped / total * 100)


def streak_notification(streak: int) -> StreakNotification | None:
    if streak <= 0:
        return None
    if streak == 3:
        return StreakNotification("3 correct answers in a row!", "success", STREAK_NOTIFICATION_DURATION_MS)
    if streak == 5:
        return StreakNotification(
            "5 in a row, you're unstoppable!", "success", STREAK_NOTIFICATION_DURATION_MS + 300
        )
    if streak % STREAK_MILESTONE_INTERVAL == 0:
        return StreakNotification(
            f"{streak} correct answers in a row!", "success", STREAK_NOTIFICATION_DURATION_MS + 500
        )
    return None


class ScoreCalculator:
    """Pure aggregation over answer sequences.

    Answers may be any objects exposing ``is_correct`` (such as
    :class:`~trivia_quiz.core.models.AnswerRecord`) or mappings with an
    ``is_correct`` key.
    """

    def calculate(self, answers: Sequence[Any]) -> Score:
        total = len(answers)
        correct = sum(1 for answer in answers if _is_correct(answer))
        percentage = correct / total * 100 if total > 0 else 0.0
        return Score(
            correct=correct,
            incorrect=total - correct,
            total=total,
            percentage=round_half_up(percentage),
            grade=grade_for(percentage),
        )

    def calculate_streaks(self, answers: Sequence[Any]) -> Streaks:
        current = 0
        longest = 0
        milestones: list[StreakMilestone] = []

        for index, answer in enumerate(answers):
            if _is_correct(answer):
                current += 1
                longest = max(longest, current)
                if is_milestone(current):
                    milestones.append(StreakMilestone(streak=current, at=index))
            else:
                current = 0

        return Streaks(current=current, longest=longest, milestones=tuple(milestones))
