import random
import sys
from pathlib import Path

import pytest

# Add the repository root to sys.path so trivia_quiz imports without installation
ROOT_PATH = Path(__file__).resolve().parent.parent
if ROOT_PATH.as_posix() not in sys.path:
    sys.path.insert(0, ROOT_PATH.as_posix())

from trivia_quiz.core.models import Question, QuestionOption
from trivia_quiz.core.quiz_engine import QuizEngine
from trivia_quiz.core.services.score_repository import InMemoryScoreRepository
from trivia_quiz.core.services.seen_questions_storage import InMemorySeenQuestionsStorage


def make_record(number: int, correct_key: str = "a", explanation: str = "") -> dict:
    """Canonical raw record whose text is unique per ``number``."""
    return {
        "question_text": f"Question {number}?",
        "options": [
            {"key": "a", "text": f"Answer {number}a"},
            {"key": "b", "text": f"Answer {number}b"},
            {"key": "c", "text": f"Answer {number}c"},
        ],
        "correct_answer_key": correct_key,
        "explanation": explanation,
    }


def make_question(number: int = 1, correct_key: str = "a") -> Question:
    return Question(
        text=f"Question {number}?",
        options=(
            QuestionOption("a", f"Answer {number}a"),
            QuestionOption("b", f"Answer {number}b"),
            QuestionOption("c", f"Answer {number}c"),
        ),
        correct_key=correct_key,
    )


@pytest.fixture
def records() -> list[dict]:
    """Five valid raw records, every one answered by key 'a'."""
    return [make_record(n) for n in range(5)]


@pytest.fixture
def score_repository() -> InMemoryScoreRepository:
    return InMemoryScoreRepository()


@pytest.fixture
def seen_storage() -> InMemorySeenQuestionsStorage:
    return InMemorySeenQuestionsStorage()


@pytest.fixture
def engine(score_repository, seen_storage) -> QuizEngine:
    return QuizEngine(
        score_repository=score_repository,
        seen_storage=seen_storage,
        rng=random.Random(1234),
    )
