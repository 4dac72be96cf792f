"""State machine driving question loading, quiz sessions and score saving.

States::

    IDLE --load_questions--> READY --start--> PLAYING --last answer--> COMPLETE
                                                 ^                        |
                                                 +---------start----------+
                                       READY <--------restart-------------+

Operations invoked in a state that does not allow them raise
:class:`InvalidStateError`. Callers serialize access; the engine holds no lock.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import timedelta
import logging
import random

from trivia_quiz.constants.quiz_constants import DEFAULT_QUESTION_COUNT
from trivia_quiz.core.errors import InvalidStateError, ValidationError
from trivia_quiz.core.models import (
    AnswerResult,
    AppState,
    LeaderboardEntry,
    Progress,
    Question,
    Score,
    SessionSummary,
    StartResult,
    Streaks,
)
from trivia_quiz.core.quiz_session import QuizSession
from trivia_quiz.core.score_calculator import ScoreCalculator, grade_for
from trivia_quiz.core.services.question_repository import QuestionRepository
from trivia_quiz.core.services.score_repository import ScoreRepository
from trivia_quiz.core.services.seen_questions_storage import SeenQuestionsStorage

logger = logging.getLogger(__name__)

_EMPTY_PROGRESS = Progress(current=0, total=0, percentage=0)


class QuizEngine:
    """Drives exactly one quiz session at a time over a loaded question pool."""

    def __init__(
        self,
        score_repository: ScoreRepository,
        seen_storage: SeenQuestionsStorage | None = None,
        question_repository: QuestionRepository | None = None,
        score_calculator: ScoreCalculator | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._state = AppState.IDLE
        self._pool: tuple[Question, ...] = ()
        self._session: QuizSession | None = None
        self._score_repository = score_repository
        self._seen_storage = seen_storage
        self._question_repository = question_repository
        self._calculator = score_calculator or ScoreCalculator()
        self._rng = rng or random.Random()

    # --- State queries ---

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def question_pool(self) -> tuple[Question, ...]:
        return self._pool

    @property
    def session(self) -> QuizSession | None:
        return self._session

    def is_idle(self) -> bool:
        return self._state is AppState.IDLE

    def is_ready(self) -> bool:
        return self._state is AppState.READY

    def is_playing(self) -> bool:
        return self._state is AppState.PLAYING

    def is_complete(self) -> bool:
        return self._state is AppState.COMPLETE

    # --- Loading ---

    def load_questions(self, raw_questions: Iterable[Question | Mapping[str, object]]) -> None:
        """Build the pool from questions or raw records. Only valid in IDLE."""
        if self._state is not AppState.IDLE:
            logger.warning("Questions already loaded; ignoring load in state %s", self._state.value)
            return

        pool: list[Question] = []
        for index, raw in enumerate(raw_questions):
            question = raw if isinstance(raw, Question) else Question.from_external(raw)
            pool.append(question.with_id(index))

        self._pool = tuple(pool)
        self._transition(AppState.READY)
        logger.info("Loaded %d questions into the pool", len(self._pool))

    def load_from_repository(self) -> None:
        if self._question_repository is None:
            raise InvalidStateError("No question repository configured.", state=self._state)
        if self._state is not AppState.IDLE:
            logger.warning("Questions already loaded; skipping repository load")
            return
        self.load_questions(self._question_repository.load_questions())

    # --- Session lifecycle ---

    def start(self, player_name: str, question_count: int = DEFAULT_QUESTION_COUNT) -> StartResult:
        if not self._pool:
            raise InvalidStateError("No questions available", state=self._state)
        if self._state not in (AppState.READY, AppState.COMPLETE):
            raise InvalidStateError(f"Cannot start from state: {self._state.value}", state=self._state)
        if question_count < 1:
            raise ValidationError("Question count must be at least 1.")
        if question_count > len(self._pool):
            raise InvalidStateError(f"Only {len(self._pool)} questions available", state=self._state)

        chosen_ids, cycle_reset = self._select_question_ids(question_count)
        self._session = QuizSession(
            player_name=player_name,
            questions=[self._pool[i].with_shuffled_options(self._rng) for i in chosen_ids],
            score_calculator=self._calculator,
        )
        if self._seen_storage is not None:
            if cycle_reset:
                self._seen_storage.clear_seen_questions()
            self._seen_storage.add_seen_question_ids(chosen_ids)
        self._transition(AppState.PLAYING)
        return StartResult(question=self._session.current_question(), progress=self._session.progress())

    def answer_current_question(self, selected_key: str) -> AnswerResult:
        if self._state is not AppState.PLAYING or self._session is None:
            raise InvalidStateError(f"No active quiz session (state: {self._state.value})", state=self._state)

        result = self._session.answer(selected_key)
        if result.is_session_complete:
            self._transition(AppState.COMPLETE)
        return result

    def restart(self) -> None:
        if self._state is not AppState.COMPLETE:
            raise InvalidStateError(
                f"Can only restart a completed quiz (state: {self._state.value})", state=self._state
            )
        self._session = None
        self._transition(AppState.READY)

    # --- Queries on the active session ---

    def current_question(self) -> Question | None:
        if self._session is None:
            return None
        return self._session.current_question()

    def current_progress(self) -> Progress:
        if self._session is None:
            return _EMPTY_PROGRESS
        return self._session.progress()

    def results(self) -> SessionSummary:
        """Summary of the current or last session; live while playing."""
        if self._session is None:
            return SessionSummary(
                player_name="",
                score=Score(correct=0, incorrect=0, total=0, percentage=0.0, grade=grade_for(0)),
                streaks=Streaks(current=0, longest=0),
                answers=(),
                duration=timedelta(),
            )
        return self._session.summary()

    def save_score(self) -> LeaderboardEntry:
        """Forward the finished session to the score repository."""
        if self._state is not AppState.COMPLETE or self._session is None:
            raise InvalidStateError(f"Cannot save incomplete quiz (state: {self._state.value})", state=self._state)

        entry = self._session.to_leaderboard_entry()
        self._score_repository.save_score(entry.to_record())
        logger.info("Saved score %d/%d for %s", entry.score, entry.total_questions_in_quiz, entry.player_name)
        return entry

    # --- Internals ---

    def _transition(self, new_state: AppState) -> None:
        logger.info("Quiz engine %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def _select_question_ids(self, count: int) -> tuple[list[int], bool]:
        """Pick ``count`` pool ids, avoiding ids served earlier in this cycle.

        Returns the ids and whether the seen-set must be cleared first. The
        storage itself is not touched here.
        """
        all_ids = [question.question_id for question in self._pool]
        seen: set[int] = set()
        if self._seen_storage is not None:
            seen = set(self._seen_storage.get_seen_question_ids())

        available = [question_id for question_id in all_ids if question_id not in seen]
        cycle_reset = len(available) < count
        if cycle_reset:
            logger.info("Question bank exhausted (%d unseen < %d); starting a new cycle", len(available), count)
            available = list(all_ids)

        self._rng.shuffle(available)
        return available[:count], cycle_reset
