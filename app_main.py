"""Application entry point for the Trivia Quiz server."""

from __future__ import annotations

from trivia_quiz.core.quiz_engine import QuizEngine
from trivia_quiz.core.services.question_repository import JsonFileQuestionRepository
from trivia_quiz.core.services.score_repository import JsonFileScoreRepository
from trivia_quiz.core.services.seen_questions_storage import JsonFileSeenQuestionsStorage
from trivia_quiz.server.api_server import run_api_server
from trivia_quiz.utils.app_settings import AppSettings
from trivia_quiz.utils.logging_config import configure_logging


def build_engine(settings: AppSettings) -> tuple[QuizEngine, JsonFileScoreRepository]:
    """Wire the file-backed collaborators into a fresh engine."""
    score_repository = JsonFileScoreRepository(settings.leaderboard_path)
    engine = QuizEngine(
        score_repository=score_repository,
        seen_storage=JsonFileSeenQuestionsStorage(settings.local_storage_path),
        question_repository=JsonFileQuestionRepository(
            settings.questions_path, cache_path=settings.questions_cache_path
        ),
    )
    return engine, score_repository


def main() -> None:
    """Load settings and questions, then serve the browser quiz."""
    settings = AppSettings.from_environment()
    logger = configure_logging(settings.log_level)
    logger.info("Starting Trivia Quiz with data directory %s", settings.data_dir.resolve())

    engine, score_repository = build_engine(settings)
    engine.load_from_repository()
    logger.info("Quiz page available at http://%s:%d/", settings.host, settings.port)

    run_api_server(
        engine,
        score_repository,
        host=settings.host,
        port=settings.port,
        default_question_count=settings.question_count,
    )


if __name__ == "__main__":
    main()
