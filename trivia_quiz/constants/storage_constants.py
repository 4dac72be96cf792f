"""File names and keys used by the local storage collaborators."""

DEFAULT_DATA_DIR: str = "data"
QUESTIONS_FILE_NAME: str = "questions.json"
QUESTIONS_CACHE_FILE_NAME: str = "questions_cache.json"
LEADERBOARD_FILE_NAME: str = "leaderboard.json"
LOCAL_STORAGE_FILE_NAME: str = "local_storage.json"

STORAGE_KEY_PREFIX: str = "quiz_"
SEEN_QUESTIONS_KEY: str = "seen_question_ids"
DEFAULT_LEADERBOARD_LIMIT: int = 50
