"""Static metadata describing Trivia Quiz."""

APP_NAME = "Trivia Quiz"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Trivia Quiz is a single-player browser quiz. Questions are drawn from a local "
    "question bank without repeats until the bank is exhausted, and finished runs "
    "are recorded on a leaderboard."
)
