import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///timestables.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Quiz shape
    TOTAL_QUESTIONS = int(os.environ.get('TOTAL_QUESTIONS', '10'))
    EASY_TIME_LIMIT_SEC = int(os.environ.get('EASY_TIME_LIMIT_SEC', '15'))
    HARD_TIME_LIMIT_SEC = int(os.environ.get('HARD_TIME_LIMIT_SEC', '10'))
    EASY_MAX_FACTOR = int(os.environ.get('EASY_MAX_FACTOR', '6'))
    HARD_MAX_FACTOR = int(os.environ.get('HARD_MAX_FACTOR', '12'))
    # Auto-advance timers (seconds)
    PREVIEW_DURATION_SEC = int(os.environ.get('PREVIEW_DURATION_SEC', '10'))
    CORRECT_ADVANCE_DELAY_SEC = float(os.environ.get('CORRECT_ADVANCE_DELAY_SEC', '1.5'))
    WRONG_ADVANCE_DELAY_SEC = float(os.environ.get('WRONG_ADVANCE_DELAY_SEC', '2.0'))
    MUSIC_START_DELAY_SEC = float(os.environ.get('MUSIC_START_DELAY_SEC', '1.0'))
    # Countdown seconds that play the warning tick
    TICK_WARNING_SEC = int(os.environ.get('TICK_WARNING_SEC', '3'))
    # Rejected decoy candidates before the offset range widens
    DECOY_MAX_ATTEMPTS = int(os.environ.get('DECOY_MAX_ATTEMPTS', '50'))
    # Leaderboard: entries kept per difficulty, optional remote mirror
    LEADERBOARD_SIZE = int(os.environ.get('LEADERBOARD_SIZE', '10'))
    REMOTE_LEADERBOARD_URL = os.environ.get('REMOTE_LEADERBOARD_URL')
    REMOTE_LEADERBOARD_TIMEOUT_SEC = float(os.environ.get('REMOTE_LEADERBOARD_TIMEOUT_SEC', '3'))
