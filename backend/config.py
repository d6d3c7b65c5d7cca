import os

def _flag(name, default):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of origins allowed to talk to HTTP and Socket.IO
    CORS_ORIGINS = [o.strip() for o in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
    ).split(',') if o.strip()]
    # Round timing and scoring curve
    ROUND_TIME_BUDGET_SEC = int(os.environ.get('ROUND_TIME_BUDGET_SEC', '15'))
    MAX_POINTS = int(os.environ.get('MAX_POINTS', '150'))
    SCORING_EXPONENT = float(os.environ.get('SCORING_EXPONENT', '2'))
    # Question bank; empty means the bundled quizroom/data/questions.json
    QUESTION_BANK_PATH = os.environ.get('QUESTION_BANK_PATH', '')
    # Session key used when a client connects without a roomId
    DEFAULT_SESSION_KEY = os.environ.get('DEFAULT_SESSION_KEY', 'default-room')
    # Idle session reaper (seconds)
    SESSION_IDLE_TIMEOUT_SEC = int(os.environ.get('SESSION_IDLE_TIMEOUT_SEC', '1800'))
    REAPER_INTERVAL_SEC = int(os.environ.get('REAPER_INTERVAL_SEC', '60'))
    # Day leaderboard normalization sweep (seconds). 0 disables.
    LEDGER_SWEEP_INTERVAL_SEC = int(os.environ.get('LEDGER_SWEEP_INTERVAL_SEC', '3600'))
    LEADERBOARD_LIMIT = int(os.environ.get('LEADERBOARD_LIMIT', '100'))
    # Signed credentials handed out by /api/token for local play
    DEV_TOKENS_ENABLED = _flag('DEV_TOKENS_ENABLED', 'false')
    TOKEN_MAX_AGE_SEC = int(os.environ.get('TOKEN_MAX_AGE_SEC', '86400'))

class DevConfig(Config):
    # Local play hands out tokens unless explicitly switched off
    DEV_TOKENS_ENABLED = _flag('DEV_TOKENS_ENABLED', 'true')
