import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Session timers (seconds)
    ANSWER_WINDOW_SEC = int(os.environ.get('ANSWER_WINDOW_SEC', '15'))
    REVEAL_HOLD_SEC = int(os.environ.get('REVEAL_HOLD_SEC', '5'))
    # Advertised to clients in every state payload
    POLL_INTERVAL_SEC = float(os.environ.get('POLL_INTERVAL_SEC', '1'))
    JOIN_CODE_LENGTH = int(os.environ.get('JOIN_CODE_LENGTH', '6'))
    JOIN_CODE_ATTEMPTS = int(os.environ.get('JOIN_CODE_ATTEMPTS', '10'))
    NICKNAME_MAX_LENGTH = int(os.environ.get('NICKNAME_MAX_LENGTH', '20'))
    # 'allow_negative' or 'clamp_zero' for estimate answers far outside the range
    ESTIMATE_SCORE_POLICY = os.environ.get('ESTIMATE_SCORE_POLICY', 'allow_negative')
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000',
        ).split(',') if o.strip()
    ]
