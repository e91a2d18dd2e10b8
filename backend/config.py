import os


def _origins(raw):
    return [o.strip() for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///guesswho.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Browser origins allowed by Flask-CORS and the Socket.IO handshake
    CORS_ORIGINS = _origins(os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173',
    ))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '6'))
    # What happens to a running game when a player drops: 'forfeit' or 'abort'
    DISCONNECT_POLICY = os.environ.get('DISCONNECT_POLICY', 'forfeit')
    # Close rooms idle longer than this (seconds). 0 disables.
    ROOM_IDLE_TIMEOUT_SEC = int(os.environ.get('ROOM_IDLE_TIMEOUT_SEC', '0'))
    ROOM_SWEEP_INTERVAL_SEC = int(os.environ.get('ROOM_SWEEP_INTERVAL_SEC', '30'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
